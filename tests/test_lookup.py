import asyncio
import socket

import pytest

from core.lookup import LookupOrchestrator, normalize_options
from core.models import LookupOptions
from core.normalizer import normalize
from core.resolver import AddressResolver

DUMMY = ["140.82.114.4", "140.82.112.3", "140.82.113.4"]


class FakeNative:
    def __init__(self, result=("93.184.216.34", 4), error=None):
        self.calls = []
        self.result = result
        self.error = error

    def __call__(self, hostname, options, callback):
        self.calls.append((hostname, options))
        if self.error is not None:
            callback(self.error, None, None)
        else:
            callback(None, *self.result)


def _orchestrator(raw, native=None):
    native = native or FakeNative()
    return LookupOrchestrator(AddressResolver(normalize(raw)), native_lookup=native), native


def _collect(orch, host, options=None):
    got = []
    orch.lookup(host, options, lambda *args: got.append(args))
    assert len(got) == 1
    return got[0]


def test_overridden_host_single_result():
    orch, native = _orchestrator({"example.com": {"ip": DUMMY}})
    assert _collect(orch, "example.com", 4) == (None, "140.82.114.4", 4)
    assert _collect(orch, "example.com", {"family": 6}) == (None, "::ffff:140.82.114.4", 6)
    assert _collect(orch, "example.com") == (None, "140.82.114.4", 4)
    assert native.calls == []


def test_unknown_host_delegates_and_forwards_result_unchanged():
    native = FakeNative(result=("1.2.3.4", 4))
    orch, _ = _orchestrator({"example.com": "10.0.0.1"}, native)
    assert _collect(orch, "unknown.example", {"family": 4}) == (None, "1.2.3.4", 4)
    hostname, options = native.calls[0]
    assert hostname == "unknown.example"
    assert options.family == 4
    assert options.verbatim is True


def test_native_errors_are_forwarded():
    error = socket.gaierror(socket.EAI_NONAME, "Name or service not known")
    orch, _ = _orchestrator({}, FakeNative(error=error))
    err, result, family = _collect(orch, "nope.example", 0)
    assert err is error
    assert result is None


def test_ipv6_only_host_asked_for_ipv4_falls_back():
    orch, native = _orchestrator({"h": "2001:db8::1"})
    _collect(orch, "h", 4)
    assert len(native.calls) == 1


def test_all_addresses():
    orch, native = _orchestrator({"h": {"ip": ["1.1.1.1", "::1", "2.2.2.2"]}})
    err, records, family = _collect(orch, "h", {"all": True})
    assert err is None
    assert records == [
        {"address": "1.1.1.1", "family": 4},
        {"address": "2.2.2.2", "family": 4},
        {"address": "::1", "family": 6},
    ]
    assert native.calls == []


def test_all_for_unknown_host_delegates():
    native = FakeNative(result=([{"address": "9.9.9.9", "family": 4}], None))
    orch, _ = _orchestrator({}, native)
    assert _collect(orch, "x.example", {"all": True}) == (None, [{"address": "9.9.9.9", "family": 4}], None)
    assert native.calls[0][1].all is True


def test_invalid_options_reported_through_callback():
    orch, native = _orchestrator({"h": "1.1.1.1"})
    err, result, _ = _collect(orch, "h", {"family": 5})
    assert isinstance(err, ValueError)
    err, _, _ = _collect(orch, "h", "four")
    assert isinstance(err, TypeError)
    assert native.calls == []


def test_native_exception_is_delivered_not_raised():
    def boom(hostname, options, callback):
        raise RuntimeError("resolver exploded")

    orch, _ = _orchestrator({}, boom)
    err, _, _ = _collect(orch, "x.example")
    assert isinstance(err, RuntimeError)


def test_integer_options_do_not_leak_between_calls():
    first = normalize_options(6)
    second = normalize_options(None)
    assert first.family == 6
    assert second.family == 0


def test_options_merge_over_defaults():
    opts = normalize_options({"all": True, "hints": 32})
    assert opts == LookupOptions(family=0, all=True, verbatim=True, hints=32)


def test_resolve_raises_delivered_error():
    error = socket.gaierror(socket.EAI_NONAME, "Name or service not known")
    orch, _ = _orchestrator({"h": "1.1.1.1"}, FakeNative(error=error))
    assert orch.resolve("h", 4) == ("1.1.1.1", 4)
    with pytest.raises(socket.gaierror):
        orch.resolve("other.example", 4)


def test_lookup_async():
    orch, _ = _orchestrator({"h": "1.1.1.1"})
    assert asyncio.run(orch.lookup_async("h", {"family": 6})) == ("::ffff:1.1.1.1", 6)


def test_callback_may_take_the_options_slot():
    orch, _ = _orchestrator({"site1.com": "10.20.30.40"})
    got = []
    orch.lookup("site1.com", lambda *args: got.append(args))
    assert got == [(None, "10.20.30.40", 4)]


def test_missing_callback_is_a_caller_error():
    orch, native = _orchestrator({"site1.com": "10.20.30.40"})
    with pytest.raises(TypeError):
        orch.lookup("site1.com", 4)
    assert native.calls == []
