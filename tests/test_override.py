import socket

import pytest

from core.errors import CertificatePinError, ReadonlyViolation
from core.normalizer import normalize
from probers import system_dns
from runtime.override import HostOverride


def _fake_getaddrinfo(calls):
    def fake(host, port, family=0, type=0, proto=0, flags=0):
        calls.append((host, port, family, flags))
        af = socket.AF_INET6 if ":" in host else socket.AF_INET
        sockaddr = (host, port, 0, 0) if af == socket.AF_INET6 else (host, port)
        return [(af, socket.SOCK_STREAM, 6, "", sockaddr)]

    return fake


@pytest.fixture
def calls(monkeypatch):
    recorded = []
    monkeypatch.setattr(system_dns, "native_getaddrinfo", _fake_getaddrinfo(recorded))
    return recorded


def _override(raw, **kwargs):
    return HostOverride(book=normalize(raw), trust_check=lambda h, c: None, **kwargs)


def test_getaddrinfo_returns_configured_addresses(calls):
    o = _override({"example.com": {"ip": ["1.1.1.1", "::1"]}})
    infos = o.getaddrinfo("example.com", 443)
    assert [i[4][0] for i in infos] == ["1.1.1.1", "::1"]
    assert all(c[3] & socket.AI_NUMERICHOST for c in calls)


def test_getaddrinfo_family_filters_and_mapped_synthesis(calls):
    o = _override({"v4.com": "1.1.1.1", "both.com": {"ip": ["1.1.1.1", "::2"]}})
    assert [i[4][0] for i in o.getaddrinfo("v4.com", 80, socket.AF_INET6)] == ["::ffff:1.1.1.1"]
    assert [i[4][0] for i in o.getaddrinfo("both.com", 80, socket.AF_INET)] == ["1.1.1.1"]
    assert [i[4][0] for i in o.getaddrinfo("both.com", 80, socket.AF_INET6)] == ["::2"]


def test_getaddrinfo_falls_back_for_unknown_host(calls):
    o = _override({"example.com": "1.1.1.1"})
    o.getaddrinfo("other.example", 80)
    assert calls == [("other.example", 80, 0, 0)]


def test_install_and_uninstall_patch_socket(calls):
    original = socket.getaddrinfo
    o = _override({"example.com": "10.20.30.40"})
    with o:
        assert socket.getaddrinfo == o.getaddrinfo
        assert socket.getaddrinfo("example.com", 80)[0][4][0] == "10.20.30.40"
        o.install()
        assert o.installed
    assert socket.getaddrinfo is original
    assert not o.installed


def test_lookup_surfaces(calls):
    o = _override({"example.com": ["1.1.1.1", "ABCDEF"]})
    got = []
    o.lookup("example.com", 4, lambda *args: got.append(args))
    assert got == [(None, "1.1.1.1", 4)]
    assert o.resolve("example.com", 6) == ("::ffff:1.1.1.1", 6)
    assert o.check_server_identity("example.com", {"fingerprint": "AB:CD:EF"}) is None
    assert isinstance(o.check_server_identity("example.com", {"fingerprint": "00"}), CertificatePinError)


def test_readonly_book_cannot_be_replaced():
    o = _override({"example.com": "1.1.1.1"}, readonly=True)
    with pytest.raises(ReadonlyViolation):
        o.replace_book(normalize({}))
    assert o.resolve("example.com", 4) == ("1.1.1.1", 4)


def test_writable_book_replacement_rewires_components(calls):
    o = _override({"example.com": "1.1.1.1"}, readonly=False)
    o.replace_book(normalize({"example.com": "2.2.2.2"}))
    assert o.resolve("example.com", 4) == ("2.2.2.2", 4)
    assert o.book["example.com"].ipv4 == ("2.2.2.2",)


def test_loads_association_file(tmp_path):
    path = tmp_path / "netxrc.json"
    path.write_text('{"associations": {"site1.com": {"ip": {"v6": "2001:db8::1"}}}}')
    o = HostOverride(path=str(path))
    assert o.resolve("site1.com", 6) == ("2001:db8::1", 6)


def test_replacement_publishes_components_together(calls):
    o = _override({"example.com": ["1.1.1.1", "ABCDEF"]}, readonly=False)
    before = (o.resolver, o.validator, o.orchestrator)
    new = normalize({"example.com": ["2.2.2.2", "123456"]})
    o.replace_book(new)
    assert o.resolver.book is new
    assert o.validator.book is new
    assert o.orchestrator.resolver is o.resolver
    assert all(a is not b for a, b in zip(before, (o.resolver, o.validator, o.orchestrator)))
    assert o.check_server_identity("example.com", {"fingerprint": "12:34:56"}) is None
