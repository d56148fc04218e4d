"""
Association list parsing.

Operators may describe a host in several ways:

    "site.com": "10.20.30.40"
    "site.com": ["10.20.30.40", "PIN"]
    "site.com": {"ip": "2001:db8::1", "pin": "PIN"}
    "site.com": {"ip": ["10.0.0.1", "::1"], "pin": ["PIN1", "PIN2"]}
    "site.com": {"ip": {"v4": ["10.0.0.1"], "v6": "::1"}}

Every entry is tagged with its shape up front and then built by that shape's
builder, so each form yields the same HostRecord for the same association.
Address and pin values are copied as given; nothing checks their syntax.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Tuple

from core.errors import ConfigShapeError
from core.models import AddressBook, HostRecord

log = logging.getLogger(__name__)


class SpecKind(enum.Enum):
    PLAIN = "plain"
    PAIR = "pair"
    OBJECT = "object"
    UNKNOWN = "unknown"


def ip_version(address: str) -> Optional[int]:
    if "." in address:
        return 4
    if ":" in address:
        return 6
    return None


def classify(spec: Any) -> SpecKind:
    if isinstance(spec, str):
        return SpecKind.PLAIN
    if isinstance(spec, (list, tuple)):
        if 1 <= len(spec) <= 2 and isinstance(spec[0], str):
            return SpecKind.PAIR
        return SpecKind.UNKNOWN
    if isinstance(spec, Mapping):
        return SpecKind.OBJECT
    return SpecKind.UNKNOWN


def _bucket(host: str, addresses: List[str]) -> Tuple[List[str], List[str]]:
    v4: List[str] = []
    v6: List[str] = []
    for address in addresses:
        version = ip_version(address) if isinstance(address, str) else None
        if version == 4:
            v4.append(address)
        elif version == 6:
            v6.append(address)
        else:
            log.warning("ignoring address %r for %s: family not detectable", address, host)
    return v4, v6


def _strings(host: str, field: str, values: Any) -> List[str]:
    kept = [v for v in values if isinstance(v, str)]
    if len(kept) != len(values):
        log.warning("ignoring non-string %s values for %s", field, host)
    return kept


def _from_plain(host: str, spec: str) -> HostRecord:
    v4, v6 = _bucket(host, [spec])
    return HostRecord(ipv4=v4, ipv6=v6)


def _from_pair(host: str, spec) -> HostRecord:
    v4, v6 = _bucket(host, [spec[0]])
    pins = _strings(host, "pin", [spec[1]]) if len(spec) > 1 and spec[1] else []
    return HostRecord(ipv4=v4, ipv6=v6, pins=pins)


def _from_object(host: str, spec: Mapping) -> HostRecord:
    ip = spec.get("ip")
    v4: List[str] = []
    v6: List[str] = []

    if isinstance(ip, str):
        v4, v6 = _bucket(host, [ip])
    elif isinstance(ip, (list, tuple)):
        v4, v6 = _bucket(host, list(ip))
    elif isinstance(ip, Mapping):
        # Family is explicit here, so no detection.
        explicit = {}
        for key in ("v4", "v6"):
            value = ip.get(key)
            if isinstance(value, str):
                explicit[key] = [value] if value else []
            elif isinstance(value, (list, tuple)):
                explicit[key] = _strings(host, f"ip.{key}", value)
            else:
                explicit[key] = []
        v4, v6 = explicit["v4"], explicit["v6"]
    elif ip is not None:
        log.warning("ignoring 'ip' of type %s for %s", type(ip).__name__, host)

    pin = spec.get("pin")
    pins: List[str] = []
    if isinstance(pin, str):
        pins = [pin]
    elif isinstance(pin, (list, tuple)):
        pins = _strings(host, "pin", pin)

    return HostRecord(ipv4=v4, ipv6=v6, pins=pins)


_BUILDERS = {
    SpecKind.PLAIN: _from_plain,
    SpecKind.PAIR: _from_pair,
    SpecKind.OBJECT: _from_object,
}


def normalize_host(host: str, spec: Any, strict: bool = False) -> HostRecord:
    kind = classify(spec)
    builder = _BUILDERS.get(kind)
    if builder is None:
        if strict:
            raise ConfigShapeError(host, spec)
        log.warning("unrecognized association for %s (%s), host will not be overridden", host, type(spec).__name__)
        return HostRecord()
    return builder(host, spec)


def normalize(raw: Any, strict: bool = False) -> AddressBook:
    """
    Build an AddressBook from the raw association map.

    In strict mode an entry of unknown shape raises ConfigShapeError; otherwise
    it becomes an empty record, which resolves as "not overridden".
    """
    if not isinstance(raw, Mapping):
        if strict:
            raise ConfigShapeError("<root>", raw)
        log.warning("associations must be an object, got %s; using an empty list", type(raw).__name__)
        return AddressBook()

    records: Dict[str, HostRecord] = {}
    for host, spec in raw.items():
        records[host] = normalize_host(host, spec, strict=strict)
    log.debug("normalized %d associations", len(records))
    return AddressBook(records)
