"""
Shared data models: the canonical address book and the lookup request/result
shapes passed between the core, the CLI and the API.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterator, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict


class HostRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    ipv4: Tuple[str, ...] = ()
    ipv6: Tuple[str, ...] = ()
    pins: Tuple[str, ...] = ()

    def has_addresses(self) -> bool:
        return bool(self.ipv4 or self.ipv6)


class AddressBook(Mapping):
    """Read-only hostname -> HostRecord table. Keys are matched exactly."""

    def __init__(self, records: Optional[Dict[str, HostRecord]] = None):
        self._records = MappingProxyType(dict(records or {}))

    def __getitem__(self, host: str) -> HostRecord:
        return self._records[host]

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __repr__(self) -> str:
        return f"AddressBook({dict(self._records)!r})"

    def as_dict(self) -> Dict[str, dict]:
        return {host: {"ipv4": list(r.ipv4), "ipv6": list(r.ipv6), "pins": list(r.pins)} for host, r in self._records.items()}


@dataclass(frozen=True)
class ResolvedAddress:
    address: str
    family: int

    def as_dict(self) -> dict:
        return {"address": self.address, "family": self.family}


class LookupOptions(BaseModel):
    # unknown keys (hints, etc.) ride along to the native resolver
    model_config = ConfigDict(extra="allow")

    family: Literal[0, 4, 6] = 0
    all: bool = False
    verbatim: bool = True
