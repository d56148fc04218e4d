"""
Process-wide override: owns the address book and wires the resolver, the
pin validator and the lookup surface together. install() swaps
socket.getaddrinfo so every library that resolves through the socket module
(http.client, urllib, requests, asyncio's default resolver) sees the
configured addresses.
"""

from __future__ import annotations

import logging
import socket
from typing import Any, List, Mapping, NamedTuple, Optional, Tuple

from core.lookup import LookupOrchestrator, NativeLookup
from core.models import AddressBook, ResolvedAddress
from core.pinning import PinValidator, TrustCheck
from core.resolver import AddressResolver
from core.state import BookState
from probers import system_dns
from probers.tls_fingerprint import check_server_identity

log = logging.getLogger(__name__)


class _Wiring(NamedTuple):
    resolver: AddressResolver
    validator: PinValidator
    orchestrator: LookupOrchestrator


class HostOverride:
    def __init__(
        self,
        book: Optional[AddressBook] = None,
        path: Optional[str] = None,
        readonly: Optional[bool] = None,
        strict: Optional[bool] = None,
        native_lookup: NativeLookup = system_dns.system_lookup,
        trust_check: TrustCheck = check_server_identity,
    ) -> None:
        self.state = BookState(book=book, path=path, readonly=readonly, strict=strict)
        self.native_lookup = native_lookup
        self.trust_check = trust_check
        self.installed = False
        self._previous = system_dns.native_getaddrinfo
        self._wire(self.state.book)

    def _wire(self, book: AddressBook) -> None:
        resolver = AddressResolver(book)
        # published as one reference so readers never mix two books
        self._wiring = _Wiring(
            resolver,
            PinValidator(book, trust_check=self.trust_check),
            LookupOrchestrator(resolver, native_lookup=self.native_lookup),
        )

    @property
    def resolver(self) -> AddressResolver:
        return self._wiring.resolver

    @property
    def validator(self) -> PinValidator:
        return self._wiring.validator

    @property
    def orchestrator(self) -> LookupOrchestrator:
        return self._wiring.orchestrator

    @property
    def book(self) -> AddressBook:
        return self.state.book

    def replace_book(self, book: AddressBook) -> None:
        self.state.replace(book, on_swap=self._wire)

    # Core surfaces

    def lookup(self, hostname: str, options: Any = None, callback=None) -> None:
        self.orchestrator.lookup(hostname, options, callback)

    def resolve(self, hostname: str, options: Any = None) -> Tuple[Any, Optional[int]]:
        return self.orchestrator.resolve(hostname, options)

    async def lookup_async(self, hostname: str, options: Any = None) -> Tuple[Any, Optional[int]]:
        return await self.orchestrator.lookup_async(hostname, options)

    def check_server_identity(self, hostname: str, cert: Mapping, check_pinning_only: bool = False) -> Optional[Exception]:
        return self.validator.validate(hostname, cert, check_pinning_only=check_pinning_only)

    # socket.getaddrinfo replacement

    def _override_addresses(self, host: str, family: int) -> List[ResolvedAddress]:
        resolver = self.resolver
        if family == socket.AF_INET:
            return [r for r in resolver.get_all_addresses(host) if r.family == 4]
        if family == socket.AF_INET6:
            v6 = [r for r in resolver.get_all_addresses(host) if r.family == 6]
            if v6:
                return v6
            mapped = resolver.get_address(host, 6)
            return [mapped] if mapped is not None else []
        return resolver.get_all_addresses(host)

    def getaddrinfo(self, host, port, family=0, type=0, proto=0, flags=0):
        records = self._override_addresses(host, family) if isinstance(host, str) else []
        if not records:
            return system_dns.native_getaddrinfo(host, port, family, type, proto, flags)

        log.debug("getaddrinfo override for %s -> %s", host, [r.address for r in records])
        infos = []
        for record in records:
            af = socket.AF_INET if record.family == 4 else socket.AF_INET6
            infos.extend(
                system_dns.native_getaddrinfo(record.address, port, af, type, proto, flags | socket.AI_NUMERICHOST)
            )
        return infos

    def install(self) -> None:
        if self.installed:
            return
        self._previous = socket.getaddrinfo
        socket.getaddrinfo = self.getaddrinfo
        self.installed = True
        log.info("resolver override installed (%d hosts)", len(self.book))

    def uninstall(self) -> None:
        if not self.installed:
            return
        socket.getaddrinfo = self._previous
        self.installed = False
        log.info("resolver override removed")

    def __enter__(self) -> "HostOverride":
        self.install()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.uninstall()
