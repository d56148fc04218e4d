"""
Resolver call surface. Answers from the address book when the host is
overridden, otherwise hands the untouched request to the native resolver.
Results are delivered as callback(error, result, family).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any, Callable, Optional, Tuple

from core.models import LookupOptions
from core.resolver import AddressResolver
from probers.system_dns import system_lookup

log = logging.getLogger(__name__)

NativeLookup = Callable[[str, LookupOptions, Callable[..., None]], None]


def normalize_options(options: Any = None) -> LookupOptions:
    if options is None:
        return LookupOptions()
    if isinstance(options, LookupOptions):
        return options.model_copy()
    # bool is an int; reject it rather than read True as a family
    if isinstance(options, int) and not isinstance(options, bool):
        return LookupOptions(family=options)
    if isinstance(options, Mapping):
        return LookupOptions(**options)
    raise TypeError(f"lookup options must be an int, a mapping or None, got {type(options).__name__}")


class LookupOrchestrator:
    def __init__(self, resolver: AddressResolver, native_lookup: NativeLookup = system_lookup):
        self.resolver = resolver
        self.native_lookup = native_lookup

    def lookup(self, hostname: str, options: Any = None, callback: Optional[Callable[..., None]] = None) -> None:
        """
        Resolve hostname and deliver callback(error, result, family).

        Like dns.lookup the options may be omitted: lookup(host, callback).
        Every outcome, including invalid options, goes through the callback.
        A missing callback is a caller error and raises TypeError.
        """
        if callback is None and callable(options):
            options, callback = None, options
        if not callable(callback):
            raise TypeError("lookup requires a callback")

        log.info("Looking DNS records for %s", hostname)
        try:
            opts = normalize_options(options)
        except (TypeError, ValueError) as e:
            callback(e, None, None)
            return

        if opts.all:
            records = self.resolver.get_all_addresses(hostname)
            if not records:
                self._native(hostname, opts, callback)
                return
            callback(None, [r.as_dict() for r in records], None)
            return

        found = self.resolver.get_address(hostname, opts.family)
        if found is not None:
            log.info("Associations found for %s, sending them instead of real DNS records", hostname)
            callback(None, found.address, found.family)
            return

        log.info("Associations not found for %s, sending real DNS records", hostname)
        self._native(hostname, opts, callback)

    def _native(self, hostname: str, opts: LookupOptions, callback: Callable[..., None]) -> None:
        delivered = []

        def _deliver(*args):
            delivered.append(True)
            callback(*args)

        try:
            self.native_lookup(hostname, opts, _deliver)
        except Exception as e:  # noqa: BLE001
            if delivered:
                raise
            log.exception("native lookup failed for %s", hostname)
            callback(e, None, None)

    def resolve(self, hostname: str, options: Any = None) -> Tuple[Any, Optional[int]]:
        """Blocking variant: return (result, family) or raise the delivered error."""
        outcome = {}

        def _capture(error, result=None, family=None):
            outcome.update(error=error, result=result, family=family)

        self.lookup(hostname, options, _capture)
        if outcome.get("error") is not None:
            raise outcome["error"]
        return outcome.get("result"), outcome.get("family")

    async def lookup_async(self, hostname: str, options: Any = None) -> Tuple[Any, Optional[int]]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.resolve, hostname, options)
