"""
Answers "which address should this host resolve to" against an AddressBook.
A None / empty answer means the host is not overridden and the caller should
fall back to real resolution.
"""

from typing import List, Optional

from core.models import AddressBook, ResolvedAddress

MAPPED_V4_PREFIX = "::ffff:"


class AddressResolver:
    def __init__(self, book: AddressBook):
        self.book = book

    def get_address(self, host: str, family: int = 4) -> Optional[ResolvedAddress]:
        record = self.book.get(host)
        if record is None or not record.has_addresses():
            return None

        addr4 = record.ipv4[0] if record.ipv4 else None
        addr6 = record.ipv6[0] if record.ipv6 else None

        if family in (0, 4) and addr4:
            return ResolvedAddress(addr4, 4)
        if family in (0, 6) and addr6:
            return ResolvedAddress(addr6, 6)
        if family == 6 and addr4:
            return ResolvedAddress(MAPPED_V4_PREFIX + addr4, 6)
        return None

    def get_all_addresses(self, host: str) -> List[ResolvedAddress]:
        record = self.book.get(host)
        if record is None:
            return []
        return [ResolvedAddress(a, 4) for a in record.ipv4] + [ResolvedAddress(a, 6) for a in record.ipv6]
