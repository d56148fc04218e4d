"""
Real resolution through the operating system, with the same callback
contract the override uses: callback(error, address_or_list, family).
"""

import socket
from typing import Callable, List

from core.models import LookupOptions

# Saved at import so an installed override never resolves through itself.
native_getaddrinfo = socket.getaddrinfo

_FAMILIES = {0: socket.AF_UNSPEC, 4: socket.AF_INET, 6: socket.AF_INET6}
_VERSIONS = {socket.AF_INET: 4, socket.AF_INET6: 6}

LookupCallback = Callable[..., None]


def _addresses(hostname: str, options: LookupOptions) -> List[dict]:
    infos = native_getaddrinfo(hostname, None, _FAMILIES[options.family], socket.SOCK_STREAM)
    seen = set()
    records = []
    for family, _, _, _, sockaddr in infos:
        version = _VERSIONS.get(family)
        if version is None or sockaddr[0] in seen:
            continue
        seen.add(sockaddr[0])
        records.append({"address": sockaddr[0], "family": version})
    if not options.verbatim:
        records.sort(key=lambda r: r["family"])
    return records


def system_lookup(hostname: str, options: LookupOptions, callback: LookupCallback) -> None:
    try:
        records = _addresses(hostname, options)
    except OSError as e:
        callback(e, None, None)
        return

    if options.all:
        callback(None, records, None)
    elif not records:
        callback(socket.gaierror(socket.EAI_NONAME, "Name or service not known"), None, None)
    else:
        callback(None, records[0]["address"], records[0]["family"])
