"""
HTTPS requests that resolve through the override and enforce certificate
pins once the handshake completes.
"""

import hashlib
import http.client
import logging
import socket
from typing import Dict, Optional, Tuple

from core.config import settings
from probers.tls_fingerprint import create_context, peer_certificate

log = logging.getLogger(__name__)


class PinnedHTTPSConnection(http.client.HTTPSConnection):
    """
    HTTPSConnection whose TCP target comes from the override while SNI and
    identity checks keep using the requested hostname. A failed identity or
    pin check closes the socket and raises the error from connect().
    """

    def __init__(self, host, port=None, override=None, check_pinning_only=False, **kwargs):
        kwargs.setdefault("context", create_context(check_pinning_only))
        super().__init__(host, port, **kwargs)
        self.override = override
        self.check_pinning_only = check_pinning_only
        self.peer_certificate: Optional[dict] = None

    def _target(self) -> str:
        if self.override is None:
            return self.host
        address, _ = self.override.resolve(self.host, 0)
        return address

    def connect(self):
        sock = socket.create_connection((self._target(), self.port), self.timeout, self.source_address)
        if self._tunnel_host:
            self.sock = sock
            self._tunnel()
            sock = self.sock
        server_hostname = self._tunnel_host or self.host
        self.sock = self._context.wrap_socket(sock, server_hostname=server_hostname)
        self.peer_certificate = peer_certificate(self.sock)

        if self.override is None:
            return
        err = self.override.check_server_identity(
            server_hostname, self.peer_certificate, check_pinning_only=self.check_pinning_only
        )
        if err is not None:
            log.warning("closing connection to %s: %s", server_hostname, err)
            self.close()
            raise err


def _do_request(
    method: str, host: str, port: int, override=None, path: str = "/", check_pinning_only: bool = False
) -> Tuple[Dict, bytes]:
    conn = PinnedHTTPSConnection(
        host, port, override=override, check_pinning_only=check_pinning_only, timeout=settings.http_timeout_s
    )
    try:
        conn.request(method, path, headers={"User-Agent": settings.user_agent})
        resp = conn.getresponse()
        data = resp.read(4096)
        headers_out = {k.lower(): v for k, v in resp.getheaders()}
        return (
            {
                "status": resp.status,
                "reason": resp.reason,
                "headers": headers_out,
                "hash": hashlib.sha1(data).hexdigest(),
                "fingerprint": (conn.peer_certificate or {}).get("fingerprint"),
            },
            data,
        )
    finally:
        conn.close()


def http_get(host: str, port: int = 443, override=None, path: str = "/", check_pinning_only: bool = False) -> Tuple[Dict, bytes]:
    return _do_request("GET", host, port, override=override, path=path, check_pinning_only=check_pinning_only)
