"""
TLS peer certificate capture and the standard (non-pinning) identity check:
hostname against SAN/CN plus the validity window.
"""

import hashlib
import ipaddress
import logging
import socket
import ssl
import time
from typing import Mapping, Optional

from core.errors import TrustChainError

log = logging.getLogger(__name__)

ALTNAME_INVALID = "ERR_TLS_CERT_ALTNAME_INVALID"
CERT_HAS_EXPIRED = "CERT_HAS_EXPIRED"
CERT_NOT_YET_VALID = "CERT_NOT_YET_VALID"


def _colon_hex(digest: bytes) -> str:
    return ":".join(f"{b:02X}" for b in digest)


def describe_certificate(der: bytes, decoded: Optional[dict] = None) -> dict:
    cert = dict(decoded or {})
    cert["fingerprint"] = _colon_hex(hashlib.sha1(der).digest())
    cert["fingerprint256"] = _colon_hex(hashlib.sha256(der).digest())
    return cert


def _dnsname_match(pattern: str, hostname: str) -> bool:
    pattern = pattern.lower().rstrip(".")
    hostname = hostname.lower().rstrip(".")
    if "*" not in pattern:
        return pattern == hostname
    # only a whole left-most label may be a wildcard
    left, _, rest = pattern.partition(".")
    if left != "*" or not rest:
        return False
    host_left, _, host_rest = hostname.partition(".")
    return bool(host_left) and host_rest == rest


def _ip_match(value: str, ip) -> bool:
    try:
        return ipaddress.ip_address(value.strip()) == ip
    except ValueError:
        return False


def _common_names(cert: Mapping):
    for rdn in cert.get("subject", ()):
        for key, value in rdn:
            if key == "commonName":
                yield value


def _hostname_matches(hostname: str, cert: Mapping) -> bool:
    try:
        ip = ipaddress.ip_address(hostname)
    except ValueError:
        ip = None

    san = cert.get("subjectAltName", ())
    if ip is not None:
        return any(kind == "IP Address" and _ip_match(value, ip) for kind, value in san)

    dns_names = [value for kind, value in san if kind == "DNS"]
    if dns_names:
        return any(_dnsname_match(name, hostname) for name in dns_names)
    return any(_dnsname_match(cn, hostname) for cn in _common_names(cert))


def check_server_identity(hostname: str, cert: Mapping) -> Optional[TrustChainError]:
    """Return a TrustChainError when cert is not valid for hostname right now, else None."""
    if not _hostname_matches(hostname, cert):
        return TrustChainError(
            "Hostname/IP does not match certificate's altnames: Host: %s" % (hostname,),
            hostname,
            ALTNAME_INVALID,
            cert,
        )

    now = time.time()
    not_before = cert.get("notBefore")
    if not_before and ssl.cert_time_to_seconds(not_before) > now:
        return TrustChainError("certificate is not yet valid", hostname, CERT_NOT_YET_VALID, cert)
    not_after = cert.get("notAfter")
    if not_after and ssl.cert_time_to_seconds(not_after) < now:
        return TrustChainError("certificate has expired", hostname, CERT_HAS_EXPIRED, cert)
    return None


def create_context(check_pinning_only: bool = False) -> ssl.SSLContext:
    context = ssl.create_default_context()
    # hostname is checked by check_server_identity after the handshake
    context.check_hostname = False
    if check_pinning_only:
        context.verify_mode = ssl.CERT_NONE
    return context


def peer_certificate(tls: ssl.SSLSocket) -> dict:
    return describe_certificate(tls.getpeercert(binary_form=True), tls.getpeercert())


def tls_probe(host: str, port: int = 443, override=None, timeout: float = 5.0, check_pinning_only: bool = False) -> dict:
    """
    Handshake with host (resolved through override when given) and return the
    presented certificate plus session details. No identity checks are run here.
    """
    address = host
    if override is not None:
        address, _ = override.resolve(host, 0)
    context = create_context(check_pinning_only)
    log.debug("tls probe %s via %s:%d", host, address, port)
    with socket.create_connection((address, port), timeout=timeout) as sock:
        with context.wrap_socket(sock, server_hostname=host) as tls:
            return {
                "sni": host,
                "address": address,
                "certificate": peer_certificate(tls),
                "alpn": tls.selected_alpn_protocol(),
                "cipher": tls.cipher(),
                "version": tls.version(),
            }
