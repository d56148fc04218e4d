"""
Certificate pin checks, optionally layered on top of the standard
hostname/validity check.
"""

import logging
from typing import Callable, Mapping, Optional

from core.errors import CertificatePinError
from core.models import AddressBook
from probers.tls_fingerprint import check_server_identity

log = logging.getLogger(__name__)

TrustCheck = Callable[[str, Mapping], Optional[Exception]]


def normalize_fingerprint(fingerprint) -> str:
    if isinstance(fingerprint, bytes):
        fingerprint = fingerprint.decode("ascii", "replace")
    return str(fingerprint).replace(":", "")


class PinValidator:
    def __init__(self, book: AddressBook, trust_check: TrustCheck = check_server_identity):
        self.book = book
        self.trust_check = trust_check

    def pins_for(self, hostname: str):
        record = self.book.get(hostname)
        return record.pins if record is not None else ()

    def validate(self, hostname: str, certificate: Mapping, check_pinning_only: bool = False) -> Optional[Exception]:
        """
        Return None when the certificate is acceptable for hostname, otherwise
        the error describing why not. A trust-chain failure is returned as-is
        and pins are not consulted; a pin match never rescues it.
        """
        if not check_pinning_only:
            log.info("General SSL security checks are enabled on host %s", hostname)
            err = self.trust_check(hostname, certificate)
            if err is not None:
                log.warning("Certificate checks failed for %s, %s", hostname, getattr(err, "code", err))
                return err
            log.info("General SSL security checks of host %s passed", hostname)

        pins = self.pins_for(hostname)
        if not pins:
            log.info("SSL pins not specified for %s, omitting checks", hostname)
            return None

        fingerprint = normalize_fingerprint(certificate.get("fingerprint") or "")
        log.info("SSL pins found for %s, checking presented %s", hostname, fingerprint)

        if fingerprint in pins:
            return None

        log.warning("Certificate pinning failed for %s", hostname)
        return CertificatePinError(hostname, fingerprint, certificate)
