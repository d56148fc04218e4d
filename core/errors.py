import ssl

UNTRUSTED_CERT_IN_CHAIN = "UNTRUSTED_CERT_IN_CHAIN"


class NetxError(Exception):
    pass


class ConfigShapeError(NetxError, ValueError):
    """Raised in strict mode for a host entry that matches no known shape."""

    def __init__(self, host, spec):
        super().__init__("Unrecognized association for [%s]: %r" % (host, spec))
        self.host = host
        self.spec = spec


class ReadonlyViolation(NetxError):
    pass


class TrustChainError(NetxError, ssl.CertificateError):
    """Standard hostname/validity check failure (the non-pinning part)."""

    def __init__(self, message, host, code, certificate=None):
        super().__init__(message)
        self.host = host
        self.code = code
        self.certificate = certificate


class CertificatePinError(NetxError, ssl.CertificateError):
    """The presented certificate matches none of the host's pins."""

    kind = "certificate-pin-mismatch"
    code = UNTRUSTED_CERT_IN_CHAIN

    def __init__(self, host, fingerprint, certificate):
        super().__init__("Certificate checks failed for %s" % (host,))
        self.host = host
        self.fingerprint = fingerprint
        self.certificate = certificate
