"""Exception types raised by zwila."""


class ZwilaError(Exception):
    pass


class ConfigurationError(ZwilaError):
    """Missing or invalid account, key or container settings."""


class StoreError(ZwilaError):
    """The blob store rejected or failed a request."""


class NotFoundError(StoreError):
    """The requested blob does not exist."""


class TransientStoreError(StoreError):
    """Timeout, network failure or throttling. Safe to retry with backoff."""


class SigningError(ZwilaError):
    """A shared access signature could not be produced."""


class DecodeError(ZwilaError):
    """A folder metadata record could not be decoded.

    ``field`` names the offending preamble key, or ``"preamble"`` when the
    record's framing itself is broken.
    """

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"{field}: {reason}")
