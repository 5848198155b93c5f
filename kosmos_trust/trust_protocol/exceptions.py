"""
Custom exceptions for the trust protocol.

Every error aborts the operation that raised it. The enclosing ledger
transaction is discarded, so a failed call never leaves partial state behind.
"""


class TrustProtocolError(Exception):
    """Base exception for trust protocol errors."""

    pass


class ConflictError(TrustProtocolError):
    """Creation or initialization over an entity that already exists."""

    pass


class NotFoundError(TrustProtocolError):
    """Operation on an entity that does not exist."""

    pass


class AuthorizationError(TrustProtocolError):
    """Caller lacks the required authority, or the issuer is not trusted."""

    pass


class StateError(TrustProtocolError):
    """Operation is invalid for the entity's current lifecycle state."""

    pass


class ConfigurationError(TrustProtocolError):
    """Configuration error or unmet precondition."""

    pass


class LedgerError(TrustProtocolError):
    """Ledger snapshot could not be written or read."""

    pass
