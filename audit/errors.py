"""Error taxonomy for the audit pipeline."""


class AuditError(Exception):
    """Base exception for audit pipeline failures."""

    pass


class ConfigurationError(AuditError):
    """A required setting (e.g. the assistant identifier) is missing.

    Fatal to the current start attempt; never retried automatically.
    """

    pass


class TransportError(AuditError):
    """The underlying voice session reported an error or failed to start."""

    pass


class CompletionError(AuditError):
    """A text completion provider call failed."""

    pass


class ParseError(AuditError):
    """A completion response could not be parsed into the expected shape."""

    pass


class PersistenceError(AuditError):
    """Writing or reading a document failed."""

    pass
