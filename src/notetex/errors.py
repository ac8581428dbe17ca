"""Exception taxonomy for the conversion pipeline"""


class NotetexError(Exception):
    """Base exception for notetex errors."""


class DocumentNotFound(NotetexError, LookupError):
    """A requested document is absent from the store."""


class ReadFailure(NotetexError, OSError):
    """A document exists but could not be read."""


class WriteFailure(NotetexError, OSError):
    """Rendered output could not be persisted; nothing was written."""


class ConversionError(NotetexError, RuntimeError):
    """A conversion could not run (e.g. no store or settings supplied)."""


__all__ = [
    "NotetexError",
    "DocumentNotFound",
    "ReadFailure",
    "WriteFailure",
    "ConversionError",
]
