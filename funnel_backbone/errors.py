"""Exceptions raised by the funnel engine.

None of these escape the store: loads fall back to an empty funnel and
imports report ``False``. They exist so the layers below can say what
went wrong.
"""


class FunnelError(Exception):
    """Base class for funnel engine errors."""


class FunnelParseError(FunnelError, ValueError):
    """Funnel JSON is malformed or lacks the ``nodes``/``edges`` keys."""


class StorageError(FunnelError):
    """The key-value medium could not be read or written."""
