"""Error taxonomy shared by the store, codec, and retrieval layers."""

from __future__ import annotations


class ValidationError(ValueError):
    """Raised when a user-supplied value is rejected (e.g. an empty list name)."""


class RetrievalError(RuntimeError):
    """Raised when a dataset search fails: transport, auth, or malformed output."""


class ParseError(ValueError):
    """Raised when an imported CSV/JSON document is structurally invalid."""


__all__ = [
    "ParseError",
    "RetrievalError",
    "ValidationError",
]
