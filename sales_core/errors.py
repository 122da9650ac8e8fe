from __future__ import annotations


class SourceDataError(RuntimeError):
    """The sales export could not be supplied (missing, unreadable or not a table)."""
