from __future__ import annotations

from datetime import date


class LedgerError(Exception):
    """Base class for failures while reconciling a project's daily ledger."""


class ValidationError(LedgerError):
    """A raw transaction row carries an amount or type the ledger cannot accept.

    The caller sent (or storage holds) bad data; surfaced as a client error
    together with the offending row id.
    """

    def __init__(self, source_id: str, category: str, reason: str):
        self.source_id = source_id
        self.category = category
        self.reason = reason
        super().__init__(f"{category} row {source_id}: {reason}")


class InvariantViolation(LedgerError):
    """An internal consistency check failed. Always a bug, never recovered."""


class UpstreamFetchError(LedgerError):
    """One of the per-category fetches for a day failed or timed out."""

    def __init__(self, project_id: str, day: date, category: str | None, reason: str):
        self.project_id = project_id
        self.day = day
        self.category = category
        self.reason = reason
        what = category or "rows"
        super().__init__(f"fetching {what} for project {project_id} on {day.isoformat()} failed: {reason}")
