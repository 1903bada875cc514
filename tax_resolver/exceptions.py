"""
Exception hierarchy for tax type resolution.

All errors raised by the library derive from TaxResolverError so that
callers can catch the whole family at a single boundary.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class TaxResolverError(Exception):
    """Base class for every error raised by the library."""


class NotFoundError(TaxResolverError):
    """A referenced record has no definition in the repository."""

    entity = "record"

    def __init__(self, record_id: str) -> None:
        self.record_id = record_id
        super().__init__(f"Unknown {self.entity}: {record_id}")


class UnknownZoneError(NotFoundError):
    entity = "zone"


class UnknownTaxTypeError(NotFoundError):
    entity = "tax type"


class ParseError(TaxResolverError):
    """A definition record is malformed."""

    def __init__(
        self,
        message: str,
        record_id: Optional[str] = None,
        path: Optional[Union[str, Path]] = None,
    ) -> None:
        self.record_id = record_id
        self.path = Path(path) if path is not None else None
        prefix = f"{record_id}: " if record_id else ""
        super().__init__(f"{prefix}{message}")
