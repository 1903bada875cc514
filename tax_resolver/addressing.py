"""Postal addresses as seen by zone matching."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Address:
    """
    The parts of a postal address that zones can match on.

    Country codes are ISO 3166-1 alpha-2; administrative areas use the
    local subdivision code (e.g. "ON" for Ontario).
    """

    country_code: str
    administrative_area: Optional[str] = None
    locality: Optional[str] = None
    postal_code: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "country_code", self.country_code.strip().upper())
        if self.administrative_area:
            object.__setattr__(
                self, "administrative_area", self.administrative_area.strip().upper()
            )

    @classmethod
    def from_code(cls, code: str) -> "Address":
        """
        Build an address from a ``COUNTRY[-AREA]`` code.

        >>> Address.from_code("ca-on")
        Address(country_code='CA', administrative_area='ON', locality=None, postal_code=None)
        """
        country, _, area = code.strip().partition("-")
        if not country:
            raise ValueError(f"Invalid address code: {code!r}")
        return cls(country_code=country, administrative_area=area or None)

    @property
    def code(self) -> str:
        if self.administrative_area:
            return f"{self.country_code}-{self.administrative_area}"
        return self.country_code
