"""
Domain objects for tax types, rates, and geographic zones.

Everything here is immutable once built by the repository. Each object
can re-serialize itself with ``to_definition()`` into the same shape the
JSON records on disk use.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Union

from tax_resolver.addressing import Address


class GenericLabel(Enum):
    """Generic names under which tax types are presented to customers."""

    GST = "gst"
    HST = "hst"
    PST = "pst"
    QST = "qst"
    RST = "rst"
    VAT = "vat"
    SALES_TAX = "sales_tax"
    CONSUMPTION_TAX = "consumption_tax"


class RoundingMode(Enum):
    HALF_UP = "half_up"
    HALF_DOWN = "half_down"
    HALF_EVEN = "half_even"


# ---------------------------------------------------------------------------
# Postal code patterns
# ---------------------------------------------------------------------------


def _postal_code_key(value: str) -> Union[int, str]:
    return int(value) if value.isdigit() else value.upper()


def _match_postal_rule(postal_code: str, rule: str) -> bool:
    """
    Match a postal code against a single rule.

    A rule is either a regular expression wrapped in slashes or a
    comma-separated list of codes and ``start:end`` ranges.
    """
    if len(rule) > 1 and rule.startswith("/") and rule.endswith("/"):
        return re.search(rule[1:-1], postal_code) is not None

    code = postal_code.upper()
    for item in rule.split(","):
        item = item.strip()
        if not item:
            continue
        if ":" in item:
            start, end = (part.strip() for part in item.split(":", 1))
            key = _postal_code_key(code)
            low, high = _postal_code_key(start), _postal_code_key(end)
            if type(key) is type(low) is type(high) and low <= key <= high:
                return True
        elif item.upper() == code:
            return True
    return False


def match_postal_code(
    postal_code: Optional[str],
    included: Optional[str] = None,
    excluded: Optional[str] = None,
) -> bool:
    """Check a postal code against optional include and exclude rules."""
    postal_code = (postal_code or "").strip()
    if included and (not postal_code or not _match_postal_rule(postal_code, included)):
        return False
    if excluded and postal_code and _match_postal_rule(postal_code, excluded):
        return False
    return True


# ---------------------------------------------------------------------------
# Zones
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ZoneMemberCountry:
    """A country, optionally narrowed to an area, locality or postal codes."""

    id: str
    name: str
    country_code: str
    administrative_area: Optional[str] = None
    locality: Optional[str] = None
    included_postal_codes: Optional[str] = None
    excluded_postal_codes: Optional[str] = None

    type = "country"

    def match(self, address: Address) -> bool:
        if address.country_code != self.country_code:
            return False
        if self.administrative_area and self.administrative_area != address.administrative_area:
            return False
        if self.locality and self.locality != address.locality:
            return False
        return match_postal_code(
            address.postal_code,
            self.included_postal_codes,
            self.excluded_postal_codes,
        )

    def covers_country(self, country_code: str) -> bool:
        return self.country_code == country_code

    def to_definition(self) -> dict[str, Any]:
        definition: dict[str, Any] = {
            "type": self.type,
            "id": self.id,
            "name": self.name,
            "country_code": self.country_code,
        }
        for key in (
            "administrative_area",
            "locality",
            "included_postal_codes",
            "excluded_postal_codes",
        ):
            value = getattr(self, key)
            if value is not None:
                definition[key] = value
        return definition


@dataclass(frozen=True)
class ZoneMemberZone:
    """A member that includes every address of another zone."""

    id: str
    name: str
    zone: "Zone"

    type = "zone"

    def match(self, address: Address) -> bool:
        return self.zone.match(address)

    def covers_country(self, country_code: str) -> bool:
        return self.zone.covers_country(country_code)

    def to_definition(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "id": self.id,
            "name": self.name,
            "zone": self.zone.id,
        }


ZoneMember = Union[ZoneMemberCountry, ZoneMemberZone]


@dataclass(frozen=True)
class Zone:
    """A named set of geographic members, e.g. "Ontario (HST)"."""

    id: str
    name: str
    members: tuple[ZoneMember, ...] = ()
    scope: Optional[str] = None

    def match(self, address: Address) -> bool:
        """Return True if any member of the zone contains the address."""
        return any(member.match(address) for member in self.members)

    def covers_country(self, country_code: str) -> bool:
        return any(member.covers_country(country_code) for member in self.members)

    def to_definition(self) -> dict[str, Any]:
        definition: dict[str, Any] = {"name": self.name}
        if self.scope is not None:
            definition["scope"] = self.scope
        definition["members"] = [m.to_definition() for m in self.members]
        return definition


# ---------------------------------------------------------------------------
# Tax types and rates
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TaxRateAmount:
    """A rate value in effect from ``start_date`` through ``end_date``."""

    id: str
    amount: Decimal
    start_date: date
    end_date: Optional[date] = None

    def is_active(self, on_date: date) -> bool:
        if on_date < self.start_date:
            return False
        return self.end_date is None or on_date <= self.end_date

    def overlaps(self, other: "TaxRateAmount") -> bool:
        """True if the two date ranges share at least one day."""
        starts_before_other_ends = other.end_date is None or self.start_date <= other.end_date
        ends_after_other_starts = self.end_date is None or self.end_date >= other.start_date
        return starts_before_other_ends and ends_after_other_starts

    def to_definition(self) -> dict[str, Any]:
        definition: dict[str, Any] = {
            "id": self.id,
            "amount": float(self.amount),
            "start_date": self.start_date.isoformat(),
        }
        if self.end_date is not None:
            definition["end_date"] = self.end_date.isoformat()
        return definition


@dataclass(frozen=True)
class TaxRate:
    id: str
    name: str
    amounts: tuple[TaxRateAmount, ...] = ()
    default: bool = False

    def get_amount(self, on_date: Optional[date] = None) -> Optional[TaxRateAmount]:
        """Return the amount in effect on the given date (today by default)."""
        on_date = on_date or date.today()
        for amount in self.amounts:
            if amount.is_active(on_date):
                return amount
        return None

    def to_definition(self) -> dict[str, Any]:
        definition: dict[str, Any] = {"id": self.id, "name": self.name}
        if self.default:
            definition["default"] = True
        definition["amounts"] = [a.to_definition() for a in self.amounts]
        return definition


@dataclass(frozen=True)
class TaxType:
    """
    A jurisdiction-tagged tax category, e.g. Ontario HST.

    The ``zone`` decides which addresses the tax type applies to; the
    ``tag`` marks the jurisdiction whose resolver owns it ("CA").
    """

    id: str
    name: str
    generic_label: GenericLabel
    zone: Zone
    rates: tuple[TaxRate, ...] = ()
    tag: Optional[str] = None
    compound: bool = False
    display_inclusive: bool = False
    rounding_mode: RoundingMode = RoundingMode.HALF_UP

    @property
    def default_rate(self) -> Optional[TaxRate]:
        for rate in self.rates:
            if rate.default:
                return rate
        return self.rates[0] if self.rates else None

    def get_rate(self, rate_id: str) -> Optional[TaxRate]:
        return next((r for r in self.rates if r.id == rate_id), None)

    def to_definition(self) -> dict[str, Any]:
        definition: dict[str, Any] = {
            "name": self.name,
            "generic_label": self.generic_label.value,
        }
        if self.tag is not None:
            definition["tag"] = self.tag
        definition["zone"] = self.zone.id
        if self.compound:
            definition["compound"] = True
        if self.display_inclusive:
            definition["display_inclusive"] = True
        if self.rounding_mode is not RoundingMode.HALF_UP:
            definition["rounding_mode"] = self.rounding_mode.value
        definition["rates"] = [r.to_definition() for r in self.rates]
        return definition
