"""
File-backed repositories for zones and tax types.

Each record lives in its own JSON file named after its id:

    <definition_path>/zone/ca_on.json
    <definition_path>/tax_type/ca_on_hst.json

Records are parsed into immutable model objects on first access and
cached for the lifetime of the repository.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Optional, Union

from tax_resolver.config import get_settings
from tax_resolver.exceptions import (
    ParseError,
    UnknownTaxTypeError,
    UnknownZoneError,
)
from tax_resolver.models import (
    GenericLabel,
    RoundingMode,
    TaxRate,
    TaxRateAmount,
    TaxType,
    Zone,
    ZoneMember,
    ZoneMemberCountry,
    ZoneMemberZone,
)

logger = logging.getLogger(__name__)


def _resolve_definition_path(definition_path: Optional[Union[str, Path]]) -> Path:
    if definition_path is None:
        return get_settings().definition_path
    return Path(definition_path)


def _require(data: dict[str, Any], key: str, record_id: str) -> Any:
    try:
        return data[key]
    except KeyError:
        raise ParseError(f"missing required field '{key}'", record_id) from None


def _require_id(data: dict[str, Any], key: str, record_id: str) -> str:
    value = _require(data, key, record_id)
    if not isinstance(value, str):
        raise ParseError(f"'{key}' must be a string id, got {value!r}", record_id)
    return value


def _check_postal_rule(value: Any, record_id: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ParseError(f"postal code rule must be a string: {value!r}", record_id)
    if len(value) > 1 and value.startswith("/") and value.endswith("/"):
        try:
            re.compile(value[1:-1])
        except re.error as e:
            raise ParseError(f"invalid postal code pattern {value!r}: {e}", record_id) from None
    return value


def _parse_date(value: Any, record_id: str) -> date:
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise ParseError(f"invalid date: {value!r}", record_id) from None


def _parse_amount(value: Any, record_id: str) -> Decimal:
    if isinstance(value, bool):
        raise ParseError(f"invalid amount: {value!r}", record_id)
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ParseError(f"invalid amount: {value!r}", record_id) from None
    if not amount.is_finite() or amount < 0:
        raise ParseError(f"invalid amount: {value!r}", record_id)
    return amount


class _JsonRecordRepository:
    """Shared plumbing: one JSON file per id under a subdirectory."""

    subdirectory = ""

    def __init__(self, definition_path: Optional[Union[str, Path]] = None) -> None:
        self.definition_path = _resolve_definition_path(definition_path)
        self._directory = self.definition_path / self.subdirectory

    def _not_found(self, record_id: str) -> Exception:
        raise NotImplementedError

    def _record_path(self, record_id: str) -> Path:
        return self._directory / f"{record_id}.json"

    def _read_definition(self, record_id: str) -> dict[str, Any]:
        # Ids come from callers and data files; keep them inside the directory.
        if (
            not isinstance(record_id, str)
            or not record_id
            or "/" in record_id
            or "\\" in record_id
            or record_id.startswith(".")
        ):
            raise self._not_found(record_id)

        path = self._record_path(record_id)
        try:
            with open(path, encoding="utf-8") as f:
                definition = json.load(f, parse_float=Decimal)
        except FileNotFoundError:
            raise self._not_found(record_id) from None
        except UnicodeDecodeError as e:
            raise ParseError(f"invalid encoding: {e}", record_id, path) from e
        except json.JSONDecodeError as e:
            raise ParseError(f"invalid JSON: {e}", record_id, path) from e

        if not isinstance(definition, dict):
            raise ParseError("record must be a JSON object", record_id, path)
        logger.debug("Loaded %s definition %s from %s", self.subdirectory, record_id, path)
        return definition

    def _record_ids(self) -> list[str]:
        if not self._directory.is_dir():
            logger.warning("Definition directory not found: %s", self._directory)
            return []
        return sorted(p.stem for p in self._directory.glob("*.json"))


class ZoneRepository(_JsonRecordRepository):
    """Loads zones from ``zone/<id>.json``."""

    subdirectory = "zone"

    def __init__(self, definition_path: Optional[Union[str, Path]] = None) -> None:
        super().__init__(definition_path)
        self._zones: dict[str, Zone] = {}
        self._loading: set[str] = set()

    def _not_found(self, record_id: str) -> Exception:
        return UnknownZoneError(record_id)

    def get(self, zone_id: str) -> Zone:
        """Return the zone with the given id."""
        if zone_id not in self._zones:
            if zone_id in self._loading:
                raise ParseError("circular zone reference", zone_id)
            self._loading.add(zone_id)
            try:
                self._zones[zone_id] = self._create_zone(zone_id, self._read_definition(zone_id))
            finally:
                self._loading.discard(zone_id)
        return self._zones[zone_id]

    def get_all(self) -> list[Zone]:
        """Return every zone, sorted by id."""
        return [self.get(zone_id) for zone_id in self._record_ids()]

    def _create_zone(self, zone_id: str, definition: dict[str, Any]) -> Zone:
        members = _require(definition, "members", zone_id)
        if not isinstance(members, list):
            raise ParseError("'members' must be a list", zone_id)
        return Zone(
            id=zone_id,
            name=_require(definition, "name", zone_id),
            scope=definition.get("scope"),
            members=tuple(self._create_member(zone_id, m) for m in members),
        )

    def _create_member(self, zone_id: str, definition: Any) -> ZoneMember:
        if not isinstance(definition, dict):
            raise ParseError("zone member must be an object", zone_id)
        member_type = _require(definition, "type", zone_id)
        if member_type not in ("country", "zone"):
            raise ParseError(f"unknown zone member type: {member_type!r}", zone_id)
        member_id = _require(definition, "id", zone_id)
        name = _require(definition, "name", zone_id)

        if member_type == "country":
            return ZoneMemberCountry(
                id=member_id,
                name=name,
                country_code=str(_require(definition, "country_code", zone_id)).upper(),
                administrative_area=definition.get("administrative_area"),
                locality=definition.get("locality"),
                included_postal_codes=_check_postal_rule(
                    definition.get("included_postal_codes"), zone_id
                ),
                excluded_postal_codes=_check_postal_rule(
                    definition.get("excluded_postal_codes"), zone_id
                ),
            )
        return ZoneMemberZone(
            id=member_id,
            name=name,
            zone=self.get(_require_id(definition, "zone", zone_id)),
        )


class TaxTypeRepository(_JsonRecordRepository):
    """
    Loads tax types from ``tax_type/<id>.json``.

    Zone references are resolved through a ZoneRepository rooted at the
    same definition path unless one is supplied.
    """

    subdirectory = "tax_type"

    def __init__(
        self,
        definition_path: Optional[Union[str, Path]] = None,
        zone_repository: Optional[ZoneRepository] = None,
    ) -> None:
        super().__init__(definition_path)
        self.zone_repository = zone_repository or ZoneRepository(self.definition_path)
        self._tax_types: dict[str, TaxType] = {}

    def _not_found(self, record_id: str) -> Exception:
        return UnknownTaxTypeError(record_id)

    def get(self, tax_type_id: str) -> TaxType:
        """Return the tax type with the given id."""
        if tax_type_id not in self._tax_types:
            definition = self._read_definition(tax_type_id)
            self._tax_types[tax_type_id] = self._create_tax_type(tax_type_id, definition)
        return self._tax_types[tax_type_id]

    def get_all(self, tag: Optional[str] = None) -> list[TaxType]:
        """Return every tax type sorted by id, optionally only those with a tag."""
        tax_types = [self.get(tax_type_id) for tax_type_id in self._record_ids()]
        if tag is not None:
            tax_types = [t for t in tax_types if t.tag == tag]
        return tax_types

    def _create_tax_type(self, tax_type_id: str, definition: dict[str, Any]) -> TaxType:
        label = _require(definition, "generic_label", tax_type_id)
        try:
            generic_label = GenericLabel(label)
        except ValueError:
            raise ParseError(f"unknown generic label: {label!r}", tax_type_id) from None

        rounding = definition.get("rounding_mode", RoundingMode.HALF_UP.value)
        try:
            rounding_mode = RoundingMode(rounding)
        except ValueError:
            raise ParseError(f"unknown rounding mode: {rounding!r}", tax_type_id) from None

        rates = _require(definition, "rates", tax_type_id)
        if not isinstance(rates, list):
            raise ParseError("'rates' must be a list", tax_type_id)

        return TaxType(
            id=tax_type_id,
            name=_require(definition, "name", tax_type_id),
            generic_label=generic_label,
            tag=definition.get("tag"),
            zone=self.zone_repository.get(_require_id(definition, "zone", tax_type_id)),
            compound=bool(definition.get("compound", False)),
            display_inclusive=bool(definition.get("display_inclusive", False)),
            rounding_mode=rounding_mode,
            rates=tuple(self._create_rate(tax_type_id, r) for r in rates),
        )

    def _create_rate(self, tax_type_id: str, definition: Any) -> TaxRate:
        if not isinstance(definition, dict):
            raise ParseError("rate must be an object", tax_type_id)
        rate_id = _require(definition, "id", tax_type_id)
        amount_definitions = _require(definition, "amounts", rate_id)
        if not isinstance(amount_definitions, list):
            raise ParseError("'amounts' must be a list", rate_id)
        amounts = tuple(self._create_amount(rate_id, a) for a in amount_definitions)

        ordered = sorted(amounts, key=lambda a: a.start_date)
        for earlier, later in zip(ordered, ordered[1:]):
            if earlier.overlaps(later):
                raise ParseError(
                    f"amounts {earlier.id} and {later.id} overlap", tax_type_id
                )

        return TaxRate(
            id=rate_id,
            name=_require(definition, "name", rate_id),
            amounts=amounts,
            default=bool(definition.get("default", False)),
        )

    def _create_amount(self, rate_id: str, definition: Any) -> TaxRateAmount:
        if not isinstance(definition, dict):
            raise ParseError("amount must be an object", rate_id)
        amount_id = _require(definition, "id", rate_id)
        start_date = _parse_date(_require(definition, "start_date", amount_id), amount_id)
        end_date = None
        if definition.get("end_date") is not None:
            end_date = _parse_date(definition["end_date"], amount_id)
            if end_date < start_date:
                raise ParseError("end_date precedes start_date", amount_id)
        return TaxRateAmount(
            id=amount_id,
            amount=_parse_amount(_require(definition, "amount", amount_id), amount_id),
            start_date=start_date,
            end_date=end_date,
        )
