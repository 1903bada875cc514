"""Shared fixtures: tax type and zone records written to a temp directory."""

import json
from pathlib import Path

import pytest

from tax_resolver.addressing import Address
from tax_resolver.repository import TaxTypeRepository

TAX_TYPES = {
    "ca_on_hst": {
        "name": "Ontario HST",
        "generic_label": "hst",
        "tag": "CA",
        "zone": "ca_on",
        "rates": [
            {
                "id": "ca_on_hst",
                "name": "Ontario HST",
                "amounts": [
                    {
                        "id": "ca_on_hst_13",
                        "amount": 0.13,
                        "start_date": "2010-07-01",
                    },
                ],
            },
        ],
    },
    "ca_ns_hst": {
        "name": "Nova Scotia HST",
        "generic_label": "hst",
        "tag": "CA",
        "zone": "ca_ns",
        "rates": [
            {
                "id": "ca_ns_hst",
                "name": "Nova Scotia HST",
                "amounts": [
                    {
                        "id": "ca_ns_hst_15",
                        "amount": 0.15,
                        "start_date": "2010-07-01",
                    },
                ],
            },
        ],
    },
}

ZONES = {
    "ca_on": {
        "name": "Ontario (HST)",
        "members": [
            {
                "type": "country",
                "id": "ca_on",
                "name": "Canada - Ontario",
                "country_code": "CA",
                "administrative_area": "ON",
            },
        ],
    },
    "ca_ns": {
        "name": "Nova Scotia (HST)",
        "members": [
            {
                "type": "country",
                "id": "ca_ns",
                "name": "Canada - Nova Scotia",
                "country_code": "CA",
                "administrative_area": "NS",
            },
        ],
    },
}


def write_records(root: Path, tax_types: dict, zones: dict) -> Path:
    for subdirectory, records in (("tax_type", tax_types), ("zone", zones)):
        directory = root / subdirectory
        directory.mkdir(parents=True, exist_ok=True)
        for record_id, definition in records.items():
            (directory / f"{record_id}.json").write_text(
                json.dumps(definition), encoding="utf-8"
            )
    return root


@pytest.fixture
def resources(tmp_path: Path) -> Path:
    return write_records(tmp_path / "resources", TAX_TYPES, ZONES)


@pytest.fixture
def repository(resources: Path) -> TaxTypeRepository:
    return TaxTypeRepository(resources)


@pytest.fixture
def bundled_repository() -> TaxTypeRepository:
    return TaxTypeRepository()


@pytest.fixture
def ontario() -> Address:
    return Address("CA", administrative_area="ON", postal_code="")


@pytest.fixture
def nova_scotia() -> Address:
    return Address("CA", administrative_area="NS", postal_code="")


@pytest.fixture
def us_address() -> Address:
    return Address("US", postal_code="")
