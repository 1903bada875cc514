"""Tabular exports of the tax rate data."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Union

import pandas as pd

from tax_resolver.models import TaxType

RATE_COLUMNS = [
    "tax_type",
    "tax_type_name",
    "tag",
    "generic_label",
    "zone",
    "rate",
    "default",
    "amount_id",
    "amount",
    "start_date",
    "end_date",
]


def rates_frame(tax_types: Iterable[TaxType]) -> pd.DataFrame:
    """
    Flatten tax types into one row per rate amount.

    Rows keep the order of the tax types, their rates, and their amounts.
    Amounts stay Decimal; open-ended amounts have a missing end date.
    """
    rows = []
    for tax_type in tax_types:
        for rate in tax_type.rates:
            for amount in rate.amounts:
                rows.append(
                    {
                        "tax_type": tax_type.id,
                        "tax_type_name": tax_type.name,
                        "tag": tax_type.tag,
                        "generic_label": tax_type.generic_label.value,
                        "zone": tax_type.zone.id,
                        "rate": rate.id,
                        "default": rate is tax_type.default_rate,
                        "amount_id": amount.id,
                        "amount": amount.amount,
                        "start_date": pd.Timestamp(amount.start_date),
                        "end_date": pd.Timestamp(amount.end_date) if amount.end_date else pd.NaT,
                    }
                )
    return pd.DataFrame(rows, columns=RATE_COLUMNS)


def export_rates_csv(tax_types: Iterable[TaxType], path: Union[str, Path]) -> Path:
    """Write the rate table to a CSV file and return its path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    frame = rates_frame(tax_types)
    frame.to_csv(path, index=False, date_format="%Y-%m-%d")
    return path
