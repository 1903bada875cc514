"""
Tax calculation on top of resolved rate amounts.

Handles:
- Tax-exclusive and tax-inclusive (back-out) pricing
- Compound tax types, charged on the price plus the other taxes
- Per tax type rounding to the cent
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import ROUND_HALF_DOWN, ROUND_HALF_EVEN, ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Optional

from tax_resolver.context import Context, Taxable, TaxableItem
from tax_resolver.engine import TaxResolver
from tax_resolver.models import RoundingMode

_CENT = Decimal("0.01")

_ROUNDING: dict[RoundingMode, str] = {
    RoundingMode.HALF_UP: ROUND_HALF_UP,
    RoundingMode.HALF_DOWN: ROUND_HALF_DOWN,
    RoundingMode.HALF_EVEN: ROUND_HALF_EVEN,
}


class PricingModel(Enum):
    TAX_EXCLUSIVE = "exclusive"  # tax added on top of price
    TAX_INCLUSIVE = "inclusive"  # tax already embedded in price


def _round_tax(amount: Decimal, mode: RoundingMode = RoundingMode.HALF_UP) -> Decimal:
    return amount.quantize(_CENT, rounding=_ROUNDING[mode])


@dataclass(frozen=True)
class TaxLine:
    """Tax charged by one tax type."""

    tax_type_id: str
    tax_type_name: str
    rate_id: str
    amount_id: str
    rate: Decimal
    taxable_amount: Decimal
    tax_amount: Decimal
    compound: bool = False


@dataclass
class TaxCalculation:
    """Result of calculating tax on a single price."""

    price: Decimal
    taxable_amount: Decimal
    pricing_model: PricingModel
    lines: list[TaxLine] = field(default_factory=list)

    @property
    def total_tax(self) -> Decimal:
        return sum((line.tax_amount for line in self.lines), Decimal("0.00"))

    @property
    def total_with_tax(self) -> Decimal:
        return self.taxable_amount + self.total_tax

    @property
    def effective_rate(self) -> Decimal:
        if not self.taxable_amount:
            return Decimal("0")
        return self.total_tax / self.taxable_amount

    @property
    def tax_type_ids(self) -> list[str]:
        return [line.tax_type_id for line in self.lines]


class TaxCalculator:
    """
    Computes tax for a price in a given context.

    Tax types are resolved by the supplied TaxResolver; the calculator
    only does the arithmetic.
    """

    def __init__(self, resolver: TaxResolver) -> None:
        self.resolver = resolver

    def calculate(
        self,
        price: Decimal,
        context: Context,
        taxable: Optional[Taxable] = None,
        pricing_model: PricingModel = PricingModel.TAX_EXCLUSIVE,
    ) -> TaxCalculation:
        price = Decimal(str(price))
        resolved = self.resolver.resolve_all(taxable or TaxableItem(), context)

        simple = [r for r in resolved if not r[0].compound]
        compound = [r for r in resolved if r[0].compound]

        if pricing_model == PricingModel.TAX_INCLUSIVE:
            # Back out the tax embedded in the price
            divisor = 1 + sum((amount.amount for _, _, amount in simple), Decimal("0"))
            for _, _, amount in compound:
                divisor *= 1 + amount.amount
            taxable_amount = _round_tax(price / divisor)
        else:
            taxable_amount = _round_tax(price)

        lines: list[TaxLine] = []
        for tax_type, rate, amount in simple:
            lines.append(
                TaxLine(
                    tax_type_id=tax_type.id,
                    tax_type_name=tax_type.name,
                    rate_id=rate.id,
                    amount_id=amount.id,
                    rate=amount.amount,
                    taxable_amount=taxable_amount,
                    tax_amount=_round_tax(taxable_amount * amount.amount, tax_type.rounding_mode),
                )
            )

        compound_base = taxable_amount + sum((line.tax_amount for line in lines), Decimal("0"))
        for tax_type, rate, amount in compound:
            tax = _round_tax(compound_base * amount.amount, tax_type.rounding_mode)
            lines.append(
                TaxLine(
                    tax_type_id=tax_type.id,
                    tax_type_name=tax_type.name,
                    rate_id=rate.id,
                    amount_id=amount.id,
                    rate=amount.amount,
                    taxable_amount=compound_base,
                    tax_amount=tax,
                    compound=True,
                )
            )
            compound_base += tax

        if pricing_model == PricingModel.TAX_INCLUSIVE and lines:
            # The last line absorbs the rounding difference so the total
            # reconciles to the price paid.
            difference = _round_tax(price) - taxable_amount - sum(
                (line.tax_amount for line in lines), Decimal("0")
            )
            if difference:
                lines[-1] = replace(lines[-1], tax_amount=lines[-1].tax_amount + difference)

        return TaxCalculation(
            price=price,
            taxable_amount=taxable_amount,
            pricing_model=pricing_model,
            lines=lines,
        )
