"""
Resolution facade: tax types, then one rate per type, then the amount
of that rate in effect on the transaction date.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from tax_resolver.context import Context, Taxable
from tax_resolver.models import TaxRate, TaxRateAmount, TaxType
from tax_resolver.resolvers import TaxTypeResolver

logger = logging.getLogger(__name__)


class TaxRateResolver:
    """Picks the rate of a tax type that applies; None to defer."""

    def resolve(
        self, tax_type: TaxType, taxable: Taxable, context: Context
    ) -> Optional[TaxRate]:
        raise NotImplementedError


class DefaultTaxRateResolver(TaxRateResolver):
    def resolve(
        self, tax_type: TaxType, taxable: Taxable, context: Context
    ) -> Optional[TaxRate]:
        return tax_type.default_rate


class TaxResolver:
    """
    Runs a tax type resolver followed by rate resolvers.

    Rate resolvers are consulted in order; the first one returning a
    rate decides it. Without custom rate resolvers every tax type uses
    its default rate.
    """

    def __init__(
        self,
        type_resolver: TaxTypeResolver,
        rate_resolvers: Optional[Sequence[TaxRateResolver]] = None,
    ) -> None:
        self.type_resolver = type_resolver
        self.rate_resolvers = list(rate_resolvers or [DefaultTaxRateResolver()])

    def resolve_tax_types(self, taxable: Taxable, context: Context) -> list[TaxType]:
        result = self.type_resolver.resolve(taxable, context)
        return list(result) if result else []

    def resolve_rates(self, taxable: Taxable, context: Context) -> list[TaxRate]:
        return [rate for _, rate in self._resolve_type_rates(taxable, context)]

    def resolve_amounts(self, taxable: Taxable, context: Context) -> list[TaxRateAmount]:
        return [amount for _, _, amount in self.resolve_all(taxable, context)]

    def resolve_all(
        self, taxable: Taxable, context: Context
    ) -> list[tuple[TaxType, TaxRate, TaxRateAmount]]:
        """Resolve (tax type, rate, amount) triples for the context date."""
        resolved = []
        for tax_type, rate in self._resolve_type_rates(taxable, context):
            amount = rate.get_amount(context.date)
            if amount is None:
                logger.debug(
                    "Rate %s has no amount in effect on %s", rate.id, context.date
                )
                continue
            resolved.append((tax_type, rate, amount))
        return resolved

    def _resolve_type_rates(
        self, taxable: Taxable, context: Context
    ) -> list[tuple[TaxType, TaxRate]]:
        pairs = []
        for tax_type in self.resolve_tax_types(taxable, context):
            rate = self._resolve_rate(tax_type, taxable, context)
            if rate is None:
                logger.debug("No rate resolved for tax type %s", tax_type.id)
                continue
            pairs.append((tax_type, rate))
        return pairs

    def _resolve_rate(
        self, tax_type: TaxType, taxable: Taxable, context: Context
    ) -> Optional[TaxRate]:
        for resolver in self.rate_resolvers:
            rate = resolver.resolve(tax_type, taxable, context)
            if rate is not None:
                return rate
        return None
