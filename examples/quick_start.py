#!/usr/bin/env python3
"""
Quick Start Example
===================

Demonstrates resolving the tax for a sale from a Nova Scotia store to an
Ontario customer, then calculating the tax on a $500 purchase.

Usage:
    python examples/quick_start.py
"""

from datetime import date
from decimal import Decimal

from tax_resolver import (
    CanadaTaxTypeResolver,
    Context,
    TaxCalculator,
    TaxResolver,
    TaxTypeRepository,
)


def main() -> None:
    # Load the bundled Canadian tax data and build the resolver
    repository = TaxTypeRepository()
    resolver = TaxResolver(CanadaTaxTypeResolver(repository))
    calculator = TaxCalculator(resolver)

    # Nova Scotia store selling to an Ontario customer
    context = Context.build(customer="CA-ON", store="CA-NS", on_date=date(2024, 6, 15))

    result = calculator.calculate(Decimal("500.00"), context)

    # Print the result
    for line in result.lines:
        print(f"{line.tax_type_name:<16}{line.rate:>8.3%}{line.tax_amount:>10}")
    print(f"Total Tax:      ${result.total_tax}")
    print(f"Total w/ Tax:   ${result.total_with_tax}")


if __name__ == "__main__":
    main()
