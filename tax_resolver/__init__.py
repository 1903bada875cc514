"""
Tax Type Resolver
=================

Determines which tax types, rates and rate amounts apply to a
transaction, given the customer address, the store address and the
store's tax registrations.

Modules:
    addressing     - Addresses as seen by zone matching
    models         - Tax types, rates, rate amounts and zones
    repository     - JSON record loading for tax types and zones
    context        - Resolution inputs (Context, Taxable)
    resolvers      - Canadian, default and chained tax type resolvers
    engine         - Rate and amount resolution facade
    calculator     - Tax arithmetic on resolved amounts
    report         - Rate table export
    cli            - Command-line interface
"""

__version__ = "1.0.0"

from tax_resolver.addressing import Address
from tax_resolver.calculator import TaxCalculator
from tax_resolver.context import Context, TaxableItem
from tax_resolver.engine import TaxResolver
from tax_resolver.exceptions import NotFoundError, ParseError, TaxResolverError
from tax_resolver.repository import TaxTypeRepository, ZoneRepository
from tax_resolver.resolvers import (
    NO_APPLICABLE_TAX_TYPE,
    CanadaTaxTypeResolver,
    ChainTaxTypeResolver,
    DefaultTaxTypeResolver,
)

__all__ = [
    "Address",
    "CanadaTaxTypeResolver",
    "ChainTaxTypeResolver",
    "Context",
    "DefaultTaxTypeResolver",
    "NO_APPLICABLE_TAX_TYPE",
    "NotFoundError",
    "ParseError",
    "TaxCalculator",
    "TaxResolver",
    "TaxResolverError",
    "TaxTypeRepository",
    "TaxableItem",
    "ZoneRepository",
]
