"""
Tax type resolvers.

A resolver inspects a Context and returns the tax types that apply to
it. Resolvers are chained: each returns an empty list to let the next
one try, or NO_APPLICABLE_TAX_TYPE to end the search with no result.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from tax_resolver.context import Context, Taxable
from tax_resolver.models import TaxType, Zone
from tax_resolver.repository import TaxTypeRepository

logger = logging.getLogger(__name__)


class _NoApplicableTaxType:
    """Marker returned by a resolver that rules out every tax type."""

    _instance: Optional["_NoApplicableTaxType"] = None

    def __new__(cls) -> "_NoApplicableTaxType":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_APPLICABLE_TAX_TYPE"

    def __bool__(self) -> bool:
        return False


NO_APPLICABLE_TAX_TYPE = _NoApplicableTaxType()

ResolverResult = Union[list[TaxType], _NoApplicableTaxType]


class TaxTypeResolver:
    """Base class for tax type resolvers."""

    def resolve(self, taxable: Taxable, context: Context) -> ResolverResult:
        raise NotImplementedError


class StoreRegistrationChecker:
    """Mixin answering whether the store may collect tax in a zone."""

    def check_store_registration(self, zone: Zone, context: Context) -> bool:
        """
        Return True if one of the store's registrations covers the zone.

        A ``COUNTRY-AREA`` registration covers the zone when the zone
        contains that area. A bare ``COUNTRY`` registration covers every
        zone with a member in that country.
        """
        for registration in context.registration_addresses:
            if registration.administrative_area:
                if zone.match(registration):
                    return True
            elif zone.covers_country(registration.country_code):
                return True
        return False


class _RepositoryBackedResolver(TaxTypeResolver):
    tag: Optional[str] = None

    def __init__(self, repository: TaxTypeRepository) -> None:
        self.repository = repository
        self._tax_types: Optional[list[TaxType]] = None

    def get_tax_types(self) -> list[TaxType]:
        """Candidate tax types, fetched once and cached."""
        if self._tax_types is None:
            self._tax_types = self.repository.get_all(tag=self.tag)
        return self._tax_types


class CanadaTaxTypeResolver(StoreRegistrationChecker, _RepositoryBackedResolver):
    """
    Resolves Canadian GST, HST, PST, RST and QST.

    Canadian sales taxes are destination-based: the customer's province
    decides which tax types apply, wherever in Canada the store is. A
    store outside Canada only collects where it is registered.
    """

    tag = "CA"

    def resolve(self, taxable: Taxable, context: Context) -> ResolverResult:
        customer_address = context.customer_address
        store_address = context.store_address
        if customer_address.country_code != self.tag:
            return []

        results = [t for t in self.get_tax_types() if t.zone.match(customer_address)]
        if store_address.country_code == self.tag:
            return results

        registered = [t for t in results if self.check_store_registration(t.zone, context)]
        if len(registered) < len(results):
            logger.info(
                "Store in %s is not registered for %s",
                store_address.country_code,
                ", ".join(t.id for t in results if t not in registered),
            )
        return registered


class DefaultTaxTypeResolver(StoreRegistrationChecker, _RepositoryBackedResolver):
    """
    Matches any tax type whose zone contains the customer, provided the
    store either sits in the same zone or is registered for it.
    """

    def resolve(self, taxable: Taxable, context: Context) -> ResolverResult:
        results: list[TaxType] = []
        for tax_type in self.get_tax_types():
            zone = tax_type.zone
            if not zone.match(context.customer_address):
                continue
            if zone.match(context.store_address) or self.check_store_registration(zone, context):
                results.append(tax_type)
        return results


class ChainTaxTypeResolver(TaxTypeResolver):
    """Tries resolvers in priority order (highest first); first non-empty wins."""

    def __init__(self) -> None:
        self._resolvers: list[tuple[int, int, TaxTypeResolver]] = []

    def add(self, resolver: TaxTypeResolver, priority: int = 0) -> "ChainTaxTypeResolver":
        # Insertion order breaks ties between equal priorities.
        self._resolvers.append((priority, len(self._resolvers), resolver))
        self._resolvers.sort(key=lambda entry: (-entry[0], entry[1]))
        return self

    @property
    def resolvers(self) -> list[TaxTypeResolver]:
        return [resolver for _, _, resolver in self._resolvers]

    def resolve(self, taxable: Taxable, context: Context) -> list[TaxType]:
        for resolver in self.resolvers:
            result = resolver.resolve(taxable, context)
            if result is NO_APPLICABLE_TAX_TYPE:
                logger.debug("%s ruled out all tax types", type(resolver).__name__)
                return []
            if result:
                return list(result)
        return []
