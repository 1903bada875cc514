"""Inputs to a resolution: the transaction context and the taxable subject."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional, Protocol, runtime_checkable

from tax_resolver.addressing import Address


@runtime_checkable
class Taxable(Protocol):
    """Anything that can be taxed: a product, a service, a shipment."""

    def is_physical(self) -> bool:
        ...


@dataclass(frozen=True)
class TaxableItem:
    """Minimal Taxable for callers without their own product model."""

    name: str = ""
    physical: bool = True

    def is_physical(self) -> bool:
        return self.physical


@dataclass(frozen=True)
class Context:
    """
    Everything a resolver needs to know about a transaction.

    Store registrations are ``COUNTRY`` or ``COUNTRY-AREA`` codes naming
    the jurisdictions the store is registered to collect tax in.
    """

    customer_address: Address
    store_address: Address
    store_registrations: tuple[str, ...] = ()
    date: date = field(default_factory=date.today)
    customer_tax_number: Optional[str] = None

    def __post_init__(self) -> None:
        registrations = tuple(r.strip().upper() for r in self.store_registrations if r.strip())
        object.__setattr__(self, "store_registrations", registrations)

    @classmethod
    def build(
        cls,
        customer: str,
        store: str,
        registrations: Iterable[str] = (),
        on_date: Optional[date] = None,
    ) -> "Context":
        """Build a context from ``COUNTRY[-AREA]`` codes."""
        return cls(
            customer_address=Address.from_code(customer),
            store_address=Address.from_code(store),
            store_registrations=tuple(registrations),
            date=on_date or date.today(),
        )

    @property
    def registration_addresses(self) -> list[Address]:
        return [Address.from_code(r) for r in self.store_registrations]
