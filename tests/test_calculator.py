"""Tests for the TaxCalculator."""

from datetime import date
from decimal import Decimal

import pytest

from tax_resolver.calculator import PricingModel, TaxCalculation, TaxCalculator
from tax_resolver.context import Context
from tax_resolver.engine import TaxResolver
from tax_resolver.repository import TaxTypeRepository
from tax_resolver.resolvers import CanadaTaxTypeResolver
from tests.conftest import TAX_TYPES, ZONES, write_records


@pytest.fixture
def calc(bundled_repository) -> TaxCalculator:
    return TaxCalculator(TaxResolver(CanadaTaxTypeResolver(bundled_repository)))


def _ctx(customer: str, store: str = "CA-ON", day: date = date(2024, 6, 15)) -> Context:
    return Context.build(customer=customer, store=store, on_date=day)


# ── Basic tax calculation ────────────────────────────────────────────


def test_ontario_hst(calc: TaxCalculator):
    result = calc.calculate(Decimal("500.00"), _ctx("CA-ON", "CA-NS"))
    assert isinstance(result, TaxCalculation)
    assert result.tax_type_ids == ["ca_on_hst"]
    assert result.total_tax == Decimal("65.00")
    assert result.total_with_tax == Decimal("565.00")
    assert result.effective_rate == Decimal("0.13")


def test_nova_scotia_hst_rate_change(calc: TaxCalculator):
    before = calc.calculate(Decimal("100.00"), _ctx("CA-NS", day=date(2025, 3, 31)))
    after = calc.calculate(Decimal("100.00"), _ctx("CA-NS", day=date(2025, 4, 1)))
    assert before.total_tax == Decimal("15.00")
    assert after.total_tax == Decimal("14.00")


def test_british_columbia_gst_and_pst(calc: TaxCalculator):
    result = calc.calculate(Decimal("200.00"), _ctx("CA-BC"))
    taxes = {line.tax_type_id: line.tax_amount for line in result.lines}
    # GST 5% + PST 7%
    assert taxes == {"ca_gst": Decimal("10.00"), "ca_bc_pst": Decimal("14.00")}
    assert result.total_tax == Decimal("24.00")


def test_quebec_qst_rounding(calc: TaxCalculator):
    result = calc.calculate(Decimal("19.99"), _ctx("CA-QC"))
    taxes = {line.tax_type_id: line.tax_amount for line in result.lines}
    # 19.99 * 0.05 = 0.9995 ; 19.99 * 0.09975 = 1.9940025
    assert taxes == {"ca_gst": Decimal("1.00"), "ca_qc_qst": Decimal("1.99")}


def test_no_tax_outside_canada(calc: TaxCalculator):
    result = calc.calculate(Decimal("100.00"), _ctx("US-NY"))
    assert result.lines == []
    assert result.total_tax == Decimal("0.00")
    assert result.total_with_tax == Decimal("100.00")
    assert result.effective_rate == Decimal("0")


def test_amount_accepts_strings(calc: TaxCalculator):
    assert calc.calculate("100", _ctx("CA-ON")).total_tax == Decimal("13.00")


# ── Tax-inclusive pricing ────────────────────────────────────────────


def test_tax_inclusive_back_out(calc: TaxCalculator):
    result = calc.calculate(
        Decimal("113.00"), _ctx("CA-ON"), pricing_model=PricingModel.TAX_INCLUSIVE
    )
    assert result.taxable_amount == Decimal("100.00")
    assert result.total_tax == Decimal("13.00")
    assert result.total_with_tax == Decimal("113.00")


def test_tax_inclusive_multiple_taxes(calc: TaxCalculator):
    result = calc.calculate(
        Decimal("112.00"), _ctx("CA-BC"), pricing_model=PricingModel.TAX_INCLUSIVE
    )
    assert result.taxable_amount == Decimal("100.00")
    assert result.total_tax == Decimal("12.00")


def test_tax_inclusive_reconciles_to_price(calc: TaxCalculator):
    # 100 / 1.13 rounds to 88.50, and 13% of that rounds to 11.51
    result = calc.calculate(
        Decimal("100.00"), _ctx("CA-ON"), pricing_model=PricingModel.TAX_INCLUSIVE
    )
    assert result.taxable_amount == Decimal("88.50")
    assert result.lines[0].tax_amount == Decimal("11.50")
    assert result.total_with_tax == Decimal("100.00")


def test_tax_inclusive_remainder_on_last_line(calc: TaxCalculator):
    result = calc.calculate(
        Decimal("100.00"), _ctx("CA-QC"), pricing_model=PricingModel.TAX_INCLUSIVE
    )
    assert result.taxable_amount == Decimal("86.98")
    assert [line.tax_amount for line in result.lines] == [Decimal("4.35"), Decimal("8.67")]
    assert result.total_with_tax == Decimal("100.00")


# ── Compound taxes and rounding modes ────────────────────────────────


@pytest.fixture
def compound_calc(tmp_path) -> TaxCalculator:
    gst = {
        "name": "Canada GST",
        "generic_label": "gst",
        "tag": "CA",
        "zone": "ca_on",
        "rates": [
            {
                "id": "ca_gst",
                "name": "Canada GST",
                "amounts": [{"id": "ca_gst_5", "amount": 0.05, "start_date": "2008-01-01"}],
            }
        ],
    }
    provincial = dict(TAX_TYPES["ca_on_hst"], compound=True, rounding_mode="half_down")
    provincial["rates"] = [
        {
            "id": "ca_on_pst",
            "name": "Ontario PST",
            "amounts": [{"id": "ca_on_pst_10", "amount": 0.10, "start_date": "2008-01-01"}],
        }
    ]
    root = write_records(tmp_path / "compound", {"ca_gst": gst, "ca_on_pst": provincial}, ZONES)
    return TaxCalculator(TaxResolver(CanadaTaxTypeResolver(TaxTypeRepository(root))))


def test_compound_tax_applies_on_other_taxes(compound_calc: TaxCalculator):
    result = compound_calc.calculate(Decimal("100.00"), _ctx("CA-ON"))
    gst, pst = result.lines
    assert (gst.tax_type_id, gst.tax_amount, gst.compound) == ("ca_gst", Decimal("5.00"), False)
    # 10% of 105.00
    assert pst.compound is True
    assert pst.taxable_amount == Decimal("105.00")
    assert pst.tax_amount == Decimal("10.50")
    assert result.total_tax == Decimal("15.50")


def test_compound_tax_inclusive(compound_calc: TaxCalculator):
    result = compound_calc.calculate(
        Decimal("115.50"), _ctx("CA-ON"), pricing_model=PricingModel.TAX_INCLUSIVE
    )
    assert result.taxable_amount == Decimal("100.00")
    assert result.total_tax == Decimal("15.50")


def test_rounding_mode_half_down(compound_calc: TaxCalculator):
    # base 0.90 -> GST 0.045 -> 0.05; PST on 0.95 = 0.095 -> half_down 0.09
    result = compound_calc.calculate(Decimal("0.90"), _ctx("CA-ON"))
    gst, pst = result.lines
    assert gst.tax_amount == Decimal("0.05")
    assert pst.tax_amount == Decimal("0.09")
