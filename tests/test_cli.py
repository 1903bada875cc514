"""Tests for the command-line interface."""

import pandas as pd
import pytest
from rich.console import Console

from tax_resolver import cli
from tax_resolver.cli import build_parser, main


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    monkeypatch.setattr(cli, "console", Console(width=200))


def test_resolve_destination_based(capsys):
    main(["resolve", "--customer", "CA-ON", "--store", "CA-NS", "--date", "2024-06-15"])
    out = capsys.readouterr().out
    assert "ca_on_hst" in out
    assert "ca_ns_hst" not in out


def test_resolve_foreign_customer(capsys):
    main(["resolve", "--customer", "US-NY", "--store", "CA-ON"])
    assert "No tax applies" in capsys.readouterr().out


def test_resolve_foreign_store_with_registration(capsys):
    main(["resolve", "-c", "CA-ON", "-s", "US-NY", "-r", "CA", "--date", "2024-06-15"])
    assert "ca_on_hst" in capsys.readouterr().out


def test_resolve_with_amount(capsys):
    main(
        [
            "resolve",
            "--customer", "CA-ON",
            "--store", "CA-ON",
            "--date", "2024-06-15",
            "--amount", "100",
        ]
    )
    out = capsys.readouterr().out
    assert "Tax Calculation" in out
    assert "$13.00" in out
    assert "$113.00" in out


def test_resolve_with_custom_resources(capsys, resources):
    main(["--resources", str(resources), "resolve", "-c", "CA-NS", "-s", "CA-ON"])
    assert "ca_ns_hst" in capsys.readouterr().out


def test_types_lists_tag(capsys):
    main(["types", "--tag", "CA"])
    out = capsys.readouterr().out
    assert "ca_gst" in out
    assert "ca_qc_qst" in out


def test_rates_shows_history(capsys):
    main(["rates", "--type", "ca_nb_hst"])
    out = capsys.readouterr().out
    assert "ca_nb_hst_13" in out
    assert "ca_nb_hst_15" in out
    assert "2016-06-30" in out


def test_unknown_tax_type_exits_with_error(capsys):
    with pytest.raises(SystemExit) as exc_info:
        main(["rates", "--type", "ca_xx_hst"])
    assert exc_info.value.code == 1
    assert "Unknown tax type" in capsys.readouterr().out


def test_export_writes_csv(capsys, tmp_path):
    output = tmp_path / "rates.csv"
    main(["export", "--output", str(output), "--tag", "CA"])
    assert output.exists()
    assert "ca_gst" in set(pd.read_csv(output)["tax_type"])


def test_invalid_date_rejected():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["resolve", "-c", "CA-ON", "-s", "CA-ON", "--date", "soon"])


@pytest.mark.parametrize(
    "argv",
    [
        ["resolve", "--customer", "", "--store", "CA-ON"],
        ["resolve", "--customer", "CA-ON", "--store", "  "],
        ["resolve", "-c", "CA-ON", "-s", "US-NY", "--registration=-ON"],
    ],
)
def test_invalid_location_code_rejected(capsys, argv):
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    assert exc_info.value.code == 2
    assert "invalid location code" in capsys.readouterr().err


def test_invalid_log_level_rejected(capsys):
    with pytest.raises(SystemExit) as exc_info:
        main(["--log-level", "bogus", "types"])
    assert exc_info.value.code == 2
    assert "invalid log level" in capsys.readouterr().err


def test_log_level_is_case_insensitive():
    args = build_parser().parse_args(["--log-level", "debug", "types"])
    assert args.log_level == "DEBUG"


def test_no_command_prints_help(capsys):
    with pytest.raises(SystemExit) as exc_info:
        main([])
    assert exc_info.value.code == 0
    assert "tax-resolver" in capsys.readouterr().out
