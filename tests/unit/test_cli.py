"""
Tests for ctmetrics.cli module.
"""
from unittest.mock import AsyncMock, patch

import pytest

from ctmetrics.cli import build_parser, format_summary, main, resolve_modes, resolve_range
from ctmetrics.config import load_config
from ctmetrics.exceptions import QueryExecutionError, UnsupportedModeError, ValidationError
from ctmetrics.models import MetricMode

from conftest import utc


def parse(*argv):
    return build_parser().parse_args(list(argv))


class TestResolveModes:
    """Tests for resolve_modes function."""

    def test_flag(self):
        assert resolve_modes(parse("--mode", "total_orders"), load_config()) == [MetricMode.TOTAL_ORDERS]

    def test_all(self):
        assert resolve_modes(parse("--all"), load_config()) == list(MetricMode)

    def test_env_fallback(self, monkeypatch):
        monkeypatch.setenv("MODE", "REPEATED_ORDERS")
        assert resolve_modes(parse(), load_config()) == [MetricMode.REPEATED_ORDERS]

    def test_flag_beats_env(self, monkeypatch):
        monkeypatch.setenv("MODE", "REPEATED_ORDERS")
        assert resolve_modes(parse("--mode", "CART_TOTAL"), load_config()) == [MetricMode.CART_TOTAL]

    def test_missing(self):
        with pytest.raises(ValidationError):
            resolve_modes(parse(), load_config())

    def test_unknown(self):
        with pytest.raises(UnsupportedModeError):
            resolve_modes(parse("--mode", "HOURLY_REVENUE"), load_config())

    def test_mode_and_all_exclusive(self):
        with pytest.raises(SystemExit):
            parse("--mode", "CART_TOTAL", "--all")


class TestResolveRange:
    """Tests for resolve_range function."""

    def test_default_is_yesterday(self):
        start, end = resolve_range(parse(), load_config(), now=utc(2026, 2, 9, 13, 45))
        assert start == utc(2026, 2, 8)
        assert end == utc(2026, 2, 9)

    def test_flags(self):
        args = parse("--start", "2026-02-02T00:00:00.000Z", "--end", "2026-02-08T23:59:00.000Z")
        assert resolve_range(args, load_config()) == (utc(2026, 2, 2), utc(2026, 2, 8, 23, 59))

    def test_env(self, monkeypatch):
        monkeypatch.setenv("START_DATE", "2026-01-01")
        monkeypatch.setenv("END_DATE", "2026-01-08")
        assert resolve_range(parse(), load_config()) == (utc(2026, 1, 1), utc(2026, 1, 8))

    def test_reversed(self):
        with pytest.raises(ValidationError):
            resolve_range(parse("--start", "2026-02-08", "--end", "2026-02-02"), load_config())


class TestFormatSummary:
    """Tests for format_summary function."""

    def test_single_mode(self):
        lines = format_summary({MetricMode.CART_TOTAL: 1234}, utc(2026, 2, 2), utc(2026, 2, 8, 23, 59))
        assert lines == [
            "================================",
            "TOTAL ( 2026-02-02 To 2026-02-08 days): 1234",
        ]

    def test_several_modes(self):
        results = {MetricMode.TOTAL_ORDERS: 10, MetricMode.TOTAL_CUSTOMERS: 3}
        lines = format_summary(results, utc(2026, 2, 2), utc(2026, 2, 9))
        assert lines[1] == "TOTALS ( 2026-02-02 To 2026-02-09 days)"
        assert lines[2:] == ["  TOTAL_ORDERS: 10", "  TOTAL_CUSTOMERS: 3"]


class TestMain:
    """Tests for main entry point."""

    def test_success(self, capsys):
        run_job = AsyncMock(return_value={MetricMode.TOTAL_ORDERS: 77})

        with patch("ctmetrics.cli.run_job", run_job), patch("ctmetrics.cli.setup_logging"):
            code = main(["--mode", "TOTAL_ORDERS", "--start", "2026-02-02", "--end", "2026-02-09"])

        assert code == 0
        assert "TOTAL ( 2026-02-02 To 2026-02-09 days): 77" in capsys.readouterr().out
        _, modes, start, end = run_job.await_args.args
        assert modes == [MetricMode.TOTAL_ORDERS]
        assert (start, end) == (utc(2026, 2, 2), utc(2026, 2, 9))

    def test_missing_config(self, monkeypatch):
        monkeypatch.delenv("CT_PROJECT_KEY")
        run_job = AsyncMock()

        with patch("ctmetrics.cli.run_job", run_job), patch("ctmetrics.cli.setup_logging"):
            assert main(["--mode", "CART_TOTAL"]) == 1

        run_job.assert_not_awaited()

    def test_unknown_mode(self):
        with patch("ctmetrics.cli.setup_logging"):
            assert main(["--mode", "NOPE"]) == 1

    def test_query_failure(self, capsys):
        run_job = AsyncMock(side_effect=QueryExecutionError("GraphQL request failed: 500"))

        with patch("ctmetrics.cli.run_job", run_job), patch("ctmetrics.cli.setup_logging"):
            code = main(["--mode", "CART_TOTAL", "--start", "2026-02-02", "--end", "2026-02-03"])

        assert code == 1
        assert "TOTAL" not in capsys.readouterr().out

    def test_logging_flags(self):
        with patch("ctmetrics.cli.run_job", AsyncMock(return_value={MetricMode.CART_TOTAL: 0})), \
                patch("ctmetrics.cli.setup_logging") as mock_setup:
            main(["--mode", "CART_TOTAL", "--log-level", "DEBUG", "--json-logs",
                  "--start", "2026-02-02", "--end", "2026-02-03"])

        mock_setup.assert_called_once_with(level="DEBUG", json_format=True)
