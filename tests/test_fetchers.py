"""Tests for provider request builders and response normalisers."""

from __future__ import annotations

import logging

import pytest

from econ_calendar.errors import CalendarError, UpstreamError
from econ_calendar.fetchers import (
    SUPPORT_MATRIX,
    BLSFetcher,
    FREDFetcher,
    TradingEconomicsFetcher,
    get_fetcher,
)
from econ_calendar.fetchers.bls import period_to_date
from econ_calendar.models import Action, CalendarRequest, Provider

# -----------------------------------------------------------------------
# Fixtures / sample data
# -----------------------------------------------------------------------

SAMPLE_TE_JSON = [
    {
        "CalendarId": "330751",
        "Date": "2026-03-06T13:30:00",
        "Country": "United States",
        "Category": "Non Farm Payrolls",
        "Event": "Non Farm Payrolls",
        "Actual": "",
        "Previous": "143K",
        "Forecast": "160K",
        "TEForecast": "155K",
        "Importance": 3,
        "Currency": "",
        "Unit": "K",
        "Source": "U.S. Bureau of Labor Statistics",
        "Reference": "Feb",
        "URL": "/united-states/non-farm-payrolls",
        "LastUpdate": "2026-02-07T13:30:00",
    },
    {
        "CalendarId": 330752,
        "Date": "2026-03-04T00:30:00",
        "Country": "Japan",
        "Event": "CPI YoY",
        "Actual": "3.2%",
        "Previous": "n/a",
        "Forecast": None,
        "Importance": "2",
    },
]

SAMPLE_FRED_RELEASES = {
    "realtime_start": "2026-03-01",
    "realtime_end": "2026-03-07",
    "release_dates": [
        {"release_id": 10, "release_name": "Consumer Price Index", "date": "2026-03-04"},
        {"release_id": 50, "release_name": "Employment Situation", "date": "2026-03-06"},
    ],
}

SAMPLE_FRED_OBSERVATIONS = {
    "observations": [
        {"realtime_start": "2026-03-10", "date": "2026-01-01", "value": "4.1"},
        {"realtime_start": "2026-03-10", "date": "2026-02-01", "value": "."},
    ],
}

SAMPLE_BLS_JSON = {
    "status": "REQUEST_SUCCEEDED",
    "responseTime": 120,
    "message": [],
    "Results": {
        "series": [
            {
                "seriesID": "CUUR0000SA0",
                "data": [
                    {"year": "2026", "period": "M02", "periodName": "February", "value": "319.082"},
                    {"year": "2026", "period": "M01", "periodName": "January", "value": "-"},
                    {"year": "2025", "period": "M13", "periodName": "Annual", "value": "315.0"},
                    {"year": "2025", "period": "M12", "periodName": "December", "value": "317.6"},
                ],
            },
        ],
    },
}


def make_request(provider: Provider, action: Action, **overrides) -> CalendarRequest:
    fields = dict(
        provider=provider,
        action=action,
        countries=("all",),
        start_date="2026-01-01",
        end_date="2026-03-31",
        max_events=50,
    )
    fields.update(overrides)
    return CalendarRequest(**fields)


# -----------------------------------------------------------------------
# Registry
# -----------------------------------------------------------------------


class TestRegistry:

    def test_support_matrix(self) -> None:
        assert SUPPORT_MATRIX == {
            Provider.FRED: frozenset({Action.CALENDAR, Action.SERIES}),
            Provider.BLS: frozenset({Action.SERIES}),
            Provider.TRADING_ECONOMICS: frozenset({Action.CALENDAR}),
        }

    def test_get_fetcher_by_name(self) -> None:
        assert isinstance(get_fetcher("fred"), FREDFetcher)
        assert isinstance(get_fetcher(Provider.BLS), BLSFetcher)
        assert get_fetcher("tradingeconomics").name == "tradingeconomics"

    def test_unknown_fetcher(self) -> None:
        with pytest.raises(KeyError, match="Available: bls, fred, tradingeconomics"):
            get_fetcher("bloomberg")

    def test_capabilities_are_static(self) -> None:
        te = TradingEconomicsFetcher.capabilities
        assert (te.actual, te.consensus, te.previous, te.official) == (True, True, True, False)
        assert FREDFetcher.capabilities.consensus is False
        assert BLSFetcher.capabilities.official is True

    def test_build_rejects_unsupported_action(self) -> None:
        request = make_request(Provider.BLS, Action.CALENDAR)
        with pytest.raises(CalendarError) as exc_info:
            BLSFetcher().build_requests(request, api_key="k", base_url="https://api.bls.gov")
        assert exc_info.value.to_payload()["error"] == "unsupported_action"
        assert exc_info.value.to_payload()["provider"] == "bls"

    def test_missing_key_error_kinds(self) -> None:
        assert FREDFetcher().missing_key_error().kind == "missing_fred_api_key"
        assert BLSFetcher().missing_key_error().kind == "missing_bls_api_key"
        err = TradingEconomicsFetcher().missing_key_error()
        assert err.kind == "missing_trading_economics_api_key"
        assert "TRADING_ECONOMICS_API_KEY" in err.message


# -----------------------------------------------------------------------
# Trading Economics
# -----------------------------------------------------------------------


class TestTradingEconomicsFetcher:

    def test_builds_calendar_url(self) -> None:
        request = make_request(
            Provider.TRADING_ECONOMICS,
            Action.CALENDAR,
            countries=("united states", "japan"),
            start_date="2026-03-01",
            end_date="2026-03-07",
            importance=3,
        )
        (upstream,) = TradingEconomicsFetcher().build_requests(
            request, api_key="guest:guest", base_url="https://te.example.com//",
        )
        assert upstream.method == "GET"
        assert upstream.url == (
            "https://te.example.com/calendar/country/united%20states,japan/2026-03-01/2026-03-07"
        )
        assert upstream.params == {"c": "guest:guest", "f": "json", "importance": "3"}

    def test_importance_omitted_when_unset(self) -> None:
        request = make_request(Provider.TRADING_ECONOMICS, Action.CALENDAR)
        (upstream,) = TradingEconomicsFetcher().build_requests(
            request, api_key="k", base_url="https://api.tradingeconomics.com",
        )
        assert "importance" not in upstream.params

    def test_normalises_items(self) -> None:
        request = make_request(Provider.TRADING_ECONOMICS, Action.CALENDAR)
        events = TradingEconomicsFetcher().parse_calendar(request, SAMPLE_TE_JSON)
        nfp, cpi = events
        assert nfp.event == "Non Farm Payrolls"
        assert nfp.consensus == "160K" and nfp.consensus_number == 160.0
        assert nfp.previous_number == 143.0
        assert nfp.te_forecast_number == 155.0
        assert nfp.actual_number is None
        assert nfp.importance == 3
        assert cpi.actual_number == 3.2
        assert cpi.previous_number is None
        assert cpi.consensus is None
        assert cpi.importance == 2

    def test_to_dict_drops_absent_fields(self) -> None:
        request = make_request(Provider.TRADING_ECONOMICS, Action.CALENDAR)
        cpi = TradingEconomicsFetcher().parse_calendar(request, SAMPLE_TE_JSON)[1]
        out = cpi.to_dict()
        assert out["actualNumber"] == 3.2
        assert "consensus" not in out
        assert "previousNumber" not in out

    def test_non_list_body_is_empty(self) -> None:
        request = make_request(Provider.TRADING_ECONOMICS, Action.CALENDAR)
        assert TradingEconomicsFetcher().parse_calendar(request, {"Message": "No data"}) == []


# -----------------------------------------------------------------------
# FRED
# -----------------------------------------------------------------------


class TestFREDFetcher:

    def test_builds_release_dates_call(self) -> None:
        request = make_request(Provider.FRED, Action.CALENDAR)
        (upstream,) = FREDFetcher().build_requests(
            request, api_key="abc", base_url="https://api.stlouisfed.org/",
        )
        assert upstream.url == "https://api.stlouisfed.org/fred/releases/dates"
        assert upstream.params["api_key"] == "abc"
        assert upstream.params["realtime_start"] == "2026-01-01"
        assert upstream.params["realtime_end"] == "2026-03-31"

    def test_builds_one_call_per_series(self) -> None:
        request = make_request(Provider.FRED, Action.SERIES, series_ids=("UNRATE", "CPIAUCSL"))
        upstreams = FREDFetcher().build_requests(
            request, api_key="abc", base_url="https://api.stlouisfed.org",
        )
        assert [u.tag for u in upstreams] == ["UNRATE", "CPIAUCSL"]
        assert all(u.url.endswith("/fred/series/observations") for u in upstreams)
        assert upstreams[1].params["series_id"] == "CPIAUCSL"
        assert upstreams[0].params["observation_start"] == "2026-01-01"

    def test_too_many_series_ids(self) -> None:
        ids = tuple(f"S{i}" for i in range(51))
        request = make_request(Provider.FRED, Action.SERIES, series_ids=ids)
        with pytest.raises(CalendarError) as exc_info:
            FREDFetcher().build_requests(request, api_key="k", base_url="https://x")
        assert exc_info.value.kind == "too_many_series_ids"

    def test_warns_when_release_page_truncated(self, caplog: pytest.LogCaptureFixture) -> None:
        request = make_request(Provider.FRED, Action.CALENDAR)
        body = {**SAMPLE_FRED_RELEASES, "count": 1500, "limit": 1000}
        with caplog.at_level(logging.WARNING, logger="econ_calendar.fetchers.fred"):
            events = FREDFetcher().parse_calendar(request, body)
        assert len(events) == 2
        assert "truncated: 2 of 1500" in caplog.text

    def test_no_warning_for_complete_page(self, caplog: pytest.LogCaptureFixture) -> None:
        request = make_request(Provider.FRED, Action.CALENDAR)
        body = {**SAMPLE_FRED_RELEASES, "count": 2}
        with caplog.at_level(logging.WARNING, logger="econ_calendar.fetchers.fred"):
            FREDFetcher().parse_calendar(request, body)
        assert "truncated" not in caplog.text

    def test_normalises_releases(self) -> None:
        request = make_request(Provider.FRED, Action.CALENDAR)
        events = FREDFetcher().parse_calendar(request, SAMPLE_FRED_RELEASES)
        assert [e.event for e in events] == ["Consumer Price Index", "Employment Situation"]
        assert events[0].calendar_id == 10
        assert events[0].url == "https://fred.stlouisfed.org/release?rid=10"
        assert events[0].importance is None

    def test_missing_observation_marker(self) -> None:
        request = make_request(Provider.FRED, Action.SERIES, series_ids=("UNRATE",))
        (upstream,) = FREDFetcher().build_requests(request, api_key="k", base_url="https://x")
        jan, feb = FREDFetcher().parse(request, upstream, SAMPLE_FRED_OBSERVATIONS)
        assert jan.series_id == "UNRATE" and jan.value == 4.1
        assert feb.value is None
        assert feb.to_dict() == {"seriesId": "UNRATE", "date": "2026-02-01", "missing": True, "raw": "."}


# -----------------------------------------------------------------------
# BLS
# -----------------------------------------------------------------------


class TestBLSFetcher:

    def test_builds_batched_post(self) -> None:
        request = make_request(
            Provider.BLS, Action.SERIES, series_ids=("CUUR0000SA0", "LNS14000000"),
            start_date="2025-11-01", end_date="2026-02-28",
        )
        (upstream,) = BLSFetcher().build_requests(request, api_key="reg", base_url="https://api.bls.gov/")
        assert upstream.method == "POST"
        assert upstream.url == "https://api.bls.gov/publicAPI/v2/timeseries/data/"
        assert upstream.json == {
            "seriesid": ["CUUR0000SA0", "LNS14000000"],
            "startyear": "2025",
            "endyear": "2026",
            "registrationkey": "reg",
        }
        assert upstream.params == {}

    def test_too_many_series(self) -> None:
        ids = tuple(f"S{i}" for i in range(51))
        request = make_request(Provider.BLS, Action.SERIES, series_ids=ids)
        with pytest.raises(CalendarError) as exc_info:
            BLSFetcher().build_requests(request, api_key="k", base_url="https://api.bls.gov")
        assert exc_info.value.kind == "too_many_series_ids"

    def test_normalises_and_trims_to_range(self) -> None:
        request = make_request(
            Provider.BLS, Action.SERIES, series_ids=("CUUR0000SA0",),
            start_date="2026-01-01", end_date="2026-03-31",
        )
        (upstream,) = BLSFetcher().build_requests(request, api_key="k", base_url="https://x")
        observations = BLSFetcher().parse(request, upstream, SAMPLE_BLS_JSON)
        assert [(o.date, o.value) for o in observations] == [
            ("2026-02-01", 319.082),
            ("2026-01-01", None),
        ]

    def test_logical_failure_raises(self) -> None:
        request = make_request(Provider.BLS, Action.SERIES, series_ids=("BAD",))
        body = {"status": "REQUEST_NOT_PROCESSED", "message": ["Invalid key"], "Results": {}}
        with pytest.raises(UpstreamError) as exc_info:
            BLSFetcher().parse_series(request, None, body)
        assert exc_info.value.kind == "upstream_error"
        assert exc_info.value.detail == "Invalid key"

    @pytest.mark.parametrize(
        "year, period, expected",
        [
            ("2026", "M01", "2026-01-01"),
            ("2026", "M12", "2026-12-01"),
            ("2026", "Q03", "2026-07-01"),
            ("2026", "S02", "2026-07-01"),
            ("2026", "A01", "2026-01-01"),
            ("2026", "M13", None),
            ("2026", "Q05", None),
            ("26", "M01", None),
            ("2026", "X01", None),
        ],
    )
    def test_period_to_date(self, year, period, expected) -> None:
        assert period_to_date(year, period) == expected
