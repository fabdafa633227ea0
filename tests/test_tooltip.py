"""Unit tests for tooltip content."""

import pytest

from covmap.errors import DivisionUndefined, LookupMiss
from covmap.geo.country import CountryLookup
from covmap.geo.features import transform_records
from covmap.hover.tooltip import (
    MORTALITY_PLACEHOLDER,
    build_tooltip,
    format_mortality,
    mortality_rate,
)


class _BrokenLookup(CountryLookup):
    def flag_url(self, name):
        raise LookupMiss(name)


class TestMortality:
    def test_rate(self):
        assert mortality_rate(1000, 50) == pytest.approx(5.0)

    def test_zero_cases_raises(self):
        with pytest.raises(DivisionUndefined):
            mortality_rate(0, 0)

    def test_zero_cases_is_zero_division(self):
        with pytest.raises(ZeroDivisionError):
            mortality_rate(0, 3)

    @pytest.mark.parametrize("cases,deaths,expected", [
        (1000, 50, "5.00%"),
        (3, 1, "33.33%"),
        (10, 0, "0.00%"),
        (0, 0, MORTALITY_PLACEHOLDER),
    ])
    def test_format(self, cases, deaths, expected):
        assert format_mortality(cases, deaths) == expected


class TestBuildTooltip:
    def test_zero_cases_placeholder(self, record_factory):
        (f,) = transform_records([record_factory(confirmed=0, deaths=0)])
        content = build_tooltip(f)
        assert content.mortality == "N/A"
        assert "nan" not in content.to_html().lower()

    def test_null_province_has_no_line(self, italy_record):
        (f,) = transform_records([italy_record])
        content = build_tooltip(f)
        assert content.province is None
        assert not any(line.startswith("Province") for line in content.lines())
        assert "Province" not in content.to_html()

    def test_province_line_present(self, record_factory):
        (f,) = transform_records([record_factory(province="Lombardy")])
        content = build_tooltip(f)
        assert "Province: Lombardy" in content.lines()
        assert "Lombardy" in content.to_html()

    def test_line_order(self, record_factory):
        (f,) = transform_records([record_factory(province="Lombardy")])
        labels = [line.split(":")[0] for line in build_tooltip(f).lines()]
        assert labels == ["Country", "Province", "Cases", "Deaths", "Mortality Rate"]

    def test_flag_from_lookup(self, italy_record):
        (f,) = transform_records([italy_record])
        content = build_tooltip(f, CountryLookup())
        assert content.flag_url == "https://flagcdn.com/64x48/it.png"
        assert '<img src="https://flagcdn.com/64x48/it.png"/>' in content.to_html()
        assert "<img" not in content.to_html(include_flag=False)

    def test_failed_lookup_drops_only_flag(self, italy_record):
        (f,) = transform_records([italy_record])
        content = build_tooltip(f, _BrokenLookup())
        assert content.flag_url is None
        assert content.mortality == "5.00%"

    def test_unknown_country_no_flag(self, record_factory):
        (f,) = transform_records([record_factory(country="Diamond Princess")])
        assert build_tooltip(f, CountryLookup()).flag_url is None

    def test_html_escaped(self, record_factory):
        (f,) = transform_records([record_factory(province="<b>x</b>")])
        assert "&lt;b&gt;x&lt;/b&gt;" in build_tooltip(f).to_html()
