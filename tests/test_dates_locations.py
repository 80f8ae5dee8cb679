"""Tests for the date-range tokenizer and the location resolver."""

from cv_ingest.core.dates import (
    DateRange,
    canonical_end,
    extract_dates,
    has_date_range,
    is_date_line,
    remove_date_ranges,
    strip_date_range,
    year_of,
)
from cv_ingest.core.locations import is_location_only, resolve_location


class TestExtractDates:
    def test_month_year_range(self):
        assert extract_dates("Aug 2020 – Dec 2023") == DateRange("Aug 2020", "Dec 2023")

    def test_present_synonym_end(self):
        assert extract_dates("Mar 2021 - Today") == DateRange("Mar 2021", "Present")

    def test_numeric_tokens_with_to(self):
        assert extract_dates("08/2019 to 03/2021") == DateRange("08/2019", "03/2021")

    def test_iso_month(self):
        assert extract_dates("2020-08 - current") == DateRange("2020-08", "Present")

    def test_bare_year(self):
        assert extract_dates("2019") == DateRange("2019", "")

    def test_year_range(self):
        assert extract_dates("2019-2021") == DateRange("2019", "2021")

    def test_no_dates(self):
        assert extract_dates("no dates here") == DateRange("", "")

    def test_lone_present_word_is_not_a_range(self):
        assert not has_date_range("I work on this now")
        assert extract_dates("I work on this now") == DateRange()


def test_canonical_end():
    assert canonical_end("current") == "Present"
    assert canonical_end(" to date ") == "Present"
    assert canonical_end("Dec 2023") == "Dec 2023"
    assert canonical_end("") == ""


def test_is_date_line():
    assert is_date_line("Jan 2020 - Present")
    assert is_date_line("Jan 2020 - Present | Brussels, Belgium")
    assert is_date_line("2019 - 2021 (Remote)")
    assert not is_date_line("Led the migration in 2020")
    assert not is_date_line("Senior Engineer")


def test_strip_and_remove_ranges():
    assert strip_date_range("Senior Engineer | Jan 2020 - Present") == "Senior Engineer"
    assert remove_date_ranges("Engineer 2019 - 2021 Acme", "|") == "Engineer | Acme"


def test_year_of():
    assert year_of("Aug 2020") == 2020
    assert year_of("Present") is None
    assert year_of("") is None


class TestResolveLocation:
    def test_city_country_among_other_tokens(self):
        candidates = ["Senior Engineer", "Kyndryl Belgium", "Brussels, Belgium"]
        assert resolve_location(candidates) == "Brussels, Belgium"

    def test_known_country_wins_over_position(self):
        assert resolve_location(["Paris, France", "Austin, Texas"]) == "Paris, France"

    def test_last_one_without_hint(self):
        assert resolve_location(["Austin, Texas", "Denver, Colorado"]) == "Denver, Colorado"

    def test_parenthesized_pair(self):
        assert resolve_location(["Senior Consultant (Brussels, Belgium)"]) == "Brussels, Belgium"

    def test_work_mode_flag(self):
        assert resolve_location(["Remote (EU timezones)"]) == "Remote"
        assert resolve_location(["Acme Corp", "Hybrid"]) == "Hybrid"

    def test_nothing(self):
        assert resolve_location([]) == ""
        assert resolve_location(["Acme Corp"]) == ""

    def test_spacing_is_normalized(self):
        assert resolve_location(["New York , New York"]) == "New York, New York"


def test_is_location_only():
    assert is_location_only("Brussels, Belgium")
    assert is_location_only("Remote")
    assert not is_location_only("Acme Corp")
    assert not is_location_only("")
