"""Tests for education extraction."""

import pytest

from cv_ingest.core.education_parser import (
    extract_field_of_study_from_degree_line,
    has_degree_keyword,
    is_institution_keyword,
    parse_education,
    split_degree_and_school,
)


class TestSplitDegreeAndSchool:
    @pytest.mark.parametrize(
        "line,expected",
        [
            ("MSc Computer Science - MIT", ("MSc Computer Science", "MIT")),
            ("University of Ghent | Master of Laws", ("Master of Laws", "University of Ghent")),
            ("BSc Physics, University of Ghent", ("BSc Physics", "University of Ghent")),
            ("Bachelor of Arts", ("Bachelor of Arts", "")),
            ("Vrije Universiteit Brussel", ("", "Vrije Universiteit Brussel")),
            ("MBA - INSEAD | 2015 - 2016", ("MBA", "INSEAD")),
        ],
    )
    def test_split(self, line, expected):
        assert split_degree_and_school(line) == expected


def test_keywords():
    assert has_degree_keyword("Master of Science")
    assert has_degree_keyword("PhD in Physics")
    # Short codes only in their usual casing
    assert not has_degree_keyword("ma and pa")
    assert is_institution_keyword("Hochschule München")
    assert not is_institution_keyword("Acme Corp")


def test_field_of_study_from_degree_line():
    assert extract_field_of_study_from_degree_line("Bachelor of Science in Computer Science") == "Computer Science"
    assert extract_field_of_study_from_degree_line("MSc in Data Science (Distinction)") == "Data Science"
    assert extract_field_of_study_from_degree_line("MSc Computer Science") is None


def test_degree_then_school_then_labels():
    block = [
        "Master of Laws",
        "Vrije Universiteit Brussel",
        "2015 - 2017",
        "Field of study: International Law",
        "EQF Level: 7",
        "• Thesis on data protection",
    ]
    entries = parse_education(block)
    assert entries == [
        {
            "school": "Vrije Universiteit Brussel",
            "degree": "Master of Laws",
            "fieldOfStudy": "International Law",
            "eqfLevel": "7",
            "start": "2015",
            "end": "2017",
            "location": "",
            "bullets": ["Thesis on data protection"],
        }
    ]


def test_achievement_lines_become_bullets():
    block = ["MSc Computer Science - MIT", "GPA 3.9 / 4.0", "Graduated with Distinction"]
    entries = parse_education(block)
    assert len(entries) == 1
    assert entries[0]["bullets"] == ["GPA 3.9 / 4.0", "Graduated with Distinction"]


def test_two_entries():
    block = [
        "MSc Computer Science - MIT | 2016 - 2018",
        "BSc Mathematics - University of Ghent | 2012 - 2015",
    ]
    entries = parse_education(block)
    assert [(e["degree"], e["school"]) for e in entries] == [
        ("MSc Computer Science", "MIT"),
        ("BSc Mathematics", "University of Ghent"),
    ]
    assert (entries[1]["start"], entries[1]["end"]) == ("2012", "2015")


def test_empty_block():
    assert parse_education([]) == []
