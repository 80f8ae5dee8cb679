"""Tests for the canonical schema normalizer."""

import copy
import json

import pytest

from cv_ingest.core.normalizer import normalize
from cv_ingest.core.schemas import Bullet, CVRecord, LanguageItem


JANE_TEXT = """Jane Doe
Senior Consultant
jane@x.com
EXPERIENCE
Senior Consultant | Acme Corp | Jan 2020 - Present | Brussels, Belgium
• Led migration
• Led migration
EDUCATION
MSc Computer Science - MIT
"""

LOOSE_PRIMARY = {
    "candidate": {
        "fullName": "Jane Doe",
        "headline": "Engineer",
        "contact": {"email": "jane@x.io"},
        "location": {"city": "Brussels", "country": "Belgium"},
        "links": ["https://linkedin.com/in/jane", {"url": "https://jane.dev"}],
    },
    "workExperience": [
        {
            "company": "Acme",
            "position": "Dev",
            "startDate": "2020",
            "endDate": "current",
            "description": "Built x\nRan y",
        }
    ],
    "skills": {"core": ["Python", "SQL"], "tools": "Docker, Git"},
    "languages": ["french (c1)", {"language": "French", "proficiency": "Fluent"}, {"name": "english", "level": "native"}],
    "certificates": [
        "AWS Certified Developer – Amazon – 2022",
        {"title": "CKA", "issuer": "CNCF"},
        {"name": "aws certified developer", "date": "2023"},
    ],
    "education": [
        {"school": "MIT", "degree": "MSc"},
        {"institution": "mit", "degree": "msc", "startDate": "2015"},
    ],
}


class TestShapes:
    def test_non_mapping_is_placeholder_record(self):
        assert normalize(None) == CVRecord()
        assert normalize("junk") == CVRecord()
        assert normalize([1, 2]) == CVRecord()
        assert normalize({}).candidate.name == "Candidate"

    def test_identity_aliases(self):
        record = normalize(LOOSE_PRIMARY)
        assert record.candidate.name == "Jane Doe"
        assert record.candidate.title == "Engineer"
        assert record.candidate.contacts.email == "jane@x.io"
        assert record.candidate.location == "Brussels, Belgium"

    def test_links_fill_contacts(self):
        record = normalize(LOOSE_PRIMARY)
        assert [l.label for l in record.candidate.links] == ["LinkedIn", "Link"]
        assert record.candidate.contacts.linkedin == "https://linkedin.com/in/jane"
        assert record.candidate.contacts.website == "https://jane.dev"

    @pytest.mark.parametrize("scope", ["candidate", "identity"])
    def test_nested_scopes(self, scope):
        assert normalize({scope: {"name": "Jane Doe"}}).candidate.name == "Jane Doe"

    def test_data_candidate_scope(self):
        assert normalize({"data": {"candidate": {"full_name": "Jane Doe"}}}).candidate.name == "Jane Doe"

    def test_experience_aliases_and_description_bullets(self):
        item = normalize(LOOSE_PRIMARY).experience[0]
        assert item.employer == "Acme"
        assert item.role == "Dev"
        assert item.start == "2020"
        assert item.end == "Present"
        assert item.bullets == [Bullet(text="Built x"), Bullet(text="Ran y")]

    def test_bullet_shapes(self):
        doc = {
            "experience": [
                {
                    "role": "Dev",
                    "bullets": ["• A", {"text": "B"}, {"value": "b"}],
                    "highlights": ["C"],
                }
            ]
        }
        bullets = normalize(doc).experience[0].bullets
        assert [b.text for b in bullets] == ["A", "B", "C"]

    def test_bullet_cap(self):
        doc = {"experience": [{"role": "Dev", "bullets": [f"Item {i}" for i in range(40)]}]}
        assert len(normalize(doc).experience[0].bullets) == 25

    def test_empty_experience_items_dropped(self):
        assert normalize({"experience": [{"start": "2020"}, "junk"]}).experience == []


class TestEntities:
    def test_skill_groups_are_flattened(self):
        assert normalize(LOOSE_PRIMARY).skills == ["Python", "SQL", "Docker", "Git"]

    def test_skill_objects_and_strings(self):
        record = normalize({"skills": [{"name": "Python"}, {"name": "python"}, "Go"]})
        assert record.skills == ["Python", "Go"]

    def test_delimited_skill_string(self):
        assert normalize({"skills": "Python, Go; Rust\nJava"}).skills == ["Python", "Go", "Rust", "Java"]

    def test_skill_cap(self):
        record = normalize({"skills": [f"skill{i}" for i in range(100)]})
        assert len(record.skills) == 80

    def test_languages_title_cased_and_coded_level_wins(self):
        assert normalize(LOOSE_PRIMARY).languages == [
            LanguageItem(name="French", level="C1"),
            LanguageItem(name="English", level="Native"),
        ]

    def test_certifications_split_and_merged(self):
        certs = normalize(LOOSE_PRIMARY).certifications
        assert [(c.name, c.issuer, c.date) for c in certs] == [
            ("AWS Certified Developer", "Amazon", "2022"),
            ("CKA", "CNCF", ""),
        ]

    def test_education_merged_by_school_and_degree(self):
        education = normalize(LOOSE_PRIMARY).education
        assert len(education) == 1
        assert (education[0].school, education[0].degree, education[0].start) == ("MIT", "MSc", "2015")

    def test_deep_search_for_misplaced_arrays(self):
        doc = {"payload": {"profile": {"workHistory": [{"company": "Acme", "title": "Dev"}]}}}
        record = normalize(doc)
        assert [(e.employer, e.role) for e in record.experience] == [("Acme", "Dev")]


class TestSourceTextFallback:
    def test_empty_arrays_filled_from_text(self):
        record = normalize({"candidate": {"name": "Jane Doe"}, "sourceText": JANE_TEXT})
        assert record.candidate.name == "Jane Doe"
        assert record.candidate.contacts.email == "jane@x.com"
        assert len(record.experience) == 1
        assert record.experience[0].employer == "Acme Corp"
        assert record.education[0].school == "MIT"

    def test_structured_values_win_over_text(self):
        doc = {"candidate": {"name": "J. Doe"}, "skills": ["Go"], "meta": {"sourceText": JANE_TEXT}}
        record = normalize(doc)
        assert record.candidate.name == "J. Doe"
        assert record.skills == ["Go"]

    def test_extraction_noise_is_stripped(self):
        raw = "<w:t>Jane Doe</w:t><w:t>SKILLS</w:t><w:t>Python, Go</w:t>"
        record = normalize({"rawText": raw})
        assert record.candidate.name == "Jane Doe"
        assert record.skills == ["Python", "Go"]

    def test_output_never_contains_source_text(self):
        record = normalize({"sourceText": JANE_TEXT})
        dumped = json.dumps(record.model_dump(by_alias=True))
        assert "sourceText" not in dumped
        assert "rawText" not in dumped


class TestIdempotence:
    @pytest.mark.parametrize(
        "doc",
        [
            LOOSE_PRIMARY,
            {"sourceText": JANE_TEXT},
            {"candidate": {"name": "Jane Doe"}, "skills": "a, b, a"},
            {},
        ],
    )
    def test_normalize_twice(self, doc):
        once = normalize(doc)
        assert normalize(once) == once
        assert normalize(once.model_dump(by_alias=True)) == once

    def test_input_is_not_mutated(self):
        doc = copy.deepcopy(LOOSE_PRIMARY)
        normalize(doc)
        assert doc == LOOSE_PRIMARY


def test_dotted_skills_are_kept():
    assert normalize({"skills": [".NET", "ASP.NET"]}).skills == [".NET", "ASP.NET"]
