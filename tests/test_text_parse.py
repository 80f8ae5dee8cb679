from cv_ingest.core.normalizer import normalize
from cv_ingest.core.schemas import Bullet, CVMeta, CVRecord
from cv_ingest.core.text_parser import parse_free_text, parse_lines

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


def test_parse_free_text_end_to_end():
    record = parse_free_text(JANE_TEXT)

    assert record.candidate.name == "Jane Doe"
    assert record.candidate.title == "Senior Consultant"
    assert record.candidate.contacts.email == "jane@x.com"

    assert len(record.experience) == 1
    job = record.experience[0]
    assert job.employer == "Acme Corp"
    assert job.role == "Senior Consultant"
    assert job.start == "Jan 2020"
    assert job.end == "Present"
    assert job.location == "Brussels, Belgium"
    # Duplicate bullets collapse
    assert job.bullets == [Bullet(text="Led migration")]

    assert len(record.education) == 1
    assert record.education[0].school == "MIT"
    assert record.education[0].degree == "MSc Computer Science"

    assert record.meta.source == "text"


def test_empty_text_yields_placeholder_record():
    record = parse_free_text("")
    assert record == CVRecord(meta=CVMeta(source="text"))
    assert parse_free_text("   \n\n  ").candidate.name == "Candidate"


def test_unrecognisable_text_never_raises():
    record = parse_free_text("!!!\n---\n12345")
    assert record.experience == []
    assert record.education == []


def test_parse_free_text_is_stable_under_normalize():
    record = parse_free_text(JANE_TEXT)
    assert normalize(record) == record


def test_parse_lines_joins_extractor_output():
    lines = [(f"docx:paragraph:{i}:0", line) for i, line in enumerate(JANE_TEXT.splitlines())]
    record = parse_lines(lines, source="docx")
    assert record.meta.source == "docx"
    assert record.experience[0].employer == "Acme Corp"


def test_skills_and_languages_sections():
    text = """John Smith
Data Engineer
SKILLS
Python, SQL, Airflow
LANGUAGES
English - Native
French - B2
"""
    record = parse_free_text(text)
    assert record.candidate.name == "John Smith"
    assert record.skills == ["Python", "SQL", "Airflow"]
    assert [(l.name, l.level) for l in record.languages] == [("English", "Native"), ("French", "B2")]


def test_comma_header_job_is_kept_in_full_text():
    text = """Jane Doe
EXPERIENCE
Lead Engineer | Globex Inc | 2020 - Present
- Shipped v2
Software Developer, Initech Ltd, 2016 - 2019
- Wrote COBOL
"""
    record = parse_free_text(text)
    assert [(e.employer, e.role) for e in record.experience] == [
        ("Globex Inc", "Lead Engineer"),
        ("Initech Ltd", "Software Developer"),
    ]
    assert record.experience[1].bullets == [Bullet(text="Wrote COBOL")]
    # A bullet under the first section is not a headline
    assert record.candidate.title == ""
