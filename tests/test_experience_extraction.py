"""Tests for the experience state machine."""

from cv_ingest.core.experience_parser import is_likely_company, is_title, parse_experience


def test_pipe_header_with_dates_and_location():
    block = [
        "Senior Consultant | Acme Corp | Jan 2020 - Present | Brussels, Belgium",
        "• Led migration",
        "• Led migration",
    ]
    jobs = parse_experience(block)
    assert jobs == [
        {
            "employer": "Acme Corp",
            "role": "Senior Consultant",
            "start": "Jan 2020",
            "end": "Present",
            "location": "Brussels, Belgium",
            "bullets": ["Led migration"],
        }
    ]


def test_title_at_company_with_date_line_below():
    block = ["Senior Engineer at Acme Corp", "Jan 2019 - Dec 2021", "• Built things"]
    jobs = parse_experience(block)
    assert len(jobs) == 1
    job = jobs[0]
    assert job["role"] == "Senior Engineer"
    assert job["employer"] == "Acme Corp"
    assert (job["start"], job["end"]) == ("Jan 2019", "Dec 2021")
    assert job["bullets"] == ["Built things"]


def test_company_line_then_title_line():
    block = ["ACME CORP", "Data Analyst", "2018 - 2020", "Built dashboards for sales"]
    jobs = parse_experience(block)
    assert len(jobs) == 1
    assert jobs[0]["employer"] == "ACME CORP"
    assert jobs[0]["role"] == "Data Analyst"
    assert (jobs[0]["start"], jobs[0]["end"]) == ("2018", "2020")
    # Plain sentences inside a job are kept as bullets
    assert jobs[0]["bullets"] == ["Built dashboards for sales"]


def test_customer_line_with_role_below():
    block = [
        "Customer: Acme Bank | Aug 2020 – Dec 2023 | Luxembourg, Luxembourg",
        "Senior Developer",
        "• Built APIs",
    ]
    jobs = parse_experience(block)
    assert len(jobs) == 1
    job = jobs[0]
    assert job["employer"] == "Acme Bank"
    assert job["role"] == "Senior Developer"
    assert (job["start"], job["end"]) == ("Aug 2020", "Dec 2023")
    assert job["location"] == "Luxembourg, Luxembourg"
    assert job["bullets"] == ["Built APIs"]


def test_labelled_project_block():
    block = [
        "Project name: Payments platform",
        "Employer: Acme Corp",
        "Dates: Start date: Jan 2020. End date: Present.",
        "Client: Bank X",
        "Built the ledger",
    ]
    jobs = parse_experience(block)
    assert len(jobs) == 1
    job = jobs[0]
    assert job["role"] == "Payments platform"
    assert job["employer"] == "Acme Corp"
    assert (job["start"], job["end"]) == ("Jan 2020", "Present")
    assert job["bullets"] == ["Built the ledger"]


def test_orphan_bullets_attach_to_first_job():
    block = ["• Early win", "Senior Engineer at Acme Corp", "• Built things"]
    jobs = parse_experience(block)
    assert len(jobs) == 1
    assert jobs[0]["bullets"] == ["Early win", "Built things"]


def test_missing_employer_repaired_from_customer_line():
    block = [
        "Customer: Big Bank",
        "• Did a thing",
        "Solution Architect",
        "2021 - 2022",
        "• Designed platform",
    ]
    jobs = parse_experience(block)
    assert len(jobs) == 2
    assert jobs[1]["role"] == "Solution Architect"
    assert jobs[1]["employer"] == "Big Bank"
    assert (jobs[1]["start"], jobs[1]["end"]) == ("2021", "2022")
    assert jobs[1]["bullets"] == ["Designed platform"]


def test_two_jobs_in_order():
    block = [
        "Lead Developer | Globex | 2021 - Present",
        "• Shipped v2",
        "Developer | Initech | 2018 - 2021",
        "• Fixed bugs",
    ]
    jobs = parse_experience(block)
    assert [(j["role"], j["employer"]) for j in jobs] == [("Lead Developer", "Globex"), ("Developer", "Initech")]
    assert jobs[0]["end"] == "Present"


def test_empty_block():
    assert parse_experience([]) == []


def test_lexicons():
    assert is_likely_company("Acme Corp")
    assert is_likely_company("KYNDRYL")
    assert not is_likely_company("Senior Engineer")
    assert is_title("Subject Matter Expert")


class TestHeaderSeparators:
    def test_comma_header_with_dates_is_a_job(self):
        jobs = parse_experience(["Software Developer, Initech Ltd, 2016 - 2019", "- Wrote COBOL"])
        assert jobs == [
            {
                "employer": "Initech Ltd",
                "role": "Software Developer",
                "start": "2016",
                "end": "2019",
                "location": "",
                "bullets": ["Wrote COBOL"],
            }
        ]

    def test_comma_header_after_another_job(self):
        block = [
            "Lead Engineer | Globex Inc | 2020 - Present",
            "- Shipped v2",
            "Software Developer, Initech Ltd, 2016 - 2019",
            "- Wrote COBOL",
        ]
        jobs = parse_experience(block)
        assert [(j["role"], j["employer"]) for j in jobs] == [
            ("Lead Engineer", "Globex Inc"),
            ("Software Developer", "Initech Ltd"),
        ]
        assert jobs[0]["bullets"] == ["Shipped v2"]
        assert jobs[1]["bullets"] == ["Wrote COBOL"]

    def test_en_dash_header_with_dates(self):
        jobs = parse_experience(["Google – Software Engineer – 2018 - 2020", "• Built search"])
        assert len(jobs) == 1
        assert (jobs[0]["employer"], jobs[0]["role"]) == ("Google", "Software Engineer")
        assert (jobs[0]["start"], jobs[0]["end"]) == ("2018", "2020")

    def test_em_dash_header(self):
        jobs = parse_experience(["Data Analyst — Initech Ltd — 2015 - 2017"])
        assert (jobs[0]["role"], jobs[0]["employer"]) == ("Data Analyst", "Initech Ltd")

    def test_at_sign_inside_pipe_header(self):
        jobs = parse_experience(["Senior Consultant @ Deloitte | 2019 - 2021", "• Audits"])
        assert len(jobs) == 1
        job = jobs[0]
        assert (job["role"], job["employer"]) == ("Senior Consultant", "Deloitte")
        assert (job["start"], job["end"]) == ("2019", "2021")
        assert job["location"] == ""

    def test_at_header_with_pipe_location(self):
        jobs = parse_experience(["Engineer at Acme Corp | Brussels, Belgium | 2019 - 2021"])
        job = jobs[0]
        assert (job["role"], job["employer"]) == ("Engineer", "Acme Corp")
        assert job["location"] == "Brussels, Belgium"
