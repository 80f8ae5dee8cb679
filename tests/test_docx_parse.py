from io import BytesIO

from docx import Document
from fastapi.testclient import TestClient

from cv_ingest.core.docx_extractor import extract_docx_lines
from cv_ingest.main import app

client = TestClient(app)

DOCX_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def _docx_bytes(paragraphs, table_rows=None):
    doc = Document()
    for text in paragraphs:
        doc.add_paragraph(text)
    if table_rows:
        table = doc.add_table(rows=len(table_rows), cols=len(table_rows[0]))
        for r, row in enumerate(table_rows):
            for c, text in enumerate(row):
                table.cell(r, c).text = text
    buf = BytesIO()
    doc.save(buf)
    return buf.getvalue()


JANE_PARAGRAPHS = [
    "Jane Doe",
    "Senior Consultant",
    "jane@x.com",
    "EXPERIENCE",
    "Senior Consultant | Acme Corp | Jan 2020 - Present | Brussels, Belgium",
    "• Led migration",
]


def test_extractor_reads_paragraphs_then_table_cells():
    data = _docx_bytes(["Jane Doe", "", "jane@x.com"], table_rows=[["SKILLS", "Python, SQL"]])
    lines = extract_docx_lines(data)
    assert [text for _, text in lines] == ["Jane Doe", "jane@x.com", "SKILLS", "Python, SQL"]
    assert lines[0][0] == "docx:paragraph:0:0"
    assert lines[1][0] == "docx:paragraph:2:0"
    assert lines[2][0].startswith("docx:table:0:cell:")


def test_parse_docx_upload():
    files = {"file": ("resume.docx", _docx_bytes(JANE_PARAGRAPHS), DOCX_TYPE)}
    r = client.post("/parse", files=files)
    assert r.status_code == 200
    data = r.json()

    assert data["candidate"]["name"] == "Jane Doe"
    assert data["candidate"]["contacts"]["email"] == "jane@x.com"
    assert data["experience"][0]["employer"] == "Acme Corp"
    assert data["experience"][0]["bullets"] == [{"text": "Led migration"}]
    assert data["meta"] == {"locale": "en", "source": "docx"}


def test_parse_txt_upload():
    resume = "\n".join(JANE_PARAGRAPHS).encode("utf-8")
    files = {"file": ("resume.txt", resume, "text/plain")}
    r = client.post("/parse", files=files)
    assert r.status_code == 200
    data = r.json()
    assert data["candidate"]["name"] == "Jane Doe"
    assert data["meta"]["source"] == "text"
    assert "sourceText" not in r.text


def test_empty_upload_is_rejected():
    r = client.post("/parse", files={"file": ("resume.txt", b"", "text/plain")})
    assert r.status_code == 400


def test_unsupported_type_is_rejected():
    r = client.post("/parse", files={"file": ("photo.png", b"\x89PNG\r\n", "image/png")})
    assert r.status_code == 415


def test_corrupt_docx_is_unprocessable():
    r = client.post("/parse", files={"file": ("resume.docx", b"not a zip file", DOCX_TYPE)})
    assert r.status_code == 422


def test_blank_text_is_unprocessable():
    r = client.post("/parse", files={"file": ("resume.txt", b"   \n\n", "text/plain")})
    assert r.status_code == 422
