from io import BytesIO
from typing import Iterator, List, Tuple

from docx import Document


def _table_cells(table) -> Iterator[str]:
    # Merged cells repeat the same cell object across the row
    for row in table.rows:
        seen = set()
        for cell in row.cells:
            if id(cell._tc) in seen:
                continue
            seen.add(id(cell._tc))
            for p in cell.paragraphs:
                yield p.text or ""


def extract_docx_lines(docx_bytes: bytes) -> List[Tuple[str, str]]:
    """
    Non-empty paragraph text from a DOCX body, then from its tables (two-column
    résumé templates keep most of their content in table cells).
    Returns list of (locator, text).
    """
    doc = Document(BytesIO(docx_bytes))
    out: List[Tuple[str, str]] = []
    for i, p in enumerate(doc.paragraphs):
        for j, line in enumerate((p.text or "").splitlines()):
            if line.strip():
                out.append((f"docx:paragraph:{i}:{j}", line.strip()))
    for t, table in enumerate(doc.tables):
        for k, text in enumerate(_table_cells(table)):
            if text.strip():
                out.append((f"docx:table:{t}:cell:{k}", text.strip()))
    return out
