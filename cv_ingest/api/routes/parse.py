import logging
from typing import Any, Dict

from fastapi import APIRouter, File, HTTPException, UploadFile

from cv_ingest.core.docx_extractor import extract_docx_lines
from cv_ingest.core.fuser import fuse
from cv_ingest.core.normalizer import normalize
from cv_ingest.core.pdf_extractor import extract_pdf_lines
from cv_ingest.core.schemas import CVRecord, FuseRequest
from cv_ingest.core.text_parser import parse_free_text, parse_lines

logger = logging.getLogger(__name__)

router = APIRouter(tags=["cv"])

DOCX_CONTENT_TYPES = {"application/vnd.openxmlformats-officedocument.wordprocessingml.document"}
TEXT_CONTENT_TYPES = {"text/plain", "text/markdown"}

EXAMPLE_RECORD = {
    "candidate": {
        "name": "Jane Doe",
        "title": "Senior Consultant",
        "summary": "",
        "location": "Brussels, Belgium",
        "contacts": {"email": "jane@example.com", "phone": "", "linkedin": "", "website": ""},
        "links": [],
    },
    "skills": ["Python", "SQL"],
    "experience": [
        {
            "employer": "Acme Corp",
            "role": "Senior Consultant",
            "start": "Jan 2020",
            "end": "Present",
            "location": "Brussels, Belgium",
            "bullets": [{"text": "Led migration"}],
        }
    ],
    "education": [],
    "languages": [{"name": "French", "level": "C1"}],
    "certifications": [],
    "meta": {"locale": "en", "source": "docx"},
}


@router.post(
    "/parse",
    response_model=CVRecord,
    summary="Parse Resume",
    description="Rule-based parse of a resume file (DOCX, PDF, TXT or MD) into the canonical CV record.",
    responses={
        200: {"description": "Parsed record", "content": {"application/json": {"example": EXAMPLE_RECORD}}},
        400: {"description": "Empty file uploaded"},
        415: {"description": "Unsupported file format"},
        422: {"description": "File has no extractable text"},
    },
)
async def parse_resume(
    file: UploadFile = File(..., description="Resume file (DOCX, PDF, TXT or MD format)")
):
    """
    Parse a resume file with the rule-based path.

    **Supported formats:**
    - DOCX (.docx), body paragraphs and table cells
    - PDF (.pdf) - text layer only, OCR not supported
    - TXT / MD
    """
    raw = await file.read()
    if not raw:
        raise HTTPException(status_code=400, detail="Empty file uploaded.")

    filename = (file.filename or "").lower()
    content_type = (file.content_type or "").lower()

    # DOCX
    if filename.endswith(".docx") or content_type in DOCX_CONTENT_TYPES:
        try:
            lines = extract_docx_lines(raw)
        except Exception as exc:
            logger.warning(f"DOCX extraction failed for {file.filename!r}: {exc}")
            raise HTTPException(status_code=422, detail=f"Could not read DOCX: {exc}") from exc
        if not lines:
            raise HTTPException(status_code=422, detail="DOCX has no extractable text.")
        return parse_lines(lines, source="docx")

    # PDF
    if filename.endswith(".pdf") or content_type == "application/pdf":
        try:
            lines = extract_pdf_lines(raw)
        except Exception as exc:
            logger.warning(f"PDF extraction failed for {file.filename!r}: {exc}")
            raise HTTPException(status_code=422, detail=f"Could not read PDF: {exc}") from exc
        if not lines:
            raise HTTPException(
                status_code=422,
                detail="PDF appears to have no extractable text. OCR is not supported.",
            )
        return parse_lines(lines, source="pdf")

    # Text
    if content_type in TEXT_CONTENT_TYPES or filename.endswith((".txt", ".md")):
        text = raw.decode("utf-8", errors="replace")
        if not text.strip():
            raise HTTPException(status_code=422, detail="File has no extractable text.")
        return parse_free_text(text, source="text")

    raise HTTPException(status_code=415, detail=f"Unsupported content type: {file.content_type}")


@router.post(
    "/normalize",
    response_model=CVRecord,
    summary="Normalize Candidate",
    description="Map a structured candidate of any known shape onto the canonical CV record.",
)
def normalize_candidate(payload: Dict[str, Any]):
    return normalize(payload)


@router.post(
    "/fuse",
    response_model=CVRecord,
    summary="Fuse Candidates",
    description=(
        "Reconcile a primary structured candidate with an assist candidate. When no assist is "
        "given, it is parsed from source_text with the rule-based path."
    ),
)
def fuse_candidates(request: FuseRequest):
    primary = normalize(request.primary)
    if request.assist is not None:
        assist = normalize(request.assist)
    elif request.source_text:
        assist = parse_free_text(request.source_text, source="text")
    else:
        assist = CVRecord()
    return fuse(primary, assist, window_years=request.window_years)
