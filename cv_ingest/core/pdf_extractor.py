import logging
import re
from io import BytesIO
from typing import Any, List, Optional, Sequence, Tuple

import pdfplumber

logger = logging.getLogger(__name__)

X_TOLERANCES = (1.5, 2, 2.5, 3)


def _page_text(page: Any, *, x_tolerance: float, line_tolerance: float = 3) -> str:
    """
    Rebuild page text from word boxes: words sharing a rounded 'top' form one line,
    ordered left to right. Avoids the glued and over-spaced words of layout text.
    """
    words = page.extract_words(
        x_tolerance=x_tolerance,
        y_tolerance=2,
        keep_blank_chars=False,
        use_text_flow=True,
    )
    if not words:
        return ""

    words.sort(key=lambda w: (round(w["top"] / line_tolerance), w["x0"]))
    lines: List[str] = []
    current: List[str] = []
    current_key: Optional[int] = None
    for w in words:
        key = round(w["top"] / line_tolerance)
        if current and key != current_key:
            lines.append(" ".join(current))
            current = []
        current.append(w["text"])
        current_key = key
    if current:
        lines.append(" ".join(current))
    return "\n".join(lines)


def _artifact_score(text: str) -> float:
    """
    Lower is better. Penalizes glued words (alphabetic tokens of 18+ chars) and
    fragmentation (more than 10 single-letter tokens).
    """
    tokens = re.findall(r"[A-Za-z]+", text)
    if not tokens:
        return 1e9
    glued = sum(1 for t in tokens if len(t) >= 18)
    singles = max(0, sum(1 for t in tokens if len(t) == 1) - 10)
    return glued * 10 + singles * 3


def _best_page_text(page: Any, tolerances: Sequence[float] = X_TOLERANCES) -> str:
    candidates = []
    for xt in tolerances:
        text = _page_text(page, x_tolerance=xt)
        candidates.append((_artifact_score(text), xt, text))
    candidates.sort(key=lambda c: c[0])
    score, xt, text = candidates[0]
    logger.debug(f"PDF page {page.page_number}: x_tolerance={xt} score={score}")
    return text


def extract_pdf_lines(pdf_bytes: bytes) -> List[Tuple[str, str]]:
    """
    Text-layer lines of a PDF, one (locator, text) tuple per line. Scanned PDFs
    without a text layer return []; OCR is out of scope.
    """
    out: List[Tuple[str, str]] = []
    with pdfplumber.open(BytesIO(pdf_bytes)) as pdf:
        for page_i, page in enumerate(pdf.pages, start=1):
            lines = [ln.strip() for ln in _best_page_text(page).splitlines() if ln.strip()]
            for line_i, line in enumerate(lines, start=1):
                out.append((f"pdf:page:{page_i}:line:{line_i}", line))
    return out
