"""
Text and list normalization shared by the parsers, the normalizer and the fuser.

Two concerns live here:
- list hygiene: bullet/skill cleanup, case-insensitive dedupe, frequency ranking, caps
- extraction-noise stripping for text that came out of scanned PDFs, broken OOXML or slides

Every function returns a new value; inputs are never modified.
"""

import re
from typing import Iterable, List, Optional, Sequence

from cv_ingest.core.schemas import Bullet


BULLET_RE = re.compile(r"^\s*(?:[•●◦·\-*▪■⇢→›»–—]|\d+[.)])\s+")
# Bare glyph with no trailing space ("•Led migration")
BULLET_GLYPH_RE = re.compile(r"^\s*[•●◦·▪■⇢→›»]\s*")
WS_RE = re.compile(r"\s+")


def collapse_ws(text: Optional[str]) -> str:
    return WS_RE.sub(" ", text or "").strip()


def is_bullet_line(text: str) -> bool:
    return bool(BULLET_RE.match(text) or BULLET_GLYPH_RE.match(text))


def strip_bullet(text: str) -> str:
    """Remove leading bullet markers until none is left ("• 1. Led x" -> "Led x")."""
    t = collapse_ws(text)
    while True:
        stripped = collapse_ws(BULLET_GLYPH_RE.sub("", BULLET_RE.sub("", t, count=1), count=1))
        if stripped == t:
            return t
        t = stripped


def title_case_each_word(text: str) -> str:
    """
    Lowercase everything then uppercase the first letter of each word.
    Works better than str.title() for apostrophes ("o'neil" -> "O'neil", not "O'Neil").
    """
    words = (text or "").split()
    return " ".join(w[0].upper() + w[1:].lower() if w else "" for w in words)


def dedupe_key(text: str) -> str:
    return collapse_ws(text).lower()


def dedupe_strings(values: Iterable[str], limit: Optional[int] = None) -> List[str]:
    """Case/whitespace-insensitive dedupe keeping the first-seen casing."""
    seen = set()
    out: List[str] = []
    for v in values:
        v = collapse_ws(v)
        k = v.lower()
        if not v or k in seen:
            continue
        seen.add(k)
        out.append(v)
        if limit is not None and len(out) >= limit:
            break
    return out


def dedupe_bullets(bullets: Iterable[Bullet], limit: Optional[int] = None) -> List[Bullet]:
    """
    Collapse bullets that differ only in whitespace or case.

    Example:
        [Bullet("Led migration"), Bullet("led  migration ")] -> [Bullet("Led migration")]
    """
    texts = dedupe_strings((b.text for b in bullets), limit=limit)
    return [Bullet(text=t) for t in texts]


def clean_skill(token: str, max_length: int) -> str:
    t = collapse_ws(token)
    while True:
        # Leading dots are kept (".NET")
        cleaned = strip_bullet(t).strip(" :-–—").rstrip(". ")
        if cleaned == t:
            break
        t = cleaned
    if not t or len(t) > max_length:
        return ""
    return t


def rank_by_frequency(groups: Sequence[Sequence[str]], limit: int) -> List[str]:
    """
    Union of several string lists ranked by descending cross-list frequency.

    The key is case-insensitive; the first-seen casing is kept; ties keep first-seen order
    (sorted() is stable), so ranking a list against itself returns it unchanged.
    """
    counts = {}
    display = {}
    order: List[str] = []
    for group in groups:
        for value in group:
            v = collapse_ws(value)
            if not v:
                continue
            k = v.lower()
            if k not in counts:
                counts[k] = 0
                display[k] = v
                order.append(k)
            counts[k] += 1
    ranked = sorted(order, key=lambda k: -counts[k])
    return [display[k] for k in ranked[:limit]]


# ============================================================================
# Extraction noise
# ============================================================================

XML_TEXT_RE = re.compile(r"<(?:a|w):t[^>]*>(.*?)</(?:a|w):t>", re.DOTALL)
SCHEMA_URL_RE = re.compile(r"https?://schemas\.\S+", re.IGNORECASE)
GUID_RE = re.compile(r"\{[0-9A-Fa-f\-]{8,}\}")
CONTROL_RE = re.compile(r"[\u0000-\u0008\u000B\u000C\u000E-\u001F\u007F]")
FONT_RE = re.compile(r"\b(?:Arial|Calibri|Cambria|Helvetica|Symbol|Webdings|Wingdings|Times New Roman)\b[^ \n]{0,40}")
DIGIT_RUN_LINE_RE = re.compile(r"^\d{3,}(?:\s+\d{3,}){2,}$|^\d{4,}$", re.MULTILINE)
LAYOUT_LINE_RE = re.compile(r"^(?:rect|auto|base|line|body|group)\b.*$", re.IGNORECASE | re.MULTILINE)
GLYPHS_RE = re.compile(r"[•●▪◦◆■]")


def strip_extraction_noise(text: str) -> str:
    """
    Remove artifacts that upstream document extraction leaves behind.

    Handles:
    - raw OOXML dumps: keep only <a:t>/<w:t> run text
    - schema URLs ("http://schemas.openxmlformats.org/...")
    - GUIDs in braces, control characters
    - font-name fragments ("Calibri-Bold", "Wingdings 2")
    - lines that are only long digit runs
    - layout-tool keyword lines (rect, auto, base, line, body, group)
    """
    if not text:
        return ""
    t = text
    if "<a:t" in t or "<w:t" in t:
        runs = XML_TEXT_RE.findall(t)
        if any(r.strip() for r in runs):
            t = "\n".join(runs)
    t = t.replace("\r", "")
    t = GLYPHS_RE.sub("•", t)
    t = SCHEMA_URL_RE.sub(" ", t)
    t = GUID_RE.sub(" ", t)
    t = CONTROL_RE.sub(" ", t)
    t = FONT_RE.sub(" ", t)
    t = DIGIT_RUN_LINE_RE.sub("", t)
    t = LAYOUT_LINE_RE.sub("", t)
    t = re.sub(r"[ \t]{2,}", " ", t)
    lines = [ln.strip() for ln in t.split("\n")]
    return "\n".join(lines).strip()


def take_first_paragraph(text: str, max_chars: int) -> str:
    """First blank-line separated paragraph (or the first 6 lines), flattened and truncated."""
    t = (text or "").strip()
    if not t:
        return ""
    paragraphs = re.split(r"\n\s*\n", t)
    para = paragraphs[0] if len(paragraphs) > 1 else "\n".join(t.split("\n")[:6])
    return collapse_ws(para)[:max_chars].strip()


def looks_like_noise(line: str) -> bool:
    s = (line or "").strip()
    if not s:
        return True
    if s.lower().startswith("http"):
        return True
    if GUID_RE.search(s):
        return True
    if re.fullmatch(r"[0-9 ]{6,}", s):
        return True
    if re.fullmatch(r"[•●\-–—]+", s):
        return True
    return False
