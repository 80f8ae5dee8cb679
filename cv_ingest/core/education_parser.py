"""
Education parsing module for detecting and extracting education entries from resumes.

Provides deterministic, rule-based parsing of the education bucket: degree / institution
header lines open entries, labelled lines (field of study, EQF level) and achievement lines
enrich the open entry, and bare date lines fill in missing dates.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from cv_ingest.core.dates import extract_dates, has_date_range, is_date_line, remove_date_ranges
from cv_ingest.core.locations import is_location_only, resolve_location
from cv_ingest.core.sections import is_heading
from cv_ingest.core.text_normalization import collapse_ws, dedupe_strings, is_bullet_line, strip_bullet

logger = logging.getLogger(__name__)

MAX_EDUCATION_ENTRIES = 40

# ===== DEGREE KEYWORDS (Strong Signal) =====
# Long forms match case-insensitively; short codes only in their usual casing ("MA", not "ma")

DEGREE_WORDS_RE = re.compile(
    r"\b(Bachelor|Master|Doctorate|Doctoral|Diploma|Certificate|Associate of|Graduate Degree"
    r"|Postgraduate|Licence|Licentiate|Baccalaureate)",
    re.IGNORECASE,
)
DEGREE_CODES_RE = re.compile(
    r"(?<![A-Za-z])(BSc|MSc|BA|MA|MBA|PhD|Ph\.D\.?|MPhil|DPhil|B\.?Eng|M\.?Eng|B\.?Tech|M\.?Tech|LLB|LLM"
    r"|MD|DDS|PG|MS|BS|BE|B\.S\.|B\.A\.|M\.S\.|M\.A\.|M\.B\.A\.)(?![A-Za-z])"
)

# ===== INSTITUTION KEYWORDS =====

INSTITUTION_RE = re.compile(
    r"\b(University|Universit[éeä]t?|Universidade|Universiteit|College|School|Institute|Instituto"
    r"|Polytechnic|Politecnico|Academy|Hochschule|[ÉE]cole|Lyc[ée]e|Gymnasium)",
    re.IGNORECASE,
)

# ===== LABELLED LINES =====

FIELD_RE = re.compile(
    r"^(?:Field(?:\(s\))?\s*of\s*stud(?:y|ies)|Major|Specialization|Specialisation|Discipline)\s*:\s*(.+)$",
    re.IGNORECASE,
)
EQF_RE = re.compile(r"^(?:Level\s*in\s*EQF|EQF\s*Level|EQF)\s*:\s*(.+)$", re.IGNORECASE)

# ===== EDUCATION-SPECIFIC BULLET KEYWORDS =====

ACHIEVEMENT_RE = re.compile(
    r"Dean'?s|Honours|Honors|Merit|GPA|Grade|Dissertation|Thesis|Award|Scholarship|Cum Laude|Magna|Summa"
    r"|Distinction|Valedictorian|Coursework",
    re.IGNORECASE,
)

OTHER_SECTION_PREFIX_RE = re.compile(r"^(skills|languages|experience|projects|certifications)\b", re.IGNORECASE)
DEGREE_SEP_RE = re.compile(r"\s+(?:–|—|-)\s+|\s*\|\s*")
IN_FIELD_RE = re.compile(r"\bin\s+([A-Za-zÀ-ÿ&/\- ]{2,}?)\s*(?:[,(]|$)", re.IGNORECASE)


def has_degree_keyword(text: str) -> bool:
    """
    Check if text contains degree keywords.
    This is a STRONG signal that a line opens an education entry.

    Args:
        text: Text to check

    Returns:
        True if a degree keyword or degree code is found
    """
    return bool(DEGREE_WORDS_RE.search(text or "") or DEGREE_CODES_RE.search(text or ""))


def is_institution_keyword(text: str) -> bool:
    """
    Check if text contains institution-specific keywords.

    Args:
        text: Text to check

    Returns:
        True if institution keyword found
    """
    return bool(INSTITUTION_RE.search(text or ""))


def is_achievement_line(text: str) -> bool:
    return bool(ACHIEVEMENT_RE.search(text or ""))


def _is_all_caps_header(line: str) -> bool:
    letters = re.sub(r"[^A-Za-z]", "", line)
    return len(letters) > 1 and letters == letters.upper() and len(line.split()) <= 8


def extract_field_of_study_from_degree_line(text: str) -> Optional[str]:
    """
    Extract field of study from a degree line.

    Examples:
        "Bachelor of Science in Computer Science" -> "Computer Science"
        "MSc in Data Science (Distinction)" -> "Data Science"
        "MSc Computer Science" -> None

    Args:
        text: Text containing degree and field information

    Returns:
        Extracted field of study or None
    """
    m = IN_FIELD_RE.search(text or "")
    if not m:
        return None
    field = collapse_ws(m.group(1)).strip(" -/&")
    return field or None


def split_degree_and_school(line: str) -> Tuple[str, str]:
    """
    Decide which side of the first separator is the degree and which the school.

    Examples:
        "MSc Computer Science - MIT" -> ("MSc Computer Science", "MIT")
        "University of Ghent | Master of Laws" -> ("Master of Laws", "University of Ghent")
        "Bachelor of Arts" -> ("Bachelor of Arts", "")
        "Vrije Universiteit Brussel" -> ("", "Vrije Universiteit Brussel")

    Args:
        line: Header line (dates are removed before splitting)

    Returns:
        Tuple of (degree, school)
    """
    text = remove_date_ranges(line, " | ")
    parts = [collapse_ws(p).strip(" ,;:()") for p in DEGREE_SEP_RE.split(text)]
    # "BSc Physics, University of Ghent" is City-Country shaped too
    parts = [
        p for p in parts
        if p and (has_degree_keyword(p) or is_institution_keyword(p) or not is_location_only(p))
    ]
    if len(parts) == 1 and "," in parts[0]:
        # "BSc Physics, University of Ghent"
        a, _, b = parts[0].partition(",")
        if has_degree_keyword(a) and is_institution_keyword(b):
            parts = [a.strip(), b.strip()]
        elif is_institution_keyword(a) and has_degree_keyword(b):
            parts = [a.strip(), b.strip()]
    if not parts:
        return "", ""
    if len(parts) == 1:
        only = parts[0]
        if has_degree_keyword(only) and not is_institution_keyword(only):
            return only, ""
        if is_institution_keyword(only) and not has_degree_keyword(only):
            return "", only
        return (only, "") if has_degree_keyword(only) else ("", only)

    a, b = parts[0], parts[1]
    if has_degree_keyword(a) and not has_degree_keyword(b):
        return a, b
    if has_degree_keyword(b) and not has_degree_keyword(a):
        return b, a
    if is_institution_keyword(a):
        return b, a
    return a, b


def _new_entry(block: List[str], i: int) -> Dict[str, Any]:
    line = block[i]
    degree, school = split_degree_and_school(line)

    start, end = extract_dates(line)
    loc_cands = [p.strip() for p in re.split(r"[|·•/]", remove_date_ranges(line, "|"))]
    loc_cands = [c for c in loc_cands if c and c not in (degree, school)]
    field, eqf = "", ""
    for j in range(i + 1, min(i + 3, len(block))):
        nxt = block[j]
        if not start and is_date_line(nxt):
            start, end = extract_dates(nxt)
            loc_cands.append(remove_date_ranges(nxt, "|").strip(" |"))
        m = FIELD_RE.match(nxt)
        if m and not field:
            field = m.group(1).strip()
        m = EQF_RE.match(nxt)
        if m and not eqf:
            eqf = m.group(1).strip()

    if not field and degree:
        field = extract_field_of_study_from_degree_line(degree) or ""

    location = resolve_location(c for c in loc_cands if not is_institution_keyword(c))
    logger.debug(f"Education header at line {i}: degree={degree!r} school={school!r}")
    return {
        "school": school,
        "degree": degree,
        "fieldOfStudy": field,
        "eqfLevel": eqf,
        "start": start,
        "end": end,
        "location": location,
        "bullets": [],
    }


def parse_education(block: List[str]) -> List[Dict[str, Any]]:
    """
    Parse the education bucket into entry dicts.

    Lines are tested in order: bullet, field label, EQF label, degree/institution header,
    achievement, ALL-CAPS header, bare date line.

    Args:
        block: Lines of the education section

    Returns:
        List of {"school", "degree", "fieldOfStudy", "eqfLevel", "start", "end", "location", "bullets"}
    """
    out: List[Dict[str, Any]] = []
    cur: Optional[Dict[str, Any]] = None

    def push() -> None:
        nonlocal cur
        if cur is not None and (cur["school"] or cur["degree"]):
            cur["bullets"] = dedupe_strings(cur["bullets"])
            out.append(cur)
        cur = None

    for i, line in enumerate(block):
        if is_bullet_line(line):
            if cur is not None:
                cur["bullets"].append(strip_bullet(line))
            continue

        m = FIELD_RE.match(line)
        if m:
            if cur is not None:
                cur["fieldOfStudy"] = m.group(1).strip()
            continue
        m = EQF_RE.match(line)
        if m:
            if cur is not None:
                cur["eqfLevel"] = m.group(1).strip()
            continue

        if is_heading(line):
            continue

        if (has_degree_keyword(line) or is_institution_keyword(line)) and not OTHER_SECTION_PREFIX_RE.match(line):
            degree, school = split_degree_and_school(line)
            # "Vrije Universiteit Brussel" under "Master of Laws" completes the open entry
            if cur is not None and not has_date_range(line):
                if degree and not school and not cur["degree"]:
                    cur["degree"] = degree
                    if not cur["fieldOfStudy"]:
                        cur["fieldOfStudy"] = extract_field_of_study_from_degree_line(degree) or ""
                    continue
                if school and not degree and not cur["school"]:
                    cur["school"] = school
                    continue
            push()
            cur = _new_entry(block, i)
            continue

        if cur is not None and is_achievement_line(line) and not has_date_range(line):
            cur["bullets"].append(collapse_ws(line))
            continue

        if _is_all_caps_header(line) and not is_date_line(line) and not is_location_only(line):
            push()
            cur = _new_entry(block, i)
            continue

        if cur is not None and is_date_line(line):
            if not cur["start"]:
                cur["start"], cur["end"] = extract_dates(line)
            if not cur["location"]:
                cur["location"] = resolve_location([remove_date_ranges(line, "|").strip(" |")])

    push()
    logger.debug(f"Education: {len(out)} entries from {len(block)} lines")
    return out[:MAX_EDUCATION_ENTRIES]
