"""
Section segmentation: split résumé lines into canonical buckets by heading detection.
"""

import logging
import re
from typing import Dict, List, Optional

from cv_ingest.core.text_normalization import collapse_ws

logger = logging.getLogger(__name__)

PREAMBLE = "preamble"

# ===== HEADING SYNONYMS =====
# Matched against the whole line (lowercased, whitespace-collapsed, trailing colon removed)

SECTION_HEADINGS: Dict[str, set] = {
    "summary": {
        "summary",
        "profile",
        "professional summary",
        "professional profile",
        "about",
        "about me",
        "objective",
        "career objective",
        "overview",
        "personal statement",
    },
    "experience": {
        "experience",
        "work experience",
        "professional experience",
        "relevant experience",
        "employment",
        "employment history",
        "work history",
        "career history",
        "career",
        "professional background",
        "experience & achievements",
    },
    "projects": {
        "projects",
        "key projects",
        "selected projects",
        "project experience",
        "assignments",
        "engagements",
    },
    "education": {
        "education",
        "education & training",
        "education and training",
        "academic background",
        "academic",
        "qualifications",
        "academic qualifications",
        "studies",
    },
    "skills": {
        "skills",
        "technical skills",
        "core skills",
        "key skills",
        "core competencies",
        "competencies",
        "expertise",
        "technologies",
        "tools",
        "tech stack",
        "skills & tools",
    },
    "certifications": {
        "certifications",
        "certification",
        "certificates",
        "licenses & certifications",
        "licenses and certifications",
        "accreditations",
        "courses & certifications",
    },
    "languages": {
        "languages",
        "language skills",
        "spoken languages",
        "language",
    },
    "awards": {
        "awards",
        "honors",
        "honours",
        "achievements",
        "awards & honors",
    },
    "interests": {
        "interests",
        "hobbies",
        "hobbies & interests",
        "volunteering",
        "volunteer experience",
    },
    "references": {
        "references",
        "referees",
    },
}

_HEADING_LOOKUP: Dict[str, str] = {
    synonym: key for key, synonyms in SECTION_HEADINGS.items() for synonym in synonyms
}


def heading_key(line: str) -> Optional[str]:
    """
    Return the canonical section key when the whole line is a heading, else None.

    Examples:
        "WORK EXPERIENCE"  -> "experience"
        "Skills:"          -> "skills"
        "Skills: Python"   -> None (a labelled line, not a heading)
    """
    normalized = collapse_ws(line).lower().rstrip(":").strip()
    normalized = re.sub(r"^[#=*\-\s]+|[#=*\-\s]+$", "", normalized)
    return _HEADING_LOOKUP.get(normalized)


def is_heading(line: str) -> bool:
    return heading_key(line) is not None


def normalize_lines(text: str) -> List[str]:
    """
    Pre-normalize raw text into trimmed, non-empty lines.
    Unifies bullet glyphs and collapses runs of spaces/tabs.
    """
    t = (text or "").replace("\r", "")
    t = re.sub(r"[●▪◦■◆]", "•", t)
    out: List[str] = []
    for ln in t.split("\n"):
        ln = re.sub(r"[ \t ]+", " ", ln).strip()
        if ln:
            out.append(ln)
    return out


def segment_sections(lines: List[str]) -> Dict[str, List[str]]:
    """
    Split lines into ordered buckets keyed by canonical section name.

    Lines before the first heading land in "preamble". A repeated heading resumes its bucket
    instead of resetting it.
    """
    buckets: Dict[str, List[str]] = {PREAMBLE: []}
    current = PREAMBLE
    for line in lines:
        key = heading_key(line)
        if key:
            if key != current:
                logger.debug(f"Section switch: {current!r} -> {key!r} at {line!r}")
            current = key
            buckets.setdefault(key, [])
            continue
        buckets.setdefault(current, []).append(line)
    return buckets
