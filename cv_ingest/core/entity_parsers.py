"""
Per-section extractors for the flat entities: skills, languages, certifications, summary.

Experience and education have their own modules (experience_parser, education_parser).
Every parser takes already-segmented lines and returns plain values; none of them raise.
"""

import logging
import re
from typing import Dict, List, Optional

from cv_ingest.config import get_settings
from cv_ingest.core.dates import extract_dates, has_date_range
from cv_ingest.core.experience_parser import TITLE_HINT
from cv_ingest.core.identity import is_contact_line
from cv_ingest.core.locations import is_location_only
from cv_ingest.core.sections import is_heading
from cv_ingest.core.text_normalization import (
    clean_skill,
    collapse_ws,
    dedupe_strings,
    is_bullet_line,
    looks_like_noise,
    strip_bullet,
)

logger = logging.getLogger(__name__)


# ============================================================================
# Skills
# ============================================================================

SKILL_SPLIT_RE = re.compile(r"\n|[,;|/•·]")
# "Languages: Python, Go" / "Cloud & DevOps: AWS" -> sub-label dropped
SKILL_LABEL_RE = re.compile(r"^\s*[A-Za-z][A-Za-z &/+\-]{1,30}:\s+(?=\S)")


def split_skill_tokens(text: str) -> List[str]:
    """
    Split a delimited skills string into clean tokens.

    Example:
        "Python, Go; Rust\\nJava" -> ["Python", "Go", "Rust", "Java"]
    """
    settings = get_settings()
    tokens = (clean_skill(t, settings.max_skill_length) for t in SKILL_SPLIT_RE.split(text or ""))
    return dedupe_strings(t for t in tokens if t)


def parse_skills(lines: List[str]) -> List[str]:
    if not lines:
        return []
    block = "\n".join(SKILL_LABEL_RE.sub("", strip_bullet(l)) for l in lines)
    skills = split_skill_tokens(block)
    logger.debug(f"Skills: {len(skills)} tokens from {len(lines)} lines")
    return skills


# ============================================================================
# Languages
# ============================================================================

LANGUAGE_LEVELS = (
    r"(?:Native(?:\s+speaker)?|Mother\s+tongue|Fluent|Professional(?:\s+working)?|Bilingual|Advanced"
    r"|Upper[\s-]intermediate|Intermediate|Conversational|Basic|Elementary|Beginner|[ABC][12])"
)

LANGUAGE_LINE_RE = re.compile(
    rf"^(?P<name>[A-Za-zÀ-ÿ][A-Za-zÀ-ÿ \-]*?)\s*(?:\(\s*|[-–—:]\s*|\s+)(?P<level>{LANGUAGE_LEVELS})"
    r"(?:\s*(?:proficiency|level))?\s*\)?$",
    re.IGNORECASE,
)
LANGUAGE_SPLIT_RE = re.compile(r"[,;|]")
CODED_LEVEL_RE = re.compile(r"^(A1|A2|B1|B2|C1|C2|NATIVE|MOTHER)", re.IGNORECASE)

KNOWN_LANGUAGES_RE = re.compile(
    r"\b(English|French|German|Dutch|Flemish|Spanish|Italian|Portuguese|Polish|Romanian|Greek|Swedish"
    r"|Danish|Norwegian|Finnish|Czech|Hungarian|Turkish|Hindi|Arabic|Chinese|Mandarin|Cantonese"
    r"|Japanese|Korean|Russian|Ukrainian|Luxembourgish)\b",
    re.IGNORECASE,
)


def is_coded_level(level: str) -> bool:
    """CEFR code or native/mother-tongue marker."""
    return bool(CODED_LEVEL_RE.match((level or "").strip()))


def canonical_level(level: str) -> str:
    level = collapse_ws(level)
    if re.fullmatch(r"[abc][12]", level, re.IGNORECASE):
        return level.upper()
    return level[:1].upper() + level[1:]


def parse_language_line(text: str) -> Optional[Dict[str, str]]:
    """
    Examples:
        "French (C1)"          -> {"name": "French", "level": "C1"}
        "Dutch – Native"       -> {"name": "Dutch", "level": "Native"}
        "German: intermediate" -> {"name": "German", "level": "Intermediate"}
        "Spanish"              -> {"name": "Spanish", "level": ""}
    """
    t = strip_bullet(text).strip(" .")
    if not t or looks_like_noise(t):
        return None
    m = LANGUAGE_LINE_RE.match(t)
    if m:
        return {"name": collapse_ws(m.group("name")), "level": canonical_level(m.group("level"))}
    # Bare names only; a sentence is not a language
    if len(t.split()) > 3 or re.search(r"\d", t):
        return None
    return {"name": t, "level": ""}


def parse_languages(lines: List[str]) -> List[Dict[str, str]]:
    out: List[Dict[str, str]] = []
    seen = set()
    for line in lines:
        for part in LANGUAGE_SPLIT_RE.split(line):
            item = parse_language_line(part)
            if not item:
                continue
            key = item["name"].lower()
            if key in seen:
                continue
            seen.add(key)
            out.append(item)
    return out


def languages_in_free_text(text: str) -> List[Dict[str, str]]:
    """Fallback: known language names mentioned anywhere in the text, without levels."""
    names = dedupe_strings(m.group(1) for m in KNOWN_LANGUAGES_RE.finditer(text or ""))
    return [{"name": n, "level": ""} for n in names]


# ============================================================================
# Certifications
# ============================================================================

KNOWN_CERT_PHRASES = [
    re.compile(r"Microsoft\s+Azure\s+Solutions\s+Architect\s+Expert", re.IGNORECASE),
    re.compile(r"Google\s+Cloud\s+Professional\s+(?:Cloud\s+)?Architect", re.IGNORECASE),
    re.compile(r"Agile\s+Explorer", re.IGNORECASE),
    re.compile(r"Certified\s+Kubernetes\s+(?:Administrator|Application\s+Developer)", re.IGNORECASE),
    re.compile(r"Professional\s+Scrum\s+(?:Master|Product\s+Owner)", re.IGNORECASE),
]

CERT_VENDOR_RE = re.compile(
    r"\b(AWS|Amazon\s+Web\s+Services|Azure|Microsoft|Google|GCP|Oracle|Cisco|PMP|ITIL|Scrum|Salesforce"
    r"|SAP|Red\s+Hat|CompTIA|VMware|Kubernetes|TOGAF|ISTQB|ISACA|CISSP|CISM|CISA|Prince2|SAFe|HashiCorp)\b",
    re.IGNORECASE,
)
CERT_CODE_RE = re.compile(
    r"\b(?:AZ|AI|DP|SC|MB|PL|MS|MD|DA|SY)-\d{2,3}\b"
    r"|\b(?:CKA|CKAD|CKS|CCNA|CCNP|CCIE|PMP|ITIL|PRINCE2|OCI|PSM|PSPO|CSM|RHCE|RHCSA)\b",
    re.IGNORECASE,
)
CERT_WORD_RE = re.compile(r"certifi(?:ed|cate|cation)", re.IGNORECASE)
CERT_DENY_RE = re.compile(r"consulting|governance|methodology", re.IGNORECASE)
CERT_PART_SPLIT_RE = re.compile(r"\s+\|\s+|\s+[–—-]\s+|,\s+")


def _is_certification(line: str) -> bool:
    if len(line) < 3 or looks_like_noise(line) or is_heading(line):
        return False
    if any(p.search(line) for p in KNOWN_CERT_PHRASES):
        return True
    if not (CERT_VENDOR_RE.search(line) or CERT_CODE_RE.search(line) or CERT_WORD_RE.search(line)):
        return False
    if CERT_DENY_RE.search(line) and not re.search(r"cert", line, re.IGNORECASE):
        return False
    return True


def split_certification(line: str) -> Dict[str, str]:
    """
    Split an accepted certification line into name / issuer / date.

    Example:
        "AWS Certified Solutions Architect – Amazon Web Services – 2021"
            -> {"name": "AWS Certified Solutions Architect", "issuer": "Amazon Web Services", "date": "2021"}
    """
    parts = [p.strip(" ()") for p in CERT_PART_SPLIT_RE.split(line) if p.strip(" ()")]
    if not parts:
        return {"name": line, "issuer": "", "date": ""}
    name, date, issuer = parts[0], "", ""
    for p in parts[1:]:
        if not date and has_date_range(p):
            start, end = extract_dates(p)
            date = f"{start} - {end}" if end else start
        elif not issuer:
            issuer = p
    return {"name": name, "issuer": issuer, "date": date}


def parse_certifications(lines: List[str]) -> List[Dict[str, str]]:
    """Precision-first: only lines carrying a certification signal survive."""
    settings = get_settings()
    out: List[Dict[str, str]] = []
    seen = set()
    for raw in lines:
        line = strip_bullet(raw)
        if not _is_certification(line):
            continue
        item = split_certification(line)
        key = item["name"].lower()
        if key in seen:
            continue
        seen.add(key)
        out.append(item)
        if len(out) >= settings.max_certifications:
            break
    return out


# ============================================================================
# Summary
# ============================================================================

def _looks_like_job_line(line: str) -> bool:
    return bool(
        has_date_range(line)
        or re.search(r"\sat\s| @ ", line)
        or is_bullet_line(line)
        or TITLE_HINT.search(line)
    )


def parse_summary(sections: Dict[str, List[str]], identity: Dict[str, object]) -> str:
    """
    Summary from the summary section, else from the preamble minus identity lines.
    Stops at the first line that looks like a job header; at most 8 lines.
    """
    lines = sections.get("summary") or []
    from_section = bool(lines)
    if not from_section:
        taken = {collapse_ws(str(identity.get(k) or "")).lower() for k in ("name", "title")}
        lines = [
            l for l in sections.get("preamble", [])
            if collapse_ws(l).lower() not in taken and not is_contact_line(l) and not is_location_only(l)
        ]

    cut = next((i for i, l in enumerate(lines) if _looks_like_job_line(l)), -1)
    if cut >= 0:
        # A summary section always keeps its first line, even one mentioning a job title
        lines = lines[:max(1, cut)] if from_section else lines[:cut]
    return collapse_ws(" ".join(lines[:8]))
