"""
Identity extraction from the top of a résumé: name, headline, contacts, links, location.
"""

import logging
import re
from typing import Any, Dict, List

from cv_ingest.config import get_settings
from cv_ingest.core.dates import has_date_range
from cv_ingest.core.locations import is_location_only, resolve_location
from cv_ingest.core.sections import is_heading
from cv_ingest.core.text_normalization import is_bullet_line

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"\b[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}\b", re.IGNORECASE)
PHONE_RE = re.compile(r"\+?\(?\d[\d\-\s().]{8,}\d")
URL_RE = re.compile(
    r"\b(?:https?://[^\s)<>\]|]+|www\.[^\s)<>\]|]+|(?:linkedin|github)\.com/[^\s)<>\]|]+)",
    re.IGNORECASE,
)
# "Jane", "O'Neil", "Smith-Jones", "JANE", "J."
NAME_WORD_RE = re.compile(r"^[A-ZÀ-Ý][A-Za-zÀ-ÿ'’.\-]*$")
DOC_TITLE_RE = re.compile(r"^(?:curriculum vitae|cv|r[ée]sum[ée])$", re.IGNORECASE)
LOCATION_SPLIT_RE = re.compile(r"[|·•/]")


def extract_email(text: str) -> str:
    m = EMAIL_RE.search(text or "")
    return m.group(0) if m else ""


def extract_phone(text: str) -> str:
    """
    First phone-shaped run with at least 9 digits.

    The digit floor rejects year ranges like "2018 - 2020" that the loose shape would accept.
    """
    for m in PHONE_RE.finditer(text or ""):
        candidate = m.group(0).strip()
        if len(re.sub(r"\D", "", candidate)) >= 9:
            return candidate
    return ""


def link_label(url: str) -> str:
    low = url.lower()
    if "linkedin" in low:
        return "LinkedIn"
    if "github" in low:
        return "GitHub"
    return "Link"


def extract_links(text: str) -> List[Dict[str, str]]:
    """
    All URL-like tokens, deduplicated in order of appearance, labelled by host.

    Example:
        "see linkedin.com/in/jane, www.jane.dev." ->
            [{"label": "LinkedIn", "url": "https://linkedin.com/in/jane"},
             {"label": "Link", "url": "https://www.jane.dev"}]
    """
    seen = set()
    out: List[Dict[str, str]] = []
    for m in URL_RE.finditer(text or ""):
        url = re.sub(r"[),.;]+$", "", m.group(0))
        if not url.lower().startswith("http"):
            url = f"https://{url}"
        key = url.lower().rstrip("/")
        if key in seen:
            continue
        seen.add(key)
        out.append({"label": link_label(url), "url": url})
    return out


def is_contact_line(line: str) -> bool:
    """Line that carries an email, a phone number or a URL."""
    return bool(EMAIL_RE.search(line) or extract_phone(line) or URL_RE.search(line))


def _looks_like_name(line: str) -> bool:
    words = line.split()
    if not 2 <= len(words) <= 6:
        return False
    titleish = sum(1 for w in words if NAME_WORD_RE.match(w))
    return titleish >= -(-len(words) * 6 // 10)  # ceil(60%)


def extract_identity(lines: List[str]) -> Dict[str, Any]:
    """
    Extract identity fields from normalized résumé lines.

    Returns a dict with keys: name, title, email, phone, location, linkedin, website, links.
    Missing values are empty strings (or an empty list for links). Never raises.
    """
    settings = get_settings()
    text = "\n".join(lines)

    links = extract_links(text)
    linkedin = next((l["url"] for l in links if l["label"] == "LinkedIn"), "")
    website = next((l["url"] for l in links if l["label"] != "LinkedIn"), "")

    name, title = "", ""
    top = [l for l in lines[:settings.identity_scan_lines] if "@" not in l and not re.search(r"\d", l)]
    for line in top:
        if is_heading(line):
            # The headline sits between the name and the first section
            if name:
                break
            continue
        if is_bullet_line(line) or URL_RE.search(line) or DOC_TITLE_RE.match(line):
            continue
        if not name:
            if _looks_like_name(line):
                name = line
            continue
        if len(line.split()) <= 14 and not has_date_range(line) and not is_location_only(line):
            title = line
            break

    loc_candidates: List[str] = []
    for line in lines[:settings.location_scan_lines]:
        loc_candidates.extend(p.strip() for p in LOCATION_SPLIT_RE.split(line) if p.strip())
    # Date-bearing fragments ("Jan 2020 - Present, Brussels") are job headers, not identity
    location = resolve_location(c for c in loc_candidates if not has_date_range(c))

    logger.debug(f"Identity: name={name!r} title={title!r} location={location!r} links={len(links)}")
    return {
        "name": name,
        "title": title,
        "email": extract_email(text),
        "phone": extract_phone(text),
        "location": location,
        "linkedin": linkedin,
        "website": website,
        "links": links,
    }
