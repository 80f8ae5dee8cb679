"""
Date-range tokenizer shared by the experience and education parsers and the fuser.

A date token is one of:
  - month name + year        "Aug 2020", "September 2019", "Sept. 2018"
  - yyyy-mm                  "2020-08"
  - mm/dd/yyyy               "08/15/2020"
  - mm/yyyy                  "08/2020"
  - bare year                "2020"
  - present synonym          "current", "present", "now", "today"

A range is a token, an optional separator (-, –, —, "to") and an optional end token
or present synonym ("to date", "ongoing" are accepted as ends only).
"""

import re
from typing import NamedTuple, Optional

from cv_ingest.core.locations import is_location_only


PRESENT = "Present"

MONTH = (
    r"(?:Jan(?:uary)?|Feb(?:ruary)?|Mar(?:ch)?|Apr(?:il)?|May|June?|July?|Aug(?:ust)?"
    r"|Sep(?:t(?:ember)?)?|Oct(?:ober)?|Nov(?:ember)?|Dec(?:ember)?)"
)

DATE_TOKEN = (
    rf"(?:\b{MONTH}\.?\s+\d{{4}}\b"
    r"|\b\d{4}-\d{2}\b"
    r"|\b\d{1,2}/\d{1,2}/\d{4}\b"
    r"|\b\d{1,2}/\d{4}\b"
    r"|\b(?:19|20)\d{2}\b"
    r"|\b(?:current|present|now|today)\b)"
)

PRESENT_SYNONYM = r"(?:present|current|now|today|to\s*date|ongoing)"

DATE_RANGE_RE = re.compile(
    rf"(?P<start>{DATE_TOKEN})"
    rf"(?:\s*(?:-|–|—|\bto\b)\s*(?P<end>\b{PRESENT_SYNONYM}\b|{DATE_TOKEN}))?",
    re.IGNORECASE,
)

PRESENT_RE = re.compile(rf"^\s*{PRESENT_SYNONYM}\s*$", re.IGNORECASE)
YEAR_RE = re.compile(r"\b((?:19|20)\d{2})\b")


class DateRange(NamedTuple):
    start: str = ""
    end: str = ""


def _clean(token: Optional[str]) -> str:
    return " ".join((token or "").split())


def canonical_end(value: str) -> str:
    """Map any present synonym to the literal "Present"; other values pass through trimmed."""
    v = _clean(value)
    if PRESENT_RE.match(v):
        return PRESENT
    return v


def _first_range(text: str) -> Optional[re.Match]:
    # A lone "now"/"current" inside a sentence is not a date; a range must start with a real date
    for m in DATE_RANGE_RE.finditer(text or ""):
        if not PRESENT_RE.match(m.group("start")):
            return m
    return None


def has_date_range(text: str) -> bool:
    return _first_range(text) is not None


def extract_dates(text: str) -> DateRange:
    """
    Extract the first date range from text.

    Examples:
        "Aug 2020 – Dec 2023"  -> DateRange("Aug 2020", "Dec 2023")
        "Mar 2021 - Today"     -> DateRange("Mar 2021", "Present")
        "2019"                 -> DateRange("2019", "")
        "no dates here"        -> DateRange("", "")
    """
    m = _first_range(text)
    if not m:
        return DateRange()
    return DateRange(canonical_end(m.group("start")), canonical_end(m.group("end")))


def strip_date_range(text: str) -> str:
    """Remove the first date range and any separator debris around it."""
    text = text or ""
    m = _first_range(text)
    if not m:
        return " ".join(text.split())
    out = text[:m.start()] + " " + text[m.end():]
    out = re.sub(r"^[\s|,;:()\-–—]+|[\s|,;:()\-–—]+$", "", out)
    return " ".join(out.split())


def remove_date_ranges(text: str, repl: str = " ") -> str:
    """Replace every date range (not lone present-words) with repl."""
    def _sub(m: re.Match) -> str:
        return m.group(0) if PRESENT_RE.match(m.group("start")) else repl
    return DATE_RANGE_RE.sub(_sub, text or "")


def is_date_line(text: str) -> bool:
    """True when a line carries a date range and nothing else but an optional location/flag."""
    if not has_date_range(text):
        return False
    rest = strip_date_range(text)
    if not rest:
        return True
    # "Jan 2020 - Present | Brussels, Belgium" or "2019 - 2021 (Remote)"
    return is_location_only(rest)


def year_of(value: str) -> Optional[int]:
    m = YEAR_RE.search(value or "")
    return int(m.group(1)) if m else None
