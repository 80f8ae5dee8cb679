"""
Location resolver: pick the most plausible "City, Country" out of candidate strings.

Ranking:
  1. "City, Country"-shaped substrings; among several, the last one holding a known
     country hint wins, otherwise the last one found
  2. a parenthesized "(City, Country)" pair
  3. a Remote / Hybrid / Onsite flag
  4. "" when nothing qualifies
"""

import re
from typing import Iterable, List


CITY_COMMA_RE = re.compile(r"[A-Za-zÀ-ÿ'().\- ]{2,},\s*[A-Za-zÀ-ÿ'().\- ]{2,}")
PAREN_RE = re.compile(r"\(([^)]+)\)")
FLAG_RE = re.compile(r"\b(Remote|Hybrid|Onsite|On-site)\b", re.IGNORECASE)

# Countries seen most often in the résumés this service ingests
COUNTRY_HINT_RE = re.compile(
    r"\b(Belgium|Luxembourg|Netherlands|Germany|France|Spain|Italy|Portugal|Ireland|Switzerland"
    r"|Austria|Poland|Sweden|Denmark|Norway|Finland|India|United Kingdom|UK|United States|USA"
    r"|Canada|Australia)\b",
    re.IGNORECASE,
)


def _format_location(s: str) -> str:
    # "New York , New York" -> "New York, New York"
    s = re.sub(r"\s+,", ",", s)
    s = re.sub(r",\s*", ", ", s)
    return " ".join(s.split()).strip(" -.()")


def _city_comma(text: str) -> str:
    m = CITY_COMMA_RE.search(text)
    if not m:
        return ""
    left, _, right = m.group(0).partition(",")
    # "Senior Consultant (Brussels, Belgium)" -> "Brussels, Belgium"
    city = left.rsplit("(", 1)[-1].split()[-3:]
    country = re.split(r"[()]", right, maxsplit=1)[0].split()[:3]
    if not city or not country:
        return ""
    return _format_location(f"{' '.join(city)}, {' '.join(country)}")


def resolve_location(candidates: Iterable[str]) -> str:
    """
    Resolve a location from candidate strings (tokens of a header line, nearby lines, etc.).

    Example:
        ["Senior Engineer", "Kyndryl Belgium", "Brussels, Belgium"] -> "Brussels, Belgium"
    """
    cands: List[str] = [" ".join((c or "").split()) for c in candidates]
    cands = [c for c in cands if c]

    found = [loc for loc in (_city_comma(c) for c in cands) if loc]
    if found:
        hinted = [loc for loc in found if COUNTRY_HINT_RE.search(loc)]
        return hinted[-1] if hinted else found[-1]

    for c in cands:
        for inner in PAREN_RE.findall(c):
            loc = _city_comma(inner)
            if loc:
                return loc

    best = ""
    for c in cands:
        for m in FLAG_RE.finditer(c):
            best = m.group(1)
    return best


def is_location_only(text: str) -> bool:
    """True when the whole text is a location (used to drop location parts from header lines)."""
    t = " ".join((text or "").split()).strip("() ")
    return bool(t) and resolve_location([t]) == _format_location(t)
