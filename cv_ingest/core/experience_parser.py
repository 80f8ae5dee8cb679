"""
Experience parsing: a two-state line scanner (scanning / in_job) over the experience bucket.

Header recognition, checked in order for every line:
  (a) labelled blocks      "Employer: ..." / "Project name: ..." with Dates:/Client: companions
  (b) customer lines       "Customer: Acme | Aug 2020 – Dec 2023 | Luxembourg, Luxembourg"
  (c) generic headers      "Senior Consultant | Acme Corp | Jan 2020 - Present | Brussels, Belgium"
                           "Engineer at Acme", "ACME CORP" followed by "Senior Engineer", ...

Everything else inside a job becomes a bullet (recall over precision). Jobs are returned as
plain dicts (employer, role, start, end, location, bullets) for the normalizer to build.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Set, Tuple

from cv_ingest.config import get_settings
from cv_ingest.core.dates import (
    PRESENT,
    canonical_end,
    extract_dates,
    has_date_range,
    is_date_line,
    remove_date_ranges,
    strip_date_range,
)
from cv_ingest.core.locations import is_location_only, resolve_location
from cv_ingest.core.sections import is_heading
from cv_ingest.core.text_normalization import collapse_ws, dedupe_strings, is_bullet_line, strip_bullet

logger = logging.getLogger(__name__)


# ===== LEXICONS =====

COMPANY_SUFFIX = re.compile(
    r"\b(Inc\.?|Ltd\.?|LLC|GmbH|S\.?A\.?|N\.?V\.?|B\.?V\.?|PLC|Co\.|Corp\.?|Corporation|Limited|AG|SAS"
    r"|Oy|AB|BVBA|SRL|SpA|Pvt\.?)(?=\W|$)",
)
COMPANY_HINT = re.compile(
    r"\b(Technologies|Systems|Solutions|Labs|Group|Holdings|Partners|Consulting|Software|Services|Bank"
    r"|Studio|Digital|Analytics|Industries|International|Global|Agency|University|Hospital|Ministry)\b",
    re.IGNORECASE,
)
TITLE_HINT = re.compile(
    r"\b(Engineer|Developer|Consultant|Manager|Lead|Architect|Director|Head|Specialist|Analyst|Scientist"
    r"|Officer|Administrator|Intern|Associate|Owner|Founder|Coach|Teacher|SME|Subject Matter Expert"
    r"|Designer|Programmer|Tester|Technician|Advisor|Coordinator|President|Partner|Principal)\b",
    re.IGNORECASE,
)

LABEL_RE = re.compile(r"^(Employer|Customer|Client|Dates|Location|Project name)\s*:", re.IGNORECASE)
EMPLOYER_LABEL_RE = re.compile(r"^Employer\s*:\s*", re.IGNORECASE)
PROJECT_LABEL_RE = re.compile(r"^Project name\s*:\s*", re.IGNORECASE)
DATES_LABEL_RE = re.compile(r"^Dates\s*:\s*", re.IGNORECASE)
CLIENT_LABEL_RE = re.compile(r"^Client\s*:\s*", re.IGNORECASE)
CUSTOMER_LABEL_RE = re.compile(r"^(Customer|Client)\s*:\s*", re.IGNORECASE)

# " at ", " @ ", " – ", " — ", " - ", ", ", " | ", ": "
HEADER_SEP_RE = re.compile(r"\s+(?:at|@|–|—|-)\s+|\s*\|\s*|,\s+|:\s+")
AT_SEP_RE = re.compile(r"\s+(?:at|@)\s+")
CLIENT_SUFFIX_RE = re.compile(r"\s*\(Client:.*?\)\s*$", re.IGNORECASE)

LOOKAHEAD = 6
REPAIR_WINDOW = 6
MAX_JOBS = 60
MAX_HEADER_WORDS = 14


def is_all_caps(text: str) -> bool:
    letters = re.sub(r"[^A-Za-z]", "", text or "")
    return len(letters) > 1 and letters == letters.upper()


def is_likely_company(text: str) -> bool:
    return bool(COMPANY_SUFFIX.search(text) or COMPANY_HINT.search(text) or is_all_caps(text))


def is_title(text: str) -> bool:
    return bool(TITLE_HINT.search(text or ""))


def _is_short_plain(line: str) -> bool:
    """Candidate header shape: not a bullet, short, no sentence punctuation, not lowercase-led."""
    t = line.strip()
    if not t or is_bullet_line(t) or LABEL_RE.match(t) or is_heading(t):
        return False
    if t.endswith(".") or t[0].islower():
        return False
    return len(t.split()) <= MAX_HEADER_WORDS


def _is_title_only(line: str) -> bool:
    return _is_short_plain(line) and is_title(line) and not has_date_range(line) and len(line.split()) <= 8


def _is_company_only(line: str) -> bool:
    return (
        _is_short_plain(line)
        and is_likely_company(line)
        and not is_title(line)
        and not has_date_range(line)
        and not is_location_only(line)
    )


def _has_org_or_title(text: str) -> bool:
    return bool(COMPANY_SUFFIX.search(text) or COMPANY_HINT.search(text) or TITLE_HINT.search(text))


def _locate(candidates: List[str]) -> str:
    # "Senior Engineer, Acme Corp" is City-Country shaped; parts naming a role or company are not places
    return resolve_location(c for c in candidates if c and not _has_org_or_title(c))


def _is_place(text: str) -> bool:
    return is_location_only(text) and not _has_org_or_title(text)


def _is_date_only(line: str) -> bool:
    # "Software Developer, Initech Ltd, 2016 - 2019" leaves a City-Country shaped rest; it is a header
    return is_date_line(line) and not _has_org_or_title(strip_date_range(line))


def _find_next(block: List[str], idx: int, pattern: re.Pattern, lookahead: int = LOOKAHEAD) -> Optional[int]:
    """Index of the next line matching pattern, without crossing into another labelled job."""
    for j in range(idx + 1, min(idx + 1 + lookahead, len(block))):
        if PROJECT_LABEL_RE.match(block[j]) and pattern is not PROJECT_LABEL_RE:
            return None
        if pattern.match(block[j]):
            return j
    return None


def _new_job(index: int, employer: str = "", role: str = "", start: str = "", end: str = "",
             location: str = "") -> Dict[str, Any]:
    return {
        "employer": collapse_ws(employer),
        "role": collapse_ws(CLIENT_SUFFIX_RE.sub("", role or "")),
        "start": start,
        "end": end,
        "location": location,
        "bullets": [],
        "_index": index,
    }


# ===== HEADER BUILDERS =====

def _label_date(value: str) -> str:
    """Value of a Start/End label: a date token, "Present" for ongoing synonyms, else empty."""
    found = extract_dates(value).start
    if found:
        return found
    return PRESENT if canonical_end(value) == PRESENT else ""


def _labelled_job(block: List[str], i: int, consumed: Set[int]) -> Dict[str, Any]:
    """
    EP-style labelled block:
        Project name: Payments platform
        Employer: Acme Corp
        Dates: Start date: Jan 2020. End date: Dec 2021.
        Client: Bank X
    """
    line = block[i]
    employer_line, project = line, ""
    employer = EMPLOYER_LABEL_RE.sub("", line).strip()

    if PROJECT_LABEL_RE.match(line):
        project = PROJECT_LABEL_RE.sub("", line).strip()
        employer = ""
        j = _find_next(block, i, EMPLOYER_LABEL_RE, LOOKAHEAD - 1)
        if j is not None:
            employer_line = block[j]
            employer = EMPLOYER_LABEL_RE.sub("", employer_line).strip()
            consumed.add(j)

    dates_line, client_line = "", ""
    j = _find_next(block, i, DATES_LABEL_RE)
    if j is not None:
        dates_line = DATES_LABEL_RE.sub("", block[j])
        consumed.add(j)
    j = _find_next(block, i, CLIENT_LABEL_RE)
    if j is not None:
        client_line = CLIENT_LABEL_RE.sub("", block[j])
        consumed.add(j)

    start_m = re.search(r"Start[^:]*:\s*([^.]+)", dates_line, re.IGNORECASE)
    end_m = re.search(r"End[^:]*:\s*([^.]+)", dates_line, re.IGNORECASE)
    if start_m or end_m:
        start = _label_date(start_m.group(1)) if start_m else ""
        end = _label_date(end_m.group(1)) if end_m else ""
    else:
        start, end = extract_dates(dates_line)

    client = client_line.strip()
    role = project or (f"Project: {client}" if client else "")
    sources = (EMPLOYER_LABEL_RE.sub("", employer_line), client_line, dates_line)
    location = _locate([p.strip() for s in sources for p in s.split("|")])
    # "Employer: Acme Corp | Brussels, Belgium"
    employer = collapse_ws(employer.split("|")[0])
    return _new_job(i, employer=employer, role=role, start=start, end=end, location=location)


def _customer_job(block: List[str], i: int, consumed: Set[int]) -> Dict[str, Any]:
    """Customer: Acme | Aug 2020 – Dec 2023 | Luxembourg, Luxembourg"""
    parts = [p.strip() for p in CUSTOMER_LABEL_RE.sub("", block[i]).split("|")]
    employer = parts[0] if parts else ""
    date_part = next((p for p in parts if has_date_range(p)), "")
    start, end = extract_dates(date_part)
    location = resolve_location(parts[1:])

    role = ""
    nxt = block[i + 1] if i + 1 < len(block) else ""
    if _is_title_only(nxt) and not is_likely_company(nxt):
        role = nxt
        consumed.add(i + 1)
    return _new_job(i, employer=employer, role=role, start=start, end=end, location=location)


def _split_role_employer(line: str) -> Tuple[str, str]:
    """
    Split a header line into (role, employer) after dropping date and location parts.

    Pipe-separated chunks are split again on the other header separators. "X at Y" /
    "X @ Y" in a chunk is always role at employer; otherwise company-ish parts go to
    employer, title-ish parts to role, and the remaining parts fill role first, then employer.
    """
    role = employer = ""
    parts: List[str] = []
    for chunk in remove_date_ranges(line, " | ").split("|"):
        chunk = collapse_ws(chunk).strip(" ,;:-–—()")
        if not chunk or _is_place(chunk):
            continue
        at = AT_SEP_RE.search(chunk)
        if at and not (role or employer):
            rest = HEADER_SEP_RE.split(chunk[at.end():])
            role = collapse_ws(chunk[:at.start()]).strip(" ,-–—")
            employer = collapse_ws(rest[0]).strip(" ,-–—")
            parts.extend(rest[1:])
            continue
        parts.extend(HEADER_SEP_RE.split(chunk))
    if role or employer:
        return role, employer

    parts = [p for p in (collapse_ws(p).strip(" ,;:-–—()") for p in parts) if p and not _is_place(p)]
    titles = [p for p in parts if is_title(p)]
    companies = [p for p in parts if is_likely_company(p) and not is_title(p)]
    role = titles[0] if titles else ""
    employer = companies[0] if companies else ""
    others = [p for p in parts if p not in (role, employer)]
    if not role and others:
        role = others.pop(0)
    if not employer and others:
        employer = others.pop(0)
    return role, employer


def _generic_header(block: List[str], i: int, consumed: Set[int]) -> Optional[Dict[str, Any]]:
    line = block[i]
    if not _is_short_plain(line) or _is_date_only(line):
        return None

    nxt = block[i + 1] if i + 1 < len(block) else ""
    prev = block[i - 1] if i > 0 else ""
    has_date = has_date_range(line)
    # "Jan 2020 - Present" carries its own " - "; separators count only outside date ranges
    has_sep = bool(HEADER_SEP_RE.search(remove_date_ranges(line, " ").strip()))
    core = strip_date_range(line) if has_date else line
    looks_company = is_likely_company(core)
    looks_title = is_title(core)
    # "Senior Engineer at Acme"
    title_at = bool(AT_SEP_RE.search(core)) and is_title(AT_SEP_RE.split(core, 1)[0])

    role = employer = ""
    companion: Optional[int] = None

    if (has_date and (has_sep or looks_title or looks_company)) or title_at or (
        has_sep and looks_company and (looks_title or _is_title_only(nxt) or _is_title_only(prev))
    ):
        role, employer = _split_role_employer(line)
        if not role and _is_title_only(nxt):
            role, companion = nxt, i + 1
    elif looks_company and looks_title:
        role = line
    elif _is_company_only(line) and _is_title_only(nxt):
        employer, role, companion = line, nxt, i + 1
    elif looks_title and not has_sep and _is_company_only(nxt):
        role, employer, companion = line, nxt, i + 1
    elif looks_title and not has_sep and _is_date_only(nxt):
        role = line
    else:
        return None

    if companion is not None:
        consumed.add(companion)

    # Dates and location: the header itself, then up to two following date/location-only lines
    start, end = extract_dates(line)
    residual = remove_date_ranges(line, "|")
    for known in (role, employer):
        if known:
            residual = residual.replace(known, "|")
    loc_cands = [collapse_ws(p).strip(" ,;:-–—@") for p in residual.split("|")]
    for j in range(i + 1, min(i + 3, len(block))):
        follow = block[j]
        if j == companion:
            continue
        if _is_date_only(follow):
            if not start:
                start, end = extract_dates(follow)
            loc_cands.append(remove_date_ranges(follow, "|").strip(" |"))
        elif _is_place(follow):
            loc_cands.append(follow)
            consumed.add(j)
        else:
            break

    logger.debug(f"Experience header at line {i}: role={role!r} employer={employer!r} dates={start!r}-{end!r}")
    return _new_job(i, employer=employer, role=role, start=start, end=end, location=_locate(loc_cands))


# ===== STATE MACHINE =====

def parse_experience(block: List[str]) -> List[Dict[str, Any]]:
    """
    Parse experience/project lines into job dicts.

    Returns a list of {"employer", "role", "start", "end", "location", "bullets": [str, ...]}.
    A job survives when it has a role, an employer or at least one bullet.
    """
    if not block:
        return []
    settings = get_settings()
    max_bullets = settings.max_parsed_bullets

    jobs: List[Dict[str, Any]] = []
    orphans: List[str] = []
    consumed: Set[int] = set()
    cur: Optional[Dict[str, Any]] = None

    def push() -> None:
        nonlocal cur
        if cur is None:
            return
        cur["bullets"] = dedupe_strings(cur["bullets"], limit=max_bullets)
        if cur["role"] or cur["employer"] or cur["bullets"]:
            jobs.append(cur)
        cur = None

    for i, line in enumerate(block):
        if i in consumed:
            continue

        # (a) labelled blocks
        if EMPLOYER_LABEL_RE.match(line) or PROJECT_LABEL_RE.match(line):
            push()
            cur = _labelled_job(block, i, consumed)
            continue

        # (b) customer / client lines
        if CUSTOMER_LABEL_RE.match(line):
            push()
            cur = _customer_job(block, i, consumed)
            continue

        if is_bullet_line(line):
            text = strip_bullet(line)
            if not text:
                continue
            if cur is not None:
                cur["bullets"].append(text)
            else:
                orphans.append(text)
            continue

        # Bare date line: fills the open job, never a bullet
        if _is_date_only(line):
            if cur is not None and not cur["start"]:
                cur["start"], cur["end"] = extract_dates(line)
            if cur is not None and not cur["location"]:
                cur["location"] = _locate([remove_date_ranges(line, "|").strip(" |")])
            continue

        # (c) generic headers
        header = _generic_header(block, i, consumed)
        if header is not None:
            push()
            cur = header
            continue

        if cur is not None and not is_heading(line) and not LABEL_RE.match(line):
            cur["bullets"].append(collapse_ws(line))

    push()

    if orphans and jobs:
        logger.debug(f"Attaching {len(orphans)} orphan bullets to the first job")
        jobs[0]["bullets"] = dedupe_strings(orphans + jobs[0]["bullets"], limit=max_bullets)

    _repair_missing_employers(block, jobs)

    out = []
    for job in jobs[:MAX_JOBS]:
        job = dict(job)
        job.pop("_index", None)
        out.append(job)
    logger.debug(f"Experience: {len(out)} jobs from {len(block)} lines")
    return out


def _repair_missing_employers(block: List[str], jobs: List[Dict[str, Any]]) -> None:
    """Backfill employer from the nearest Customer:/Client: line within the repair window."""
    for job in jobs:
        if job["employer"]:
            continue
        idx = job["_index"]
        lo, hi = max(0, idx - REPAIR_WINDOW), min(len(block) - 1, idx + REPAIR_WINDOW)
        nearest = sorted(range(lo, hi + 1), key=lambda j: (abs(j - idx), j))
        for j in nearest:
            if CUSTOMER_LABEL_RE.match(block[j]):
                job["employer"] = collapse_ws(CUSTOMER_LABEL_RE.sub("", block[j]).split("|")[0])
                logger.debug(f"Repaired employer for job at line {idx}: {job['employer']!r}")
                break
