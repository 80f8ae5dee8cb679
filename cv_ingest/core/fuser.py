"""
Dual-source fuser: reconcile a primary and an assist CVRecord into one record.

Primary is usually an externally produced structured candidate, assist the rule-based parse
of the same document. Neither source reads the other; fuse() is the only place they meet.
Deterministic, idempotent (fuse(a, a) == a) and loss-free: every experience item of either
side is either merged with a counterpart or kept as is.
"""

import logging
from typing import Any, List, Optional

from cv_ingest.config import get_settings
from cv_ingest.core.dates import canonical_end, year_of
from cv_ingest.core.normalizer import (
    first_non_empty,
    merge_certifications,
    merge_education,
    merge_languages,
    merge_links,
    normalize,
)
from cv_ingest.core.schemas import PLACEHOLDER_NAME, Candidate, Contacts, CVMeta, CVRecord, ExperienceItem
from cv_ingest.core.text_normalization import collapse_ws, dedupe_bullets, rank_by_frequency

logger = logging.getLogger(__name__)


def _norm(text: str) -> str:
    return collapse_ws(text).lower()


def _year(item: ExperienceItem) -> Optional[int]:
    return year_of(item.start) or year_of(item.end)


def within_window(a: ExperienceItem, b: ExperienceItem, window_years: int) -> bool:
    """Both items carry a year (start, else end) and the years are at most window_years apart."""
    ya, yb = _year(a), _year(b)
    return ya is not None and yb is not None and abs(ya - yb) <= window_years


def same_job(a: ExperienceItem, b: ExperienceItem, window_years: int) -> bool:
    """
    Alignment rule: same employer AND (same role OR date window), or same role AND date window.

    The date window is loose on purpose: two short tenures at one employer that start within
    window_years of each other are treated as one job.
    """
    employer = bool(_norm(a.employer)) and _norm(a.employer) == _norm(b.employer)
    role = bool(_norm(a.role)) and _norm(a.role) == _norm(b.role)
    window = within_window(a, b, window_years)
    return (employer and (role or window)) or (role and window)


def merge_experience(a: ExperienceItem, b: ExperienceItem) -> ExperienceItem:
    """New item: first non-empty scalar per field, bullets unioned and deduped."""
    limit = get_settings().max_bullets_per_item
    return ExperienceItem(
        employer=first_non_empty(a.employer, b.employer),
        role=first_non_empty(a.role, b.role),
        start=first_non_empty(a.start, b.start),
        end=first_non_empty(a.end, b.end),
        location=first_non_empty(a.location, b.location),
        bullets=dedupe_bullets(list(a.bullets) + list(b.bullets), limit=limit),
    )


def _finish_experience(item: ExperienceItem) -> ExperienceItem:
    limit = get_settings().max_bullets_per_item
    return item.model_copy(update={
        "end": canonical_end(item.end),
        "bullets": dedupe_bullets(item.bullets, limit=limit),
    })


def align_experience(
    primary: List[ExperienceItem],
    assist: List[ExperienceItem],
    window_years: int,
) -> List[ExperienceItem]:
    """
    Greedy alignment in primary order; each assist item is used at most once.

    An identical unused assist item always wins over a heuristic match. Output is primary
    order (merged where matched) followed by the unmatched assist items in their order.
    """
    used = set()
    out: List[ExperienceItem] = []
    for p in primary:
        match = next((j for j, a in enumerate(assist) if j not in used and a == p), None)
        if match is None:
            match = next(
                (j for j, a in enumerate(assist) if j not in used and same_job(p, a, window_years)),
                None,
            )
        if match is None:
            out.append(p)
            continue
        used.add(match)
        logger.debug(f"Aligned experience: {p.role!r}@{p.employer!r} <- {assist[match].role!r}@{assist[match].employer!r}")
        out.append(merge_experience(p, assist[match]))

    out.extend(a for j, a in enumerate(assist) if j not in used)
    return [_finish_experience(item) for item in out]


def _name(primary: Candidate, assist: Candidate) -> str:
    real = [n for n in (primary.name, assist.name) if n and n != PLACEHOLDER_NAME]
    return real[0] if real else PLACEHOLDER_NAME


def fuse(primary: Any, assist: Any, window_years: Optional[int] = None) -> CVRecord:
    """
    Reconcile two candidate records.

    Args:
        primary: Preferred source (CVRecord, or any shape normalize() accepts)
        assist: Backfill source, same accepted shapes
        window_years: Year window for experience alignment; defaults to
            Settings.date_window_years

    Returns:
        New CVRecord; neither input is modified
    """
    settings = get_settings()
    if window_years is None:
        window_years = settings.date_window_years
    p = primary if isinstance(primary, CVRecord) else normalize(primary)
    a = assist if isinstance(assist, CVRecord) else normalize(assist)
    pc, ac = p.candidate, a.candidate

    candidate = Candidate(
        name=_name(pc, ac),
        title=first_non_empty(pc.title, ac.title),
        summary=first_non_empty(pc.summary, ac.summary),
        location=first_non_empty(pc.location, ac.location),
        contacts=Contacts(
            email=first_non_empty(pc.contacts.email, ac.contacts.email),
            phone=first_non_empty(pc.contacts.phone, ac.contacts.phone),
            linkedin=first_non_empty(pc.contacts.linkedin, ac.contacts.linkedin),
            website=first_non_empty(pc.contacts.website, ac.contacts.website),
        ),
        links=merge_links(list(pc.links) + list(ac.links)),
    )

    experience = align_experience(list(p.experience), list(a.experience), window_years)
    fused = CVRecord(
        candidate=candidate,
        skills=rank_by_frequency([p.skills, a.skills], limit=settings.max_skills),
        experience=experience,
        education=merge_education(list(p.education) + list(a.education)),
        languages=merge_languages(list(p.languages) + list(a.languages)),
        certifications=merge_certifications(list(p.certifications) + list(a.certifications)),
        meta=CVMeta(
            locale=first_non_empty(p.meta.locale, a.meta.locale) or "en",
            source=first_non_empty(p.meta.source, a.meta.source),
        ),
    )
    logger.debug(
        f"Fused: experience {len(p.experience)}+{len(a.experience)} -> {len(experience)}, "
        f"skills {len(p.skills)}+{len(a.skills)} -> {len(fused.skills)}"
    )
    return fused
