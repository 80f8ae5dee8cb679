"""
Canonical schema normalizer: any loosely shaped candidate document -> CVRecord.

Accepts the rule-based extractor's raw dict, externally produced "primary" candidates, and
previously normalized records alike. Field names are resolved through the alias tables in
cv_ingest.core.aliases; entity lists that stay empty are filled from the rule-based parser
run over the document's source text, when it has one.

normalize() never mutates its input and never raises on malformed data; it is idempotent:
normalize(normalize(x)) == normalize(x).
"""

import copy
import logging
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional

from cv_ingest.config import get_settings
from cv_ingest.core.aliases import (
    BULLET_ALIASES,
    BULLET_LIST_KEYS,
    BULLET_TEXT_KEYS,
    CERTIFICATION_ALIASES,
    CERTIFICATION_LIST_PATHS,
    EDUCATION_ALIASES,
    EDUCATION_KEY_RE,
    EDUCATION_LIST_PATHS,
    EXPERIENCE_ALIASES,
    EXPERIENCE_KEY_RE,
    EXPERIENCE_LIST_PATHS,
    IDENTITY_ALIASES,
    LANGUAGE_ALIASES,
    LANGUAGE_LIST_PATHS,
    LINK_ALIASES,
    LINK_LIST_PATHS,
    META_ALIASES,
    SKILL_ALIASES,
    SKILL_LIST_PATHS,
    SOURCE_TEXT_PATHS,
    build_scopes,
    find_arrays_by_key,
    first_present,
    resolve_fields,
)
from cv_ingest.core.dates import canonical_end
from cv_ingest.core.entity_parsers import (
    canonical_level,
    is_coded_level,
    parse_language_line,
    split_certification,
    split_skill_tokens,
)
from cv_ingest.core.identity import link_label
from cv_ingest.core.rule_extractor import extract_raw_candidate
from cv_ingest.core.schemas import (
    PLACEHOLDER_NAME,
    Bullet,
    Candidate,
    CertificationItem,
    Contacts,
    CVMeta,
    CVRecord,
    EducationItem,
    ExperienceItem,
    LanguageItem,
    Link,
)
from cv_ingest.core.text_normalization import (
    clean_skill,
    collapse_ws,
    dedupe_bullets,
    dedupe_strings,
    strip_bullet,
    strip_extraction_noise,
    take_first_paragraph,
    title_case_each_word,
)

logger = logging.getLogger(__name__)

DESCRIPTION_SPLIT_RE = re.compile(r"\n+|\s*[•●▪]\s*")


# ============================================================================
# Coercion helpers
# ============================================================================

def as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    if isinstance(value, tuple):
        return list(value)
    return [value]


def as_text(value: Any) -> str:
    """
    Coerce a scalar-ish value to clean text.

    Mappings are read as {text|name|value} or as a {city, region, country} location;
    lists are joined with ", ".
    """
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, str):
        return collapse_ws(value)
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, Mapping):
        inner = first_present([value], ("text", "name", "value"))
        if inner is not None:
            return as_text(inner)
        parts = [as_text(value.get(k)) for k in ("city", "region", "state", "country")]
        return ", ".join(p for p in parts if p)
    if isinstance(value, (list, tuple)):
        return ", ".join(t for t in (as_text(v) for v in value) if t)
    return ""


def bullet_texts(item: Mapping[str, Any]) -> List[str]:
    """Every bullet an item carries, from list sources and from free-text descriptions."""
    texts: List[str] = []
    for key in BULLET_LIST_KEYS:
        for b in as_list(item.get(key)):
            if isinstance(b, Mapping):
                texts.append(as_text(first_present([b], BULLET_ALIASES["text"])))
            elif isinstance(b, str):
                texts.extend(DESCRIPTION_SPLIT_RE.split(b))
            else:
                texts.append(as_text(b))
    for key in BULLET_TEXT_KEYS:
        value = item.get(key)
        if isinstance(value, str):
            texts.extend(DESCRIPTION_SPLIT_RE.split(value))
    return [t for t in (strip_bullet(t) for t in texts) if t]


def _bullets(texts: Iterable[str]) -> List[Bullet]:
    limit = get_settings().max_bullets_per_item
    return dedupe_bullets((Bullet(text=t) for t in texts), limit=limit)


# ============================================================================
# Builders
# ============================================================================

def build_experience_item(raw: Any) -> Optional[ExperienceItem]:
    """One experience entry from any known shape; None when it has no role, employer or bullets."""
    if not isinstance(raw, Mapping):
        return None
    fields = resolve_fields(raw, EXPERIENCE_ALIASES)
    item = ExperienceItem(
        employer=as_text(fields["employer"]),
        role=as_text(fields["role"]),
        start=as_text(fields["start"]),
        end=canonical_end(as_text(fields["end"])),
        location=as_text(fields["location"]),
        bullets=_bullets(bullet_texts(raw)),
    )
    if not (item.role or item.employer or item.bullets):
        return None
    return item


def build_education_item(raw: Any) -> Optional[EducationItem]:
    if isinstance(raw, str):
        raw = {"degree": raw}
    if not isinstance(raw, Mapping):
        return None
    fields = resolve_fields(raw, EDUCATION_ALIASES)
    item = EducationItem(
        school=as_text(fields["school"]),
        degree=as_text(fields["degree"]),
        field_of_study=as_text(fields["fieldOfStudy"]),
        eqf_level=as_text(fields["eqfLevel"]),
        start=as_text(fields["start"]),
        end=canonical_end(as_text(fields["end"])),
        location=as_text(fields["location"]),
        bullets=_bullets(bullet_texts(raw)),
    )
    if not (item.school or item.degree):
        return None
    return item


def build_language_item(raw: Any) -> Optional[LanguageItem]:
    if isinstance(raw, str):
        raw = parse_language_line(raw)
    if not isinstance(raw, Mapping):
        return None
    fields = resolve_fields(raw, LANGUAGE_ALIASES)
    name = title_case_each_word(as_text(fields["name"]))
    if not name:
        return None
    level = as_text(fields["level"])
    return LanguageItem(name=name, level=canonical_level(level) if level else "")


def build_certification_item(raw: Any) -> Optional[CertificationItem]:
    if isinstance(raw, str):
        line = strip_bullet(raw)
        raw = split_certification(line) if line else None
    if not isinstance(raw, Mapping):
        return None
    fields = resolve_fields(raw, CERTIFICATION_ALIASES)
    name = as_text(fields["name"])
    if not name:
        return None
    return CertificationItem(name=name, issuer=as_text(fields["issuer"]), date=as_text(fields["date"]))


def build_link(raw: Any) -> Optional[Link]:
    if isinstance(raw, str):
        raw = {"url": raw}
    if not isinstance(raw, Mapping):
        return None
    fields = resolve_fields(raw, LINK_ALIASES)
    url = as_text(fields["url"])
    if not url:
        return None
    return Link(label=as_text(fields["label"]) or link_label(url), url=url)


# ============================================================================
# Collection merges (shared with the fuser)
# ============================================================================

def first_non_empty(*values: str) -> str:
    return next((v for v in values if v), "")


def merge_education(items: Iterable[EducationItem]) -> List[EducationItem]:
    """Collapse entries sharing a case-insensitive (school, degree) key; first non-empty field wins."""
    merged: Dict[tuple, EducationItem] = {}
    for item in items:
        key = (item.school.lower(), item.degree.lower())
        cur = merged.get(key)
        if cur is None:
            merged[key] = item
            continue
        merged[key] = cur.model_copy(update={
            "field_of_study": first_non_empty(cur.field_of_study, item.field_of_study),
            "eqf_level": first_non_empty(cur.eqf_level, item.eqf_level),
            "start": first_non_empty(cur.start, item.start),
            "end": first_non_empty(cur.end, item.end),
            "location": first_non_empty(cur.location, item.location),
            "bullets": _bullets([b.text for b in cur.bullets] + [b.text for b in item.bullets]),
        })
    return list(merged.values())


def merge_languages(items: Iterable[LanguageItem]) -> List[LanguageItem]:
    """Dedupe by name; a CEFR/native-coded level beats an uncoded one, else first non-empty."""
    merged: Dict[str, LanguageItem] = {}
    for item in items:
        key = item.name.lower()
        cur = merged.get(key)
        if cur is None:
            merged[key] = item
        elif (item.level and not cur.level) or (is_coded_level(item.level) and not is_coded_level(cur.level)):
            merged[key] = cur.model_copy(update={"level": item.level})
    return list(merged.values())


def merge_certifications(items: Iterable[CertificationItem]) -> List[CertificationItem]:
    merged: Dict[str, CertificationItem] = {}
    for item in items:
        key = item.name.lower()
        cur = merged.get(key)
        if cur is None:
            merged[key] = item
        else:
            merged[key] = cur.model_copy(update={
                "issuer": first_non_empty(cur.issuer, item.issuer),
                "date": first_non_empty(cur.date, item.date),
            })
    return list(merged.values())[:get_settings().max_certifications]


def merge_links(items: Iterable[Link]) -> List[Link]:
    merged: Dict[str, Link] = {}
    for item in items:
        merged.setdefault(item.url.lower().rstrip("/"), item)
    return list(merged.values())


def rank_skills(skills: Iterable[str]) -> List[str]:
    settings = get_settings()
    cleaned = (clean_skill(s, settings.max_skill_length) for s in skills)
    return dedupe_strings((s for s in cleaned if s), limit=settings.max_skills)


# ============================================================================
# Source text fallback
# ============================================================================

class _TextFallback:
    """Runs the rule-based extractor over the document's source text at most once, on demand."""

    def __init__(self, text: str):
        self.text = strip_extraction_noise(text) if text else ""
        self._raw: Optional[Dict[str, Any]] = None

    def __bool__(self) -> bool:
        return bool(self.text)

    @property
    def raw(self) -> Dict[str, Any]:
        if self._raw is None:
            logger.warning(f"Falling back to rule-based parsing of source text ({len(self.text)} chars)")
            self._raw = extract_raw_candidate(self.text, scan_all_for_certifications=True)
        return self._raw

    def get(self, key: str) -> Any:
        return self.raw.get(key) if self else None

    def identity(self, key: str) -> Any:
        return self.raw["identity"].get(key) if self else None


def _skill_values(value: Any) -> List[str]:
    """Skills as strings, {name} objects, one delimited string or a mapping of skill groups."""
    if isinstance(value, str):
        return split_skill_tokens(value)
    if isinstance(value, Mapping):
        # {"core": [...], "tools": "Docker, Git"} or {"name": "Backend", "items": [...]}
        groups = [v for k, v in value.items() if k not in SKILL_ALIASES["name"]]
        named = first_present([value], SKILL_ALIASES["name"])
        if named is not None and not any(isinstance(g, (list, tuple, Mapping)) for g in groups):
            return [as_text(named)]
        out: List[str] = []
        for group in groups:
            out.extend(_skill_values(group))
        return out
    if isinstance(value, (list, tuple)):
        out = []
        for v in value:
            if isinstance(v, str):
                out.append(v)
            else:
                out.extend(_skill_values(v))
        return out
    return [as_text(value)] if value is not None else []


def _entity_list(scopes: List[Mapping[str, Any]], paths, doc: Optional[Mapping[str, Any]] = None, key_re=None) -> List[Any]:
    found = first_present(scopes, paths)
    if found is None and doc is not None and key_re is not None:
        settings = get_settings()
        arrays = find_arrays_by_key(
            doc,
            key_re,
            max_depth=settings.deep_search_max_depth,
            max_results=settings.deep_search_max_results,
        )
        if arrays:
            logger.warning(f"Entity list recovered by deep search for {key_re.pattern!r}: {len(arrays)} array(s)")
        return [item for arr in arrays for item in arr]
    return as_list(found)


# ============================================================================
# Entry point
# ============================================================================

def normalize(data: Any) -> CVRecord:
    """
    Map an arbitrary candidate document into a CVRecord.

    Example:
        normalize({"candidate": {"fullName": "Jane Doe"},
                   "experience": [{"company": "Acme", "title": "Engineer", "description": "Built x\\nRan y"}]})
        -> CVRecord(candidate.name="Jane Doe",
                    experience=[ExperienceItem(employer="Acme", role="Engineer",
                                               bullets=[Bullet("Built x"), Bullet("Ran y")])])
    """
    settings = get_settings()
    if isinstance(data, CVRecord):
        data = data.model_dump(by_alias=True)
    if not isinstance(data, Mapping):
        logger.debug(f"normalize() got {type(data).__name__}; treating as empty document")
        data = {}
    doc = copy.deepcopy(dict(data))
    scopes = build_scopes(doc)

    source_text = first_present(scopes, SOURCE_TEXT_PATHS)
    fallback = _TextFallback(source_text if isinstance(source_text, str) else "")

    # ----- identity -----
    ident = {field: as_text(first_present(scopes, paths)) for field, paths in IDENTITY_ALIASES.items()}
    if fallback:
        for field in ("name", "title", "email", "phone", "location", "linkedin", "website"):
            if not ident[field]:
                ident[field] = as_text(fallback.identity(field))
        if not ident["summary"]:
            ident["summary"] = as_text(fallback.get("summary")) or take_first_paragraph(
                fallback.text, settings.summary_max_chars
            )

    links = [l for l in (build_link(x) for x in as_list(first_present(scopes, LINK_LIST_PATHS))) if l]
    if not links and fallback:
        links = [l for l in (build_link(x) for x in as_list(fallback.identity("links"))) if l]
    links = merge_links(links)
    if not ident["linkedin"]:
        ident["linkedin"] = next((l.url for l in links if "linkedin" in l.url.lower()), "")
    if not ident["website"]:
        ident["website"] = next((l.url for l in links if "linkedin" not in l.url.lower()), "")

    candidate = Candidate(
        name=ident["name"] or PLACEHOLDER_NAME,
        title=ident["title"],
        summary=ident["summary"],
        location=ident["location"],
        contacts=Contacts(
            email=ident["email"],
            phone=ident["phone"],
            linkedin=ident["linkedin"],
            website=ident["website"],
        ),
        links=links,
    )

    # ----- entities -----
    skills = rank_skills(_skill_values(first_present(scopes, SKILL_LIST_PATHS)))
    if not skills and fallback:
        skills = rank_skills(fallback.get("skills") or [])

    experience = [e for e in (build_experience_item(x) for x in
                              _entity_list(scopes, EXPERIENCE_LIST_PATHS, doc, EXPERIENCE_KEY_RE)) if e]
    if not experience and fallback:
        experience = [e for e in (build_experience_item(x) for x in fallback.get("experience") or []) if e]

    education = [e for e in (build_education_item(x) for x in
                             _entity_list(scopes, EDUCATION_LIST_PATHS, doc, EDUCATION_KEY_RE)) if e]
    if not education and fallback:
        education = [e for e in (build_education_item(x) for x in fallback.get("education") or []) if e]
    education = merge_education(education)

    languages = [l for l in (build_language_item(x) for x in _entity_list(scopes, LANGUAGE_LIST_PATHS)) if l]
    if not languages and fallback:
        languages = [l for l in (build_language_item(x) for x in fallback.get("languages") or []) if l]
    languages = merge_languages(languages)

    certifications = [c for c in (build_certification_item(x) for x in
                                  _entity_list(scopes, CERTIFICATION_LIST_PATHS)) if c]
    if not certifications and fallback:
        certifications = [c for c in (build_certification_item(x) for x in fallback.get("certifications") or []) if c]
    certifications = merge_certifications(certifications)

    meta_fields = {field: as_text(first_present([doc], paths)) for field, paths in META_ALIASES.items()}
    meta = CVMeta(locale=meta_fields["locale"] or "en", source=meta_fields["source"])

    record = CVRecord(
        candidate=candidate,
        skills=skills,
        experience=experience,
        education=education,
        languages=languages,
        certifications=certifications,
        meta=meta,
    )
    logger.debug(
        f"Normalized: name={candidate.name!r} experience={len(experience)} education={len(education)} "
        f"skills={len(skills)} languages={len(languages)} certifications={len(certifications)}"
    )
    return record
