"""
Declarative alias tables for the historical field-name shapes of candidate documents.

Every lookup goes through one resolver, first_present(scopes, paths): the first scope holding
a non-empty value at any of the dotted paths wins. Adding a new upstream shape means adding a
path here, never another inline fallback chain.

find_arrays_by_key is the bounded last resort for experience/education arrays that sit
somewhere unexpected in the document.
"""

import re
from typing import Any, Dict, List, Mapping, Pattern, Sequence, Tuple


# ============================================================================
# Scopes
# ============================================================================

# Where candidate data may live, most specific first; "" is the document root
SCOPE_PATHS: Tuple[str, ...] = (
    "candidate",
    "candidate.identity",
    "identity",
    "data.candidate",
    "result.candidate",
    "",
)

SOURCE_TEXT_PATHS: Tuple[str, ...] = ("meta.sourceText", "sourceText", "rawText", "raw_text", "text")


# ============================================================================
# Identity
# ============================================================================

IDENTITY_ALIASES: Dict[str, Tuple[str, ...]] = {
    "name": ("name", "full_name", "fullName", "candidate_name", "candidateName", "personal.name"),
    "title": ("title", "headline", "current_title", "currentTitle", "job_title", "jobTitle", "position"),
    "summary": ("summary", "profile", "about", "objective", "professional_summary", "professionalSummary"),
    "location": ("location", "address", "city", "contact.location", "contacts.location"),
    "email": ("email", "contacts.email", "contact.email", "emails.0"),
    "phone": ("phone", "contacts.phone", "contact.phone", "phone_number", "phoneNumber", "mobile", "phones.0"),
    "linkedin": ("linkedin", "contacts.linkedin", "contact.linkedin", "linkedin_url", "linkedinUrl"),
    "website": ("website", "contacts.website", "contact.website", "portfolio", "url", "github"),
}

LINK_LIST_PATHS: Tuple[str, ...] = ("links", "contacts.links", "contact.links", "urls", "profiles")
LINK_ALIASES: Dict[str, Tuple[str, ...]] = {
    "url": ("url", "href", "link", "value"),
    "label": ("label", "name", "type", "network"),
}


# ============================================================================
# Entities
# ============================================================================

SKILL_LIST_PATHS: Tuple[str, ...] = (
    "skills", "skill", "technical_skills", "technicalSkills", "coreSkills", "core_skills",
    "key_skills", "keySkills", "competencies", "tech_stack",
)
SKILL_ALIASES: Dict[str, Tuple[str, ...]] = {
    "name": ("name", "text", "skill", "value", "label"),
}

EXPERIENCE_LIST_PATHS: Tuple[str, ...] = (
    "experience", "experiences", "work", "workExperience", "work_experience", "employment",
    "employmentHistory", "employment_history", "professionalExperience", "professional_experience",
    "positions", "roles", "jobs",
)
EXPERIENCE_ALIASES: Dict[str, Tuple[str, ...]] = {
    "employer": ("employer", "company", "companyName", "company_name", "organization", "organisation", "org"),
    "role": ("role", "title", "position", "job_title", "jobTitle", "designation"),
    "start": ("start", "from", "startDate", "start_date", "period.start", "period.from", "dates.start"),
    "end": ("end", "to", "endDate", "end_date", "until", "period.end", "period.to", "dates.end"),
    "location": ("location", "city", "place"),
}

EDUCATION_LIST_PATHS: Tuple[str, ...] = (
    "education", "educations", "educationHistory", "education_history", "studies", "academic",
    "academics", "schools",
)
EDUCATION_ALIASES: Dict[str, Tuple[str, ...]] = {
    "school": ("school", "institution", "university", "college", "org", "organization"),
    "degree": ("degree", "title", "qualification", "program", "diploma"),
    "fieldOfStudy": ("fieldOfStudy", "field_of_study", "field", "major", "specialization", "discipline", "area"),
    "eqfLevel": ("eqfLevel", "eqf_level", "eqf", "level"),
    "start": ("start", "from", "startDate", "start_date", "period.start", "period.from", "dates.start"),
    "end": ("end", "to", "endDate", "end_date", "until", "period.end", "period.to", "dates.end"),
    "location": ("location", "city", "place"),
}

LANGUAGE_LIST_PATHS: Tuple[str, ...] = ("languages", "language_skills", "languageSkills", "spoken_languages")
LANGUAGE_ALIASES: Dict[str, Tuple[str, ...]] = {
    "name": ("name", "language", "lang", "label"),
    "level": ("level", "proficiency", "cefr", "fluency"),
}

CERTIFICATION_LIST_PATHS: Tuple[str, ...] = (
    "certifications", "certificates", "certs", "licenses", "licences", "licensesCertifications",
    "licenses_certifications", "trainings", "courses",
)
CERTIFICATION_ALIASES: Dict[str, Tuple[str, ...]] = {
    "name": ("name", "title", "certificate", "certification", "course", "credential", "license"),
    "issuer": ("issuer", "organization", "authority", "provider", "issuedBy", "issued_by"),
    "date": ("date", "issued", "issueDate", "issue_date", "year", "obtained", "completed"),
}

# Bullets: list sources first, then free-text descriptions split into lines
BULLET_LIST_KEYS: Tuple[str, ...] = (
    "bullets", "highlights", "responsibilities", "achievements", "points", "tasks", "items", "details",
)
BULLET_TEXT_KEYS: Tuple[str, ...] = ("description", "summary")
BULLET_ALIASES: Dict[str, Tuple[str, ...]] = {
    "text": ("text", "value", "detail", "description", "bullet"),
}

META_ALIASES: Dict[str, Tuple[str, ...]] = {
    "locale": ("meta.locale", "locale"),
    "source": ("meta.source", "source"),
}

EXPERIENCE_KEY_RE = re.compile(r"experience|employment|work|positions|jobs", re.IGNORECASE)
EDUCATION_KEY_RE = re.compile(r"education|studies|academic|schools", re.IGNORECASE)


# ============================================================================
# Resolver
# ============================================================================

def get_path(obj: Any, path: str) -> Any:
    """
    Walk a dotted path through mappings (and list indices).

    Examples:
        get_path({"a": {"b": 1}}, "a.b") -> 1
        get_path({"emails": ["x@y.z"]}, "emails.0") -> "x@y.z"
        get_path({"a": 1}, "a.b") -> None
        get_path(doc, "") -> doc
    """
    if not path:
        return obj
    cur = obj
    for part in path.split("."):
        if isinstance(cur, Mapping):
            cur = cur.get(part)
        elif isinstance(cur, list) and part.isdigit():
            idx = int(part)
            cur = cur[idx] if idx < len(cur) else None
        else:
            return None
        if cur is None:
            return None
    return cur


def is_present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, dict)):
        return len(value) > 0
    return True


def first_present(scopes: Sequence[Any], paths: Sequence[str]) -> Any:
    """First non-empty value over scopes (outer loop) and alias paths (inner loop), else None."""
    for scope in scopes:
        for path in paths:
            value = get_path(scope, path)
            if is_present(value):
                return value
    return None


def resolve_fields(item: Any, table: Mapping[str, Sequence[str]]) -> Dict[str, Any]:
    """Apply an alias table to one item: {canonical_field: value-or-None}."""
    return {field: first_present([item], paths) for field, paths in table.items()}


def build_scopes(doc: Mapping[str, Any]) -> List[Mapping[str, Any]]:
    scopes: List[Mapping[str, Any]] = []
    for path in SCOPE_PATHS:
        scope = get_path(doc, path)
        if isinstance(scope, Mapping) and all(scope is not s for s in scopes):
            scopes.append(scope)
    return scopes


# ============================================================================
# Bounded visitor
# ============================================================================

def find_arrays_by_key(
    root: Any,
    key_pattern: Pattern[str],
    max_depth: int = 4,
    max_results: int = 2,
) -> List[list]:
    """
    Breadth-first search for non-empty lists stored under keys matching key_pattern.

    Iterative over an explicit arena (list of (node, depth)) with a cursor index, so there is
    no recursion. Nodes deeper than max_depth are not expanded, each container is visited once
    (keyed by id(), which makes cyclic graphs safe), and the search stops after max_results hits.
    Matched lists are returned as-is and not searched further.
    """
    arena: List[Tuple[Any, int]] = [(root, 0)]
    visited = set()
    results: List[list] = []
    cursor = 0
    while cursor < len(arena) and len(results) < max_results:
        node, depth = arena[cursor]
        cursor += 1
        if id(node) in visited:
            continue
        visited.add(id(node))

        if isinstance(node, Mapping):
            children = []
            for key, value in node.items():
                if isinstance(value, list) and value and key_pattern.search(str(key)):
                    if id(value) not in visited:
                        visited.add(id(value))
                        results.append(value)
                        if len(results) >= max_results:
                            break
                    continue
                children.append(value)
        elif isinstance(node, list):
            children = list(node)
        else:
            continue

        if depth >= max_depth:
            continue
        for child in children:
            if isinstance(child, (Mapping, list)) and id(child) not in visited:
                arena.append((child, depth + 1))
    return results
