"""
Rule-based extraction from free text into a raw, identity-shaped candidate dict.

The dict uses the same field names as external structured candidates, so the normalizer
builds the final record from either source with one code path.
"""

import logging
from typing import Any, Dict, List

from cv_ingest.core.education_parser import parse_education
from cv_ingest.core.entity_parsers import (
    languages_in_free_text,
    parse_certifications,
    parse_languages,
    parse_skills,
    parse_summary,
)
from cv_ingest.core.experience_parser import parse_experience
from cv_ingest.core.identity import extract_identity
from cv_ingest.core.sections import normalize_lines, segment_sections

logger = logging.getLogger(__name__)


def extract_raw_candidate(text: str, scan_all_for_certifications: bool = False) -> Dict[str, Any]:
    """
    Segment text and run every entity parser over its bucket.

    Args:
        text: Raw résumé text
        scan_all_for_certifications: When the certifications bucket is empty, test every line
            of the text instead (used by the normalizer's text fallback)

    Returns:
        {"identity": {...}, "summary", "skills", "experience", "education", "languages",
         "certifications"}
    """
    lines = normalize_lines(text)
    sections = segment_sections(lines)
    identity = extract_identity(lines)

    experience_block = sections.get("experience") or sections.get("projects") or []
    summary = parse_summary(sections, identity)

    languages = parse_languages(sections.get("languages", []))
    if not languages:
        languages = languages_in_free_text(summary)

    cert_lines: List[str] = sections.get("certifications", [])
    if not cert_lines and scan_all_for_certifications:
        cert_lines = lines

    raw = {
        "identity": identity,
        "summary": summary,
        "skills": parse_skills(sections.get("skills", [])),
        "experience": parse_experience(experience_block),
        "education": parse_education(sections.get("education", [])),
        "languages": languages,
        "certifications": parse_certifications(cert_lines),
    }
    logger.debug(
        f"Rule-based extraction: sections={list(sections)} experience={len(raw['experience'])} "
        f"education={len(raw['education'])} skills={len(raw['skills'])}"
    )
    return raw
