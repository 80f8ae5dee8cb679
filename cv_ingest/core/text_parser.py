from typing import List, Tuple

from cv_ingest.core.normalizer import normalize
from cv_ingest.core.rule_extractor import extract_raw_candidate
from cv_ingest.core.schemas import CVRecord


def parse_free_text(text: str, source: str = "text") -> CVRecord:
    """
    Rule-based path: free text -> sections -> entity parsers -> normalized CVRecord.
    Never raises; text with nothing recognisable yields the placeholder record.
    """
    raw = extract_raw_candidate(text or "")
    raw["meta"] = {"source": source}
    return normalize(raw)


def parse_lines(lines: List[Tuple[str, str]], source: str = "text") -> CVRecord:
    """
    Parse (locator, text) tuples from the upload extractors.
    TXT/MD, DOCX and PDF all end up on the same free-text path.
    """
    return parse_free_text("\n".join(text for _, text in lines), source=source)
