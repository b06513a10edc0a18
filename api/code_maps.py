"""
Code -> label lookups for tone codes (P_/N_/T_) and error codes (G_/T_).
Labels come from the upstream mappers and are cached; if the upstream is down
the static tables below are used instead (and not cached, so the next call retries).
"""

import logging
import re

from api import cache
from api.avaflow import get_grammar_mapper, get_tone_mapper
from api.errors import UpstreamError

logger = logging.getLogger(__name__)

TONE_MAP_CACHE_KEY = "tone:mapper"
ERROR_MAPPERS_CACHE_KEY = "error:mappers"

_TONE_CODE_RE = re.compile(r"^[PNT]_\d+$")

# Fallback tone labels when /tone/mapper is unreachable
TONE_LABELS = {
    "P_101": "Friendly",
    "P_102": "Professional",
    "P_103": "Empathetic",
    "P_104": "Confident",
    "P_105": "Encouraging",
    "P_106": "Sales-Oriented",
    "P_107": "Supportive",
    "N_108": "Overly Formal",
    "N_109": "Frustrated",
    "N_110": "Defensive",
    "N_111": "Robotic",
    "N_112": "Impatient",
    "N_113": "Rude",
    "N_114": "Overly Apologetic",
    "T_115": "Neutral",
}

GRAMMAR_ERROR_TYPES = {
    "G_101": "Sentence Structure Errors",
    "G_102": "Subject-Verb Agreement Errors",
    "G_103": "Pronoun Usage Errors",
    "G_104": "Punctuation Errors",
    "G_105": "Regular Spelling Errors",
    "G_106": "Context-Altering Spelling Errors",
    "G_107": "Preposition Errors",
    "G_108": "Capitalization Errors",
    "G_109": "Tone/Style Errors",
    "G_110": "Redundancy and Wordiness Errors",
    "G_111": "Negation Errors",
    "G_112": "Lack of Consistency Errors",
    "G_113": "Missing Articles Errors",
    "G_114": "Misuse of Conjunctions Errors",
}

TONE_ERROR_TYPES = {
    "T_101": "Negative Tone",
    "T_102": "Unprofessional Language",
    "T_103": "Aggressive Language",
    "T_104": "Dismissive Tone",
    "T_105": "Sarcastic Tone",
    "T_106": "Condescending Tone",
    "T_107": "Impatient Tone",
    "T_108": "Frustrated Tone",
    "T_109": "Insensitive Language",
    "T_110": "Overly Casual Tone",
}


def is_tone_code(code: str) -> bool:
    return bool(_TONE_CODE_RE.match(code or ""))


def is_positive_tone(code: str) -> bool:
    return code.startswith("P_")


def is_negative_tone(code: str) -> bool:
    return code.startswith("N_")


def is_neutral_tone(code: str) -> bool:
    return code.startswith("T_")


def tone_name(code: str, tone_map: dict[str, str]) -> str:
    """Readable label for a tone code; the code itself when unknown."""
    return tone_map.get(code) or code


def _require_mapping(data, what: str) -> dict[str, str]:
    if not isinstance(data, dict):
        raise UpstreamError(f"Invalid {what} format received from API")
    return {str(k): str(v) for k, v in data.items()}


def get_tone_map() -> dict[str, str]:
    """Tone code labels from /tone/mapper (cached), or TONE_LABELS when the upstream fails."""
    cached = cache.get(TONE_MAP_CACHE_KEY)
    if cached is not None:
        return cached
    try:
        tone_map = _require_mapping(get_tone_mapper(), "tone mapper")
    except UpstreamError as e:
        logger.warning("Tone mapper unavailable, using fallback labels: %s", e)
        return dict(TONE_LABELS)
    cache.set(TONE_MAP_CACHE_KEY, tone_map)
    return tone_map


def get_error_mappers() -> dict[str, dict[str, str]]:
    """
    Grammar and tone error descriptions: {"grammar": {...}, "tone": {...}}.
    Fetched from both upstream mappers and cached together; any failure falls back to the
    static GRAMMAR_ERROR_TYPES / TONE_ERROR_TYPES.
    """
    cached = cache.get(ERROR_MAPPERS_CACHE_KEY)
    if cached is not None:
        return cached
    try:
        mappers = {
            "grammar": _require_mapping(get_grammar_mapper(), "grammar mapper"),
            "tone": _require_mapping(get_tone_mapper(), "tone mapper"),
        }
    except UpstreamError as e:
        logger.error("Failed to fetch error mappers, using local definitions", exc_info=e)
        return {"grammar": dict(GRAMMAR_ERROR_TYPES), "tone": dict(TONE_ERROR_TYPES)}
    cache.set(ERROR_MAPPERS_CACHE_KEY, mappers)
    return mappers


def describe_error_code(code: str, mappers: dict[str, dict[str, str]]) -> str | None:
    """G_ codes read the grammar mapper; everything else the tone mapper."""
    table = mappers["grammar"] if code.startswith("G_") else mappers["tone"]
    return table.get(code)


def error_category(code: str) -> str:
    if code.startswith("G_"):
        return "Grammatical Error"
    if code.startswith("T_"):
        return "Agent Tone Error"
    return "Other Error"


def error_subcategory(code: str) -> str:
    return GRAMMAR_ERROR_TYPES.get(code) or TONE_ERROR_TYPES.get(code) or "Other Errors"
