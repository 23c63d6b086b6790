"""Client-side reconciliation of analysis payloads.

Server responses have drifted across versions (``summary`` vs
``article_summary``, ``countries`` vs ``nationalities``, ``language`` vs
``languages``). Everything here treats the inbound payload as untrusted and
never raises.
"""

import logging
import re
from abc import ABC, abstractmethod
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Pattern, Sequence, Tuple, TypedDict

from ..models.schemas import PRDAnalysisResponse

logger = logging.getLogger(__name__)

SIGNIFICANCE_THRESHOLD = 5
MAX_DETECTED_LANGUAGES = 3
DEFAULT_LANGUAGE = "English"

LANGUAGE_PATTERNS: Mapping[str, Tuple[Pattern[str], ...]] = MappingProxyType(
    {
        "english": (
            re.compile(
                r"\b(the|and|or|but|in|on|at|to|for|of|with|by|from|up|about|into|through|during|before|after)\b",
                re.IGNORECASE,
            ),
            re.compile(r"\b(is|are|was|were|been|being|have|has|had|do|does|did)\b", re.IGNORECASE),
        ),
        "spanish": (
            re.compile(r"\b(el|la|los|las|un|una|y|o|pero|en|de|con|para|por)\b", re.IGNORECASE),
            re.compile(r"\b(es|son|está|están|fue|fueron|ser|estar|haber|hacer)\b", re.IGNORECASE),
        ),
        "french": (
            re.compile(r"\b(le|la|les|un|une|et|ou|mais|dans|de|avec|pour|par)\b", re.IGNORECASE),
            re.compile(r"\b(est|sont|était|étaient|être|avoir|faire)\b", re.IGNORECASE),
        ),
        "german": (
            re.compile(r"\b(der|die|das|ein|eine|und|oder|aber|in|auf|mit|für|von)\b", re.IGNORECASE),
            re.compile(r"\b(ist|sind|war|waren|sein|haben|werden)\b", re.IGNORECASE),
        ),
        "chinese": (re.compile(r"[\u4e00-\u9fa5]"),),
        "japanese": (re.compile(r"[\u3040-\u309f\u30a0-\u30ff]"),),
        "arabic": (re.compile(r"[\u0600-\u06ff]"),),
    }
)

COUNTRY_TO_NATIONALITY: Mapping[str, str] = MappingProxyType(
    {
        "united states": "American",
        "usa": "American",
        "america": "American",
        "united kingdom": "British",
        "uk": "British",
        "britain": "British",
        "england": "English",
        "scotland": "Scottish",
        "wales": "Welsh",
        "france": "French",
        "germany": "German",
        "spain": "Spanish",
        "italy": "Italian",
        "canada": "Canadian",
        "australia": "Australian",
        "japan": "Japanese",
        "china": "Chinese",
        "india": "Indian",
        "brazil": "Brazilian",
        "mexico": "Mexican",
        "russia": "Russian",
        "south korea": "South Korean",
        "korea": "Korean",
        "netherlands": "Dutch",
        "belgium": "Belgian",
        "switzerland": "Swiss",
        "sweden": "Swedish",
        "norway": "Norwegian",
        "denmark": "Danish",
        "finland": "Finnish",
        "poland": "Polish",
        "austria": "Austrian",
        "greece": "Greek",
        "portugal": "Portuguese",
        "ireland": "Irish",
        "new zealand": "New Zealander",
        "singapore": "Singaporean",
        "malaysia": "Malaysian",
        "thailand": "Thai",
        "indonesia": "Indonesian",
        "philippines": "Filipino",
        "vietnam": "Vietnamese",
        "turkey": "Turkish",
        "egypt": "Egyptian",
        "south africa": "South African",
        "nigeria": "Nigerian",
        "kenya": "Kenyan",
        "israel": "Israeli",
        "saudi arabia": "Saudi",
        "uae": "Emirati",
        "argentina": "Argentinian",
        "chile": "Chilean",
        "colombia": "Colombian",
        "peru": "Peruvian",
        "venezuela": "Venezuelan",
        # Simplified Chinese names
        "肯尼亚": "Kenyan",
        "加拿大": "Canadian",
        "西班牙": "Spanish",
        "韩国": "South Korean",
        "阿根廷": "Argentinian",
        "埃及": "Egyptian",
        "瑞典": "Swedish",
        "芬兰": "Finnish",
        "泰国": "Thai",
        "印度尼西亚": "Indonesian",
        "巴西": "Brazilian",
        "美国": "American",
        "中国": "Chinese",
        "日本": "Japanese",
        "法国": "French",
        "德国": "German",
        "意大利": "Italian",
        "英国": "British",
        "澳大利亚": "Australian",
        "印度": "Indian",
        "俄国": "Russian",
        "俄罗斯": "Russian",
    }
)


class RawAnalysisPayload(TypedDict, total=False):
    """Whatever the server sent; every field is untrusted."""

    summary: Any
    article_summary: Any
    countries: Any
    nationalities: Any
    organizations: Any
    people: Any
    language: Any
    languages: Any


class LanguageDetector(ABC):
    """Interface shared by the local heuristic and any real identification service."""

    @abstractmethod
    def detect(self, text: str) -> List[str]:
        """Return detected language names, most likely first. Never empty."""


class HeuristicLanguageDetector(LanguageDetector):
    """Counts function words and script characters. Coarse by nature."""

    def __init__(
        self,
        patterns: Mapping[str, Sequence[Pattern[str]]] = LANGUAGE_PATTERNS,
        threshold: int = SIGNIFICANCE_THRESHOLD,
        max_languages: int = MAX_DETECTED_LANGUAGES,
    ) -> None:
        self.patterns = patterns
        self.threshold = threshold
        self.max_languages = max_languages

    def score(self, text: str) -> Dict[str, int]:
        text_lower = text.lower()
        scores: Dict[str, int] = {}
        for language, patterns in self.patterns.items():
            count = sum(len(pattern.findall(text_lower)) for pattern in patterns)
            if count > 0:
                scores[language] = count
        return scores

    def detect(self, text: str) -> List[str]:
        significant = [
            (language, count)
            for language, count in self.score(text).items()
            if count > self.threshold
        ]
        significant.sort(key=lambda item: item[1], reverse=True)
        detected = [language.capitalize() for language, _ in significant[: self.max_languages]]
        return detected or [DEFAULT_LANGUAGE]


default_detector = HeuristicLanguageDetector()


def detect_languages(text: str) -> List[str]:
    return default_detector.detect(text)


def _lookup_nationality(country: str) -> Optional[str]:
    trimmed = country.strip()
    if not trimmed:
        return None
    lowered = trimmed.lower()

    for candidate in (trimmed, lowered):
        if candidate in COUNTRY_TO_NATIONALITY:
            return COUNTRY_TO_NATIONALITY[candidate]

    for key, nationality in COUNTRY_TO_NATIONALITY.items():
        if key in lowered or lowered in key:
            return nationality
    return None


def extract_nationalities(countries: Any) -> List[str]:
    """Map country names to nationalities; unknown names are dropped."""
    nationalities: List[str] = []
    for country in _string_items(countries):
        nationality = _lookup_nationality(country)
        if nationality and nationality not in nationalities:
            nationalities.append(nationality)
    return nationalities


def _is_list(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _string_items(value: Any) -> List[str]:
    if not _is_list(value):
        return []
    return [item for item in value if isinstance(item, str)]


def _resolve_summary(payload: Mapping[str, Any]) -> str:
    article_summary = payload.get("article_summary")
    if _is_list(article_summary):
        return " ".join(_string_items(article_summary))
    if isinstance(article_summary, str) and article_summary:
        return article_summary

    summary = payload.get("summary")
    if isinstance(summary, str):
        return summary
    return ""


def _resolve_countries(payload: Mapping[str, Any]) -> List[Any]:
    countries = payload.get("countries")
    if _is_list(countries):
        return list(countries)
    # Older servers put raw country names (often Chinese) under "nationalities".
    nationalities = payload.get("nationalities")
    if _is_list(nationalities):
        return list(nationalities)
    return []


def _resolve_languages(
    payload: Mapping[str, Any],
    original_text: Optional[str],
    detector: LanguageDetector,
) -> List[str]:
    for key in ("languages", "language"):
        value = payload.get(key)
        languages = _string_items(value)
        if languages:
            return languages
    if original_text:
        return detector.detect(original_text)
    return [DEFAULT_LANGUAGE]


def map_api_response_to_prd(
    api_response: Any,
    original_text: Optional[str] = None,
    detector: Optional[LanguageDetector] = None,
) -> PRDAnalysisResponse:
    """Reconcile a loosely-typed analysis payload into the client-facing shape."""
    payload: Mapping[str, Any] = api_response if isinstance(api_response, Mapping) else {}
    if payload is not api_response:
        logger.warning("Analysis payload was %s, not an object", type(api_response).__name__)

    detector = detector or default_detector
    try:
        languages = _resolve_languages(payload, original_text, detector)
    except Exception:
        logger.exception("Language detection failed; falling back to %s", DEFAULT_LANGUAGE)
        languages = [DEFAULT_LANGUAGE]

    return PRDAnalysisResponse(
        article_summary=_resolve_summary(payload),
        nationalities=extract_nationalities(_resolve_countries(payload)),
        organizations=_string_items(payload.get("organizations")),
        people=_string_items(payload.get("people")),
        languages=languages,
    )
