"""
Field Normalizer.

Maps free-text values extracted from provider responses onto the platform's
closed enumerations. Every function here is total: unknown or empty input
degrades to a documented default instead of raising.

Matching is case-insensitive substring search over an ordered keyword table;
the first entry that matches wins, so more specific phrases are listed before
the generic ones they contain (``"kowloon city"`` before ``"kowloon"``,
``"north point"`` before ``"north"``).
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import TypeVar

from sportshub.schemas.enums import District, EventCategory, SkillLevel, SportType

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)

SPORT_TYPE_KEYWORDS: list[tuple[str, SportType]] = [
    ("basketball", SportType.BASKETBALL),
    ("soccer", SportType.SOCCER),
    ("football", SportType.SOCCER),
    ("badminton", SportType.BADMINTON),
    ("tennis", SportType.TENNIS),
    ("swimming", SportType.SWIMMING),
    ("swim", SportType.SWIMMING),
    ("water polo", SportType.SWIMMING),
    ("running", SportType.RUNNING),
    ("jogging", SportType.RUNNING),
    ("marathon", SportType.RUNNING),
    ("fitness", SportType.FITNESS),
    ("gym", SportType.FITNESS),
    ("sports ground", SportType.SPORTS_GROUND),
    ("sports centre", SportType.SPORTS_CENTRE),
    ("sports center", SportType.SPORTS_CENTRE),
]

DISTRICT_KEYWORDS: list[tuple[str, District]] = [
    # Official district names
    ("kowloon city", District.KOWLOON_CITY),
    ("kwun tong", District.KWUN_TONG),
    ("sham shui po", District.SHAM_SHUI_PO),
    ("wong tai sin", District.WONG_TAI_SIN),
    ("yau tsim mong", District.YAU_TSIM_MONG),
    ("kwai tsing", District.KWAI_TSING),
    ("sai kung", District.SAI_KUNG),
    ("sha tin", District.SHA_TIN),
    ("shatin", District.SHA_TIN),
    ("tai po", District.TAI_PO),
    ("tsuen wan", District.TSUEN_WAN),
    ("tuen mun", District.TUEN_MUN),
    ("yuen long", District.YUEN_LONG),
    ("wan chai", District.WANCHAI),
    ("wanchai", District.WANCHAI),
    # Neighbourhoods
    ("causeway bay", District.WANCHAI),
    ("happy valley", District.WANCHAI),
    ("north point", District.EASTERN),
    ("quarry bay", District.EASTERN),
    ("chai wan", District.EASTERN),
    ("aberdeen", District.SOUTHERN),
    ("stanley", District.SOUTHERN),
    ("kennedy town", District.WESTERN),
    ("sheung wan", District.WESTERN),
    ("sai ying pun", District.WESTERN),
    ("admiralty", District.CENTRAL),
    ("mong kok", District.YAU_TSIM_MONG),
    ("mongkok", District.YAU_TSIM_MONG),
    ("tsim sha tsui", District.YAU_TSIM_MONG),
    ("yau ma tei", District.YAU_TSIM_MONG),
    ("diamond hill", District.WONG_TAI_SIN),
    ("ngau tau kok", District.KWUN_TONG),
    ("yau tong", District.KWUN_TONG),
    ("hung hom", District.KOWLOON_CITY),
    ("tai wai", District.SHA_TIN),
    ("fanling", District.NORTH),
    ("sheung shui", District.NORTH),
    ("tin shui wai", District.YUEN_LONG),
    ("kwai chung", District.KWAI_TSING),
    ("tsing yi", District.KWAI_TSING),
    ("lantau", District.ISLANDS),
    ("cheung chau", District.ISLANDS),
    ("lamma", District.ISLANDS),
    ("clear water bay", District.SAI_KUNG),
    ("tseung kwan o", District.SAI_KUNG),
    # Broad names last
    ("central", District.CENTRAL),
    ("eastern", District.EASTERN),
    ("southern", District.SOUTHERN),
    ("western", District.WESTERN),
    ("islands", District.ISLANDS),
    ("kowloon", District.KOWLOON_CITY),
    ("north", District.NORTH),
]

EVENT_CATEGORY_KEYWORDS: list[tuple[str, EventCategory]] = [
    ("competition", EventCategory.COMPETITION),
    ("tournament", EventCategory.COMPETITION),
    ("championship", EventCategory.COMPETITION),
    ("league", EventCategory.COMPETITION),
    ("race", EventCategory.COMPETITION),
    ("lesson", EventCategory.LESSONS),
    ("training", EventCategory.LESSONS),
    ("class", EventCategory.LESSONS),
    ("clinic", EventCategory.LESSONS),
    ("workshop", EventCategory.LESSONS),
    ("coaching", EventCategory.LESSONS),
    ("watching", EventCategory.WATCHING),
    ("spectator", EventCategory.WATCHING),
    ("screening", EventCategory.WATCHING),
    ("social", EventCategory.SOCIAL),
    ("meetup", EventCategory.SOCIAL),
    ("community", EventCategory.SOCIAL),
]

SKILL_LEVEL_KEYWORDS: list[tuple[str, SkillLevel]] = [
    ("beginner", SkillLevel.BEGINNER),
    ("novice", SkillLevel.BEGINNER),
    ("intermediate", SkillLevel.INTERMEDIATE),
    ("advanced", SkillLevel.ADVANCED),
    ("expert", SkillLevel.EXPERT),
    ("professional", SkillLevel.EXPERT),
    ("elite", SkillLevel.EXPERT),
    ("all", SkillLevel.ALL_LEVELS),
    ("any", SkillLevel.ALL_LEVELS),
]


def _clean(text: object) -> str:
    """Lower-case, collapse whitespace and treat underscores as spaces."""
    if text is None:
        return ""
    if isinstance(text, Enum):
        text = text.value
    return " ".join(str(text).lower().replace("_", " ").replace("-", " ").split())


def _match(
    text: object,
    enum_cls: type[E],
    keywords: list[tuple[str, E]],
    default: E,
) -> E:
    """Exact enum value first, then ordered keyword containment, then default."""
    cleaned = _clean(text)
    if not cleaned:
        return default

    exact = cleaned.replace(" ", "_")
    for member in enum_cls:
        if member.value == exact:
            return member

    for keyword, member in keywords:
        if keyword in cleaned:
            return member

    logger.debug(f"No {enum_cls.__name__} match for {text!r}, using {default.value}")
    return default


def normalize_sport_type(text: object) -> SportType:
    """Map free text to a SportType. Defaults to ``other``."""
    return _match(text, SportType, SPORT_TYPE_KEYWORDS, SportType.OTHER)


def normalize_district(text: object, default: District = District.CENTRAL) -> District:
    """Map free text (district, neighbourhood, address) to a District."""
    return _match(text, District, DISTRICT_KEYWORDS, default)


def normalize_event_category(text: object) -> EventCategory:
    """Map free text to an EventCategory. Defaults to ``competition``."""
    return _match(text, EventCategory, EVENT_CATEGORY_KEYWORDS, EventCategory.COMPETITION)


def normalize_skill_level(text: object) -> SkillLevel:
    """Map free text to a SkillLevel. Defaults to ``all_levels``."""
    return _match(text, SkillLevel, SKILL_LEVEL_KEYWORDS, SkillLevel.ALL_LEVELS)


def is_specific_filter(value: object) -> bool:
    """False for empty values and the ``all`` wildcard used by search forms."""
    cleaned = _clean(value)
    return bool(cleaned) and cleaned != "all"


def parse_int(text: object) -> int | None:
    """First whole number in ``text`` (``"Up to 32 players"`` -> 32), or None."""
    if text is None:
        return None
    if isinstance(text, int) and not isinstance(text, bool):
        return text
    match = re.search(r"\d+", str(text).replace(",", ""))
    if not match:
        logger.debug(f"No integer in {text!r}")
        return None
    return int(match.group(0))


def filter_value(value: object) -> str | None:
    """Plain string form of a specific filter, or None for empty / ``all``."""
    if not is_specific_filter(value):
        return None
    return str(value.value if isinstance(value, Enum) else value).strip()
