"""
Text Response Parser.

Turns the semi-formatted prose returned by a language-model search provider
into candidate record dicts. The provider is asked for a list but is not bound
to any schema, so the parser accepts numbered lists, bullets, bold titles and
``**Label:** value`` or ``Label: value`` field lines, in any mix.

The parser is a two-state machine:

    SCANNING_FOR_TITLE  --title line-->  ACCUMULATING_FIELDS
    ACCUMULATING_FIELDS --title line-->  (flush) ACCUMULATING_FIELDS
    ACCUMULATING_FIELDS --heading----->  (flush) SCANNING_FOR_TITLE

While accumulating, labeled lines are routed through ``FIELD_HANDLERS`` (a
label -> setter table) and anything unlabeled becomes description text.

Records are plain dicts: structured values (dates, times, coordinates,
integers) are parsed here; enum-like values (sport, category, district,
skill level) are kept as raw text for the normalizer.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable, Iterator
from enum import Enum
from typing import Any

from sportshub.ingestion.normalization.datetime_parser import (
    MONTH_PATTERN,
    parse_date,
    parse_single_time,
    parse_time_range,
)
from sportshub.ingestion.normalization.field_normalizer import parse_int
from sportshub.ingestion.normalization.location_parser import (
    PLACEHOLDER_NAME,
    parse_coordinates,
    parse_float,
    placeholder_location,
)
from sportshub.schemas.candidate import LocationInfo
from sportshub.schemas.enums import CandidateKind

logger = logging.getLogger(__name__)


class ParserState(str, Enum):
    """Where the parser is within the response."""

    SCANNING_FOR_TITLE = "scanning_for_title"
    ACCUMULATING_FIELDS = "accumulating_fields"


Record = dict[str, Any]
FieldHandler = Callable[[Record, str], None]


# ============================================================================
# LINE PATTERNS
# ============================================================================

NUMBERED_ITEM = re.compile(r"^\d{1,3}[.)]\s+(.+)$")
BULLET_ITEM = re.compile(r"^[-*•]\s+(.+)$")
HEADING = re.compile(r"^#{1,6}\s*(.*)$")
BOLD_TITLE = re.compile(r"^\*\*([^*:]+?)\*\*\s*$")
LEADING_BOLD = re.compile(r"^\*\*([^*]+?)\*\*\s*(.*)$")

BOLD_LABEL = re.compile(r"^\*\*\s*([A-Za-z][A-Za-z /&]{0,30}?)\s*:\s*\*\*\s*(.*)$")
BOLD_LABEL_COLON_OUTSIDE = re.compile(r"^\*\*\s*([A-Za-z][A-Za-z /&]{0,30}?)\s*\*\*\s*:\s*(.*)$")
PLAIN_LABEL = re.compile(r"^([A-Za-z][A-Za-z /&]{0,30}?)\s*:\s*(.+)$")

URL = re.compile(r"https?://[^\s<>()\]]+")
BARE_URL_LINE = re.compile(r"^<?(https?://\S+?)>?$")
MARKDOWN_LINK = re.compile(r"\[([^\]]*)\]\((https?://[^)\s]+)\)")
CITATION = re.compile(r"\[\d+\]")

STANDALONE_DATE = re.compile(
    r"^(?:(?:mon|tue|wed|thu|fri|sat|sun)[a-z]*\.?,?\s+)?"
    rf"(?:\d{{4}}-\d{{1,2}}-\d{{1,2}}"
    rf"|(?:{MONTH_PATTERN})\.?\s+\d{{1,2}}(?:st|nd|rd|th)?,?\s+\d{{4}}"
    rf"|\d{{1,2}}(?:st|nd|rd|th)?\s+(?:{MONTH_PATTERN})\.?,?\s+\d{{4}}"
    r"|\d{1,2}[-/.]\d{1,2}[-/.]\d{2,4})\.?$",
    re.IGNORECASE,
)
_CLOCK = r"\d{1,2}(?::[0-5]\d)?\s*(?:[ap]\.?\s?m\.?)?"
STANDALONE_TIME_RANGE = re.compile(
    rf"^{_CLOCK}\s*(?:-|–|—|to|until)\s*{_CLOCK}$",
    re.IGNORECASE,
)


# ============================================================================
# FIELD HANDLERS
# ============================================================================


def _location(record: Record) -> dict[str, Any]:
    location = record.get("location")
    if location is None:
        location = {"name": "", "address": "", "coordinates": None, "is_confirmed": True}
        record["location"] = location
    return location


def _set_name(record: Record, value: str) -> None:
    record["name"] = clean_title(value)


def _set_date(record: Record, value: str) -> None:
    parsed = parse_date(value)
    if parsed is None:
        logger.debug(f"Skipping malformed date {value!r}")
        return
    record["event_date"] = parsed


def _set_time_range(record: Record, value: str) -> None:
    if parse_single_time(value) is None:
        logger.debug(f"Skipping malformed time {value!r}")
        return
    window = parse_time_range(value)
    record["start_time"] = window.start
    record["end_time"] = window.end


def _set_single_time(key: str) -> FieldHandler:
    def handler(record: Record, value: str) -> None:
        parsed = parse_single_time(value)
        if parsed is None:
            logger.debug(f"Skipping malformed {key} {value!r}")
            return
        record[key] = parsed

    return handler


def _set_location(record: Record, value: str) -> None:
    location = _location(record)
    location["name"] = value
    location["address"] = value


def _set_address(record: Record, value: str) -> None:
    _location(record)["address"] = value


def _set_date_and_time(record: Record, value: str) -> None:
    _set_date(record, value)
    _set_time_range(record, value)


def _set_coordinates(record: Record, value: str) -> None:
    coordinates = parse_coordinates(value)
    if coordinates is None:
        logger.debug(f"Skipping malformed coordinates {value!r}")
        return
    location = _location(record)
    location["coordinates"] = coordinates.model_dump()
    location["is_confirmed"] = True


def _set_axis(key: str) -> FieldHandler:
    def handler(record: Record, value: str) -> None:
        parsed = parse_float(value)
        if parsed is None:
            logger.debug(f"Skipping malformed {key} {value!r}")
            return
        record[key] = parsed

    return handler


def _set_raw(key: str) -> FieldHandler:
    def handler(record: Record, value: str) -> None:
        record[key] = value

    return handler


def _set_url(key: str) -> FieldHandler:
    def handler(record: Record, value: str) -> None:
        match = URL.search(value)
        record[key] = match.group(0).rstrip(".,;") if match else value

    return handler


def _set_max_participants(record: Record, value: str) -> None:
    parsed = parse_int(value)
    if parsed is None or parsed < 1:
        logger.debug(f"Skipping malformed max participants {value!r}")
        return
    record["max_participants"] = parsed


def _append_description(record: Record, value: str) -> None:
    if not value:
        return
    existing = record.get("description") or ""
    record["description"] = f"{existing} {value}".strip()


_set_sport = _set_raw("sport_type")
_set_category = _set_raw("category")
_set_website = _set_url("website")
_set_image = _set_url("image_url")
_set_skill_level = _set_raw("skill_level")

FIELD_HANDLERS: dict[str, FieldHandler] = {
    "name": _set_name,
    "event name": _set_name,
    "facility name": _set_name,
    "title": _set_name,
    "date": _set_date,
    "event date": _set_date,
    "time": _set_time_range,
    "date & time": _set_date_and_time,
    "date and time": _set_date_and_time,
    "when": _set_date_and_time,
    "start time": _set_single_time("start_time"),
    "end time": _set_single_time("end_time"),
    "location": _set_location,
    "venue": _set_location,
    "address": _set_address,
    "sport": _set_sport,
    "sport type": _set_sport,
    "type": _set_sport,
    "event type": _set_sport,
    "facility type": _set_sport,
    "category": _set_category,
    "event category": _set_category,
    "district": _set_raw("district"),
    "description": _append_description,
    "website": _set_website,
    "website url": _set_website,
    "url": _set_website,
    "image": _set_image,
    "image url": _set_image,
    "photo": _set_image,
    "coordinates": _set_coordinates,
    "gps": _set_coordinates,
    "gps coordinates": _set_coordinates,
    "latitude": _set_axis("latitude"),
    "lat": _set_axis("latitude"),
    "longitude": _set_axis("longitude"),
    "lng": _set_axis("longitude"),
    "skill level": _set_skill_level,
    "level": _set_skill_level,
    "max participants": _set_max_participants,
    "maximum participants": _set_max_participants,
    "capacity": _set_max_participants,
    "rating": _set_axis("rating"),
}

NAME_LABELS = {label for label, handler in FIELD_HANDLERS.items() if handler is _set_name}


# ============================================================================
# LINE HELPERS
# ============================================================================


def _link_text(match: re.Match) -> str:
    text, url = match.group(1).strip(), match.group(2)
    return f"{text} {url}" if text else url


def clean_value(text: str) -> str:
    """Strip markdown emphasis, citation markers and link syntax."""
    text = MARKDOWN_LINK.sub(_link_text, text)
    text = CITATION.sub("", text)
    return text.replace("**", "").replace("__", "").strip()


def clean_title(text: str) -> str:
    """Clean a title: no emphasis, no trailing colon, no wrapping quotes."""
    text = clean_value(text)
    return text.strip().rstrip(":").strip().strip("\"'“”").strip()


def _label_match(text: str) -> re.Match | None:
    for pattern in (BOLD_LABEL, BOLD_LABEL_COLON_OUTSIDE, PLAIN_LABEL):
        m = pattern.match(text)
        if m:
            return m
    return None


def match_label(text: str) -> tuple[str, str] | None:
    """Return ``(label, value)`` when ``text`` is a known labeled field."""
    m = _label_match(text)
    if m is None:
        return None
    label = " ".join(m.group(1).lower().split())
    if label not in FIELD_HANDLERS:
        return None
    return label, clean_value(m.group(2))


def is_standalone_value(text: str) -> bool:
    """A line that is nothing but a date, a time window or a URL."""
    return bool(
        BARE_URL_LINE.match(text) or STANDALONE_DATE.match(text) or STANDALONE_TIME_RANGE.match(text)
    )


def split_title(body: str) -> tuple[str, str]:
    """
    Split a list item body into ``(name, trailing text)``.

    ``**Name**: rest`` and ``**Name** - rest`` keep only the bold part as
    the name. ``Name: rest`` splits on the first colon when the name part
    is short; anything else is all name.
    """
    m = LEADING_BOLD.match(body)
    if m:
        rest = m.group(2).lstrip(":-–— ").strip()
        return clean_title(m.group(1)), clean_value(rest)
    head, sep, rest = body.partition(": ")
    if sep and rest.strip() and len(head) <= 80:
        return clean_title(head), clean_value(rest)
    return clean_title(body), ""


def _fold_axes(record: Record) -> None:
    """Turn separate latitude/longitude labels into confirmed coordinates."""
    latitude = record.pop("latitude", None)
    longitude = record.pop("longitude", None)
    if latitude is None or longitude is None:
        return
    if not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
        logger.debug(f"Skipping out-of-range coordinates {latitude}, {longitude}")
        return
    location = _location(record)
    location["coordinates"] = {"latitude": latitude, "longitude": longitude}
    location["is_confirmed"] = True


# ============================================================================
# PARSER
# ============================================================================


class TextResponseParser:
    """
    Line-oriented parser for free-text provider responses.

    Args:
        kind: Whether records describe facilities or events
        default_sport_type: Sport hint seeded into every record
        default_category: Category hint seeded into every event record
        placeholder: Location seeded into every record until a real one is
            found; defaults to the unconfirmed city-centre placeholder
    """

    def __init__(
        self,
        kind: CandidateKind = CandidateKind.EVENT,
        default_sport_type: str | None = None,
        default_category: str | None = None,
        placeholder: LocationInfo | None = None,
    ):
        self.kind = kind
        self.default_sport_type = default_sport_type
        self.default_category = default_category
        self.placeholder = placeholder or placeholder_location()

    def new_record(self, name: str = "") -> Record:
        """A fresh accumulator seeded with the hints and placeholder location."""
        record: Record = {
            "kind": self.kind.value,
            "name": name,
            "description": "",
            "location": self.placeholder.model_dump(),
        }
        if self.default_sport_type:
            record["sport_type"] = self.default_sport_type
        if self.kind == CandidateKind.EVENT and self.default_category:
            record["category"] = self.default_category
        return record

    def parse(self, text: str) -> list[Record]:
        """Parse ``text`` and merge records that share a name."""
        return merge_same_name(self.iter_candidates(text))

    def iter_candidates(self, text: str) -> Iterator[Record]:
        """
        Yield records in the order their titles appear.

        Single pass over ``text``; the generator cannot be restarted.
        """
        state = ParserState.SCANNING_FOR_TITLE
        current: Record | None = None

        def flush() -> Record | None:
            if current is None:
                return None
            _fold_axes(current)
            if not (current.get("name") or "").strip():
                logger.debug("Dropping record without a name")
                return None
            return current

        for raw_line in (text or "").splitlines():
            line = raw_line.strip()
            if not line:
                continue
            indented = raw_line[: len(raw_line) - len(raw_line.lstrip())].replace("\t", "    ")

            # Headings either carry a title or separate sections
            heading = HEADING.match(line)
            if heading:
                line = heading.group(1).strip()
                if not line:
                    continue
                if not (NUMBERED_ITEM.match(line) or BOLD_TITLE.match(line) or LEADING_BOLD.match(line)):
                    if (record := flush()) is not None:
                        yield record
                    current, state = None, ParserState.SCANNING_FOR_TITLE
                    continue
                if not NUMBERED_ITEM.match(line):
                    line = f"1. {line}"

            item = NUMBERED_ITEM.match(line) or BULLET_ITEM.match(line)
            body = item.group(1).strip() if item else line
            labeled = match_label(body)

            # Inside a record, nested items and known-field or bare-value bullets are content
            is_content_item = (
                item is not None
                and state == ParserState.ACCUMULATING_FIELDS
                and (
                    len(indented) >= 2
                    or (
                        BULLET_ITEM.match(line) is not None
                        and (labeled is not None or is_standalone_value(clean_value(body)))
                    )
                )
            )

            # 1. Title lines open a new record
            is_title = (item is not None and labeled is None and not is_content_item) or (
                item is None and BOLD_TITLE.match(line) is not None
            )
            if is_title:
                if (record := flush()) is not None:
                    yield record
                name, rest = split_title(body)
                current = self.new_record(name)
                _append_description(current, rest)
                state = ParserState.ACCUMULATING_FIELDS
                continue

            # 2. Labeled fields
            if labeled is not None:
                label, value = labeled
                if label in NAME_LABELS and (
                    state == ParserState.SCANNING_FOR_TITLE or (current and current.get("name"))
                ):
                    if (record := flush()) is not None:
                        yield record
                    current = self.new_record()
                    state = ParserState.ACCUMULATING_FIELDS
                if current is None:
                    logger.debug(f"Ignoring field outside a record: {line!r}")
                    continue
                if value:
                    FIELD_HANDLERS[label](current, value)
                continue

            if current is None:
                logger.debug(f"Ignoring preamble line: {line!r}")
                continue

            # 3. Unlabeled standalone values
            content = clean_value(body)
            if self._fill_unlabeled(current, content):
                continue

            # 4. Everything else is description
            _append_description(current, content)

        if (record := flush()) is not None:
            yield record

    def _fill_unlabeled(self, record: Record, content: str) -> bool:
        """Opportunistically set a date, time window or website."""
        url = BARE_URL_LINE.match(content)
        if url and not record.get("website"):
            record["website"] = url.group(1).rstrip(".,;")
            return True

        if STANDALONE_DATE.match(content) and "event_date" not in record:
            parsed = parse_date(content)
            if parsed is not None:
                record["event_date"] = parsed
                return True

        if STANDALONE_TIME_RANGE.match(content) and "start_time" not in record:
            if parse_single_time(content) is not None:
                window = parse_time_range(content)
                record["start_time"] = window.start
                record["end_time"] = window.end
                return True

        return False


# ============================================================================
# SAME-NAME MERGE
# ============================================================================


def _is_absent(value: Any) -> bool:
    return value is None or value == "" or value == [] or value == {}


def _merge_location(kept: dict[str, Any] | None, later: dict[str, Any] | None) -> dict[str, Any] | None:
    """Per-subfield first-write-wins; placeholder parts count as absent."""
    if not later:
        return kept
    if not kept:
        return dict(later)

    merged = dict(kept)
    for key in ("name", "address"):
        if merged.get(key) in (None, "", PLACEHOLDER_NAME) and later.get(key) not in (None, "", PLACEHOLDER_NAME):
            merged[key] = later[key]
    kept_confirmed = merged.get("coordinates") and merged.get("is_confirmed", True)
    later_confirmed = later.get("coordinates") and later.get("is_confirmed", True)
    if not kept_confirmed and later_confirmed:
        merged["coordinates"] = later["coordinates"]
        merged["is_confirmed"] = True
    return merged


def merge_same_name(records: Iterable[Record]) -> list[Record]:
    """
    Collapse records that share a name, keeping first-seen order.

    The earlier record wins field by field; a later record only fills
    fields the earlier one lacks.
    """
    merged: dict[str, Record] = {}
    for record in records:
        key = (record.get("name") or "").strip().casefold()
        if key not in merged:
            merged[key] = record
            continue

        kept = merged[key]
        logger.debug(f"Merging repeated record {record.get('name')!r}")
        for field, value in record.items():
            if field == "location":
                kept["location"] = _merge_location(kept.get("location"), value)
            elif _is_absent(kept.get(field)) and not _is_absent(value):
                kept[field] = value
    return list(merged.values())
