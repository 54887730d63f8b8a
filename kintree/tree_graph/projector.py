"""Projection of person records into the chart widget's flat data shape, and back.

The widget expects every key to be present (empty string rather than missing)
and only knows two genders: "O" and "U" are shown as "M". That coercion is
lossy and one-way, so the reverse mapping never derives a gender from a value
the user did not change.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional, Tuple

from ..models import Gender, Status
from ..schemas import GraphNode, PersonCreate, PersonOut, PersonPatch, UNKNOWN_NAME, compose_name

logger = logging.getLogger(__name__)

# chart key -> person field, for plain text values
TEXT_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("avatar", "photo"),
    ("middle name", "middle_name"),
    ("maiden name", "maiden_name"),
    ("nickname", "nickname"),
    ("title", "title"),
    ("birthPlace", "birth_place"),
    ("birthCountry", "birth_country"),
    ("deathPlace", "death_place"),
    ("deathCountry", "death_country"),
    ("photoThumbnail", "photo_thumbnail"),
    ("bio", "bio"),
    ("wikiId", "wiki_id"),
    ("occupation", "occupation"),
    ("education", "education"),
    ("nationality", "nationality"),
    ("ethnicity", "ethnicity"),
    ("religion", "religion"),
    ("email", "email"),
    ("phone", "phone"),
    ("address", "address"),
    ("city", "city"),
    ("state", "state"),
    ("country", "country"),
    ("zipCode", "zip_code"),
    ("notes", "notes"),
    ("metadata", "metadata"),
)

# spellings the widget's edit form uses for the same fields
_TEXT_ALIASES = {
    "first name": "first_name",
    "last name": "last_name",
    "birth place": "birth_place",
    "death place": "death_place",
}
_TEXT_KEYS = {**dict(TEXT_FIELDS), **_TEXT_ALIASES}
_DATE_KEYS = {"birthday": "birth_date", "deathDate": "death_date", "death date": "death_date"}
_BOOL_KEYS = {"isPublic": "is_public", "isDeceased": "is_deceased"}


# ── Forward: person -> chart data ──

def build_full_name(person: PersonOut) -> str:
    if person.name and person.name.strip():
        return person.name
    return compose_name(person.title, person.first_name, person.middle_name, person.last_name)


def parse_name_fields(person: PersonOut) -> Tuple[str, str]:
    """(first, last) for the chart. Explicit fields win over splitting the full name."""
    if person.first_name and person.last_name:
        return person.first_name, person.last_name
    if person.first_name:
        return person.first_name, ""
    if person.last_name:
        return person.last_name, ""

    parts = build_full_name(person).split()
    if len(parts) == 1:
        return parts[0], ""
    if parts:
        return parts[0], " ".join(parts[1:])
    return UNKNOWN_NAME, ""


def to_chart_gender(gender) -> str:
    """M/F pass through; O and U become M, the widget has no other code."""
    value = gender.value if isinstance(gender, Gender) else str(gender or "").upper()
    return "F" if value == "F" else "M"


def parse_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        return value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return dt.date()


def format_chart_date(value: Any) -> str:
    """Calendar date (YYYY-MM-DD) for a stored date/datetime, "" when absent."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return ""
    try:
        return parse_date(value).isoformat()
    except ValueError:
        logger.warning("Unparseable date %r, projecting as empty", value)
        return ""


def project_person(person: PersonOut) -> Dict[str, Any]:
    first_name, last_name = parse_name_fields(person)
    data: Dict[str, Any] = {
        "name": build_full_name(person),
        "gender": to_chart_gender(person.gender),
        "birthday": format_chart_date(person.birth_date),
        "first name": first_name,
        "last name": last_name,
    }
    for key, attr in TEXT_FIELDS:
        data[key] = getattr(person, attr) or ""
    data["deathDate"] = format_chart_date(person.death_date)
    data["status"] = person.status.value
    data["isPublic"] = person.is_public
    data["displayOrder"] = person.display_order
    data["isDeceased"] = person.is_deceased
    return data


# ── Reverse: chart data -> person fields ──

_SKIP = object()


def _field_value(key: str, value: Any):
    """(field, value) for one chart key, or (None, _SKIP) when it can't be stored."""
    if key == "name":
        if value is None or not str(value).strip():
            return None, _SKIP
        return "name", str(value).strip()
    if key in _TEXT_KEYS:
        text = "" if value is None else str(value)
        return _TEXT_KEYS[key], (text if text.strip() else None)
    if key in _DATE_KEYS:
        if value is None or not str(value).strip():
            return _DATE_KEYS[key], None
        try:
            return _DATE_KEYS[key], parse_date(value).isoformat()
        except ValueError:
            logger.warning("Invalid %s %r, field not saved", key, value)
            return None, _SKIP
    if key == "gender":
        try:
            return "gender", Gender(str(value).upper())
        except ValueError:
            return None, _SKIP
    if key == "status":
        try:
            return "status", Status(str(value).lower())
        except ValueError:
            return None, _SKIP
    if key in _BOOL_KEYS:
        if isinstance(value, bool):
            return _BOOL_KEYS[key], value
        return None, _SKIP
    if key == "displayOrder":
        if isinstance(value, bool):
            return None, _SKIP
        try:
            return "display_order", int(value)
        except (TypeError, ValueError):
            return None, _SKIP
    return None, _SKIP


def person_fields_from_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """Every storable person field carried by a chart data dict."""
    fields: Dict[str, Any] = {}
    for key, value in data.items():
        field, converted = _field_value(key, value)
        if converted is _SKIP:
            continue
        # canonical keys come first in projected data; an alias never overrides them
        if field in fields and key in ("birth place", "death place", "death date"):
            continue
        fields[field] = converted
    return fields


def person_create_from_node(node: GraphNode, user_id: str) -> PersonCreate:
    fields = {k: v for k, v in person_fields_from_data(node.data).items() if v is not None}
    if "name" not in fields:
        fields["name"] = compose_name(fields.get("first_name"), fields.get("last_name"))
    fields.setdefault("status", Status.ACTIVE)
    return PersonCreate(id=node.id, created_by=user_id, **fields)


def patch_from_changes(changes: Dict[str, Any], user_id: str) -> Optional[PersonPatch]:
    """PersonPatch holding exactly the changed fields, or None if none are storable."""
    fields = person_fields_from_data(changes)
    if not fields:
        return None
    return PersonPatch(updated_by=user_id, **fields)
