"""Pydantic-based validation and tolerant coercion for inbound payloads.

Raw ingestion records, preference patches and signal payloads arrive as loosely
typed JSON-like data. These helpers turn them into plain Python values without
ever raising on a malformed field: a field that cannot be read is absent.
"""

from __future__ import annotations

import math
from typing import TypeVar

from typing_extensions import TypedDict

from pydantic import TypeAdapter, ValidationError


SchemaT = TypeVar("SchemaT")


class IncomingDataError(ValueError):
    """Raised when inbound data fails validation."""


class RawListingInput(TypedDict, total=False):
    host: object
    domain: object
    website: object
    url: object
    name: object
    tiers: object
    tier: object
    tags: object
    segments: object
    cityTags: object
    city_tags: object
    city: object
    size: object
    platform: object
    created: object


class SignalsInput(TypedDict, total=False):
    adsActive: object
    adsCreatives30d: object
    hiringRelevant: object
    daysSinceLaunch: object
    daysSinceSiteUpdate: object
    storeCountDelta90d: object
    inboundMentions30d: object


def validate_as(schema: type[SchemaT], payload: object) -> SchemaT:
    try:
        return TypeAdapter(schema).validate_python(payload)
    except ValidationError as exc:
        message = f"Invalid payload for {schema}."
        raise IncomingDataError(message) from exc


def validate_json_as(schema: type[SchemaT], payload: str | bytes | bytearray) -> SchemaT:
    try:
        return TypeAdapter(schema).validate_json(payload)
    except ValidationError as exc:
        message = f"Invalid JSON payload for {schema}."
        raise IncomingDataError(message) from exc


def as_mapping(value: object) -> dict[str, object]:
    """Return ``value`` as a string-keyed dict, or an empty dict."""
    if value is None:
        return {}
    try:
        return validate_as(dict[str, object], value)
    except IncomingDataError:
        return {}


def as_str(value: object) -> str:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, bool):
        return ""
    if isinstance(value, int | float) and math.isfinite(value):
        return str(value)
    return ""


def as_str_list(value: object) -> list[str]:
    """Coerce a list, tuple or comma/semicolon separated string to stripped strings."""
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.replace(";", ",").split(",") if part.strip()]
    if isinstance(value, list | tuple | set | frozenset):
        cleaned: list[str] = []
        for item in value:
            text = as_str(item)
            if text:
                cleaned.append(text)
        return cleaned
    text = as_str(value)
    return [text] if text else []


def as_float(value: object) -> float | None:
    """Return a finite float, or None when the value is not numeric."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def as_int(value: object) -> int | None:
    number = as_float(value)
    if number is None:
        return None
    return math.floor(number)


def as_bool(value: object) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in {"1", "true", "yes", "y", "on"}:
            return True
        if text in {"0", "false", "no", "n", "off"}:
            return False
    return None
