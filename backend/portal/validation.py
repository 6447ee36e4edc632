# Overview: Payload validation against model column metadata and per-model write policies.

"""
Request bodies for users, folders and groups pass through validate_payload
before any attribute is assigned.

INVARIANT: only keys named in a policy's writable_fields ever reach a model,
so fields such as password_hash or created_at cannot be set from a request.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable

from sqlalchemy import Boolean, DateTime, Integer, String, Text

from .errors import ValidationError
from .time_utils import parse_iso_datetime

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
INTEGER_TEXT = re.compile(r"-?\d+")


@dataclass(frozen=True)
class ModelValidationPolicy:
    writable_fields: frozenset[str]
    required_on_create: frozenset[str] = frozenset()


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _to_int(field: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and INTEGER_TEXT.fullmatch(value.strip()):
        return int(value.strip())
    # floats and "1e3" land here
    raise ValidationError(f"{field} must be an integer")


def _to_bool(field: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    flag = value.strip().lower() if isinstance(value, str) else None
    if flag not in ("true", "false"):
        raise ValidationError(f"{field} must be a boolean")
    return flag == "true"


def _to_datetime(field: str, value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a datetime")
    try:
        parsed = parse_iso_datetime(value)
    except ValueError:
        parsed = None
    if parsed is None:
        raise ValidationError(f"{field} must be an ISO-8601 datetime")
    return parsed


def _to_text(field: str, value: Any) -> str:
    if isinstance(value, (dict, list)):
        raise ValidationError(f"{field} must be a string")
    return str(value).strip()


_CONVERTERS: tuple[tuple[tuple[type, ...], Callable[[str, Any], Any]], ...] = (
    ((Integer,), _to_int),
    ((Boolean,), _to_bool),
    ((DateTime,), _to_datetime),
    ((String, Text), _to_text),
)


def _convert(field: str, column, value: Any) -> Any:
    for types, converter in _CONVERTERS:
        if isinstance(column.type, types):
            return converter(field, value)
    return value


def _check_text_limits(field: str, column, value: Any) -> None:
    if not isinstance(value, str):
        return
    if value == "" and not column.nullable and isinstance(column.type, (String, Text)):
        raise ValidationError(f"{field} cannot be blank")
    limit = getattr(column.type, "length", None)
    if limit and len(value) > limit:
        raise ValidationError(f"{field} exceeds max length {limit}")


def validate_payload(*, model, payload: dict, policy: ModelValidationPolicy, partial: bool) -> dict:
    """
    Return the subset of payload the policy allows, converted to column types.

    Full (create) payloads must carry every required_on_create field with a
    non-blank value. Unknown or non-writable keys are dropped silently.
    Column nullability and String lengths come from the mapper.
    """
    body = {} if payload is None else payload
    if not isinstance(body, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        absent = sorted(name for name in policy.required_on_create if _is_blank(body.get(name)))
        if absent:
            raise ValidationError(f"Missing required fields: {', '.join(absent)}")

    # Keyed by mapped attribute name, which may differ from the column name
    columns = dict(model.__mapper__.columns.items())
    cleaned: dict = {}
    for field, incoming in body.items():
        column = columns.get(field)
        if column is None or field not in policy.writable_fields:
            continue
        if incoming is None:
            if not column.nullable:
                raise ValidationError(f"{field} cannot be null")
            cleaned[field] = None
            continue
        value = _convert(field, column, incoming)
        _check_text_limits(field, column, value)
        cleaned[field] = value
    return cleaned


def validate_email(email: str | None) -> None:
    if email is not None and not EMAIL_PATTERN.match(email):
        raise ValidationError("email must be a valid email address")


def parse_int(value, field: str) -> int:
    """Strict integer parse for ids and sort orders coming from JSON or query strings."""
    return _to_int(field, value)


def parse_int_list(values, field: str) -> list[int]:
    if values is None:
        return []
    if not isinstance(values, list):
        raise ValidationError(f"{field} must be a list")
    return [parse_int(v, field) for v in values]


def parse_str_list(values, field: str) -> list[str]:
    if values is None:
        return []
    if not isinstance(values, list) or not all(isinstance(v, str) and v.strip() for v in values):
        raise ValidationError(f"{field} must be a list of non-empty strings")
    # preserve order, drop duplicates
    return list(dict.fromkeys(v.strip() for v in values))
