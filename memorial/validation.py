"""Request payload helpers; every failure raises ``ValidationError``."""
from __future__ import annotations

import enum
import re
from datetime import datetime
from typing import Any, Dict, Optional, Type, TypeVar

from flask import request

from .date_parser import parse_iso_datetime
from .errors import ValidationError

E = TypeVar("E", bound=enum.Enum)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
# Keeps (page - 1) * limit within a signed 64-bit OFFSET.
MAX_PAGE = (2 ** 63 - 1) // MAX_PAGE_SIZE


def json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def string_field(data: Dict[str, Any], key: str, *, required: bool = False, min_len: int = 0,
                 max_len: Optional[int] = None) -> Optional[str]:
    value = data.get(key)
    if value is None:
        if required:
            raise ValidationError(f'"{key}" is required')
        return None
    if not isinstance(value, str):
        raise ValidationError(f'"{key}" must be a string')
    value = value.strip()
    if required and not value:
        raise ValidationError(f'"{key}" is not allowed to be empty')
    if not value:
        return None
    if len(value) < min_len:
        raise ValidationError(f'"{key}" length must be at least {min_len} characters long')
    if max_len is not None and len(value) > max_len:
        raise ValidationError(f'"{key}" length must be less than or equal to {max_len} characters long')
    return value


def email_field(data: Dict[str, Any], key: str = "email") -> str:
    value = string_field(data, key, required=True, max_len=255)
    if not EMAIL_RE.match(value):
        raise ValidationError(f'"{key}" must be a valid email')
    return value.lower()


def bool_field(data: Dict[str, Any], key: str, default: bool) -> bool:
    value = data.get(key)
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in {"true", "false"}:
        return value.lower() == "true"
    raise ValidationError(f'"{key}" must be a boolean')


def enum_field(data: Dict[str, Any], key: str, enum_cls: Type[E], *, default: Optional[E] = None) -> E:
    value = data.get(key)
    if value is None:
        if default is not None:
            return default
        raise ValidationError(f'"{key}" is required')
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f'"{key}" must be one of [{allowed}]')


def date_field(data: Dict[str, Any], key: str, *, required: bool = False) -> Optional[datetime]:
    value = data.get(key)
    if value is None or value == "":
        if required:
            raise ValidationError(f'"{key}" is required')
        return None
    try:
        return parse_iso_datetime(value)
    except (TypeError, ValueError):
        raise ValidationError(f'"{key}" must be a valid ISO 8601 date')


def id_field(data: Dict[str, Any], key: str, *, required: bool = False) -> Optional[int]:
    value = data.get(key)
    if value is None or value == "":
        if required:
            raise ValidationError(f'"{key}" is required')
        return None
    if isinstance(value, bool):
        raise ValidationError(f'"{key}" must be an id')
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if not isinstance(value, int) or value < 1:
        raise ValidationError(f'"{key}" must be an id')
    return value


def optional_int_arg(name: str, *, minimum: int, maximum: int) -> Optional[int]:
    raw = (request.args.get(name) or "").strip()
    if not raw:
        return None
    try:
        value = int(raw)
    except ValueError:
        raise ValidationError(f'"{name}" must be an integer')
    if value < minimum or value > maximum:
        raise ValidationError(f'"{name}" must be between {minimum} and {maximum}')
    return value


def pagination_args() -> tuple[int, int]:
    """``page`` clamped to [1, MAX_PAGE] and ``limit`` to [1, 100]; junk falls back to defaults."""
    page = _lenient_int(request.args.get("page")) or 1
    limit = _lenient_int(request.args.get("limit")) or DEFAULT_PAGE_SIZE
    return min(max(page, 1), MAX_PAGE), min(max(limit, 1), MAX_PAGE_SIZE)


def pagination_meta(page: int, limit: int, total: int) -> Dict[str, int]:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": -(-total // limit),
    }


def _lenient_int(raw: Optional[str]) -> Optional[int]:
    try:
        return int(raw) if raw is not None else None
    except ValueError:
        return None
