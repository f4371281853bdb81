from __future__ import annotations

import re
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Iterable, Mapping, Optional, Type

from ..core.constants import EMAIL_PATTERN
from ..core.exceptions import FieldError, ValidationError
from .datetime_utils import as_datetime

VALIDATION_FAILED = "Validation failed"
QUERY_VALIDATION_FAILED = "Query validation failed"


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def to_snake(name: str) -> str:
    return re.sub(r"(?<=[a-z0-9])(?=[A-Z])", "_", name).lower()


def _humanize(field: str) -> str:
    words = to_snake(field).replace("_id", "").replace("_", " ").strip()
    return words[:1].upper() + words[1:]


class Payload:
    """Reads a JSON body field by field and collects every error before failing.

    Keys are read in camelCase (as clients send them) and stored in `values`
    under their snake_case column names. With `partial=True` (updates) absent
    fields are skipped instead of reported.
    """

    def __init__(
        self,
        data: Optional[Mapping[str, Any]],
        *,
        partial: bool = False,
        message: str = VALIDATION_FAILED,
        prefix: str = "",
    ):
        self._data = dict(data or {})
        self._partial = partial
        self._message = message
        self._prefix = prefix
        self.errors: list[FieldError] = []
        self.values: dict[str, Any] = {}

    def has(self, field: str) -> bool:
        return field in self._data

    def raw(self, field: str, default: Any = None) -> Any:
        return self._data.get(field, default)

    def error(self, field: str, message: str) -> None:
        self.errors.append(FieldError(field=f"{self._prefix}{field}", message=message))

    def _absent(self, field: str, required: bool, label: str) -> bool:
        value = self._data.get(field)
        if value is not None and value != "":
            return False
        if required and not self._partial:
            self.error(field, f"{label} is required")
        return True

    def _store(self, field: str, key: Optional[str], value: Any) -> Any:
        self.values[key or to_snake(field)] = value
        return value

    def _default(self, field: str, key: Optional[str], default: Any) -> Any:
        if self._partial and field not in self._data:
            return None
        if default is not None or field in self._data:
            return self._store(field, key, default)
        return None

    def string(
        self,
        field: str,
        *,
        required: bool = False,
        label: Optional[str] = None,
        min_len: Optional[int] = None,
        max_len: Optional[int] = None,
        pattern: Optional[str] = None,
        pattern_message: Optional[str] = None,
        upper: bool = False,
        lower: bool = False,
        default: Optional[str] = None,
        key: Optional[str] = None,
    ) -> Optional[str]:
        label = label or _humanize(field)
        if self._absent(field, required, label):
            if self._data.get(field) == "" and not required:
                return self._store(field, key, "")
            return self._default(field, key, default)

        value = self._data[field]
        if not isinstance(value, (str, int, float)) or isinstance(value, bool):
            self.error(field, f"{label} must be a string")
            return None
        value = str(value).strip()
        if required and not value:
            self.error(field, f"{label} is required")
            return None
        if upper:
            value = value.upper()
        if lower:
            value = value.lower()
        if min_len is not None and len(value) < min_len:
            self.error(field, f"{label} must be at least {min_len} characters")
            return None
        if max_len is not None and len(value) > max_len:
            self.error(field, f"{label} must not exceed {max_len} characters")
            return None
        if pattern and not re.match(pattern, value):
            self.error(field, pattern_message or f"{label} has an invalid format")
            return None
        return self._store(field, key, value)

    def email(self, field: str, *, required: bool = False, label: Optional[str] = None, key: Optional[str] = None) -> Optional[str]:
        return self.string(
            field,
            required=required,
            label=label,
            lower=True,
            pattern=EMAIL_PATTERN,
            pattern_message="Please provide a valid email address",
            key=key,
        )

    def number(
        self,
        field: str,
        *,
        required: bool = False,
        label: Optional[str] = None,
        minimum: Optional[float] = None,
        maximum: Optional[float] = None,
        integer: bool = False,
        default: Optional[float] = None,
        key: Optional[str] = None,
    ) -> Optional[float]:
        label = label or _humanize(field)
        if self._absent(field, required, label):
            return self._default(field, key, default)

        value = self._data[field]
        if isinstance(value, bool):
            self.error(field, f"{label} must be a number")
            return None
        try:
            number = float(value)
        except (TypeError, ValueError):
            self.error(field, f"{label} must be a number")
            return None
        if integer:
            if not number.is_integer():
                self.error(field, f"{label} must be an integer")
                return None
            number = int(number)
        if minimum is not None and number < minimum:
            self.error(field, f"{label} must be at least {minimum:g}")
            return None
        if maximum is not None and number > maximum:
            self.error(field, f"{label} must not exceed {maximum:g}")
            return None
        return self._store(field, key, number)

    def integer(self, field: str, **kwargs: Any) -> Optional[int]:
        value = self.number(field, integer=True, **kwargs)
        return None if value is None else int(value)

    def identifier(self, field: str, *, required: bool = False, label: Optional[str] = None, key: Optional[str] = None) -> Optional[int]:
        label = label or _humanize(field)
        if self._absent(field, required, label):
            return None
        try:
            value = int(self._data[field])
        except (TypeError, ValueError):
            self.error(field, f"{label} is invalid")
            return None
        if value < 1:
            self.error(field, f"{label} is invalid")
            return None
        return self._store(field, key, value)

    def boolean(self, field: str, *, default: Optional[bool] = None, label: Optional[str] = None, key: Optional[str] = None) -> Optional[bool]:
        label = label or _humanize(field)
        if field not in self._data or self._data[field] is None:
            return self._default(field, key, default)
        value = self._data[field]
        if isinstance(value, bool):
            return self._store(field, key, value)
        if isinstance(value, str) and value.lower() in {"true", "false", "1", "0"}:
            return self._store(field, key, value.lower() in {"true", "1"})
        self.error(field, f"{label} must be a boolean")
        return None

    def choice(
        self,
        field: str,
        enum_cls: Type[Enum],
        *,
        allowed: Optional[Iterable[Enum]] = None,
        required: bool = False,
        label: Optional[str] = None,
        default: Optional[Enum] = None,
        key: Optional[str] = None,
    ) -> Optional[Enum]:
        label = label or _humanize(field)
        options = list(allowed) if allowed is not None else list(enum_cls)
        if self._absent(field, required, label):
            return self._default(field, key, default)
        try:
            value = enum_cls(str(self._data[field]))
        except ValueError:
            value = None
        if value is None or value not in options:
            self.error(field, f"{label} must be one of: {', '.join(o.value for o in options)}")
            return None
        return self._store(field, key, value)

    def date(
        self,
        field: str,
        *,
        required: bool = False,
        label: Optional[str] = None,
        default: Optional[datetime] = None,
        key: Optional[str] = None,
    ) -> Optional[datetime]:
        label = label or _humanize(field)
        if self._absent(field, required, label):
            return self._default(field, key, default)
        try:
            value = as_datetime(self._data[field])
        except (TypeError, ValueError):
            value = None
        if value is None:
            self.error(field, f"{label} must be a valid date")
            return None
        return self._store(field, key, value)

    def items(
        self,
        field: str,
        parser: Callable[["Payload"], Any],
        *,
        required: bool = False,
        min_items: int = 0,
        label: Optional[str] = None,
        min_message: Optional[str] = None,
        key: Optional[str] = None,
    ) -> Optional[list]:
        """Validate an array of objects; `parser` reads one element's Payload and returns the item."""
        label = label or _humanize(field)
        if field not in self._data or self._data[field] is None:
            if required and not self._partial:
                self.error(field, min_message or f"{label} is required")
            return self._default(field, key, [] if not self._partial else None)

        raw_items = self._data[field]
        if not isinstance(raw_items, list):
            self.error(field, f"{label} must be a list")
            return None
        if len(raw_items) < min_items:
            self.error(field, min_message or f"{label} must contain at least {min_items} item(s)")
            return None

        out = []
        for index, raw in enumerate(raw_items):
            nested = Payload(raw if isinstance(raw, Mapping) else {}, prefix=f"{self._prefix}{field}[{index}].")
            item = parser(nested)
            self.errors.extend(nested.errors)
            out.append(item)
        return self._store(field, key, out)

    def validate(self) -> dict[str, Any]:
        if self.errors:
            raise ValidationError(self._message, self.errors)
        return self.values

