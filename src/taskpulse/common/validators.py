from __future__ import annotations

from typing import Any, Sequence

from ..core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_id_list(value: Any, field_name: str = "ids") -> list[int]:
    """Validate a non-empty JSON array of integer ids, keeping first-seen order."""

    if not isinstance(value, (list, tuple)) or not value:
        raise ValidationError(f"Provide a non-empty array of {field_name}")

    out: list[int] = []
    for item in value:
        if isinstance(item, bool):
            raise ValidationError(f"Invalid id in {field_name}: {item!r}")
        try:
            item_id = int(item)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid id in {field_name}: {item!r}")
        if item_id <= 0:
            raise ValidationError(f"Invalid id in {field_name}: {item!r}")
        if item_id not in out:
            out.append(item_id)
    return out


def normalize_user_ids(values: Sequence[Any] | None) -> list[int]:
    """Coerce user references to ids, dropping empties and duplicates (order kept).

    Entries that are not positive integers (or their string form) are dropped.
    """

    if not values:
        return []
    out: list[int] = []
    for v in values:
        if v is None or isinstance(v, bool):
            continue
        try:
            user_id = int(str(v).strip())
        except ValueError:
            continue
        if user_id > 0 and user_id not in out:
            out.append(user_id)
    return out


def parse_page_args(page: Any, limit: Any, *, default_size: int = DEFAULT_PAGE_SIZE, max_size: int = MAX_PAGE_SIZE) -> tuple[int, int]:
    try:
        page_i = int(page) if page not in (None, "") else 1
        limit_i = int(limit) if limit not in (None, "") else default_size
    except (TypeError, ValueError):
        raise ValidationError("page and limit must be integers")

    if page_i < 1:
        raise ValidationError("page must be >= 1")
    if limit_i < 1:
        raise ValidationError("limit must be >= 1")
    return page_i, min(limit_i, max_size)
