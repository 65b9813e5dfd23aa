"""Shape checks for raw server responses.

Nothing downstream touches a user-list or post-list response until it has
passed through here. Validation is strict: a numeric string is not a
number, a bool is not a timestamp, and the raw value is left untouched.
"""
from typing import Any

from pydantic import TypeAdapter, ValidationError

from mm_history.errors import SchemaMismatchError
from mm_history.models import PostList, UserProfile

_USER_LIST = TypeAdapter(list[UserProfile])
_POST_LIST = TypeAdapter(PostList)


def _location(loc: tuple[int | str, ...]) -> str:
    parts: list[str] = []
    for item in loc:
        if isinstance(item, int):
            parts.append(f"[{item}]")
        else:
            parts.append(f".{item}" if parts else str(item))
    return "".join(parts)


def _first_violation(shape: str, exc: ValidationError) -> SchemaMismatchError:
    error = exc.errors()[0]
    loc = tuple(error["loc"])
    # create_at is a union; pydantic appends the member it tried last
    if len(loc) >= 2 and loc[-2] == "create_at" and loc[-1] in ("int", "float"):
        loc = loc[:-1]
    return SchemaMismatchError(shape, _location(loc), error["msg"])


def validate_user_list(raw: Any) -> list[UserProfile]:
    """Check ``raw`` is an array of objects each with string ``id`` and ``username``."""
    try:
        return _USER_LIST.validate_python(raw, strict=True)
    except ValidationError as exc:
        raise _first_violation("user list", exc) from exc


def validate_post_list(raw: Any) -> PostList:
    """Check ``raw`` has ``order`` (array of strings) and ``posts`` (object of posts).

    Every post needs a string ``user_id`` and a numeric ``create_at``.
    """
    try:
        return _POST_LIST.validate_python(raw, strict=True)
    except ValidationError as exc:
        raise _first_violation("post list", exc) from exc
