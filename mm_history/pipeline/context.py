"""Resolution context: the record threaded through every pipeline stage."""
from dataclasses import dataclass, fields, replace
from types import MappingProxyType
from typing import Any, Mapping

from mm_history.models import Post, ServerConfig, UserProfile

# Supplied by the caller before the first stage; no stage may rewrite them.
_INPUTS = frozenset({"channel_name", "since_ms", "team_override"})


@dataclass(frozen=True)
class ResolutionContext:
    channel_name: str
    since_ms: int | None = None
    team_override: str | None = None
    # each of these is written by exactly one stage
    config: ServerConfig | None = None
    users: Mapping[str, UserProfile] | None = None
    team_id: str | None = None
    channel_id: str | None = None
    posts: tuple[Post, ...] | None = None

    @property
    def team_name(self) -> str | None:
        if self.team_override:
            return self.team_override
        return self.config.team if self.config is not None else None

    def advance(self, **changes: Any) -> "ResolutionContext":
        """Return a new context with ``changes`` applied.

        A field may be set once; inputs may never be set by a stage.
        """
        known = {f.name for f in fields(self)}
        for name, value in changes.items():
            if name not in known:
                raise AttributeError(f"ResolutionContext has no field {name!r}")
            if name in _INPUTS:
                raise RuntimeError(f"{name!r} is a caller input and cannot be changed by a stage")
            if getattr(self, name) is not None:
                raise RuntimeError(f"{name!r} has already been set")
            if value is None:
                raise ValueError(f"{name!r} cannot be set to None")
        if "users" in changes:
            changes["users"] = MappingProxyType(dict(changes["users"]))
        if "posts" in changes:
            changes["posts"] = tuple(changes["posts"])
        return replace(self, **changes)
