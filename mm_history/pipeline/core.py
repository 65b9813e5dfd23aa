"""Resolution pipeline: channel name in, chronological posts out.

Stages run strictly in order, each reading what earlier stages wrote:
  1. load configuration   (no network)
  2. fetch users          GET /users (all pages)
  3. resolve team         GET /teams/name/{team}
  4. resolve channel      GET /teams/{team_id}/channels/name/{channel}
  5. fetch posts          GET /channels/{channel_id}/posts[?since=ms]

The first failing stage aborts the run; its error is wrapped in a
StageError that names the stage and keeps the original as __cause__.
Nothing is formatted until every stage has succeeded.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable
from urllib.parse import quote

from mm_history.config import load_config
from mm_history.errors import HistoryError, MalformedResponseError, StageError
from mm_history.models import Channel, ServerConfig, Team
from mm_history.pipeline.context import ResolutionContext
from mm_history.posts.formatter import format_post
from mm_history.posts.reconciler import reconcile
from mm_history.posts.schema import validate_post_list, validate_user_list
from mm_history.transport.client import MattermostClient

_log = logging.getLogger(__name__)


@dataclass
class Collaborators:
    """External pieces the stages call out to. Swapped out in tests."""

    load_config: Callable[[], ServerConfig] = load_config
    client_factory: Callable[[ServerConfig], MattermostClient] = MattermostClient.from_config
    _client: MattermostClient | None = field(default=None, init=False, repr=False)

    def client(self, ctx: ResolutionContext) -> MattermostClient:
        # Built on first network stage, so a config failure never opens a connection
        if self._client is None:
            if ctx.config is None:
                raise RuntimeError("no server config loaded before the first network stage")
            self._client = self.client_factory(ctx.config)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


def _require_id(raw: Any, model: type[Team] | type[Channel], resource: str) -> str:
    if not isinstance(raw, dict) or not isinstance(raw.get("id"), str):
        raise MalformedResponseError(resource, "expected an object with a string 'id'")
    return model.model_validate(raw).id


# ── Stages ───────────────────────────────────────────────────────────────────

async def load_configuration(ctx: ResolutionContext, deps: Collaborators) -> ResolutionContext:
    return ctx.advance(config=deps.load_config())


async def fetch_users(ctx: ResolutionContext, deps: Collaborators) -> ResolutionContext:
    raw = await deps.client(ctx).list_all("/users")
    profiles = validate_user_list(raw)
    _log.debug("user directory: %d users", len(profiles))
    return ctx.advance(users={p.id: p for p in profiles})


async def resolve_team(ctx: ResolutionContext, deps: Collaborators) -> ResolutionContext:
    path = f"/teams/name/{quote(ctx.team_name or '', safe='')}"
    raw = await deps.client(ctx).request("GET", path)
    return ctx.advance(team_id=_require_id(raw, Team, f'team "{ctx.team_name}"'))


async def resolve_channel(ctx: ResolutionContext, deps: Collaborators) -> ResolutionContext:
    path = f"/teams/{ctx.team_id}/channels/name/{quote(ctx.channel_name, safe='')}"
    raw = await deps.client(ctx).request("GET", path)
    return ctx.advance(channel_id=_require_id(raw, Channel, f'channel "{ctx.channel_name}"'))


async def fetch_posts(ctx: ResolutionContext, deps: Collaborators) -> ResolutionContext:
    params = {"since": ctx.since_ms} if ctx.since_ms is not None else None
    raw = await deps.client(ctx).request("GET", f"/channels/{ctx.channel_id}/posts", params)
    post_list = validate_post_list(raw)
    posts = reconcile(post_list)
    _log.debug("channel %s: %d posts", ctx.channel_id, len(posts))
    return ctx.advance(posts=posts)


@dataclass(frozen=True)
class Stage:
    describe: Callable[[ResolutionContext], str]
    run: Callable[[ResolutionContext, Collaborators], Awaitable[ResolutionContext]]


STAGES: tuple[Stage, ...] = (
    Stage(lambda ctx: "loading configuration", load_configuration),
    Stage(lambda ctx: "listing users", fetch_users),
    Stage(lambda ctx: f'finding team "{ctx.team_name}"', resolve_team),
    Stage(lambda ctx: "listing channels", resolve_channel),
    Stage(lambda ctx: "listing posts", fetch_posts),
)


async def run_pipeline(ctx: ResolutionContext, deps: Collaborators | None = None) -> ResolutionContext:
    """Run every stage over ``ctx``. Raises StageError on the first failure."""
    deps = deps or Collaborators()
    try:
        for stage in STAGES:
            description = stage.describe(ctx)
            _log.debug("stage: %s", description)
            try:
                ctx = await stage.run(ctx, deps)
            except HistoryError as exc:
                raise StageError(description, exc) from exc
    finally:
        await deps.aclose()
    return ctx


def render_transcript(ctx: ResolutionContext) -> list[str]:
    """Format the posts of a completed run, one line per post, oldest first."""
    if ctx.posts is None or ctx.users is None:
        raise RuntimeError("render_transcript needs a context that went through every stage")
    return [format_post(post, ctx.users) for post in ctx.posts]


async def fetch_transcript(
    channel_name: str,
    *,
    since_ms: int | None = None,
    team: str | None = None,
    deps: Collaborators | None = None,
) -> list[str]:
    ctx = ResolutionContext(channel_name=channel_name, since_ms=since_ms, team_override=team)
    return render_transcript(await run_pipeline(ctx, deps))
