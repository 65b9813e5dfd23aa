from typing import Any

from pydantic import BaseModel, ConfigDict

# Strict: server values are checked, never coerced. Unknown fields are dropped.
# Optional fields are typed Any so only the required shape can fail validation.
_STRICT = ConfigDict(strict=True, extra="ignore", frozen=True)


class ServerConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str           # server base address, no trailing slash
    token: str         # personal access token
    team: str          # default team name
    timeout: float = 30.0


class UserProfile(BaseModel):
    model_config = _STRICT

    id: str
    username: str
    nickname: Any = None   # display name, often ""
    email: Any = None


class Team(BaseModel):
    model_config = _STRICT

    id: str


class Channel(BaseModel):
    model_config = _STRICT

    id: str


class Post(BaseModel):
    model_config = _STRICT

    user_id: str
    create_at: int | float  # epoch milliseconds
    message: Any = ""


class PostList(BaseModel):
    model_config = _STRICT

    order: list[str]      # newest first, as returned by the server
    posts: dict[str, Post]
