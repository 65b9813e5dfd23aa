"""Error taxonomy for mm-history.

HistoryError
├── ConfigError          configuration could not be resolved
├── TransportError       network / HTTP failure talking to the server
├── ContractError        well-formed response that breaks the server contract
│   ├── SchemaMismatchError
│   ├── MalformedResponseError
│   ├── DanglingPostError
│   └── InvalidTimestampError
└── StageError           any of the above, tagged with the pipeline stage
"""
from __future__ import annotations


class HistoryError(Exception):
    """Base class for every error the pipeline knows how to report."""


class ConfigError(HistoryError):
    pass


class TransportError(HistoryError):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ContractError(HistoryError):
    """The server answered, but not in the shape it promised."""


class SchemaMismatchError(ContractError):
    def __init__(self, shape: str, location: str, detail: str) -> None:
        where = location or "<root>"
        super().__init__(f"{shape} response does not match schema at {where}: {detail}")
        self.shape = shape
        self.location = location
        self.detail = detail


class MalformedResponseError(ContractError):
    def __init__(self, resource: str, detail: str) -> None:
        super().__init__(f"malformed response for {resource}: {detail}")
        self.resource = resource
        self.detail = detail


class DanglingPostError(ContractError):
    def __init__(self, post_id: str) -> None:
        super().__init__(f"post {post_id!r} is listed in order but missing from posts")
        self.post_id = post_id


class StageError(HistoryError):
    """A pipeline stage failed. ``cause`` (and ``__cause__``) hold the original error."""

    def __init__(self, description: str, cause: BaseException) -> None:
        super().__init__(f"{description}: {cause}")
        self.description = description
        self.cause = cause


class InvalidTimestampError(ContractError):
    def __init__(self, post_id: str, create_at: object) -> None:
        super().__init__(f"post {post_id!r} has create_at {create_at!r}, which is not a representable time")
        self.post_id = post_id
        self.create_at = create_at
