"""
GitHub Data Models.

Typed records for the GitHub entities this application works with. Raw JSON
payloads from the REST API are validated here; nested user objects are flattened
to their login and display-only fields are ignored.
"""

from datetime import datetime
from typing import Any, Dict, Generic, List, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

T = TypeVar("T")


def _login(value: Any) -> Any:
    """Flatten a GitHub user object to its login."""
    if isinstance(value, dict):
        return value.get("login")
    return value


class GitHubModel(BaseModel):
    """Base model ignoring fields we do not use."""

    model_config = ConfigDict(extra="ignore")


class Repository(GitHubModel):
    """Repository of an organization."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: int
    name: str
    owner: str
    full_name: str
    private: bool = False

    @field_validator("owner", mode="before")
    @classmethod
    def flatten_owner(cls, value: Any) -> Any:
        return _login(value)


class Label(GitHubModel):
    """Issue label. Names are only unique within one repository."""

    id: Optional[int] = None
    name: str
    color: str = "ffffff"
    description: Optional[str] = None
    repository: Optional[str] = None


class Milestone(GitHubModel):
    """Repository milestone. Numbers are only unique within one repository."""

    id: int
    number: int
    title: str
    state: str = "open"
    repository: Optional[str] = None


class Issue(GitHubModel):
    """Issue owned by exactly one repository."""

    id: int
    number: int
    title: str
    body: Optional[str] = None
    state: Literal["open", "closed"]
    created_at: datetime
    updated_at: datetime
    user: str
    assignee: Optional[str] = None
    labels: List[Label] = Field(default_factory=list)
    milestone: Optional[Milestone] = None
    repository: Optional[str] = None

    @field_validator("user", "assignee", mode="before")
    @classmethod
    def flatten_users(cls, value: Any) -> Any:
        return _login(value)


class Event(GitHubModel):
    """Public activity event of a user."""

    id: str
    type: str
    actor: str
    repo: Optional[str] = None
    created_at: datetime

    @field_validator("actor", mode="before")
    @classmethod
    def flatten_actor(cls, value: Any) -> Any:
        return _login(value)

    @field_validator("repo", mode="before")
    @classmethod
    def flatten_repo(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return value.get("name")
        return value


class PageCursor(GitHubModel):
    """Position in a paginated listing, parsed from a ``Link`` header URL."""

    page: int
    per_page: Optional[int] = None


class Page(GitHubModel):
    """One page of raw listing items and the cursors the API returned with it."""

    items: List[Dict[str, Any]]
    next: Optional[PageCursor] = None
    last: Optional[PageCursor] = None


class ErrorDetail(GitHubModel):
    """Failure description preserved from an exception."""

    message: str
    code: Optional[Any] = None
    error_type: Optional[str] = None

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ErrorDetail":
        """Build the detail from an exception, keeping its status code if any."""
        code = getattr(exc, "status", None)
        if code is None:
            code = getattr(exc, "code", None)
        return cls(message=str(exc), code=code, error_type=type(exc).__name__)


class SettledResult(GitHubModel, Generic[T]):
    """Outcome of one per-repository operation, either fulfilled or rejected."""

    repository: str
    status: Literal["fulfilled", "rejected"]
    value: Optional[T] = None
    error: Optional[ErrorDetail] = None

    @property
    def fulfilled(self) -> bool:
        return self.status == "fulfilled"

    @property
    def rejected(self) -> bool:
        return self.status == "rejected"


class GroupedResult(GitHubModel, Generic[T]):
    """Org-wide index of entities plus the repositories whose fetch failed."""

    groups: Dict[str, List[T]] = Field(default_factory=dict)
    failures: Dict[str, ErrorDetail] = Field(default_factory=dict)
