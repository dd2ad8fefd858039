"""Values returned by logic operations."""

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Generic, TypeVar

_ResourceT = TypeVar('_ResourceT')


@dataclass(frozen=True)
class OperationResult(Generic[_ResourceT]):
    """Outcome of a mutating operation.

    Carries the resource's current state and a human-readable message
    for echoing back to the caller. ``resource`` is None when the
    resource no longer exists (permanent deletion).
    """

    resource: _ResourceT | None
    message: str


@dataclass(frozen=True)
class Page(Generic[_ResourceT]):
    """One page of a listing."""

    items: list[_ResourceT]
    limit: int
    has_more: bool
    page: int = 1
    total: int | None = None
    next_cursor: datetime | None = None

    @property
    def total_pages(self) -> int | None:
        """Number of pages, when the total is known."""
        if self.total is None:
            return None
        return math.ceil(self.total / self.limit)


@dataclass(frozen=True)
class SignedDownload:
    """Time-limited download URL delegated to the object store."""

    url: str
    expires_at: datetime
    file_name: str


@dataclass(frozen=True)
class SharedFileView:
    """Public projection of a shared file.

    Deliberately excludes owner and storage path.
    """

    id: int  # noqa: WPS125
    name: str
    size_bytes: int
    format: str  # noqa: WPS125
    created_at: datetime


@dataclass(frozen=True)
class ShareLink:
    """Freshly issued share link."""

    url: str
    token: str
    file: Any  # noqa: WPS110


@dataclass(frozen=True)
class SearchResults:
    """Ranked basic search results, paginated per kind."""

    query: str
    kind: str
    page: int
    limit: int
    files: list[Any] = field(default_factory=list)
    folders: list[Any] = field(default_factory=list)
    has_more_files: bool = False
    has_more_folders: bool = False

    @property
    def has_more(self) -> bool:
        """Whether any kind returned a full page."""
        return self.has_more_files or self.has_more_folders


@dataclass(frozen=True)
class AdvancedSearchResults:
    """Filtered file search results (single page)."""

    query: str
    filters: dict[str, Any]
    results: list[Any] = field(default_factory=list)
