"""Business logic for search.

Basic search covers everything the caller can see: resources they own
and resources granted to them. Advanced search narrows files the caller
owns with metadata filters.
"""

import logging
from datetime import datetime
from typing import Any, Final

from django.db.models import Exists, OuterRef, Q, QuerySet

from server.apps.drive.exceptions import InvalidArgumentError, collaborator_errors
from server.apps.drive.infrastructure.ranking import (
    RELEVANCE_FIELD,
    annotate_relevance,
)
from server.apps.drive.logic.results import AdvancedSearchResults, SearchResults
from server.apps.drive.models import File, FilePermission, Folder, FolderPermission

logger = logging.getLogger(__name__)

QUERY_MAX_LENGTH: Final = 100
SEARCH_MAX_LIMIT: Final = 50
ADVANCED_MAX_RESULTS: Final = 50

_KIND_FILES: Final = 'files'
_KIND_FOLDERS: Final = 'folders'
_KIND_ALL: Final = 'all'
_KINDS: Final = frozenset((_KIND_FILES, _KIND_FOLDERS, _KIND_ALL))


def search(  # noqa: WPS211
    caller_id: int,
    query: str,
    kind: str = _KIND_ALL,
    limit: int = 20,
    page: int = 1,
) -> SearchResults:
    """Ranked search over file and folder names.

    Args:
        caller_id: ID of the requesting user.
        query: Free-text query (1-100 characters).
        kind: 'files', 'folders' or 'all'.
        limit: Page size per kind (1-50).
        page: Page number, starting at 1.

    Returns:
        Results per kind, best match first.

    Raises:
        InvalidArgumentError: If any argument is out of range.
    """
    query = _validate_query(query)
    if kind not in _KINDS:
        raise InvalidArgumentError('Kind must be files, folders or all')
    if not 1 <= limit <= SEARCH_MAX_LIMIT:
        raise InvalidArgumentError(f'Limit must be between 1 and {SEARCH_MAX_LIMIT}')
    if page < 1:
        raise InvalidArgumentError('Page must be at least 1')

    offset = (page - 1) * limit
    files: list[File] = []
    folders: list[Folder] = []

    with collaborator_errors('Search'):
        if kind in {_KIND_FILES, _KIND_ALL}:
            files = _ranked_page(
                _visible(File, FilePermission, 'file', caller_id),
                query,
                offset,
                limit,
            )
        if kind in {_KIND_FOLDERS, _KIND_ALL}:
            folders = _ranked_page(
                _visible(Folder, FolderPermission, 'folder', caller_id),
                query,
                offset,
                limit,
            )

    logger.info(
        'Search by user %d (%s): %d files, %d folders',
        caller_id,
        kind,
        len(files),
        len(folders),
    )
    return SearchResults(
        query=query,
        kind=kind,
        page=page,
        limit=limit,
        files=files,
        folders=folders,
        has_more_files=len(files) == limit,
        has_more_folders=len(folders) == limit,
    )


def advanced_search(  # noqa: WPS211
    caller_id: int,
    query: str,
    format: str | None = None,  # noqa: WPS125
    size_min: int | None = None,
    size_max: int | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
) -> AdvancedSearchResults:
    """Search the caller's own active files with metadata filters.

    Results are not ranked and there is a single page.

    Args:
        caller_id: ID of the requesting user.
        query: Text that must occur in the file name.
        format: Exact MIME type.
        size_min: Minimum size in bytes.
        size_max: Maximum size in bytes.
        date_from: Created at or after.
        date_to: Created at or before.

    Returns:
        Matching files with the filters that were applied.
    """
    query = _validate_query(query)
    _validate_size_bounds(size_min, size_max)
    if date_from and date_to and date_from > date_to:
        raise InvalidArgumentError('date_from must not be after date_to')

    filters: dict[str, Any] = {}
    queryset = File.objects.active().filter(
        owner_id=caller_id,
        name__icontains=query,
    )
    if format:
        filters['format'] = format
        queryset = queryset.filter(format=format)
    if size_min is not None:
        filters['size_min'] = size_min
        queryset = queryset.filter(size_bytes__gte=size_min)
    if size_max is not None:
        filters['size_max'] = size_max
        queryset = queryset.filter(size_bytes__lte=size_max)
    if date_from is not None:
        filters['date_from'] = date_from
        queryset = queryset.filter(created_at__gte=date_from)
    if date_to is not None:
        filters['date_to'] = date_to
        queryset = queryset.filter(created_at__lte=date_to)

    with collaborator_errors('Advanced search'):
        results = list(queryset[:ADVANCED_MAX_RESULTS])

    logger.info(
        'Advanced search by user %d: %d results (filters: %s)',
        caller_id,
        len(results),
        sorted(filters),
    )
    return AdvancedSearchResults(query=query, filters=filters, results=results)


def _validate_query(query: str) -> str:
    cleaned = query.strip() if isinstance(query, str) else ''
    if not cleaned:
        raise InvalidArgumentError('Search query is required')
    if len(cleaned) > QUERY_MAX_LENGTH:
        raise InvalidArgumentError(
            f'Search query must be at most {QUERY_MAX_LENGTH} characters',
        )
    return cleaned


def _validate_size_bounds(size_min: int | None, size_max: int | None) -> None:
    for bound in (size_min, size_max):
        if bound is not None and (not isinstance(bound, int) or bound < 0):
            raise InvalidArgumentError('Size bounds must be non-negative integers')
    if size_min is not None and size_max is not None and size_min > size_max:
        raise InvalidArgumentError('size_min must not exceed size_max')


def _visible(
    model: type[File] | type[Folder],
    grant_model: type[FilePermission] | type[FolderPermission],
    resource_field: str,
    caller_id: int,
) -> QuerySet:
    """Active resources the caller owns or holds a grant on."""
    granted = grant_model.objects.filter(
        grantee_id=caller_id,
        **{resource_field: OuterRef('pk')},
    )
    return model.objects.active().filter(
        Q(owner_id=caller_id) | Exists(granted),
    )


def _ranked_page(
    queryset: QuerySet,
    query: str,
    offset: int,
    limit: int,
) -> list[Any]:
    ranked = annotate_relevance(queryset, query).order_by(
        f'-{RELEVANCE_FIELD}',
        '-created_at',
        '-pk',
    )
    return list(ranked[offset:offset + limit])
