"""Textual relevance ranking over a name column.

PostgreSQL ranks with its full-text search (``ts_rank`` over an English
``tsvector``). Other backends, SQLite in development and tests, fall
back to a portable score built from case-insensitive lookups.
"""

import logging
import re
from functools import reduce
from operator import add
from typing import Final, TypeVar

from django.db import connections
from django.db.models import Case, FloatField, QuerySet, Value, When

logger = logging.getLogger(__name__)

_QuerySetT = TypeVar('_QuerySetT', bound=QuerySet)

RELEVANCE_FIELD: Final = 'relevance'

_TERM_SPLITTER: Final = re.compile(r'[^\w]+', re.UNICODE)

# Portable scores per term
_EXACT_SCORE: Final = 4.0
_PREFIX_SCORE: Final = 2.0
_CONTAINS_SCORE: Final = 1.0


def split_terms(query: str) -> list[str]:
    """Split a free-text query into lowercase search terms.

    Args:
        query: Raw query string.

    Returns:
        Unique terms in order of appearance.
    """
    terms: list[str] = []
    for term in _TERM_SPLITTER.split(query.lower()):
        if term and term not in terms:
            terms.append(term)
    return terms


def annotate_relevance(
    queryset: _QuerySetT,
    query: str,
    field: str = 'name',
) -> _QuerySetT:
    """Keep rows whose ``field`` matches ``query`` and annotate relevance.

    Matching rows get a ``relevance`` annotation, higher is better.
    The caller decides the ordering.

    Args:
        queryset: Rows to search, already scoped to the caller.
        query: Free-text query.
        field: Text column to match against.

    Returns:
        Filtered queryset annotated with ``relevance``.
    """
    if connections[queryset.db].vendor == 'postgresql':
        return _annotate_full_text(queryset, query, field)
    return _annotate_portable(queryset, query, field)


def _annotate_full_text(
    queryset: _QuerySetT,
    query: str,
    field: str,
) -> _QuerySetT:
    # Imported lazily, the module needs a PostgreSQL driver
    from django.contrib.postgres.search import (  # noqa: WPS433
        SearchQuery,
        SearchRank,
        SearchVector,
    )

    vector = SearchVector(field, config='english')
    search_query = SearchQuery(query, config='english', search_type='plain')
    logger.debug('Full-text search on %s: %s', field, query)
    return queryset.annotate(
        search_document=vector,
        **{RELEVANCE_FIELD: SearchRank(vector, search_query)},
    ).filter(search_document=search_query)


def _annotate_portable(
    queryset: _QuerySetT,
    query: str,
    field: str,
) -> _QuerySetT:
    terms = split_terms(query)
    if not terms:
        return queryset.none()

    logger.debug('Portable search on %s: %s', field, terms)
    for term in terms:
        queryset = queryset.filter(**{f'{field}__icontains': term})

    whole_query = ' '.join(terms)
    scores = [
        Case(
            When(**{f'{field}__iexact': term}, then=Value(_EXACT_SCORE)),
            When(**{f'{field}__istartswith': term}, then=Value(_PREFIX_SCORE)),
            default=Value(_CONTAINS_SCORE),
            output_field=FloatField(),
        )
        for term in terms
    ]
    if len(terms) > 1:
        scores.append(
            Case(
                When(
                    **{f'{field}__icontains': whole_query},
                    then=Value(_PREFIX_SCORE),
                ),
                default=Value(0.0),
                output_field=FloatField(),
            ),
        )
    return queryset.annotate(**{RELEVANCE_FIELD: reduce(add, scores)})
