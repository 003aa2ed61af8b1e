# wdtp/services/text_search.py
"""
Free-text matching over location name, street address and city.

Multi-word queries are AND-ed: every term has to appear in at least one of
the three fields. An empty query matches nothing.
"""
from typing import Iterable, Protocol, TypeVar

from sqlalchemy import and_, false, or_

# how much a hit in each field is worth for a single term
FIELD_WEIGHTS = (("name", 1.0), ("address_line_1", 0.6), ("city", 0.4))


class Searchable(Protocol):
    name: str
    address_line_1: str
    city: str


S = TypeVar("S", bound=Searchable)


def split_terms(query: str | None) -> list[str]:
    if not query:
        return []
    return [t.lower() for t in query.split()]


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def match_clause(model, terms: list[str]):
    """
    SQL predicate: for each term, name OR address_line_1 OR city contains it
    (case-insensitive); terms are combined with AND. No terms -> FALSE.
    """
    if not terms:
        return false()
    per_term = []
    for term in terms:
        pattern = _like_pattern(term)
        per_term.append(or_(*(getattr(model, field).ilike(pattern, escape="\\") for field, _ in FIELD_WEIGHTS)))
    return and_(*per_term)


def text_rank(row: Searchable, terms: list[str]) -> float:
    """0 when any term is missing from every field, otherwise in (0, 1]."""
    if not terms:
        return 0.0
    fields = [((getattr(row, field) or "").lower(), weight) for field, weight in FIELD_WEIGHTS]
    total = 0.0
    for term in terms:
        best = max((weight for text, weight in fields if term in text), default=0.0)
        if best == 0.0:
            return 0.0
        total += best
    return total / len(terms)


def rank_matches(rows: Iterable[S], query: str | None) -> list[tuple[S, float]]:
    """Rows that match the query, each with its text rank. Order is preserved."""
    terms = split_terms(query)
    if not terms:
        return []
    ranked = []
    for row in rows:
        rank = text_rank(row, terms)
        if rank > 0:
            ranked.append((row, rank))
    return ranked
