from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from .normalize import tokenize

# Words the english text-search config would drop; "&" normalizes to "and",
# which the FTS index never stores.
FTS_STOPWORDS = frozenset({"a", "an", "and", "of", "or", "the"})


@dataclass
class AdvocateFilters:
    """
    Filter set for advocate search. Every field is optional and all present
    fields are ANDed together.

    Attributes:
        q:
            Free text matched (tokenized + stemmed) against first/last name,
            city, degree and specialties.
        city / degree:
            Case-insensitive substring filters.
        specialty:
            Full-text match like q, OR a case-insensitive substring of any
            single specialty tag (catches multi-word phrases the stemmed
            match can miss).
        min_years / max_years:
            Inclusive bounds on years_of_experience. Non-finite values are
            ignored rather than treated as 0.
    """

    q: str | None = None
    city: str | None = None
    degree: str | None = None
    specialty: str | None = None
    min_years: float | None = None
    max_years: float | None = None

    def cache_payload(self) -> dict[str, Any]:
        return {
            "q": _clean_text(self.q),
            "city": _clean_text(self.city),
            "degree": _clean_text(self.degree),
            "specialty": _clean_text(self.specialty),
            "min_years": _finite_or_none(self.min_years),
            "max_years": _finite_or_none(self.max_years),
        }


def _clean_text(value: str | None) -> str | None:
    if value is None:
        return None
    v = str(value).strip()
    return v or None


def _finite_or_none(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        num = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(num):
        return None
    return num


def _like_pattern(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def build_fts_match(raw: str | None) -> str | None:
    """
    Turn user text into a safe FTS5 MATCH expression.

    Each normalized token is quoted as its own string, so the expression is
    an implicit AND of all tokens and user input can never inject FTS
    operators. Returns None when nothing searchable is left.
    """
    tokens = [tok for tok in tokenize(raw) if tok not in FTS_STOPWORDS]
    if not tokens:
        return None
    return " ".join(f'"{tok}"' for tok in tokens)


def _fts_condition(param_name: str) -> str:
    return (
        "a.id IN (SELECT rowid FROM advocates_fts "
        f"WHERE advocates_fts MATCH :{param_name})"
    )


def _apply_text_query_filter(
    filters: AdvocateFilters,
    conditions: list[str],
    sql_params: dict[str, Any],
) -> None:
    match = build_fts_match(_clean_text(filters.q))
    if match is None:
        return
    sql_params["q_match"] = match
    conditions.append(_fts_condition("q_match"))


def _apply_city_filter(
    filters: AdvocateFilters,
    conditions: list[str],
    sql_params: dict[str, Any],
) -> None:
    city = _clean_text(filters.city)
    if city is None:
        return
    sql_params["city_like"] = _like_pattern(city.casefold())
    conditions.append("casefold(a.city) LIKE :city_like ESCAPE '\\'")


def _apply_degree_filter(
    filters: AdvocateFilters,
    conditions: list[str],
    sql_params: dict[str, Any],
) -> None:
    degree = _clean_text(filters.degree)
    if degree is None:
        return
    sql_params["degree_like"] = _like_pattern(degree.casefold())
    conditions.append("casefold(a.degree) LIKE :degree_like ESCAPE '\\'")


def _apply_specialty_filter(
    filters: AdvocateFilters,
    conditions: list[str],
    sql_params: dict[str, Any],
) -> None:
    specialty = _clean_text(filters.specialty)
    if specialty is None:
        return

    sql_params["specialty_like"] = _like_pattern(specialty.casefold())
    tag_clause = (
        "EXISTS (SELECT 1 FROM json_each(a.specialties) AS s "
        "WHERE casefold(s.value) LIKE :specialty_like ESCAPE '\\')"
    )

    match = build_fts_match(specialty)
    if match is None:
        conditions.append(tag_clause)
        return

    sql_params["specialty_match"] = match
    conditions.append(f"({_fts_condition('specialty_match')} OR {tag_clause})")


def _apply_years_filter(
    filters: AdvocateFilters,
    conditions: list[str],
    sql_params: dict[str, Any],
) -> None:
    min_years = _finite_or_none(filters.min_years)
    if min_years is not None:
        sql_params["min_years"] = min_years
        conditions.append("a.years_of_experience >= :min_years")

    max_years = _finite_or_none(filters.max_years)
    if max_years is not None:
        sql_params["max_years"] = max_years
        conditions.append("a.years_of_experience <= :max_years")


def build_filter_conditions(filters: AdvocateFilters) -> tuple[list[str], dict[str, Any]]:
    """
    Translate a filter set into SQL conditions over `advocates AS a`.

    Returns (conditions, sql_params). Conditions are meant to be joined with
    AND; an empty list means "no constraint".
    """
    conditions: list[str] = []
    sql_params: dict[str, Any] = {}

    _apply_text_query_filter(filters, conditions, sql_params)
    _apply_city_filter(filters, conditions, sql_params)
    _apply_degree_filter(filters, conditions, sql_params)
    _apply_specialty_filter(filters, conditions, sql_params)
    _apply_years_filter(filters, conditions, sql_params)

    return conditions, sql_params
