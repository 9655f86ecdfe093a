"""
Person search planner.

Filters are a free-text name match plus an optional date-of-death year
and/or month. The strategy is chosen from the filter shape alone:

- year+month or year only: ``RangeQuery`` over a half-open UTC date range;
- month only: ``ExtractFilterQuery`` (raw SQL month extraction), falling
  back to ``InMemoryFallback`` if the raw query fails;
- no date filter: ``RangeQuery`` without date bounds.

Every strategy orders by ``created_at DESC, id DESC`` and paginates with
the same 1-based ``page`` and ``limit``, so callers cannot tell which one
answered.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from sqlalchemy import and_, func, or_, select, text
from sqlalchemy.orm import Session, selectinload

from .date_parser import death_date_range, utc_month
from .db import fold_case, unicode_lower
from .models import Cemetery, FamilyRelationship, Memorial, Person, Photo, Remembrance, VirtualOffering
from .serializers import person_with_places, photo_to_dict

logger = logging.getLogger(__name__)

LIKE_ESCAPE = "/"

# SQLite's LOWER only folds ASCII; connections register unicode_lower instead.
LOWER_SQL = {"sqlite": "unicode_lower"}

# Dialect-specific month extraction for the raw query.
MONTH_SQL = {
    "postgresql": "EXTRACT(MONTH FROM date_of_death)",
    "sqlite": "CAST(strftime('%m', date_of_death) AS INTEGER)",
    "mysql": "MONTH(date_of_death)",
    "mariadb": "MONTH(date_of_death)",
}


@dataclass(frozen=True)
class SearchFilters:
    q: Optional[str] = None
    death_month: Optional[int] = None
    death_year: Optional[int] = None
    page: int = 1
    limit: int = 20

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass
class SearchPage:
    persons: List[Person]
    total: int


def escape_like(q: str) -> str:
    return (
        q.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def like_pattern(q: str) -> str:
    """Case-folded substring pattern; stored names are folded the same way in SQL."""
    return f"%{escape_like(fold_case(q))}%"


def _name_clause(q: Optional[str]):
    if not q:
        return None
    pattern = like_pattern(q)
    return or_(
        unicode_lower(Person.first_name).like(pattern, escape=LIKE_ESCAPE),
        unicode_lower(Person.last_name).like(pattern, escape=LIKE_ESCAPE),
    )


def _ordering():
    return (Person.created_at.desc(), Person.id.desc())


def _load_options():
    return (
        selectinload(Person.place_of_birth),
        selectinload(Person.place_of_death),
        selectinload(Person.cemetery).selectinload(Cemetery.location),
    )


class PersonSearchStrategy:
    name = "base"

    def run(self, session: Session, filters: SearchFilters) -> SearchPage:
        raise NotImplementedError


class RangeQuery(PersonSearchStrategy):
    """Single relational query; the date filter, if any, is a ``[start, end)`` range."""

    name = "range"

    def conditions(self, filters: SearchFilters) -> list:
        conds = []
        name_clause = _name_clause(filters.q)
        if name_clause is not None:
            conds.append(name_clause)
        if filters.death_year is not None:
            start, end = death_date_range(filters.death_year, filters.death_month)
            conds.append(Person.date_of_death >= start)
            conds.append(Person.date_of_death < end)
        return conds

    def run(self, session: Session, filters: SearchFilters) -> SearchPage:
        conds = self.conditions(filters)
        where = and_(*conds) if conds else None

        count_stmt = select(func.count(Person.id))
        page_stmt = select(Person).options(*_load_options()).order_by(*_ordering())
        if where is not None:
            count_stmt = count_stmt.where(where)
            page_stmt = page_stmt.where(where)

        total = session.execute(count_stmt).scalar_one()
        persons = session.execute(page_stmt.offset(filters.offset).limit(filters.limit)).scalars().all()
        return SearchPage(list(persons), total)


class ExtractFilterQuery(PersonSearchStrategy):
    """Raw SQL month extraction: count and page ids, then hydrate those ids in order."""

    name = "extract"

    def run(self, session: Session, filters: SearchFilters) -> SearchPage:
        dialect = session.get_bind().dialect.name
        month_sql = MONTH_SQL.get(dialect)
        if month_sql is None:
            raise NotImplementedError(f"month extraction not supported on {dialect}")
        lower = LOWER_SQL.get(dialect, "LOWER")

        clauses = ["date_of_death IS NOT NULL", f"{month_sql} = :month"]
        params: Dict[str, object] = {"month": filters.death_month}
        if filters.q:
            clauses.append(
                f"({lower}(first_name) LIKE :like ESCAPE '/' "
                f"OR {lower}(last_name) LIKE :like ESCAPE '/')"
            )
            params["like"] = like_pattern(filters.q)
        where_sql = " AND ".join(clauses)

        total = session.execute(
            text(f"SELECT COUNT(*) FROM persons WHERE {where_sql}"), params
        ).scalar_one()
        ids = session.execute(
            text(
                f"SELECT id FROM persons WHERE {where_sql} "
                "ORDER BY created_at DESC, id DESC LIMIT :limit OFFSET :offset"
            ),
            {**params, "limit": filters.limit, "offset": filters.offset},
        ).scalars().all()

        return SearchPage(hydrate_in_order(session, ids), int(total))


class InMemoryFallback(PersonSearchStrategy):
    """Load text-matched candidates with a death date, filter by UTC month/year, slice the page."""

    name = "in_memory"

    def run(self, session: Session, filters: SearchFilters) -> SearchPage:
        stmt = (
            select(Person)
            .where(Person.date_of_death.is_not(None))
            .options(*_load_options())
            .order_by(*_ordering())
        )
        name_clause = _name_clause(filters.q)
        if name_clause is not None:
            stmt = stmt.where(name_clause)

        filtered = [
            p for p in session.execute(stmt).scalars().all()
            if self._matches(p, filters)
        ]
        window = filtered[filters.offset:filters.offset + filters.limit]
        return SearchPage(window, len(filtered))

    @staticmethod
    def _matches(person: Person, filters: SearchFilters) -> bool:
        if filters.death_month is not None and utc_month(person.date_of_death) != filters.death_month:
            return False
        if filters.death_year is not None and person.date_of_death.year != filters.death_year:
            return False
        return True


def hydrate_in_order(session: Session, ids: Sequence[int]) -> List[Person]:
    if not ids:
        return []
    rows = session.execute(
        select(Person).where(Person.id.in_(ids)).options(*_load_options())
    ).scalars().all()
    by_id = {p.id: p for p in rows}
    return [by_id[i] for i in ids if i in by_id]


def plan_search(filters: SearchFilters) -> PersonSearchStrategy:
    if filters.death_month is not None and filters.death_year is None:
        return ExtractFilterQuery()
    return RangeQuery()


class PersonSearchPlanner:
    """Runs the planned strategy, enriches rows, and degrades to the in-memory path."""

    def __init__(self, session: Session):
        self.session = session

    def search(self, filters: SearchFilters) -> SearchPage:
        strategy = plan_search(filters)
        if not isinstance(strategy, ExtractFilterQuery):
            return strategy.run(self.session, filters)
        try:
            return strategy.run(self.session, filters)
        except Exception:
            logger.warning(
                "Month-only search SQL failed, falling back to in-memory filter",
                exc_info=True,
            )
            self.session.rollback()
            return InMemoryFallback().run(self.session, filters)

    def enrich(self, persons: Sequence[Person]) -> List[dict]:
        """Attach primary photo, memorial activity counts and family count to each row."""
        ids = [p.id for p in persons]
        if not ids:
            return []

        primary: Dict[int, Photo] = {}
        photo_rows = self.session.execute(
            select(Photo)
            .where(Photo.person_id.in_(ids), Photo.is_primary.is_(True))
            .order_by(Photo.created_at.desc(), Photo.id.desc())
        ).scalars().all()
        for photo in photo_rows:
            primary.setdefault(photo.person_id, photo)

        remembrances = self._grouped_counts(
            select(Memorial.person_id, func.count(Remembrance.id))
            .join(Remembrance, Remembrance.memorial_id == Memorial.id)
            .where(Memorial.person_id.in_(ids))
            .group_by(Memorial.person_id)
        )
        offerings = self._grouped_counts(
            select(Memorial.person_id, func.count(VirtualOffering.id))
            .join(VirtualOffering, VirtualOffering.memorial_id == Memorial.id)
            .where(Memorial.person_id.in_(ids))
            .group_by(Memorial.person_id)
        )
        outgoing = self._grouped_counts(
            select(FamilyRelationship.person_id, func.count(FamilyRelationship.id))
            .where(FamilyRelationship.person_id.in_(ids))
            .group_by(FamilyRelationship.person_id)
        )
        incoming = self._grouped_counts(
            select(FamilyRelationship.related_person_id, func.count(FamilyRelationship.id))
            .where(FamilyRelationship.related_person_id.in_(ids))
            .group_by(FamilyRelationship.related_person_id)
        )

        out = []
        for p in persons:
            data = person_with_places(p)
            photo = primary.get(p.id)
            data["photos"] = [photo_to_dict(photo)] if photo else []
            data["memorialActivity"] = {
                "remembrances": remembrances.get(p.id, 0),
                "offerings": offerings.get(p.id, 0),
            }
            data["familyCount"] = outgoing.get(p.id, 0) + incoming.get(p.id, 0)
            out.append(data)
        return out

    def _grouped_counts(self, stmt) -> Dict[int, int]:
        return {key: count for key, count in self.session.execute(stmt).all()}
