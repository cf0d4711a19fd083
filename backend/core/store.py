# core/store.py - Repository-style client over the async SQLModel engine
"""
ContentStore is the only component that talks to the database.

Handlers describe what they want with plain dictionaries (where clauses,
order-by descriptors, includes) and always get plain dicts back, so the
store can be swapped for an AsyncMock in tests.

Where grammar:
    {"field": value}                              equality (None -> IS NULL)
    {"field": {"contains": "x", "mode": "insensitive"}}
    {"field": {"in": [...]}} / {"not_in": [...]} / {"not": v}
    {"field": {"gt"|"gte"|"lt"|"lte": v}} / {"starts_with": "x"}
    {"field": {"has_some": [...]}} / {"has": v}   JSON array membership
    {"OR": [where, ...]} / {"AND": [...]} / {"NOT": where}
"""
import re
from contextlib import asynccontextmanager
from datetime import datetime, UTC
from typing import Any, AsyncGenerator, Optional, Type

from sqlalchemy import and_, false, func, inspect as sa_inspect, not_, or_, select as sa_select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.orm import selectinload
from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession

from core.db import create_db_engine, init_db, session_scope
from core.errors import InvalidQueryError, RecordNotFoundError, UniqueConstraintError
from core.logger import get_logger

logger = get_logger(__name__)

SORT_DIRECTIONS = ("asc", "desc")
UNIQUE_FAILED_PATTERN = re.compile(r"UNIQUE constraint failed: (?P<columns>[\w., ]+)")

class ContentStore:
    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    @classmethod
    def from_url(cls, database_url: str, **engine_kwargs) -> "ContentStore":
        return cls(create_db_engine(database_url, **engine_kwargs))

    async def init_schema(self) -> None:
        await init_db(self.engine)

    async def dispose(self) -> None:
        await self.engine.dispose()

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        async with session_scope(self.engine) as session:
            yield session

    # ===== READS =====

    async def find_many(self, model: Type[SQLModel], query: Optional[dict] = None) -> list[dict]:
        query = query or {}
        include = query.get("include") or {}
        statement = self._select(model, query.get("where"), include)
        statement = self._apply_order_by(model, statement, query.get("order_by"))
        if query.get("skip"):
            statement = statement.offset(query["skip"])
        if query.get("take") is not None:
            statement = statement.limit(query["take"])

        async with self.session() as session:
            result = await session.exec(statement)
            return [serialize_record(row, include) for row in result.all()]

    async def find_first(self, model: Type[SQLModel], query: Optional[dict] = None) -> Optional[dict]:
        rows = await self.find_many(model, {**(query or {}), "take": 1})
        return rows[0] if rows else None

    async def find_unique(
        self,
        model: Type[SQLModel],
        where: dict,
        include: Optional[dict] = None,
    ) -> Optional[dict]:
        include = include or {}
        async with self.session() as session:
            result = await session.exec(self._select(model, where, include))
            row = result.first()
            return serialize_record(row, include) if row is not None else None

    async def count(self, model: Type[SQLModel], where: Optional[dict] = None) -> int:
        statement = select(func.count()).select_from(model)
        clauses = compile_where(model, where)
        if clauses:
            statement = statement.where(*clauses)
        async with self.session() as session:
            result = await session.exec(statement)
            return result.one()

    # ===== WRITES =====

    async def create(self, model: Type[SQLModel], data: dict, include: Optional[dict] = None) -> dict:
        record = model(**check_fields(model, data))
        async with self.session() as session:
            session.add(record)
            await self._commit(session, model)
            await session.refresh(record)
        if include:
            return await self.find_unique(model, {"id": record.id}, include)
        return serialize_record(record)

    async def create_many(self, model: Type[SQLModel], rows: list[dict]) -> int:
        records = [model(**check_fields(model, row)) for row in rows]
        if not records:
            return 0
        async with self.session() as session:
            session.add_all(records)
            await self._commit(session, model)
        return len(records)

    async def update(
        self,
        model: Type[SQLModel],
        where: dict,
        data: dict,
        include: Optional[dict] = None,
    ) -> dict:
        changes = check_fields(model, data)
        async with self.session() as session:
            result = await session.exec(self._select(model, where))
            record = result.first()
            if record is None:
                raise RecordNotFoundError(model.__name__, where)
            apply_changes(record, changes)
            session.add(record)
            await self._commit(session, model)
            await session.refresh(record)
        if include:
            return await self.find_unique(model, {"id": record.id}, include)
        return serialize_record(record)

    async def update_many(self, model: Type[SQLModel], where: Optional[dict], data: dict) -> int:
        changes = check_fields(model, data)
        async with self.session() as session:
            result = await session.exec(self._select(model, where))
            records = result.all()
            for record in records:
                apply_changes(record, changes)
                session.add(record)
            await self._commit(session, model)
            return len(records)

    async def delete(self, model: Type[SQLModel], where: dict) -> dict:
        async with self.session() as session:
            result = await session.exec(self._select(model, where, cascade_options(model)))
            record = result.first()
            if record is None:
                raise RecordNotFoundError(model.__name__, where)
            snapshot = serialize_record(record)
            await session.delete(record)
            await self._commit(session, model)
            return snapshot

    async def delete_many(self, model: Type[SQLModel], where: Optional[dict] = None) -> int:
        async with self.session() as session:
            result = await session.exec(self._select(model, where, cascade_options(model)))
            records = result.all()
            for record in records:
                await session.delete(record)
            await self._commit(session, model)
            return len(records)

    async def replace_many(self, model: Type[SQLModel], where: Optional[dict], rows: list[dict]) -> int:
        """Swap the rows matching `where` for `rows` in one transaction."""
        records = [model(**check_fields(model, row)) for row in rows]
        async with self.session() as session:
            existing = await session.exec(self._select(model, where))
            for row in existing.all():
                await session.delete(row)
            await session.flush()
            session.add_all(records)
            await self._commit(session, model)
        return len(records)

    async def replace_singleton(self, model: Type[SQLModel], data: dict) -> dict:
        """
        Replace every row of a single-record table with one new row.
        Delete and insert share a transaction, so the table is never observed empty.
        """
        record = model(**check_fields(model, data))
        async with self.session() as session:
            existing = await session.exec(select(model))
            for row in existing.all():
                await session.delete(row)
            await session.flush()
            session.add(record)
            await self._commit(session, model)
            await session.refresh(record)
        logger.info(f"Replaced {model.__name__} singleton with id={record.id}")
        return serialize_record(record)

    # ===== HELPERS =====

    def _select(self, model: Type[SQLModel], where: Optional[dict], include: Optional[dict] = None):
        statement = select(model)
        clauses = compile_where(model, where)
        if clauses:
            statement = statement.where(*clauses)
        options = load_options(model, include or {})
        if options:
            statement = statement.options(*options)
        return statement

    def _apply_order_by(self, model: Type[SQLModel], statement, order_by):
        for column, direction in iter_order_by(order_by):
            attribute = model_column(model, column)
            if direction not in SORT_DIRECTIONS:
                raise InvalidQueryError(f"Invalid sort order: {direction}")
            statement = statement.order_by(attribute.asc() if direction == "asc" else attribute.desc())
        return statement

    async def _commit(self, session: AsyncSession, model: Type[SQLModel]) -> None:
        try:
            await session.commit()
        except IntegrityError as e:
            await session.rollback()
            fields = unique_fields_from_error(e)
            if fields is None:
                raise
            raise UniqueConstraintError(model.__name__, fields) from e

# ===== QUERY COMPILATION =====

def model_column(model: Type[SQLModel], name: str):
    if name not in model.model_fields:
        raise InvalidQueryError(f"Unknown field for {model.__name__}: {name}")
    return getattr(model, name)

def compile_where(model: Type[SQLModel], where: Optional[dict]) -> list:
    clauses = []
    for key, value in (where or {}).items():
        if key == "OR":
            branches = [and_(*compile_where(model, branch)) for branch in value]
            clauses.append(or_(*branches) if branches else false())
        elif key == "AND":
            clauses.extend(clause for branch in value for clause in compile_where(model, branch))
        elif key == "NOT":
            clauses.append(not_(and_(*compile_where(model, value))))
        else:
            clauses.append(compile_predicate(model_column(model, key), value))
    return clauses

def compile_predicate(column, predicate: Any):
    if not isinstance(predicate, dict):
        return column.is_(None) if predicate is None else column == predicate

    insensitive = predicate.get("mode") == "insensitive"
    clauses = []
    for operator, operand in predicate.items():
        if operator == "mode":
            continue
        if operator == "equals":
            clauses.append(column.is_(None) if operand is None else column == operand)
        elif operator == "not":
            clauses.append(column.is_not(None) if operand is None else column != operand)
        elif operator == "in":
            clauses.append(column.in_(list(operand)))
        elif operator == "not_in":
            clauses.append(column.not_in(list(operand)))
        elif operator == "contains":
            # % and _ in the operand match literally
            if insensitive:
                clauses.append(column.icontains(operand, autoescape=True))
            else:
                clauses.append(column.contains(operand, autoescape=True))
        elif operator == "starts_with":
            if insensitive:
                clauses.append(column.istartswith(operand, autoescape=True))
            else:
                clauses.append(column.startswith(operand, autoescape=True))
        elif operator == "gt":
            clauses.append(column > operand)
        elif operator == "gte":
            clauses.append(column >= operand)
        elif operator == "lt":
            clauses.append(column < operand)
        elif operator == "lte":
            clauses.append(column <= operand)
        elif operator == "has_some":
            clauses.append(json_array_contains_any(column, list(operand)))
        elif operator == "has":
            clauses.append(json_array_contains_any(column, [operand]))
        else:
            raise InvalidQueryError(f"Unsupported filter operator: {operator}")
    return and_(*clauses)

def json_array_contains_any(column, values: list):
    if not values:
        return false()
    # SQLite JSON1: EXISTS (SELECT 1 FROM json_each(column) WHERE value IN (...))
    elements = func.json_each(column).table_valued("value")
    return sa_select(elements.c.value).where(elements.c.value.in_(values)).exists()

def iter_order_by(order_by) -> list[tuple[str, str]]:
    if not order_by:
        return []
    descriptors = order_by if isinstance(order_by, list) else [order_by]
    return [(field, direction) for descriptor in descriptors for field, direction in descriptor.items()]

def load_options(model: Type[SQLModel], include: dict) -> list:
    options = []
    relationships = sa_inspect(model).relationships
    for name, option in include.items():
        if name == "counts":
            for relation in option:
                options.append(selectinload(getattr(model, relation)))
            continue
        if name not in relationships:
            raise InvalidQueryError(f"Unknown relation for {model.__name__}: {name}")
        loader = selectinload(getattr(model, name))
        nested = option.get("include", {}) if isinstance(option, dict) else {}
        related_model = relationships[name].mapper.class_
        for child in load_options(related_model, nested):
            loader = loader.options(child)
        options.append(loader)
    return options

def cascade_options(model: Type[SQLModel]) -> dict:
    """Include every delete-cascading relation so the ORM can remove children."""
    return {
        name: True
        for name, relationship in sa_inspect(model).relationships.items()
        if relationship.cascade.delete
    }

# ===== RECORD HELPERS =====

def check_fields(model: Type[SQLModel], data: dict) -> dict:
    unknown = [key for key in data if key not in model.model_fields]
    if unknown:
        raise InvalidQueryError(f"Unknown field for {model.__name__}: {', '.join(unknown)}")
    return dict(data)

def apply_changes(record: SQLModel, changes: dict) -> None:
    for key, value in changes.items():
        if isinstance(value, dict) and set(value) == {"increment"}:
            value = (getattr(record, key) or 0) + value["increment"]
        setattr(record, key, value)
    if "updated_at" in type(record).model_fields and "updated_at" not in changes:
        record.updated_at = datetime.now(UTC)

def serialize_record(record: SQLModel, include: Optional[dict] = None) -> dict:
    data = record.model_dump()
    for name, option in (include or {}).items():
        if name == "counts":
            data["counts"] = {relation: len(getattr(record, relation)) for relation in option}
            continue
        nested = option.get("include", {}) if isinstance(option, dict) else {}
        related = getattr(record, name)
        if isinstance(related, list):
            data[name] = [serialize_record(item, nested) for item in related]
        else:
            data[name] = serialize_record(related, nested) if related is not None else None
    return data

def unique_fields_from_error(error: IntegrityError) -> Optional[list[str]]:
    message = str(error.orig)
    match = UNIQUE_FAILED_PATTERN.search(message)
    if match:
        return [column.strip().split(".")[-1] for column in match.group("columns").split(",")]
    if "unique" in message.lower() or "duplicate key" in message.lower():
        return []
    return None
