"""Table-per-collection persistence backed by SQLAlchemy."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from sqlalchemy import MetaData, Table, delete, func, insert, inspect, select, text, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from legal_calendar.db.inspector import FieldShape, ObservedShape, type_family
from legal_calendar.db.session import make_engine, make_sessionmaker, session_scope
from legal_calendar.domain.collections import Join
from legal_calendar.domain.errors import ConflictError, MigrationError, StoreUnavailable

from .base import StoreBackend

logger = logging.getLogger(__name__)


def _row(mapping: Mapping[str, Any]) -> dict:
    return {key: value.isoformat() if isinstance(value, datetime) else value for key, value in mapping.items()}


class SqlStore(StoreBackend):
    """CRUD and DDL helpers wrapping a SQLAlchemy engine."""

    kind = "sql"

    def __init__(self, database_url: str, metadata: MetaData, engine: Engine | None = None):
        self.database_url = database_url
        self.metadata = metadata
        self._engine = engine
        self._sessions = make_sessionmaker(engine) if engine is not None else None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            try:
                self._engine = make_engine(self.database_url)
            except (RuntimeError, SQLAlchemyError) as exc:
                raise StoreUnavailable(detail=str(exc)) from exc
        return self._engine

    def _session(self):
        if self._sessions is None:
            self._sessions = make_sessionmaker(self.engine)
        return session_scope(self._sessions)

    def _table(self, name: str) -> Table:
        return self.metadata.tables[name]

    # -------------------------- lifecycle --------------------------
    def ping(self) -> None:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            raise StoreUnavailable(detail=str(exc)) from exc

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()

    # -------------------------- shape --------------------------
    def observe(self, name: str) -> Optional[ObservedShape]:
        try:
            insp = inspect(self.engine)
            if not insp.has_table(name):
                return None
            columns = insp.get_columns(name)
            pk_columns = insp.get_pk_constraint(name).get("constrained_columns") or []
        except SQLAlchemyError as exc:
            raise MigrationError(detail=f"cannot inspect {name}: {exc}") from exc
        types = {c["name"]: c["type"] for c in columns}
        pk_family = type_family(types[pk_columns[0]]) if pk_columns else "none"
        return ObservedShape(name, pk_family, frozenset(types))

    def create_collection(self, name: str) -> bool:
        try:
            if inspect(self.engine).has_table(name):
                return False
            self._table(name).create(self.engine)
        except SQLAlchemyError as exc:
            raise MigrationError(detail=f"cannot create {name}: {exc}") from exc
        logger.info("Created table %s", name)
        return True

    def drop_collection(self, name: str) -> None:
        # The stored table may not match the declared one, so drop by name.
        preparer = self.engine.dialect.identifier_preparer
        try:
            with self.engine.begin() as conn:
                conn.execute(text(f"DROP TABLE IF EXISTS {preparer.quote(name)}"))
        except SQLAlchemyError as exc:
            raise MigrationError(detail=f"cannot drop {name}: {exc}") from exc
        logger.info("Dropped table %s", name)

    def _literal(self, value: Any) -> str:
        if isinstance(value, bool):
            if self.engine.dialect.name == "postgresql":
                return "TRUE" if value else "FALSE"
            return "1" if value else "0"
        if isinstance(value, (int, float)):
            return str(value)
        return "'" + str(value).replace("'", "''") + "'"

    def add_fields(self, name: str, fields: Sequence[FieldShape]) -> None:
        table = self._table(name)
        dialect = self.engine.dialect
        preparer = dialect.identifier_preparer
        try:
            with self.engine.begin() as conn:
                for field in fields:
                    column = table.c[field.name]
                    ddl = (
                        f"ALTER TABLE {preparer.quote(name)} ADD COLUMN "
                        f"{preparer.quote(field.name)} {column.type.compile(dialect=dialect)}"
                    )
                    if field.default is not None:
                        ddl += f" DEFAULT {self._literal(field.default)}"
                        if not field.nullable:
                            ddl += " NOT NULL"
                    conn.execute(text(ddl))
                    if field.family == "datetime" and not field.nullable:
                        quoted = preparer.quote(field.name)
                        conn.execute(
                            text(
                                f"UPDATE {preparer.quote(name)} SET {quoted} = CURRENT_TIMESTAMP "
                                f"WHERE {quoted} IS NULL"
                            )
                        )
                    logger.info("Added column %s.%s", name, field.name)
        except SQLAlchemyError as exc:
            raise MigrationError(detail=f"cannot alter {name}: {exc}") from exc

    # -------------------------- records --------------------------
    def select(
        self,
        name: str,
        filters: Optional[Mapping[str, Any]] = None,
        joins: Sequence[Join] = (),
    ) -> list[dict]:
        table = self._table(name)
        source = table
        labels = []
        for join in joins:
            parent = self._table(join.collection).alias(f"{join.alias}_src")
            source = source.outerjoin(parent, table.c[join.field] == parent.c.id)
            labels.append(parent.c[join.display_field].label(join.alias))
        stmt = select(table, *labels).select_from(source).order_by(table.c.id)
        for key, value in (filters or {}).items():
            stmt = stmt.where(table.c[key] == value)
        with self._session() as session:
            return [_row(r) for r in session.execute(stmt).mappings()]

    def fetch(self, name: str, record_id: Any) -> Optional[dict]:
        return self.find_by(name, "id", record_id)

    def find_by(self, name: str, field: str, value: Any) -> Optional[dict]:
        table = self._table(name)
        stmt = select(table).where(table.c[field] == value).order_by(table.c.id).limit(1)
        with self._session() as session:
            row = session.execute(stmt).mappings().first()
            return _row(row) if row is not None else None

    def insert(self, name: str, values: Mapping[str, Any]) -> dict:
        table = self._table(name)
        with self._session() as session:
            try:
                result = session.execute(insert(table).values(**values))
                session.commit()
            except IntegrityError as exc:
                raise ConflictError(detail=str(exc.orig)) from exc
            new_id = result.inserted_primary_key[0]
        return self.fetch(name, new_id)

    def update(self, name: str, record_id: Any, values: Mapping[str, Any]) -> Optional[dict]:
        table = self._table(name)
        changes = {key: value for key, value in values.items() if key != "id"}
        with self._session() as session:
            try:
                result = session.execute(update(table).where(table.c.id == record_id).values(**changes))
                session.commit()
            except IntegrityError as exc:
                raise ConflictError(detail=str(exc.orig)) from exc
            if not result.rowcount:
                return None
        return self.fetch(name, record_id)

    def delete(self, name: str, record_id: Any) -> bool:
        return self.delete_where(name, "id", record_id) > 0

    def delete_where(self, name: str, field: str, value: Any) -> int:
        table = self._table(name)
        with self._session() as session:
            result = session.execute(delete(table).where(table.c[field] == value))
            session.commit()
            return result.rowcount or 0

    def count(self, name: str, filters: Optional[Mapping[str, Any]] = None) -> int:
        table = self._table(name)
        stmt = select(func.count()).select_from(table)
        for key, value in (filters or {}).items():
            stmt = stmt.where(table.c[key] == value)
        with self._session() as session:
            return int(session.execute(stmt).scalar_one())
