from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Generator, Iterator, List, Optional, Tuple

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    create_engine,
    func,
    insert,
    inspect,
    select,
    text,
    update,
)
from sqlalchemy.engine import URL, Connection, CursorResult, Engine, make_url
from sqlalchemy.exc import SQLAlchemyError

from .models import TaskEntity
from .repositories import ListQuery, StoreError, TaskRepository, TaskTransaction
from .settings import Settings

logger = logging.getLogger(__name__)

APPLICATION_NAME = "tasks"

metadata = MetaData()

tasks_table = Table(
    "tasks",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("completion_state", Boolean, nullable=False, default=False),
    Column("title", String(100), nullable=False),
    Column("description", String(500), nullable=False, default=""),
    Column("expertise", String(100), nullable=False),
    Column("patient_id", Integer, nullable=False, index=True),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("deleted_at", DateTime(timezone=True), nullable=True),
)

_t = tasks_table.c

# Columns an update is allowed to overwrite; id, created_at and deleted_at are excluded.
_UPDATABLE_COLUMNS = ("completion_state", "title", "description", "expertise", "patient_id")


# PUBLIC_INTERFACE
def build_database_url(settings: Settings) -> URL:
    """
    Build the SQLAlchemy URL from settings.

    DATABASE_URL wins when present; otherwise a PostgreSQL URL is assembled
    from the parsed DB_ADDR host and port, DB_USER, DB_PASSWORD and DB_DATABASE.
    """
    if settings.database_url:
        return make_url(settings.database_url)

    return URL.create(
        "postgresql+psycopg",
        username=settings.db_user,
        password=settings.db_password,
        host=settings.db_host,
        port=settings.db_port,
        database=settings.db_database,
        query={"application_name": APPLICATION_NAME},
    )


# PUBLIC_INTERFACE
def create_db_engine(settings: Settings) -> Engine:
    """Create the process-wide engine for the configured database."""
    url = build_database_url(settings)
    kwargs: Dict[str, Any] = {"pool_pre_ping": True}
    if url.get_backend_name() == "sqlite":
        # Handlers run on the server's thread pool.
        kwargs["connect_args"] = {"check_same_thread": False}
    engine = create_engine(url, **kwargs)
    logger.info("Database engine created for %s", url.render_as_string(hide_password=True))
    return engine


def _affected_rows(result: CursorResult) -> Optional[int]:
    # DBAPI reports -1 when the driver cannot count affected rows.
    count = result.rowcount
    if count is None or count < 0:
        return None
    return count


def _row_to_entity(row: Any) -> TaskEntity:
    return {
        "id": int(row.id),
        "completion_state": bool(row.completion_state),
        "title": str(row.title),
        "description": row.description if row.description is not None else "",
        "expertise": str(row.expertise),
        "patient_id": int(row.patient_id),
        "created_at": row.created_at,
        "deleted_at": row.deleted_at,
    }


@contextmanager
def _store_errors(action: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as e:
        raise StoreError(f"{action}: {e}") from e


class _SQLTaskTransaction(TaskTransaction):
    def __init__(self, conn: Connection) -> None:
        self._conn = conn

    def insert(self, task: TaskEntity) -> int:
        values = {name: task[name] for name in _UPDATABLE_COLUMNS}  # type: ignore[literal-required]
        values["created_at"] = datetime.now(timezone.utc)
        with _store_errors("failed to insert a task"):
            result = self._conn.execute(insert(tasks_table).values(**values))
            return int(result.inserted_primary_key[0])

    def update(self, task: TaskEntity) -> Optional[int]:
        values = {name: task[name] for name in _UPDATABLE_COLUMNS}  # type: ignore[literal-required]
        stmt = (
            update(tasks_table)
            .where(_t.id == task["id"], _t.deleted_at.is_(None))
            .values(**values)
        )
        with _store_errors("failed to update a task"):
            return _affected_rows(self._conn.execute(stmt))

    def soft_delete(self, task_id: int) -> Optional[int]:
        stmt = (
            update(tasks_table)
            .where(_t.id == task_id, _t.deleted_at.is_(None))
            .values(deleted_at=datetime.now(timezone.utc))
        )
        with _store_errors("failed to delete a task"):
            return _affected_rows(self._conn.execute(stmt))


class SQLTaskRepository(TaskRepository):
    """
    SQLAlchemy Core repository implementing the TaskRepository interface.

    Works against PostgreSQL in production and SQLite for local runs and tests.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    @property
    def engine(self) -> Engine:
        return self._engine

    def create_schema(self) -> None:
        with _store_errors("failed to create the task schema"):
            with self._engine.begin() as conn:
                metadata.create_all(conn, checkfirst=True)
                for ddl in self._migration_statements(conn):
                    logger.info("Migrating task schema: %s", ddl)
                    conn.execute(text(ddl))

    def _migration_statements(self, conn: Connection) -> List[str]:
        """Statements adding created_at and deleted_at to tables created by older versions."""
        table = tasks_table.name
        if conn.dialect.name == "postgresql":
            return [
                f"ALTER TABLE {table} "
                "ADD COLUMN IF NOT EXISTS created_at timestamptz NOT NULL DEFAULT now(), "
                "ADD COLUMN IF NOT EXISTS deleted_at timestamptz"
            ]

        existing = {col["name"] for col in inspect(conn).get_columns(table)}
        statements: List[str] = []
        if "created_at" not in existing:
            # Non-constant defaults cannot be added to existing rows here; backfill instead.
            statements.append(f"ALTER TABLE {table} ADD COLUMN created_at TIMESTAMP")
            statements.append(
                f"UPDATE {table} SET created_at = CURRENT_TIMESTAMP WHERE created_at IS NULL"
            )
        if "deleted_at" not in existing:
            statements.append(f"ALTER TABLE {table} ADD COLUMN deleted_at TIMESTAMP")
        return statements

    @contextmanager
    def transaction(self) -> Generator[TaskTransaction, None, None]:
        with _store_errors("transaction failed"):
            with self._engine.begin() as conn:
                yield _SQLTaskTransaction(conn)

    def get(self, task_id: int) -> Optional[TaskEntity]:
        stmt = select(tasks_table).where(_t.id == task_id)
        with _store_errors("failed to fetch a task by id"):
            with self._engine.connect() as conn:
                row = conn.execute(stmt).first()
        return _row_to_entity(row) if row else None

    def list_ids(self, query: ListQuery) -> Tuple[List[int], int]:
        if query.search:
            logger.debug("Full-text search is not implemented; ignoring search=%r", query.search)

        active = _t.deleted_at.is_(None)
        page_stmt = (
            select(_t.id)
            .where(active)
            .order_by(_t.id)
            .offset(max(query.offset, 0))
            .limit(max(query.limit, 0))
        )
        count_stmt = select(func.count()).select_from(tasks_table).where(active)

        with _store_errors("failed to fetch tasks"):
            with self._engine.connect() as conn:
                ids = [int(i) for i in conn.execute(page_stmt).scalars()]
                total = int(conn.execute(count_stmt).scalar_one())
        return ids, total

    def list_by_patient(self, patient_id: int) -> List[TaskEntity]:
        stmt = (
            select(tasks_table)
            .where(_t.patient_id == patient_id, _t.deleted_at.is_(None))
            .order_by(_t.id)
        )
        with _store_errors("failed to fetch tasks of a patient"):
            with self._engine.connect() as conn:
                rows = conn.execute(stmt).all()
        return [_row_to_entity(r) for r in rows]
