"""
SQLite record store.

Local stand-in for the hosted backend, featuring:
- Schema versioning and migrations
- Batch seeding in single transactions
- A uniqueness constraint on the (parent, option, child) tuple
- Async record-store calls served from a worker thread
"""

import asyncio
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, TypeVar

from ..core.exceptions import PersistenceFailure
from ..core.types import (
    DependencyEdge, OptionFilter, Parameter, ParameterOption,
    ParameterType, ParameterWithOptions,
)
from .base import RecordStore

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 2

T = TypeVar("T")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SQLiteRecordStore(RecordStore):
    """
    Persistent record store using a local SQLite file.
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self._init_db()

    @contextmanager
    def _connection(self):
        """Context manager for database connections."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA foreign_keys=ON")
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_db(self) -> None:
        """Initialize database schema with versioning."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        with self._connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY,
                    applied_at TEXT NOT NULL,
                    description TEXT
                )
            """)

            current_version = self._get_schema_version_internal(conn)
            if current_version < SCHEMA_VERSION:
                self._migrate(conn, current_version)

    def _get_schema_version_internal(self, conn: sqlite3.Connection) -> int:
        row = conn.execute("SELECT MAX(version) as v FROM schema_version").fetchone()
        return row["v"] if row and row["v"] else 0

    def _migrate(self, conn: sqlite3.Connection, from_version: int) -> None:
        """Run schema migrations."""

        if from_version < 1:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS task_parameters (
                    id TEXT PRIMARY KEY,
                    slug TEXT NOT NULL,
                    label TEXT NOT NULL,
                    type TEXT NOT NULL,
                    required INTEGER NOT NULL DEFAULT 0,
                    expression_template TEXT
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS task_parameter_options (
                    id TEXT PRIMARY KEY,
                    parameter_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    label TEXT NOT NULL
                )
            """)

            # No foreign keys: rows may outlive the options they point to,
            # and the graph store treats those edges as inert.
            conn.execute("""
                CREATE TABLE IF NOT EXISTS task_parameter_dependencies (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    parent_parameter_id TEXT NOT NULL,
                    parent_option_id TEXT NOT NULL,
                    child_parameter_id TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    UNIQUE (parent_parameter_id, parent_option_id, child_parameter_id)
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS task_parameter_dependency_options (
                    dependency_id INTEGER NOT NULL
                        REFERENCES task_parameter_dependencies(id) ON DELETE CASCADE,
                    child_option_id TEXT NOT NULL,
                    PRIMARY KEY (dependency_id, child_option_id)
                )
            """)

            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_options_parameter ON task_parameter_options(parameter_id)"
            )
            conn.execute("""
                INSERT INTO schema_version (version, applied_at, description)
                VALUES (1, ?, 'Initial schema')
            """, (_now(),))

        if from_version < 2:
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_dependencies_child "
                "ON task_parameter_dependencies(child_parameter_id)"
            )
            conn.execute("""
                INSERT INTO schema_version (version, applied_at, description)
                VALUES (2, ?, 'Added child parameter index')
            """, (_now(),))

    def get_schema_version(self) -> int:
        with self._connection() as conn:
            return self._get_schema_version_internal(conn)

    # --- Administrative writes (seeding) ---

    def save_parameters_batch(self, parameters: Iterable[Parameter]) -> int:
        rows = [
            (p.id, p.slug, p.label, p.type.value, int(p.required), p.expression_template)
            for p in parameters
        ]
        with self._connection() as conn:
            conn.executemany("""
                INSERT OR REPLACE INTO task_parameters
                (id, slug, label, type, required, expression_template)
                VALUES (?, ?, ?, ?, ?, ?)
            """, rows)
        return len(rows)

    def save_options_batch(self, options: Iterable[ParameterOption]) -> int:
        rows = [(o.id, o.parameter_id, o.name, o.label) for o in options]
        with self._connection() as conn:
            conn.executemany("""
                INSERT OR REPLACE INTO task_parameter_options (id, parameter_id, name, label)
                VALUES (?, ?, ?, ?)
            """, rows)
        return len(rows)

    def save_edges_batch(self, edges: Iterable[DependencyEdge]) -> int:
        """Insert edges, skipping tuples that are already stored."""
        rows = [(*e.key, _now()) for e in edges]
        with self._connection() as conn:
            conn.executemany("""
                INSERT OR IGNORE INTO task_parameter_dependencies
                (parent_parameter_id, parent_option_id, child_parameter_id, created_at)
                VALUES (?, ?, ?, ?)
            """, rows)
        return len(rows)

    def save_option_filters_batch(self, option_filters: Iterable[OptionFilter]) -> int:
        count = 0
        with self._connection() as conn:
            for option_filter in option_filters:
                row = conn.execute("""
                    SELECT id FROM task_parameter_dependencies
                    WHERE parent_parameter_id = ? AND parent_option_id = ? AND child_parameter_id = ?
                """, option_filter.edge.key).fetchone()
                if row is None:
                    logger.warning(f"Option filter refers to a missing dependency: {option_filter.edge}")
                    continue
                conn.execute("""
                    INSERT OR IGNORE INTO task_parameter_dependency_options (dependency_id, child_option_id)
                    VALUES (?, ?)
                """, (row["id"], option_filter.child_option_id))
                count += 1
        return count

    def clear(self) -> None:
        """Clear all data from storage."""
        with self._connection() as conn:
            conn.execute("DELETE FROM task_parameter_dependency_options")
            conn.execute("DELETE FROM task_parameter_dependencies")
            conn.execute("DELETE FROM task_parameter_options")
            conn.execute("DELETE FROM task_parameters")

    def get_stats(self) -> Dict[str, Any]:
        with self._connection() as conn:
            def count(table: str) -> int:
                return conn.execute(f"SELECT COUNT(*) as c FROM {table}").fetchone()["c"]

            return {
                "schema_version": self._get_schema_version_internal(conn),
                "total_parameters": count("task_parameters"),
                "total_options": count("task_parameter_options"),
                "total_edges": count("task_parameter_dependencies"),
                "total_option_filters": count("task_parameter_dependency_options"),
                "db_size_bytes": self.db_path.stat().st_size if self.db_path.exists() else 0,
            }

    # --- Record store contract ---

    async def fetch_parameters_with_options(self) -> List[ParameterWithOptions]:
        return await self._run("fetch", self._load_bundles)

    async def fetch_dependency_edges(self) -> List[DependencyEdge]:
        return await self._run("fetch", self._load_edges)

    async def fetch_option_filters(self) -> List[OptionFilter]:
        return await self._run("fetch", self._load_option_filters)

    async def create_dependency_edge(self, edge: DependencyEdge) -> DependencyEdge:
        return await self._run("create", lambda: self._insert_edge(edge), edge)

    async def delete_dependency_edge(self, edge: DependencyEdge) -> None:
        await self._run("delete", lambda: self._delete_edge(edge), edge)

    async def _run(self, operation: str, func: Callable[[], T], edge: DependencyEdge | None = None) -> T:
        try:
            return await asyncio.to_thread(func)
        except sqlite3.Error as e:
            logger.error(f"SQLite {operation} failed: {e}")
            raise PersistenceFailure(operation, edge, e) from e

    def _load_bundles(self) -> List[ParameterWithOptions]:
        with self._connection() as conn:
            parameter_rows = conn.execute(
                "SELECT * FROM task_parameters WHERE type = ? ORDER BY label",
                (ParameterType.SELECT.value,),
            ).fetchall()
            option_rows = conn.execute(
                "SELECT * FROM task_parameter_options ORDER BY label"
            ).fetchall()

        options_by_parameter: Dict[str, List[ParameterOption]] = {}
        for row in option_rows:
            options_by_parameter.setdefault(row["parameter_id"], []).append(ParameterOption(
                id=row["id"], parameter_id=row["parameter_id"], name=row["name"], label=row["label"],
            ))

        return [
            ParameterWithOptions(
                parameter=self._row_to_parameter(row),
                options=options_by_parameter.get(row["id"], []),
            )
            for row in parameter_rows
        ]

    def _row_to_parameter(self, row: sqlite3.Row) -> Parameter:
        return Parameter(
            id=row["id"],
            slug=row["slug"],
            label=row["label"],
            type=ParameterType(row["type"]),
            required=bool(row["required"]),
            expression_template=row["expression_template"],
        )

    def _load_edges(self) -> List[DependencyEdge]:
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT * FROM task_parameter_dependencies ORDER BY id"
            ).fetchall()
        return [self._row_to_edge(row) for row in rows]

    def _row_to_edge(self, row: sqlite3.Row) -> DependencyEdge:
        return DependencyEdge(
            parent_parameter_id=row["parent_parameter_id"],
            parent_option_id=row["parent_option_id"],
            child_parameter_id=row["child_parameter_id"],
        )

    def _load_option_filters(self) -> List[OptionFilter]:
        with self._connection() as conn:
            rows = conn.execute("""
                SELECT d.parent_parameter_id, d.parent_option_id, d.child_parameter_id, o.child_option_id
                FROM task_parameter_dependency_options o
                JOIN task_parameter_dependencies d ON d.id = o.dependency_id
            """).fetchall()
        return [
            OptionFilter(edge=self._row_to_edge(row), child_option_id=row["child_option_id"])
            for row in rows
        ]

    def _insert_edge(self, edge: DependencyEdge) -> DependencyEdge:
        with self._connection() as conn:
            conn.execute("""
                INSERT INTO task_parameter_dependencies
                (parent_parameter_id, parent_option_id, child_parameter_id, created_at)
                VALUES (?, ?, ?, ?)
            """, (*edge.key, _now()))
        return edge

    def _delete_edge(self, edge: DependencyEdge) -> None:
        with self._connection() as conn:
            conn.execute("""
                DELETE FROM task_parameter_dependencies
                WHERE parent_parameter_id = ? AND parent_option_id = ? AND child_parameter_id = ?
            """, edge.key)
