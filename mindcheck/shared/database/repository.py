"""Base repository pattern for database operations.

Concrete repositories only describe how rows map to entities; query
execution, connection handling and error translation live here.
"""
import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Generic, List, Optional, Sequence, TypeVar

import psycopg2
from psycopg2 import errors as pg_errors

from .connection import ConnectionManager

logger = logging.getLogger(__name__)

T = TypeVar('T')


class RepositoryError(Exception):
    """Base exception for repository errors."""
    pass


class DuplicateError(RepositoryError):
    """Entity violates a uniqueness constraint."""
    pass


class BaseRepository(ABC, Generic[T]):
    """Abstract base repository with common operations."""

    # Explicit column list so _row_to_entity() can rely on positions.
    select_columns = "*"

    def __init__(
        self,
        connection_manager: ConnectionManager,
        table_name: str,
    ):
        self.connection_manager = connection_manager
        self.table_name = table_name

        logger.info("REPOSITORY_INITIALIZED", extra={"table_name": table_name})

    @abstractmethod
    def _row_to_entity(self, row: tuple) -> T:
        """Convert a database row to an entity."""

    @abstractmethod
    def _entity_to_params(self, entity: T) -> Dict[str, Any]:
        """Convert an entity to a column -> value mapping."""

    @contextmanager
    def _cursor(self, commit: bool = False):
        """Cursor on a pooled connection.

        Raises:
            DuplicateError: On a unique constraint violation
            RepositoryError: On any other database failure
        """
        try:
            with self.connection_manager.get_connection() as conn:
                with conn.cursor() as cur:
                    yield cur
                if commit:
                    conn.commit()
        except pg_errors.UniqueViolation as e:
            logger.warning(
                "REPOSITORY_DUPLICATE",
                extra={"table_name": self.table_name, "error": str(e)}
            )
            raise DuplicateError(str(e)) from e
        except psycopg2.Error as e:
            logger.error(
                "REPOSITORY_QUERY_FAILED",
                extra={"table_name": self.table_name, "error": str(e)}
            )
            raise RepositoryError(str(e)) from e

    def _fetch_one(self, query: str, params: Sequence[Any] = ()) -> Optional[tuple]:
        with self._cursor() as cur:
            cur.execute(query, tuple(params))
            return cur.fetchone()

    def _fetch_all(self, query: str, params: Sequence[Any] = ()) -> List[tuple]:
        with self._cursor() as cur:
            cur.execute(query, tuple(params))
            return list(cur.fetchall())

    def _execute(self, query: str, params: Sequence[Any] = ()) -> int:
        """Run a write statement and commit.

        Returns:
            Number of affected rows
        """
        with self._cursor(commit=True) as cur:
            cur.execute(query, tuple(params))
            return cur.rowcount

    def find_by_id(self, entity_id: str) -> Optional[T]:
        row = self._fetch_one(
            f"SELECT {self.select_columns} FROM {self.table_name} WHERE id = %s",
            (entity_id,)
        )
        return self._row_to_entity(row) if row is not None else None

    def save(self, entity: T) -> T:
        """Insert or update an entity by id."""
        params = self._entity_to_params(entity)
        columns = list(params.keys())
        placeholders = ", ".join(["%s"] * len(columns))
        update_clause = ", ".join(
            f"{col} = EXCLUDED.{col}" for col in columns if col != "id"
        )

        query = (
            f"INSERT INTO {self.table_name} ({', '.join(columns)}) "
            f"VALUES ({placeholders}) "
            f"ON CONFLICT (id) DO UPDATE SET {update_clause}"
        )
        self._execute(query, list(params.values()))
        return entity
