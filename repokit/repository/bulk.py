"""
Bulk writes. These go through INSERT/UPDATE/DELETE statements without session
synchronization: instances already loaded keep their old values until refreshed,
and no ORM events fire per row.
"""

from typing import Any, Generic, List, Mapping, Sequence, TypeVar

from sqlalchemy import delete, insert, update
from sqlalchemy.exc import SQLAlchemyError

from repokit.exceptions.handler import WriteFailureError
from repokit.logging.logger import get_logger

T = TypeVar("T")

logger = get_logger("repository")


class BulkOperations(Generic[T]):
    """Mixed into BaseRepository; relies on its session, model and key helpers."""

    async def _execute_write(self, statement, message: str) -> int:
        try:
            result = await self.session.exec(statement)
        except SQLAlchemyError as e:
            logger.error(f"{message} {self.class_name()}: {e}")
            raise WriteFailureError(message) from e
        return result.rowcount

    def _insert_row(self, row: Any) -> dict:
        """Model defaults (e.g. default_factory timestamps) applied; an unset key is left to the database."""
        entity = row if isinstance(row, self.model) else self.model(**dict(row))
        data = entity.model_dump()
        if data.get(self.get_key_name()) is None:
            data.pop(self.get_key_name(), None)
        return data

    async def create_many(self, rows: Sequence[Any]) -> int:
        """Insert many rows (dicts or instances) in one statement; returns the number of rows inserted."""
        data: List[dict] = [self._insert_row(row) for row in rows]
        if not data:
            return 0
        count = await self._execute_write(insert(self.model).values(data), "Unable to bulk insert.")
        logger.info(f"Bulk inserted {len(data)} {self.class_name()} row(s)")
        return count if count and count > 0 else len(data)

    async def update_many(self, ids: Sequence[Any], data: Mapping[str, Any]) -> int:
        """Update rows whose key is in ids; zero affected rows raises WriteFailureError."""
        statement = (
            update(self.model)
            .where(self._key().in_(list(ids)))
            .values(**dict(data))
            .execution_options(synchronize_session=False)
        )
        count = await self._execute_write(statement, "Unable to bulk update.")
        if not count:
            raise WriteFailureError("Unable to bulk update.", detail={"ids": list(ids)})
        logger.info(f"Bulk updated {count} {self.class_name()} row(s)")
        return count

    async def delete_many(self, ids: Sequence[Any]) -> int:
        """Delete rows whose key is in ids; zero affected rows raises WriteFailureError."""
        statement = (
            delete(self.model)
            .where(self._key().in_(list(ids)))
            .execution_options(synchronize_session=False)
        )
        count = await self._execute_write(statement, "Unable to bulk delete.")
        if not count:
            raise WriteFailureError("Unable to bulk delete.", detail={"ids": list(ids)})
        logger.info(f"Bulk deleted {count} {self.class_name()} row(s)")
        return count
