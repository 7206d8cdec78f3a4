from typing import (
    Any,
    TypeVar,
    Generic,
    Type,
    Sequence,
)

from sqlalchemy import (
    SQLColumnExpression,
    and_,
    inspect,
    update as sa_update,
    delete as sa_delete,
)
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.sql import Select, Delete, Update

from app.core.exceptions.types import DatabaseException

T = TypeVar("T")

# Upper bound on keys removed by a single batched delete
MAX_BATCH_SIZE = 500


class BaseDB(Generic[T]):
    """
    Collection-style access to one table, addressed by its primary key.

    Every method wraps ``SQLAlchemyError`` in ``DatabaseException`` so callers
    only deal with the application's exception hierarchy.
    """

    def __init__(self, model: Type[T]):
        self.model = model
        self.key_column = inspect(model).primary_key[0]

    async def get_by_key(self, session: AsyncSession, key: Any) -> T | None:
        """
        Asynchronously retrieves an instance of the model by its primary key.

        Args:
            session (AsyncSession): The asynchronous database session to use for the query.
            key (Any): The primary key value of the model instance to retrieve.

        Returns:
            T | None: The model instance if found, otherwise None.

        Raises:
            DatabaseException: If an error occurs while querying the database.
        """
        try:
            stmt: Select = select(self.model).where(self.key_column == key)
            result = await session.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise DatabaseException(
                f"Error retrieving {self.model.__name__} with key {key}: {str(e)}"
            ) from e

    async def get_by_conditions(
        self,
        session: AsyncSession,
        conditions: Sequence[SQLColumnExpression],
        order_by: list[Any] | None = None,
        limit: int | None = None,
    ) -> Sequence[T]:
        """
        Asynchronously retrieves records of the model that match the given conditions.

        Args:
            session (AsyncSession): The asynchronous database session to use for the query.
            conditions (Sequence[SQLColumnExpression]): SQLAlchemy expressions to filter the query,
                e.g. ``[HealthLog.timestamp < cutoff]``. An empty sequence matches every row.
            order_by (list[Any] | None, optional): Columns or ordering expressions. Defaults to None.
            limit (int | None, optional): Maximum number of rows to return. Defaults to None.

        Returns:
            Sequence[T]: A sequence containing instances of the model that match the conditions.

        Raises:
            DatabaseException: If an error occurs while querying the database.
        """
        try:
            stmt = select(self.model)
            if conditions:
                stmt = stmt.where(and_(*conditions))
            if order_by:
                stmt = stmt.order_by(*order_by)
            if limit is not None:
                stmt = stmt.limit(limit)
            result = await session.execute(stmt)
            return result.scalars().all()
        except SQLAlchemyError as e:
            raise DatabaseException(
                f"Error retrieving {self.model.__name__} with conditions {conditions}: {str(e)}"
            ) from e

    async def get_one_by_conditions(
        self,
        session: AsyncSession,
        conditions: Sequence[SQLColumnExpression],
    ) -> T | None:
        """
        Asynchronously retrieves a single record of the model that matches the given conditions.

        Args:
            session (AsyncSession): The asynchronous database session to use for the query.
            conditions (Sequence[SQLColumnExpression]): SQLAlchemy expressions to filter the query.

        Returns:
            T | None: An instance of the model if found, otherwise None.

        Raises:
            DatabaseException: If an error occurs while querying the database.
        """
        rows = await self.get_by_conditions(session, conditions, limit=1)
        return rows[0] if rows else None

    async def create(
        self,
        session: AsyncSession,
        data: dict,
        commit_self: bool = True,
    ) -> T:
        """
        Asynchronously creates and persists a new instance of the model using the provided data.

        Args:
            session (AsyncSession): The SQLAlchemy asynchronous session to use for database operations.
            data (dict): A dictionary of fields and values to initialize the model instance.
            commit_self (bool, optional): If True, commits the transaction and refreshes the object
                from the database. If False, only flushes the session. Defaults to True.

        Returns:
            T: The newly created and persisted model instance.

        Raises:
            DatabaseException: If an error occurs while creating the model instance or committing the transaction.
        """
        try:
            obj = self.model(**data)
            session.add(obj)

            if commit_self:
                await session.commit()
            else:
                await session.flush()

            await session.refresh(obj)
            return obj
        except (SQLAlchemyError, ValueError) as e:
            raise DatabaseException(
                f"Error creating {self.model.__name__}: {str(e)}"
            ) from e

    async def update(
        self, session: AsyncSession, key: Any, updates: dict, commit_self: bool = True
    ) -> T | None:
        """
        Asynchronously updates the record with the given key using the provided updates.

        Args:
            session (AsyncSession): The SQLAlchemy asynchronous session to use for the update operation.
            key (Any): The primary key of the record to update.
            updates (dict): Fields and their new values.
            commit_self (bool, optional): If True, commits the transaction after the update;
                otherwise, flushes the session. Defaults to True.

        Returns:
            T | None: The updated record, or None if no record was found with the given key.

        Raises:
            DatabaseException: If an error occurs while updating the record or committing the transaction.
        """
        try:
            stmt: Update = (
                sa_update(self.model)
                .where(self.key_column == key)
                .values(**updates)
                .returning(self.model)
                .execution_options(populate_existing=True)
            )
            result = await session.execute(stmt)
            updated = result.scalar_one_or_none()

            if commit_self:
                await session.commit()
            else:
                await session.flush()

            return updated
        except SQLAlchemyError as e:
            raise DatabaseException(
                f"Error updating {self.model.__name__} with key {key}: {str(e)}"
            ) from e

    async def delete(
        self, session: AsyncSession, key: Any, commit_self: bool = True
    ) -> bool:
        """
        Asynchronously deletes the record with the given key.

        Args:
            session (AsyncSession): The SQLAlchemy asynchronous session to use for the operation.
            key (Any): The primary key of the record to delete.
            commit_self (bool, optional): If True, commits the transaction after deletion;
                if False, only flushes the session. Defaults to True.

        Returns:
            bool: True if a row was deleted, False if none matched.

        Raises:
            DatabaseException: If an error occurs while deleting the record or committing the transaction.
        """
        try:
            stmt: Delete = sa_delete(self.model).where(self.key_column == key)
            result = await session.execute(stmt)

            if commit_self:
                await session.commit()
            else:
                await session.flush()

            return bool(result.rowcount)  # type: ignore[attr-defined]
        except SQLAlchemyError as e:
            raise DatabaseException(
                f"Error deleting {self.model.__name__} with key {key}: {str(e)}"
            ) from e

    async def delete_batch(
        self, session: AsyncSession, keys: Sequence[Any], commit_self: bool = True
    ) -> int:
        """
        Deletes up to ``MAX_BATCH_SIZE`` records by key in one statement.

        Args:
            session (AsyncSession): The SQLAlchemy asynchronous session to use for the operation.
            keys (Sequence[Any]): Primary keys to delete.
            commit_self (bool, optional): Commit after the delete. Defaults to True.

        Returns:
            int: The number of records deleted.

        Raises:
            ValueError: If more than ``MAX_BATCH_SIZE`` keys are given.
            DatabaseException: If an error occurs while deleting the records.
        """
        if len(keys) > MAX_BATCH_SIZE:
            raise ValueError(
                f"Batched delete accepts at most {MAX_BATCH_SIZE} keys, got {len(keys)}"
            )
        if not keys:
            return 0

        try:
            stmt: Delete = sa_delete(self.model).where(self.key_column.in_(keys))
            result = await session.execute(stmt)

            if commit_self:
                await session.commit()
            else:
                await session.flush()

            return result.rowcount  # type: ignore[attr-defined]
        except SQLAlchemyError as e:
            raise DatabaseException(
                f"Error batch-deleting {len(keys)} {self.model.__name__} records: {str(e)}"
            ) from e

    async def upsert(
        self,
        session: AsyncSession,
        data: dict[str, Any],
        commit_self: bool = True,
    ) -> T:
        """
        Insert a record, or overwrite the existing one with the same primary key.

        Uses the dialect's ``INSERT ... ON CONFLICT ... DO UPDATE`` so the
        write is a single atomic statement on both PostgreSQL and SQLite.

        Args:
            session: Database session.
            data: All fields to set on the record; must include the primary key.
            commit_self: Whether to commit after the operation.

        Returns:
            The stored instance.

        Raises:
            ValueError: If the primary key is missing from data.
            DatabaseException: If an error occurs during the operation.
        """
        key_name = self.key_column.key
        if key_name not in data:
            raise ValueError(f"Key field '{key_name}' must be present in data for upsert")

        try:
            dialect = session.get_bind().dialect.name
            insert = pg_insert if dialect == "postgresql" else sqlite_insert

            update_set = {k: v for k, v in data.items() if k != key_name}
            stmt = (
                insert(self.model)
                .values(**data)
                .on_conflict_do_update(
                    index_elements=[key_name],
                    set_=update_set,
                )
                .returning(self.model)
                .execution_options(populate_existing=True)
            )

            result = await session.execute(stmt)
            instance = result.scalar_one()

            if commit_self:
                await session.commit()
            else:
                await session.flush()

            return instance
        except SQLAlchemyError as e:
            raise DatabaseException(
                f"Error upserting {self.model.__name__}: {str(e)}"
            ) from e

    async def insert_if_absent(
        self,
        session: AsyncSession,
        data: dict[str, Any],
        commit_self: bool = True,
    ) -> bool:
        """
        Insert a record unless one with the same primary key already exists.

        Uses ``INSERT ... ON CONFLICT DO NOTHING`` so concurrent callers with
        the same key never fail on the unique constraint.

        Args:
            session: Database session.
            data: Fields of the new record; must include the primary key.
            commit_self: Whether to commit after the operation.

        Returns:
            True if this call inserted the record, False if it already existed.

        Raises:
            ValueError: If the primary key is missing from data.
            DatabaseException: If an error occurs during the operation.
        """
        key_name = self.key_column.key
        if key_name not in data:
            raise ValueError(f"Key field '{key_name}' must be present in data for insert")

        try:
            dialect = session.get_bind().dialect.name
            insert = pg_insert if dialect == "postgresql" else sqlite_insert

            stmt = (
                insert(self.model)
                .values(**data)
                .on_conflict_do_nothing(index_elements=[key_name])
                .returning(self.key_column)
            )

            result = await session.execute(stmt)
            inserted = result.scalar_one_or_none() is not None

            if commit_self:
                await session.commit()
            else:
                await session.flush()

            return inserted
        except SQLAlchemyError as e:
            raise DatabaseException(
                f"Error inserting {self.model.__name__}: {str(e)}"
            ) from e
