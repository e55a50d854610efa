"""
Database client.

Supabase PostgreSQL client with async query execution. Every call is a single
attempt; failures surface as PersistenceError.
"""

import asyncio
from typing import Any, Callable, Dict, Optional
from supabase import create_client, Client
from shared.config import Settings
from shared.errors import PersistenceError, ConfigError
from shared.logging import get_logger

logger = get_logger("database")

# Tables
IMAGE_UPLOADS_TABLE = "roast_me_ai_image_uploads"
CHARACTERS_TABLE = "roast_me_ai_characters"
SHORT_URLS_TABLE = "roast_me_ai_short_urls"
USERS_TABLE = "roast_me_ai_users"
CREDIT_TRANSACTIONS_TABLE = "roast_me_ai_credit_transactions"


class DatabaseClient:
    """Supabase database client wrapper with async execution."""

    def __init__(self, settings: Settings):
        """Initialize database client."""
        try:
            self.client: Client = create_client(
                settings.supabase_url,
                settings.supabase_service_key
            )
        except Exception as e:
            raise ConfigError(f"Failed to initialize database client: {str(e)}") from e

    async def _execute_sync(self, func: Callable[[], Any]) -> Any:
        """
        Execute a synchronous Supabase operation in an async context.

        Args:
            func: Synchronous function to execute

        Returns:
            Function result

        Raises:
            PersistenceError: If the operation fails
        """
        try:
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(None, func)
        except Exception as e:
            raise PersistenceError(f"Database operation failed: {str(e)}") from e

    def table(self, table_name: str) -> "AsyncTableQueryBuilder":
        """
        Get a table query builder with async execution support.

        Args:
            table_name: Name of the table

        Returns:
            AsyncTableQueryBuilder wrapper
        """
        return AsyncTableQueryBuilder(self, table_name)

    async def rpc(self, function_name: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Call a Postgres function (used for atomic counters).

        Args:
            function_name: Name of the SQL function
            params: Named arguments

        Returns:
            RPC response
        """
        return await self._execute_sync(
            lambda: self.client.rpc(function_name, params or {}).execute()
        )

    async def health_check(self) -> bool:
        """
        Check database connection health.

        Returns:
            True if connection is healthy, False otherwise
        """
        try:
            await self._execute_sync(
                lambda: self.client.table(CHARACTERS_TABLE).select("id").limit(1).execute()
            )
            return True
        except PersistenceError as e:
            logger.warning("Database health check failed", extra={"error": str(e)})
            return False


class AsyncTableQueryBuilder:
    """Async wrapper for Supabase table query builder."""

    def __init__(self, db_client: DatabaseClient, table_name: str):
        """Initialize async table query builder."""
        self.db_client = db_client
        self.table_name = table_name
        self._query_builder = db_client.client.table(table_name)

    def select(self, *args, **kwargs):
        """Chain select operation."""
        self._query_builder = self._query_builder.select(*args, **kwargs)
        return self

    def insert(self, *args, **kwargs):
        """Chain insert operation."""
        self._query_builder = self._query_builder.insert(*args, **kwargs)
        return self

    def update(self, *args, **kwargs):
        """Chain update operation."""
        self._query_builder = self._query_builder.update(*args, **kwargs)
        return self

    def eq(self, *args, **kwargs):
        """Chain eq filter."""
        self._query_builder = self._query_builder.eq(*args, **kwargs)
        return self

    def is_not_null(self, column: str):
        """Chain an IS NOT NULL filter."""
        self._query_builder = self._query_builder.not_.is_(column, "null")
        return self

    def order(self, *args, **kwargs):
        """Chain order operation."""
        self._query_builder = self._query_builder.order(*args, **kwargs)
        return self

    def limit(self, *args, **kwargs):
        """Chain limit operation."""
        self._query_builder = self._query_builder.limit(*args, **kwargs)
        return self

    async def execute(self) -> Any:
        """
        Execute the query asynchronously.

        Returns:
            Query result (``.data`` holds the rows)
        """
        query_builder = self._query_builder
        return await self.db_client._execute_sync(lambda: query_builder.execute())
