import logging
from typing import Optional

from common.config.settings import Settings
from dal.execution import QueryExecutor

logger = logging.getLogger(__name__)


class Database:
    """Owns the SQL Server pool and the executor bound to the runtime policy."""

    _settings: Optional[Settings] = None
    _executor: Optional[QueryExecutor] = None

    @classmethod
    async def init(cls, settings: Settings) -> None:
        """Open the pool and build the executor for ``settings``."""
        from dal.mssql.query_target import MssqlQueryTargetDatabase

        await MssqlQueryTargetDatabase.init(settings)
        cls._settings = settings
        cls._executor = QueryExecutor(settings, MssqlQueryTargetDatabase.get_connection)
        logger.info(
            "Query target ready",
            extra={"provider": "mssql", "read_only": settings.read_only},
        )

    @classmethod
    async def close(cls) -> None:
        """Close the pool and drop the executor."""
        from dal.mssql.query_target import MssqlQueryTargetDatabase

        await MssqlQueryTargetDatabase.close()
        cls._executor = None
        cls._settings = None

    @classmethod
    def get_executor(cls) -> QueryExecutor:
        """Return the executor; raises when the database is not initialized."""
        if cls._executor is None:
            raise RuntimeError("Database not initialized. Call Database.init() first.")
        return cls._executor

    @classmethod
    def get_settings(cls) -> Settings:
        if cls._settings is None:
            raise RuntimeError("Database not initialized. Call Database.init() first.")
        return cls._settings
