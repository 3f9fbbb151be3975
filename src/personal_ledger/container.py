"""Dependency injection container for Personal Ledger.

Owns the database handle's lifecycle and wires repositories and services from
settings. Everything is created on first access and cached.

Usage:
    from personal_ledger.container import Container

    with Container() as container:
        container.ledger_service.create_entry(...)
        container.recurrence_processor.process_due_transactions()
"""

from functools import cached_property, lru_cache
from typing import TYPE_CHECKING, Any

from personal_ledger.config import DatabaseType, Settings, get_settings
from personal_ledger.logging_config import get_logger

if TYPE_CHECKING:
    from personal_ledger.repositories.interfaces import (
        AccountRepository,
        LedgerRepository,
        RecurringTransactionRepository,
        ReminderRepository,
    )
    from personal_ledger.services.interfaces import (
        LedgerService,
        RecurringTransactionService,
    )
    from personal_ledger.services.processor import RecurrenceProcessor
    from personal_ledger.services.scheduler import RecurrenceScheduler

logger = get_logger(__name__)


class Container:
    """Dependency injection container.

    The container can be configured with custom settings for testing:

        test_settings = Settings(database_type=DatabaseType.MEMORY)
        container = Container(settings=test_settings)
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()
        logger.debug(
            "container_created",
            database_type=self._settings.database_type.value,
            environment=self._settings.environment.value,
        )

    @property
    def settings(self) -> Settings:
        return self._settings

    @cached_property
    def database(self) -> Any:
        """Get the database handle, initialized on first access.

        Returns the in-memory store, SQLite or PostgreSQL depending on
        ``settings.database_type``.
        """
        if self._settings.database_type == DatabaseType.POSTGRES:
            db = self._create_postgres_database()
        elif self._settings.database_type == DatabaseType.MEMORY:
            from personal_ledger.repositories.memory import InMemoryDatabase

            logger.info("initializing_memory_database")
            db = InMemoryDatabase()
        else:
            db = self._create_sqlite_database()
        db.initialize()
        return db

    def _create_sqlite_database(self) -> Any:
        from personal_ledger.repositories.sqlite import SQLiteDatabase

        db_path = str(self._settings.sqlite_path)
        logger.info("initializing_sqlite_database", path=db_path)
        return SQLiteDatabase(db_path)

    def _create_postgres_database(self) -> Any:
        from personal_ledger.repositories.postgres import PostgresDatabase

        url = self._settings.database_url
        if not url:
            raise ValueError("database_url must be set when database_type is postgres")

        logger.info(
            "initializing_postgres_database",
            # Host only; the DSN may carry credentials
            host=url.split("@")[-1].split("/")[0] if "@" in url else "localhost",
            pool_size=self._settings.postgres_pool_size,
        )
        return PostgresDatabase(url, pool_size=self._settings.postgres_pool_size)

    @cached_property
    def _repository_classes(self) -> tuple[type, type, type, type]:
        """Account, ledger, recurring and reminder repository classes for the engine."""
        if self._settings.database_type == DatabaseType.POSTGRES:
            from personal_ledger.repositories.postgres import (
                PostgresAccountRepository,
                PostgresLedgerRepository,
                PostgresRecurringTransactionRepository,
                PostgresReminderRepository,
            )

            return (
                PostgresAccountRepository,
                PostgresLedgerRepository,
                PostgresRecurringTransactionRepository,
                PostgresReminderRepository,
            )
        if self._settings.database_type == DatabaseType.MEMORY:
            from personal_ledger.repositories.memory import (
                InMemoryAccountRepository,
                InMemoryLedgerRepository,
                InMemoryRecurringTransactionRepository,
                InMemoryReminderRepository,
            )

            return (
                InMemoryAccountRepository,
                InMemoryLedgerRepository,
                InMemoryRecurringTransactionRepository,
                InMemoryReminderRepository,
            )
        from personal_ledger.repositories.sqlite import (
            SQLiteAccountRepository,
            SQLiteLedgerRepository,
            SQLiteRecurringTransactionRepository,
            SQLiteReminderRepository,
        )

        return (
            SQLiteAccountRepository,
            SQLiteLedgerRepository,
            SQLiteRecurringTransactionRepository,
            SQLiteReminderRepository,
        )

    @cached_property
    def account_repository(self) -> "AccountRepository":
        return self._repository_classes[0](self.database)

    @cached_property
    def ledger_repository(self) -> "LedgerRepository":
        return self._repository_classes[1](self.database)

    @cached_property
    def recurring_repository(self) -> "RecurringTransactionRepository":
        return self._repository_classes[2](self.database)

    @cached_property
    def reminder_repository(self) -> "ReminderRepository":
        return self._repository_classes[3](self.database)

    @cached_property
    def ledger_service(self) -> "LedgerService":
        """Get the ledger service for entry create/update/void/adjust."""
        from personal_ledger.services.ledger import LedgerServiceImpl

        return LedgerServiceImpl(
            self.ledger_repository,
            self.account_repository,
            editable_window=self._settings.editable_window,
        )

    @cached_property
    def recurring_service(self) -> "RecurringTransactionService":
        """Get the service for recurring transaction definitions and reminders."""
        from personal_ledger.services.recurring import RecurringTransactionServiceImpl

        return RecurringTransactionServiceImpl(
            self.recurring_repository,
            self.reminder_repository,
            self.account_repository,
            reminder_lead_time=self._settings.reminder_lead_time,
            upcoming_reminder_days=self._settings.upcoming_reminder_days,
        )

    @cached_property
    def recurrence_processor(self) -> "RecurrenceProcessor":
        from personal_ledger.services.processor import RecurrenceProcessor

        return RecurrenceProcessor(
            self.recurring_repository,
            self.reminder_repository,
            self.ledger_repository,
            self.ledger_service,
            reminder_lead_time=self._settings.reminder_lead_time,
        )

    @cached_property
    def scheduler(self) -> "RecurrenceScheduler":
        from personal_ledger.services.scheduler import RecurrenceScheduler

        return RecurrenceScheduler(
            self.recurrence_processor,
            interval=self._settings.scheduler_interval,
            tick_timeout=self._settings.tick_timeout,
        )

    def close(self) -> None:
        """Stop the scheduler if it was started and close the database handle."""
        if "scheduler" in self.__dict__:
            self.scheduler.stop()
        if "database" in self.__dict__:
            logger.info("closing_database_connection")
            self.database.close()

    def __enter__(self) -> "Container":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


@lru_cache
def get_container() -> Container:
    """Get the process-wide container, created lazily from default settings.

    Tests should build a Container with their own settings instead.
    """
    return Container()


def reset_container() -> None:
    """Close and forget the process-wide container."""
    if get_container.cache_info().currsize:
        get_container().close()
    get_container.cache_clear()
