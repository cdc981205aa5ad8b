"""Common plumbing for catalog services.

Services run each operation through ``_execute``, which turns domain
errors into failed ``OperationResult`` values and wraps any other storage
fault as a persistence error. No exception escapes a service call.
"""

from collections.abc import Awaitable, Callable, Mapping
from typing import ClassVar, TypeVar
from uuid import UUID

import structlog

from storecatalog.application.results import OperationResult, ResultStatus
from storecatalog.catalog.gateway import StorageGateway
from storecatalog.domain.exceptions import DomainError, PersistenceError
from storecatalog.infrastructure.config import Settings, settings as default_settings
from storecatalog.infrastructure.messages import MessageCatalog

logger = structlog.get_logger()

T = TypeVar("T")


class CatalogServiceBase:
    """Base class for services returning structured results.

    Subclasses set ``section`` (their message-table section) and
    ``status_messages`` (message keys used verbatim for specific failure
    statuses instead of "<failure message> <reason>").
    """

    section: ClassVar[str] = ""
    status_messages: ClassVar[Mapping[ResultStatus, str]] = {}

    def __init__(
        self,
        gateway: StorageGateway,
        messages: MessageCatalog | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize service.

        Args:
            gateway: Storage gateway for the current request.
            messages: Message table; built from settings when omitted.
            settings: Application settings; module settings when omitted.
        """
        self.gateway = gateway
        self.settings = settings or default_settings
        self.messages = messages or MessageCatalog.from_settings(self.settings)

    def message(self, key: str) -> str:
        """Look up a message in this service's section."""
        return self.messages.get(self.section, key)

    async def _execute(
        self,
        action: str,
        operation: Callable[[], Awaitable[OperationResult[T]]],
        failure_key: str,
        entity_id: UUID | str | None = None,
        status_messages: Mapping[ResultStatus, str] | None = None,
    ) -> OperationResult[T]:
        """Run an operation, converting every failure into a result.

        Args:
            action: Operation name for logs.
            operation: Coroutine function producing the success result.
            failure_key: Message key for generic failures.
            entity_id: Target identity, echoed on failure when well-formed.
            status_messages: Per-call overrides of ``status_messages``.

        Returns:
            The operation's result, or a failure result.
        """
        try:
            return await operation()
        except DomainError as exc:
            logger.warning(
                "Catalog operation failed",
                action=action,
                error_code=exc.error_code,
                error=exc.message,
                entity_id=str(entity_id) if entity_id is not None else None,
            )
            return self._failure(exc, failure_key, entity_id, status_messages)
        except Exception as exc:
            logger.exception("Catalog operation hit a storage fault", action=action)
            return self._failure(PersistenceError(action, exc), failure_key, entity_id, status_messages)

    def _failure(
        self,
        error: DomainError,
        failure_key: str,
        entity_id: UUID | str | None,
        status_messages: Mapping[ResultStatus, str] | None,
    ) -> OperationResult:
        status = ResultStatus.from_error(error)
        overrides = {**self.status_messages, **(status_messages or {})}
        if status in overrides:
            message = self.message(overrides[status])
        else:
            message = self.messages.failure(self.section, failure_key, error.message)
        return OperationResult.failure(error, message, entity_id=entity_id if isinstance(entity_id, UUID) else None)
