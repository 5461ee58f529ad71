"""
Response Router

DESIGN DECISION: Dispatch is an exhaustive table from IntentKind to a
handler coroutine, checked when the router is built. A label without a
handler is a configuration error at startup, never a silent fallback at
question time.

Handlers only compute numbers from stored data. Turning a ResultBundle
into prose is the templating layer's job.
"""

from datetime import date
from typing import Callable, Optional

import structlog

from finchat.config.settings import ChatSettings
from finchat.exceptions import FinchatError
from finchat.models.intent import IntentKind
from finchat.models.response import ResultBundle
from finchat.routing.handlers import HANDLER_GROUPS, Handler
from finchat.services.storage.interface import FinanceDataSource


logger = structlog.get_logger(__name__)


class RouterConfigurationError(FinchatError):
    """An intent has no handler, or two handler groups claim the same intent."""
    pass


class ResponseRouter:
    """
    Maps each intent to the handler that answers it.

    Unknown labels go to the clarification handler.
    """

    def __init__(
        self,
        data_source: FinanceDataSource,
        today: Optional[Callable[[], date]] = None,
        settings: Optional[ChatSettings] = None,
    ):
        self._handlers: dict[IntentKind, Handler] = {}
        for group_class in HANDLER_GROUPS:
            group = group_class(data_source, today=today, settings=settings)
            for intent, handler in group.handlers().items():
                if intent in self._handlers:
                    raise RouterConfigurationError(
                        f"Intent '{intent.value}' is handled by more than one group"
                    )
                self._handlers[intent] = handler

        missing = [intent.value for intent in IntentKind if intent not in self._handlers]
        if missing:
            raise RouterConfigurationError(f"No handler for intents: {', '.join(missing)}")

    @property
    def intents(self) -> list[IntentKind]:
        return list(self._handlers)

    def handler_for(self, intent) -> Handler:
        """Handler for an intent or raw label; unrecognized labels get clarification."""
        if not isinstance(intent, IntentKind):
            intent = IntentKind.parse(str(intent))
        return self._handlers[intent]

    async def route(self, intent, user_id: str, query: str, locale: str) -> ResultBundle:
        """
        Run the handler for `intent`.

        Data-source errors propagate; the caller decides how a failed
        intent is reported.
        """
        handler = self.handler_for(intent)
        bundle = await handler(user_id, query, locale)
        logger.debug("intent_routed", intent=bundle.intent.value, response_type=bundle.response_type.value)
        return bundle
