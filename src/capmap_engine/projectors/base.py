"""Projector base: a registration table from event type to handler.

Every projector exposes ``project_event(event_type, event_data)``. Event data
is parsed into the payload model registered for its type before the handler
runs. Event types a projector has no handler for are ignored, so new event
kinds can be added upstream without touching existing projectors.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from pydantic import ValidationError

from capmap_engine.errors import EventPayloadError
from capmap_engine.models.events import EVENT_PAYLOADS, EventPayload, EventType

logger = logging.getLogger(__name__)

EventHandler = Callable[[Any], Awaitable[None]]
EventData = bytes | str | Mapping[str, Any]


def parse_payload(event_type: EventType, event_data: EventData) -> EventPayload:
    """Validate raw event data against the payload model for its type."""
    model = EVENT_PAYLOADS[event_type]
    try:
        if isinstance(event_data, (bytes, str)):
            return model.model_validate_json(event_data)
        return model.model_validate(dict(event_data))
    except ValidationError as exc:
        raise EventPayloadError(
            f"invalid {event_type} payload: {exc.error_count()} validation error(s)",
            event_type=event_type,
        ) from exc


class Projector:
    """Dispatches events to the handlers a subclass registers."""

    name = "projector"

    def __init__(self, handlers: Mapping[EventType, EventHandler]) -> None:
        self._handlers: dict[EventType, EventHandler] = dict(handlers)

    def handles(self, event_type: str) -> bool:
        return event_type in self._handlers

    async def project_event(self, event_type: str, event_data: EventData) -> None:
        handler = self._handlers.get(event_type)  # type: ignore[call-overload]
        if handler is None:
            logger.debug("%s ignores %s", self.name, event_type)
            return
        payload = parse_payload(EventType(event_type), event_data)
        await handler(payload)
