"""Exceptions raised by the projection layer."""

from __future__ import annotations


class ProjectionError(Exception):
    """An event could not be fully projected; the caller should redeliver it."""

    def __init__(self, message: str, *, event_type: str = "", projector: str = "") -> None:
        super().__init__(message)
        self.event_type = event_type
        self.projector = projector


class EventPayloadError(ProjectionError):
    """The event data does not match the payload schema for its type."""
