"""Protocols for dependency injection in the binder."""

from typing import Protocol, runtime_checkable

from manuscript_binder.models.item import ChangeEvent


@runtime_checkable
class IdFactory(Protocol):
    """Protocol for item id generators."""

    def __call__(self) -> str:
        """Return a new, previously unused item id."""
        ...


@runtime_checkable
class ChangeListener(Protocol):
    """Protocol for observers notified after each binder mutation."""

    def __call__(self, event: ChangeEvent) -> None:
        """Handle a change notification."""
        ...
