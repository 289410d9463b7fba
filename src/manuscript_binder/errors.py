"""Exceptions raised by the binder tree model."""


class BinderError(Exception):
    """Base class for all binder errors."""


class NotFound(BinderError):
    """An operation referenced an unknown item id."""

    def __init__(self, item_id: str) -> None:
        self.item_id = item_id
        super().__init__(f"Item not found: {item_id!r}")


class InvalidParent(BinderError):
    """A create/move target does not exist or would form a cycle."""

    def __init__(self, item_id: str | None, reason: str) -> None:
        self.item_id = item_id
        self.reason = reason
        super().__init__(f"Invalid parent {item_id!r}: {reason}")


class IllegalRootOperation(BinderError):
    """Attempt to move, delete or reparent a protected root item."""

    def __init__(self, item_id: str, action: str) -> None:
        self.item_id = item_id
        self.action = action
        super().__init__(f"Cannot {action} root item {item_id!r}")


class SnapshotError(BinderError):
    """A persisted binder failed referential integrity checks."""

    def __init__(self, problems: list[str]) -> None:
        self.problems = problems
        super().__init__("Invalid snapshot: " + "; ".join(problems))
