"""Domain errors raised by the process board services."""


class ProcessBoardError(RuntimeError):
    """Base error for process, namespace and resource operations."""


class InvalidPayload(ProcessBoardError):
    """Raised when a request carries no usable or an inconsistent field set."""


class DuplicateProcessName(ProcessBoardError):
    """Raised when a process name is already held by another active process."""

    def __init__(self, name: str):
        super().__init__(f"Process '{name}' already exists")
        self.name = name


class NamespaceConflict(ProcessBoardError):
    """Raised when reconciling would move namespaces owned by another process."""
