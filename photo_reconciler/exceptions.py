"""Exceptions raised by photo reconciliation operations."""


class ReconcileError(Exception):
    """Base class for reconciliation errors."""


class BadPathError(ReconcileError):
    """A supplied path or glob resolves to nothing or to an inaccessible entry."""

    def __init__(self, path, reason: str = "no matching files"):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Bad path {self.path}: {reason}")


class TimestampParseError(ReconcileError):
    """A sanitized capture-time string could not be parsed."""

    def __init__(self, path, raw_value: str, sanitized: str):
        self.path = str(path)
        self.raw_value = raw_value
        self.sanitized = sanitized
        super().__init__(
            f"Cannot parse capture time for {self.path}: {sanitized!r} (raw {raw_value!r})"
        )


class CollisionCreateError(ReconcileError):
    """A relocation into a shared destination landed on an existing name."""

    def __init__(self, source, destination):
        self.source = str(source)
        self.destination = str(destination)
        super().__init__(f"Cannot move {self.source}: {self.destination} already exists")


class ExternalCapabilityFailure(ReconcileError):
    """The external metadata capability failed or is unavailable."""
