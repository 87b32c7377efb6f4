"""Exceptions raised by the kennel store and the directory reconciler."""


class KennelError(Exception):
    """Base class for kennel errors."""


class DirectoryUnreadable(KennelError):
    """The image root (or one of its folders) could not be listed."""

    def __init__(self, path, reason):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read directory {path}: {reason}")


class PersistenceWriteFailure(KennelError):
    """A write to the store failed and was rolled back."""


class ReconcileInProgress(KennelError):
    """Another sync or reset is already running."""


class SeedResetError(KennelError):
    """Resetting to the seed set failed; the previous data was kept."""
