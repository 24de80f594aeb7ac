class MbtError(Exception):
    """Base class for errors raised while resolving a manifest."""


class RepositoryAccessError(MbtError):
    """The repository cannot be opened or read."""


class ObjectLookupError(RepositoryAccessError):
    """A specific object or tree path is missing from the repository."""


class ReferenceResolutionError(MbtError):
    """A branch name or commit SHA does not resolve to a commit."""


class DiffComputationError(MbtError):
    """The merge base or the diff between two commits cannot be computed."""


class MalformedDescriptor(MbtError, ValueError):
    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path

    def __str__(self) -> str:
        message = super().__str__()
        if self.path is None:
            return message
        return f"{self.path or '.'}: {message}"
