from typing import Optional


class AsarError(Exception):
    """Base class for asarfile-specific errors."""


class AsarIOError(AsarError, OSError):
    """A read, write, open or create failed; ``path`` names the file involved."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.path = path

    def __str__(self) -> str:
        if self.path is None:
            return self.message
        return f"{self.message}: {self.path}"


class HeaderParseError(AsarError, ValueError):
    """The archive header is malformed; ``entity`` names the offending entry when known."""

    def __init__(self, message: str, entity: Optional[str] = None):
        super().__init__(message)
        self.entity = entity


class InvalidContentTypeError(AsarError):
    pass
