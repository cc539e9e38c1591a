"""Exception types raised by the reference generator."""

from pathlib import Path
from typing import Union


class MarkdownReferenceError(Exception):
    """Base class for every error raised by markdown_reference."""


class NothingToRenderError(MarkdownReferenceError):
    """Raised when no selected export carries any documentation."""

    def __init__(
        self,
        message: str = "No reference to generate, please check that your code has JSDoc",
    ) -> None:
        super().__init__(message)


class SourceLoadError(MarkdownReferenceError):
    """Raised when the type oracle cannot load a source file."""

    def __init__(self, path: Union[str, Path], reason: str) -> None:
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Cannot load source file {self.path}: {reason}")


class ConfigError(MarkdownReferenceError):
    """Raised when the run configuration cannot be interpreted."""
