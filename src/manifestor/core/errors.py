"""
Error types for artifact collection, page assembly, and schema validation.
"""

from dataclasses import dataclass
from typing import Any, Optional


class ManifestorError(Exception):
    """Base exception for all manifestor errors."""

    def __init__(self, message: str, context: Optional["ErrorContext"] = None):
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context if available."""
        if self.context:
            return f"{self.context.format()}\n{self.message}"
        return self.message


class ResolutionError(ManifestorError):
    """
    Raised when a reference cannot be mapped to a filesystem path.

    Examples:
    - Referenced widget directory does not exist
    - Flow file missing below the flows root
    """

    def __init__(self, message: str, ref: str | None = None):
        self.ref = ref
        super().__init__(message)


class UnknownSchemeError(ResolutionError):
    """Raised when a reference carries a scheme prefix that is not supported."""

    def __init__(self, scheme: str, ref: str):
        self.scheme = scheme
        super().__init__(f'Unknown scheme "{scheme}" in reference "{ref}"', ref)


class ArtifactReadError(ManifestorError):
    """
    Raised when an artifact file exists but cannot be read.

    The underlying ``OSError`` is kept as ``__cause__``.
    """

    def __init__(self, message: str, path: str):
        self.path = path
        super().__init__(message)


class JsonParseError(ManifestorError):
    """Raised when a descriptor or definition is not valid JSON."""

    pass


class PageAssemblyError(ManifestorError):
    """
    Raised when a page cannot be assembled.

    The message is always qualified with the page being loaded:
    ``Error loading page "<page>": <detail>``.
    """

    def __init__(self, page: str, detail: str):
        self.page = page
        self.detail = detail
        super().__init__(f'Error loading page "{page}": {detail}')


class ExtensionCycleError(PageAssemblyError):
    """Raised when a page (indirectly) extends itself."""

    def __init__(self, page: str, chain: list[str]):
        self.chain = chain
        super().__init__(page, f"Cycle in page extension detected: {' -> '.join(chain)}")


class CompositionCycleError(PageAssemblyError):
    """Raised when a composition (indirectly) embeds itself."""

    def __init__(self, page: str, chain: list[str]):
        self.chain = chain
        super().__init__(page, f"Cycle in compositions detected: {' -> '.join(chain)}")


class DuplicateIdError(PageAssemblyError):
    """Raised when two items of an assembled page share an id."""

    def __init__(self, page: str, ids: list[str]):
        self.ids = ids
        super().__init__(page, f"Duplicate widget/composition/layout ID(s): {', '.join(ids)}")


class LayoutConflictError(PageAssemblyError):
    """Raised when an extending page sets a layout its base page already sets."""

    def __init__(self, page: str, base_page: str):
        self.base_page = base_page
        super().__init__(page, f'Page overwrites layout set by base page "{base_page}"')


class InsertBeforeIdError(PageAssemblyError):
    """Raised when ``insertBeforeId`` names an item that does not exist."""

    def __init__(self, page: str, insert_before_id: str):
        self.insert_before_id = insert_before_id
        super().__init__(
            page, f'No id found that matches insertBeforeId value "{insert_before_id}"'
        )


class ExpressionError(ManifestorError):
    """Raised for composition expressions that no pattern knows how to expand."""

    def __init__(self, expression: str):
        self.expression = expression
        super().__init__(f'Expression "{expression}" cannot be expanded here')


class SchemaError(ManifestorError):
    """Raised when a JSON schema shipped with an artifact cannot be compiled."""

    pass


class SchemaValidationError(ManifestorError):
    """
    Raised when a document does not match its JSON schema.

    Attributes:
        issues: One entry per violation with ``pointer``, ``message`` and ``params``
    """

    def __init__(self, message: str, issues: list[dict[str, Any]] | None = None):
        self.issues = issues or []
        super().__init__(message)


@dataclass
class ErrorContext:
    """
    Context information for an error, including source location.

    Attributes:
        file: Path to the file where the error occurred
        line: Line number (1-indexed)
        column: Column number (1-indexed)
        snippet: Optional excerpt of the offending line
    """

    file: str
    line: int
    column: int
    snippet: str | None = None

    def format(self) -> str:
        """
        Format error context as a human-readable string.

        Returns:
            Formatted string like: "widgets/foo/widget.json:10:5"
        """
        location = f"{self.file}:{self.line}:{self.column}"
        if self.snippet:
            marker = " " * (self.column - 1) + "^^^"
            return f"{location}\n{self.snippet}\n{marker}"
        return location


def make_parse_error(
    message: str,
    file: str,
    line: int,
    column: int,
    snippet: str | None = None,
) -> JsonParseError:
    """
    Helper to create a JsonParseError with context.

    Args:
        message: Error description
        file: Source file path
        line: Line number (1-indexed)
        column: Column number (1-indexed)
        snippet: Optional source line

    Returns:
        JsonParseError with context attached
    """
    context = ErrorContext(file=file, line=line, column=column, snippet=snippet)
    return JsonParseError(message, context)
