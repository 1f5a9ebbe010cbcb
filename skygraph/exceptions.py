"""
Skygraph Exceptions and Error Utilities

File Purpose: Centralized exception types for the graph analytics engine
Primary Classes/Functions: SkygraphError, GraphIntegrityError, ConfigurationError, CancellationError, handle_error
Inputs and Outputs (I/O): Accepts exceptions and console; prints user-friendly messages
"""

from typing import Optional

from rich.console import Console


class SkygraphError(Exception):
    """Base exception for all Skygraph-specific errors."""

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        self.message = message
        self.details = details
        self.original_error = original_error
        super().__init__(message)


class GraphIntegrityError(SkygraphError):
    """Raised when graph input violates a structural invariant."""

    pass


class ConfigurationError(SkygraphError):
    """Raised when an option is outside its valid range."""

    pass


class CancellationError(SkygraphError):
    """Raised when a caller aborts a computation in flight."""

    def __init__(self, message: str, stage: Optional[str] = None, **kwargs):
        self.stage = stage
        super().__init__(message, **kwargs)


def handle_error(
    console: Console,
    error: Exception,
    operation: str,
    show_details: bool = False,
    reraise: bool = False,
) -> None:
    """
    Standardized error handling function.

    Args:
        console: Rich console for output
        error: The exception that occurred
        operation: Description of the operation that failed
        show_details: Whether to show detailed error information
        reraise: Whether to re-raise the exception after handling
    """
    if isinstance(error, SkygraphError):
        console.print(f"[red]{operation} failed: {error.message}[/]")
        if show_details and error.details:
            console.print(f"[dim]   Details: {error.details}[/]")
        if show_details and isinstance(error, CancellationError) and error.stage:
            console.print(f"[dim]   Stage: {error.stage}[/]")
        if show_details and error.original_error:
            console.print(f"[dim]   Original error: {error.original_error}[/]")
    else:
        console.print(f"[red]{operation} failed: {str(error)}[/]")
        if show_details:
            console.print(f"[dim]   Error type: {type(error).__name__}[/]")

    if reraise:
        raise error
