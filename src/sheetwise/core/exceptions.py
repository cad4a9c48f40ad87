"""Sheetwise exception hierarchy.

Errors raised while processing an operation carry a ``code`` that ends up in
``Operation.error.code``; the worker switches on the exception type, never on
the message text.
"""

from __future__ import annotations


class SheetwiseError(Exception):
    """Base exception for all Sheetwise errors."""

    code = "EXTRACTION_ERROR"


class ParseError(SheetwiseError):
    """File or sheet could not be parsed."""

    code = "PARSE_ERROR"


class UnsupportedFormatError(SheetwiseError):
    """No parser can handle the file."""

    code = "UNSUPPORTED_FORMAT"


class LLMError(SheetwiseError):
    """Model inference failed."""

    code = "LLM_ERROR"


class LLMResponseParseError(LLMError):
    """Model answered, but not with the JSON we asked for."""


class ExtractionError(SheetwiseError):
    """Orchestration logic failed."""

    code = "EXTRACTION_ERROR"


class OperationNotFoundError(SheetwiseError):
    """Operation id is unknown or has been evicted."""

    code = "OPERATION_NOT_FOUND"

    def __init__(self, operation_id: str) -> None:
        self.operation_id = operation_id
        super().__init__(f"Operation {operation_id} not found")


class OperationNotCancellableError(SheetwiseError):
    """Cancel requested for an operation already in a terminal state."""

    code = "VALIDATION_ERROR"

    def __init__(self, operation_id: str, status: str) -> None:
        self.operation_id = operation_id
        self.status = status
        super().__init__(
            f"Cannot cancel operation in status '{status}'. "
            "Only 'pending' or 'processing' operations can be cancelled."
        )


class OperationCancelled(Exception):
    """Raised at a worker checkpoint once the operation has been cancelled.

    Not a ``SheetwiseError``; the worker never records it as a failure.
    """

    def __init__(self, operation_id: str) -> None:
        self.operation_id = operation_id
        super().__init__(f"Operation {operation_id} cancelled")
