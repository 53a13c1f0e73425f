"""
Typed errors raised by the mutation engine.

Every engine failure is a FormBuilderError carrying a stable ErrorCode.
These are caller errors (bad coordinates, wrong shape, unknown type);
they are never recovered inside the engine.
"""

from enum import Enum


class ErrorCode(Enum):
    """Closed set of engine failure codes."""

    INVALID_STEP_INDEX = "INVALID_STEP_INDEX"
    INVALID_FIELD_INDEX = "INVALID_FIELD_INDEX"
    INVALID_NESTED_INDEX = "INVALID_NESTED_INDEX"
    UNKNOWN_FIELD_TYPE = "UNKNOWN_FIELD_TYPE"
    TEMPLATE_NOT_FOUND = "TEMPLATE_NOT_FOUND"
    EMPTY_TEMPLATE = "EMPTY_TEMPLATE"
    NOT_MULTI_STEP_FORM = "NOT_MULTI_STEP_FORM"
    CANNOT_REMOVE_LAST_STEP = "CANNOT_REMOVE_LAST_STEP"
    FORM_ARRAY_NOT_FOUND = "FORM_ARRAY_NOT_FOUND"
    CANNOT_DELETE_FIRST_ENTRY = "CANNOT_DELETE_FIRST_ENTRY"
    NOT_SUPPORTED_MODE = "NOT_SUPPORTED_MODE"
    ENTRY_NOT_FOUND = "ENTRY_NOT_FOUND"
    INVALID_PERMUTATION = "INVALID_PERMUTATION"


class FormBuilderError(Exception):
    """
    Raised when a mutation cannot be applied to the document.

    Properties:
        code: ErrorCode identifying the failure
    """

    def __init__(self, message: str, code: ErrorCode):
        super().__init__(message)
        self.code = code

    def __repr__(self) -> str:
        return f"FormBuilderError({self.code.value}: {self})"


__all__ = ["ErrorCode", "FormBuilderError"]
