"""Custom exception hierarchy for docshelf.

Every error raised by the core carries a stable machine-readable code and a
suggested HTTP status so the transport layer can translate it without
inspecting messages.
"""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(str, Enum):
    """Standardized error codes."""

    # Not found
    DOCUMENT_NOT_FOUND = "DOCUMENT_NOT_FOUND"
    CATEGORY_NOT_FOUND = "CATEGORY_NOT_FOUND"
    VERSION_NOT_FOUND = "VERSION_NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    AREA_NOT_FOUND = "AREA_NOT_FOUND"
    SHARE_NOT_FOUND = "SHARE_NOT_FOUND"

    # Authorization
    FORBIDDEN = "FORBIDDEN"

    # Conflicts
    CONFLICT = "CONFLICT"

    # Invalid input
    INVALID_INPUT = "INVALID_INPUT"
    EMPTY_FOLDER = "EMPTY_FOLDER"
    CATEGORY_NOT_EMPTY = "CATEGORY_NOT_EMPTY"
    DOCUMENT_DELETED = "DOCUMENT_DELETED"

    # Generic errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    DATABASE_UNAVAILABLE = "DATABASE_UNAVAILABLE"


class DocShelfError(Exception):
    """
    Base exception for all docshelf errors.

    Provides structured error information with:
    - Human-readable message
    - Machine-readable error code
    - Suggested HTTP status code
    - Optional additional details
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize exception.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            status_code: HTTP status code the transport layer should use
            details: Optional additional context/details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to a dictionary for serialization.

        Returns:
            Dictionary with error, message, and details fields
        """
        return {
            "error": self.error_code.value,
            "message": self.message,
            "details": self.details
        }


# ---------------------------------------------------------------------------
# NotFound family
# ---------------------------------------------------------------------------

class NotFoundError(DocShelfError):
    """Base class for missing entities."""

    def __init__(self, entity: str, entity_id: str, error_code: ErrorCode):
        super().__init__(
            f"{entity} not found: {entity_id}",
            error_code,
            status_code=404,
            details={f"{entity.lower()}_id": entity_id}
        )


class DocumentNotFoundError(NotFoundError):
    """Document not found in database."""

    def __init__(self, document_id: str):
        super().__init__("Document", document_id, ErrorCode.DOCUMENT_NOT_FOUND)


class CategoryNotFoundError(NotFoundError):
    """Category not found in database."""

    def __init__(self, category_id: str):
        super().__init__("Category", category_id, ErrorCode.CATEGORY_NOT_FOUND)


class UserNotFoundError(NotFoundError):
    """User not found (by id or by email)."""

    def __init__(self, user_ref: str):
        super().__init__("User", user_ref, ErrorCode.USER_NOT_FOUND)


class AreaNotFoundError(NotFoundError):
    """Area not found in database."""

    def __init__(self, area_id: str):
        super().__init__("Area", area_id, ErrorCode.AREA_NOT_FOUND)


class VersionNotFoundError(DocShelfError):
    """Version number does not exist for the document."""

    def __init__(self, document_id: str, version: int):
        super().__init__(
            f"Version {version} not found for document {document_id}",
            ErrorCode.VERSION_NOT_FOUND,
            status_code=404,
            details={"document_id": document_id, "version": version}
        )


class ShareNotFoundError(DocShelfError):
    """No share row exists for the document/user pair."""

    def __init__(self, document_id: str, user_id: str):
        super().__init__(
            f"Document {document_id} is not shared with user {user_id}",
            ErrorCode.SHARE_NOT_FOUND,
            status_code=404,
            details={"document_id": document_id, "user_id": user_id}
        )


# ---------------------------------------------------------------------------
# Forbidden / Conflict
# ---------------------------------------------------------------------------

class ForbiddenError(DocShelfError):
    """Authenticated user lacks permission for the requested action."""

    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(
            message,
            ErrorCode.FORBIDDEN,
            status_code=403,
        )


class ConflictError(DocShelfError):
    """A uniquely named entity already exists."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message,
            ErrorCode.CONFLICT,
            status_code=409,
            details=details
        )


class CategoryNameConflictError(ConflictError):
    """Sibling category with the same name already exists."""

    def __init__(self, name: str, parent_id: Optional[str]):
        super().__init__(
            f"A category named '{name}' already exists here",
            details={"name": name, "parent_id": parent_id}
        )


class AreaNameConflictError(ConflictError):
    """Area with the same name already exists."""

    def __init__(self, name: str):
        super().__init__(
            f"An area named '{name}' already exists",
            details={"name": name}
        )


# ---------------------------------------------------------------------------
# InvalidInput family
# ---------------------------------------------------------------------------

class InvalidInputError(DocShelfError):
    """Validation failed for caller input."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.INVALID_INPUT,
        details: Optional[Dict[str, Any]] = None,
    ):
        merged = dict(details or {})
        if field:
            merged["field"] = field
        super().__init__(
            message,
            error_code,
            status_code=400,
            details=merged
        )


class EmptyFolderError(InvalidInputError):
    """Shared folder subtree contains no active documents."""

    def __init__(self, category_id: str):
        super().__init__(
            "The selected folder contains no documents",
            error_code=ErrorCode.EMPTY_FOLDER,
            details={"category_id": category_id},
        )


class CategoryNotEmptyError(InvalidInputError):
    """Category still holds active documents or subcategories."""

    def __init__(self, category_id: str, documents: int, subcategories: int):
        super().__init__(
            "Cannot delete a category that contains active documents or subcategories",
            error_code=ErrorCode.CATEGORY_NOT_EMPTY,
            details={
                "category_id": category_id,
                "active_documents": documents,
                "active_subcategories": subcategories,
            },
        )


class DocumentDeletedError(InvalidInputError):
    """Operation is not allowed on a soft-deleted document."""

    def __init__(self, document_id: str):
        super().__init__(
            f"Document {document_id} is deleted",
            error_code=ErrorCode.DOCUMENT_DELETED,
            details={"document_id": document_id},
        )


# ---------------------------------------------------------------------------
# Internal
# ---------------------------------------------------------------------------

class InternalError(DocShelfError):
    """Unexpected repository failure. Never carries the underlying detail."""

    def __init__(self, message: str = "Internal error"):
        super().__init__(
            message,
            ErrorCode.INTERNAL_ERROR,
            status_code=500,
        )


class DatabaseUnavailableError(DocShelfError):
    """The configured database could not be reached at startup."""

    def __init__(self, masked_url: str):
        super().__init__(
            f"Cannot connect to database at {masked_url}",
            ErrorCode.DATABASE_UNAVAILABLE,
            status_code=503,
            details={"database_url": masked_url},
        )
