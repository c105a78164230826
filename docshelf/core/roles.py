"""Organisational roles, share permissions and fine-grained grants."""

from enum import Enum

from ..exceptions import InvalidInputError


class UserRole(str, Enum):
    """Global role of a user.

    normal    - works on own documents and whatever is shared with them
    admin     - manages the users of their own area, restores deleted items
    superuser - manages every area and every role assignment
    """
    NORMAL = "normal"
    ADMIN = "admin"
    SUPERUSER = "superuser"


class SharePermission(str, Enum):
    """Permission stored on a share row. Ownership is never shared."""
    VIEW = "view"
    EDIT = "edit"


# Fine-grained grant letting a normal user create documents and categories.
CREATE_DOCUMENTS = "create_documents"

ADMIN_ROLES = frozenset({UserRole.ADMIN.value, UserRole.SUPERUSER.value})


def is_admin_role(role: str) -> bool:
    return role in ADMIN_ROLES


def parse_share_permission(value) -> SharePermission:
    """Coerce *value* to a SharePermission, raising InvalidInputError otherwise."""
    if isinstance(value, SharePermission):
        return value
    try:
        return SharePermission(value)
    except ValueError:
        raise InvalidInputError(
            f"Invalid permission '{value}'. Must be one of: view, edit",
            field="permission",
        ) from None
