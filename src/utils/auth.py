"""
Authorization utilities for checking Cognito group membership.

Group claims arrive on the AppSync identity already verified by Cognito;
nothing here re-validates the token.
"""

from typing import Any, List, Mapping, Optional

# Handle both Lambda (absolute) and unit test (relative) imports
try:  # pragma: no cover
    from utils.errors import Unauthorized  # type: ignore[import-not-found]
    from utils.logging import get_logger  # type: ignore[import-not-found]
except ModuleNotFoundError:  # pragma: no cover
    from .errors import Unauthorized
    from .logging import get_logger

# Initialize logger
logger = get_logger(__name__)

ADMIN_GROUP = "Admin"


def get_group_claims(identity: Optional[Mapping[str, Any]]) -> Optional[List[str]]:
    """
    Extract the caller's group memberships from an AppSync identity.

    Reads ``identity["groups"]`` and falls back to the ``cognito:groups``
    JWT claim.

    Args:
        identity: AppSync identity, or None for anonymous callers

    Returns:
        List of group names, or None if the identity carries no group claims
    """
    if not identity:
        return None

    groups = identity.get("groups")
    if groups is None:
        claims = identity.get("claims") or {}
        groups = claims.get("cognito:groups")
    if groups is None:
        return None

    # cognito:groups can be a string or list in JWT
    if isinstance(groups, str):
        return [groups]
    return [group for group in groups if isinstance(group, str)]


def is_member(identity: Optional[Mapping[str, Any]], group_name: str) -> bool:
    """
    Check whether the caller belongs to a Cognito group.

    Exact, case-sensitive match against the caller's group claims.

    Args:
        identity: AppSync identity, or None for anonymous callers
        group_name: Group to look for (e.g. "Admin")

    Returns:
        True if caller is in the group, False otherwise
    """
    groups = get_group_claims(identity)
    if groups is None:
        return False
    return group_name in groups


def require_group(identity: Optional[Mapping[str, Any]], group_name: str) -> None:
    """
    Require caller to be in a group or raise Unauthorized.

    Args:
        identity: AppSync identity, or None for anonymous callers
        group_name: Required group

    Raises:
        Unauthorized: If caller is not a member of the group
    """
    if is_member(identity, group_name):
        return

    username = identity.get("username") if identity else None
    logger.warning("Caller is not authorized", username=username, requiredGroup=group_name)
    raise Unauthorized(
        f"Caller must be a member of the {group_name} group",
        {"requiredGroup": group_name},
    )
