"""Typed access to Keycloak role claims.

Keycloak puts realm roles under ``realm_access.roles``. Tokens from other
clients, or hand-crafted ones, may omit the object or give it a different
shape, so every level is checked and a missing path yields no roles.
"""
from __future__ import annotations
from typing import Any, Mapping, Optional


def realm_roles(claims: Optional[Mapping[str, Any]]) -> frozenset[str]:
    """Return the realm roles in ``claims``, or an empty set."""
    if not isinstance(claims, Mapping):
        return frozenset()
    realm_access = claims.get("realm_access")
    if not isinstance(realm_access, Mapping):
        return frozenset()
    roles = realm_access.get("roles")
    if not isinstance(roles, (list, tuple)):
        return frozenset()
    return frozenset(role for role in roles if isinstance(role, str))


def has_role(claims: Optional[Mapping[str, Any]], role: str) -> bool:
    """Check for an exact (case-sensitive) realm role."""
    return role in realm_roles(claims)
