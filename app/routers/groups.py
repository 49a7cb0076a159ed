# =============================================================================
# app/routers/groups.py - API Route Groups
# =============================================================================
# The /api/* handler groups (auth, orders, products, ...) are external
# collaborators. This module only fixes WHERE they are mounted:
#
#   /api/auth         auth            /api/admin        admin
#   /api/orders       orders          /api/apk          apk downloads
#   /api/products     products        /api/creditcards  credit cards
#   /api/users        users           /api/sync         data sync
#
# A group's router receives every method and sub-path under its prefix and
# answers with its own success/error semantics. A group without a router is
# still mounted; requests under it fall through to the 404 handler.
#
# Usage:
#   groups = build_route_groups({"orders": orders_router})
#   app = create_app(route_handlers={"orders": orders_router})
# =============================================================================

from collections.abc import Mapping
from dataclasses import dataclass

from fastapi import APIRouter

# Mount order; names are the keys accepted by build_route_groups()
API_GROUP_PREFIXES: tuple[tuple[str, str], ...] = (
    ("auth", "/api/auth"),
    ("orders", "/api/orders"),
    ("products", "/api/products"),
    ("users", "/api/users"),
    ("admin", "/api/admin"),
    ("apk", "/api/apk"),
    ("creditcards", "/api/creditcards"),
    ("sync", "/api/sync"),
)


class UnknownRouteGroupError(ValueError):
    """Raised when handlers are supplied for a group that has no prefix."""

    def __init__(self, names: list[str]):
        known = ", ".join(name for name, _ in API_GROUP_PREFIXES)
        super().__init__(f"Unknown route group(s): {', '.join(names)} (known: {known})")
        self.names = names


@dataclass(frozen=True)
class RouteGroup:
    """One prefix mount in the route table."""
    name: str
    prefix: str
    router: APIRouter


def build_route_groups(handlers: Mapping[str, APIRouter] | None = None) -> tuple[RouteGroup, ...]:
    """
    Build the frozen API part of the route table.

    Groups are returned longest prefix first, so a more specific prefix
    always wins over one it extends.

    Args:
        handlers: Router per group name; missing groups get an empty router

    Returns:
        Tuple of RouteGroup, ready to mount

    Raises:
        UnknownRouteGroupError: If handlers names a group not in API_GROUP_PREFIXES
    """
    handlers = handlers or {}
    known = {name for name, _ in API_GROUP_PREFIXES}
    unknown = sorted(set(handlers) - known)
    if unknown:
        raise UnknownRouteGroupError(unknown)

    groups = [
        RouteGroup(name=name, prefix=prefix, router=handlers.get(name) or APIRouter())
        for name, prefix in API_GROUP_PREFIXES
    ]
    # Stable sort keeps mount order between prefixes of equal length
    groups.sort(key=lambda group: len(group.prefix), reverse=True)
    return tuple(groups)
