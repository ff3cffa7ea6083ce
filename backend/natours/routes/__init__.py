# Routes package init
"""
Natours Backend — Route Groups
===============================

What:  Dispatch of guarded requests to the route group owning a URL prefix.
Why:   The domain handlers (tours, users, reviews, bookings, rendered views)
       are external collaborators; this package only decides who gets a
       request and in which order groups are tried.
How:   A RouteGroup pairs a prefix with an APIRouter. Groups are mounted in
       declared order, then the fallback route claims everything else.

Declared order:
    views     ""                  rendered pages
    tours     /api/v1/tours
    users     /api/v1/users
    reviews   /api/v1/reviews
    bookings  /api/v1/bookings
    fallback  /{anything}         → 404 AppError

Route Inventory (bundled placeholder groups):
    - views.py:     GET  /                      overview page
    - resources.py: GET  /api/v1/<resource>      guarded query echo
                    POST /api/v1/<resource>      guarded body echo
                    GET  /api/v1/<resource>/{id} guarded params echo
    - fallback.py:  *    /{path}                 404
"""

from dataclasses import dataclass
from typing import List, Sequence

from fastapi import APIRouter, FastAPI

from natours.routes import resources, views

API_PREFIX = "/api/v1"


@dataclass(frozen=True)
class RouteGroup:
    """An external collaborator owning every route under `prefix`."""

    name: str
    prefix: str
    router: APIRouter


def default_route_groups() -> List[RouteGroup]:
    return [
        RouteGroup("views", "", views.router),
        RouteGroup("tours", f"{API_PREFIX}/tours", resources.build_resource_router("tours")),
        RouteGroup("users", f"{API_PREFIX}/users", resources.build_resource_router("users")),
        RouteGroup("reviews", f"{API_PREFIX}/reviews", resources.build_resource_router("reviews")),
        RouteGroup("bookings", f"{API_PREFIX}/bookings", resources.build_resource_router("bookings")),
    ]


def mount_route_groups(app: FastAPI, groups: Sequence[RouteGroup]) -> None:
    """
    Includes each group's router under its prefix, in declared order.

    Raises:
        ValueError: if two groups claim the same prefix.
    """
    seen = {}
    for group in groups:
        prefix = group.prefix.rstrip("/")
        if prefix in seen:
            raise ValueError(
                f"Route groups '{seen[prefix]}' and '{group.name}' both claim prefix '{prefix or '/'}'"
            )
        seen[prefix] = group.name
        app.include_router(group.router, prefix=prefix)


__all__ = ["API_PREFIX", "RouteGroup", "default_route_groups", "mount_route_groups"]
