"""
Name-to-identifier resolution against platform collections.

Domains, spaces, and applications are named by users but addressed by
identifier in every mutating call. Resolution walks the (server-side
filtered) collection lazily and takes the first resource whose name
matches exactly.
"""

import logging
from collections.abc import AsyncIterator, Callable
from typing import Any, TypeVar

from route_orchestrator.errors import ResourceNotFoundError
from route_orchestrator.logging_config import get_structured_logger
from route_orchestrator.models.resources import NamedResource
from route_orchestrator.pagination import first_item

logger: logging.LoggerAdapter[Any] = get_structured_logger(__name__)

R = TypeVar("R", bound=NamedResource)


def _matching(
    resources: AsyncIterator[R],
    name: str,
    predicate: Callable[[R], bool] | None,
) -> AsyncIterator[R]:
    async def _filtered() -> AsyncIterator[R]:
        try:
            async for resource in resources:
                if resource.name != name:
                    continue
                if predicate is not None and not predicate(resource):
                    continue
                yield resource
        finally:
            aclose = getattr(resources, "aclose", None)
            if aclose is not None:
                await aclose()

    return _filtered()


async def find_named(
    resources: AsyncIterator[R],
    name: str,
    predicate: Callable[[R], bool] | None = None,
) -> R | None:
    """Return the first resource named ``name``, or ``None``.

    When several resources share the name, the first one in collection
    order wins.

    Args:
        resources: Lazy sequence of candidates.
        name: Exact name to match.
        predicate: Optional extra filter (e.g. domain visibility).
    """
    return await first_item(_matching(resources, name, predicate))


async def resolve(
    resources: AsyncIterator[R],
    kind: str,
    name: str,
    predicate: Callable[[R], bool] | None = None,
) -> R:
    """Resolve a name to its resource or fail.

    Args:
        resources: Lazy sequence of candidates.
        kind: Resource kind used in the error message (``"Domain"``, ...).
        name: Exact name to match.
        predicate: Optional extra filter.

    Returns:
        The first matching resource.

    Raises:
        ResourceNotFoundError: If no resource matches after all pages.
    """
    resource = await find_named(resources, name, predicate)
    if resource is None:
        logger.info(
            "Resource not found",
            extra={"extra_data": {"kind": kind, "name": name}},
        )
        raise ResourceNotFoundError(kind, name)
    logger.debug(
        "Resource resolved",
        extra={"extra_data": {"kind": kind, "name": name, "id": resource.id}},
    )
    return resource


async def resolve_id(
    resources: AsyncIterator[R],
    kind: str,
    name: str,
    predicate: Callable[[R], bool] | None = None,
) -> str:
    """Resolve a name to its identifier. See :func:`resolve`."""
    resource = await resolve(resources, kind, name, predicate)
    return resource.id
