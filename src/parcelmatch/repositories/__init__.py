"""Photo and property repositories.

The matching engine runs unchanged on the in-memory stores used in tests
and on the SQLAlchemy repositories used in deployment. The two differ only
in whether their methods return values or coroutines; ``resolve`` hides that.
"""

from __future__ import annotations

import inspect
from typing import Awaitable, TypeVar

T = TypeVar("T")


async def resolve(value: T | Awaitable[T]) -> T:
    """Return a store call's result, awaiting it first when the store is async.

    ::

        record = await resolve(properties.find_by_coordinate_key(key))
    """
    if inspect.isawaitable(value):
        return await value  # type: ignore[return-value]
    return value  # type: ignore[return-value]
