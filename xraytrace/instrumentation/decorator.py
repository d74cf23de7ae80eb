"""@capture decorator for recording a function call as a subsegment."""

from __future__ import annotations

import functools
import inspect
from typing import Any, Callable, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from xraytrace.tracer.recorder import Recorder


def capture(
    name: Optional[str] = None,
    *,
    recorder: Optional["Recorder"] = None,
    namespace: Optional[str] = None,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """
    Decorate a function to record each call as a subsegment.

    - Supports sync and async functions.
    - Exceptions are recorded on the subsegment and re-raised.
    - Uses the process-wide recorder unless one is given.
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        subsegment_name = name or func.__qualname__

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs):
            with _get_recorder(recorder).begin_subsegment(subsegment_name, namespace=namespace):
                return func(*args, **kwargs)

        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            async with _get_recorder(recorder).begin_subsegment(subsegment_name, namespace=namespace):
                return await func(*args, **kwargs)

        return async_wrapper if inspect.iscoroutinefunction(func) else sync_wrapper

    return decorator


def _get_recorder(recorder: Optional["Recorder"]) -> "Recorder":
    if recorder is not None:
        return recorder
    import xraytrace

    return xraytrace.get_recorder()
