"""Hooks the data-access layer uses to feed the query stat recorder."""

import contextlib
import functools
import inspect
import time
from typing import Any, Callable, Iterator, Optional


@contextlib.contextmanager
def track_operation(recorder, collection: str, operation: str,
                    query: Any = None) -> Iterator[None]:
    """Time the enclosed store call and record it once it completes.

    The sample is recorded whether the call returns or raises; the
    exception itself is propagated unchanged.
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000
        recorder.record(collection, operation, query, elapsed_ms)


def monitored(recorder, collection: str, operation: Optional[str] = None,
              query_arg: Optional[str] = 'query') -> Callable:
    """Decorator form of :func:`track_operation`.

    Works for plain and ``async`` functions and for methods. The recorded
    query is the argument named *query_arg* when it is passed, otherwise
    the first positional argument after ``self`` or ``cls``.
    """
    def decorator(func: Callable) -> Callable:
        op_name = operation or func.__name__
        signature = inspect.signature(func)
        params = list(signature.parameters)
        skip_bound = bool(params) and params[0] in ('self', 'cls')

        def _query_from(args, kwargs):
            try:
                bound = signature.bind_partial(*args, **kwargs)
            except TypeError:
                return None
            if query_arg and query_arg in bound.arguments:
                return bound.arguments[query_arg]
            positional = args[1:] if skip_bound else args
            return positional[0] if positional else None

        if inspect.iscoroutinefunction(func):
            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                with track_operation(recorder, collection, op_name, _query_from(args, kwargs)):
                    return await func(*args, **kwargs)
            return async_wrapper

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            with track_operation(recorder, collection, op_name, _query_from(args, kwargs)):
                return func(*args, **kwargs)
        return wrapper

    return decorator
