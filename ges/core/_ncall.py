from __future__ import annotations

from typing import Any, Callable


class NCall:
    """Native client call.

    Exceptions raised by the native function are translated through
    ``error_map``. A mapped value is either an error class, raised with
    the native error text, or a callable building the error from the
    native exception.
    """

    function: Callable
    args: dict[str, Any] | list[Any] | None
    nargs: dict[str, Any] | None
    error_map: dict[Any, Any] | None

    def __init__(
        self,
        function: Callable,
        args: dict[str, Any] | list | None = None,
        nargs: dict[str, Any] | None = None,
        error_map: dict[Any, Any] | None = None,
    ):
        self.function = function
        self.args = args
        self.nargs = nargs
        self.error_map = error_map

    def invoke(self) -> Any:
        args = self.args if self.args is not None else dict()
        nargs = self.nargs if self.nargs is not None else dict()
        try:
            if isinstance(args, dict):
                return self.function(**(args | nargs))
            return self.function(*args, **nargs)
        except Exception as e:
            target = self._find(e)
            if target is None:
                raise
            if isinstance(target, type) and issubclass(target, Exception):
                raise target(str(e)) from e
            raise target(e) from e

    def _find(self, error: Exception) -> Any:
        if self.error_map is None:
            return None
        # most specific class first
        for cls in type(error).__mro__:
            if cls in self.error_map:
                return self.error_map[cls]
        return None
