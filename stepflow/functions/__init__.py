"""Registry of the async functions that workflow steps invoke."""

from __future__ import annotations

import inspect
import logging
from importlib import import_module
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

from ..exceptions import UnknownFunctionError

logger = logging.getLogger(__name__)

StepFunction = Callable[[Any], Awaitable[Any]]


class FunctionRegistry:
    """Maps function names to async single-argument callables.

    Callables are checked when they are registered; lookups happen lazily,
    once per step invocation.
    """

    def __init__(self) -> None:
        self._functions: Dict[str, StepFunction] = {}

    def add(self, name: str, func: StepFunction) -> StepFunction:
        """Register ``func`` under ``name``."""
        if not name:
            raise ValueError("function name must be a non-empty string")
        if not inspect.iscoroutinefunction(func):
            raise TypeError(f"Step function {name!r} must be an async function")
        if name in self._functions and self._functions[name] is not func:
            raise ValueError(f"Step function {name!r} is already registered")
        self._functions[name] = func
        logger.debug(f"Registered step function {name}")
        return func

    def register(
        self, name: Optional[str] = None
    ) -> Callable[[StepFunction], StepFunction]:
        """Decorator registering a function, by default under its ``__name__``."""

        def decorator(func: StepFunction) -> StepFunction:
            return self.add(name or func.__name__, func)

        return decorator

    def resolve(self, name: str) -> StepFunction:
        """Return the function registered as ``name``.

        Raises:
            UnknownFunctionError: If nothing is registered under ``name``.
        """
        try:
            return self._functions[name]
        except KeyError:
            raise UnknownFunctionError(name) from None

    def names(self) -> List[str]:
        return sorted(self._functions)

    def __contains__(self, name: object) -> bool:
        return name in self._functions

    def __len__(self) -> int:
        return len(self._functions)


# Process-wide default registry. Modules holding step functions register into
# it at import time via ``@FUNCTIONS.register(...)``.
FUNCTIONS = FunctionRegistry()


def load_function_modules(modules: Iterable[str]) -> None:
    """Import each dotted module path so its functions register themselves."""
    for module_name in modules:
        import_module(module_name)
        logger.debug(f"Loaded step functions from {module_name}")


__all__ = ["FUNCTIONS", "FunctionRegistry", "StepFunction", "load_function_modules"]
