import logging
from typing import Dict, List, Mapping, Optional, Tuple

from query_handlers.engines import BUILTIN_HANDLERS, DEFAULT_HANDLER
from query_handlers.errors import DuplicateNameError, InvalidNameError, UnknownEngineError
from query_handlers.handler import CustomQueryHandler, InternalQueryHandler, create_internal_query_handler
from query_handlers.selector import is_valid_engine_name, parse_selector

logger = logging.getLogger(__name__)


class QueryHandlerRegistry:
    """
    Maps engine names to query handlers.

    Built-in engines are fixed at construction and can never be replaced or
    removed. Custom engines are added with `register` and removed with
    `unregister` or `clear`. Selectors without an engine prefix use the
    unnamed default handler.
    """

    def __init__(
        self,
        builtin_handlers: Optional[Mapping[str, CustomQueryHandler]] = None,
        default_handler: CustomQueryHandler = DEFAULT_HANDLER
    ) -> None:
        self._default_handler = create_internal_query_handler(default_handler)
        self._builtin_handlers: Dict[str, InternalQueryHandler] = {
            name: create_internal_query_handler(handler)
            for name, handler in (builtin_handlers or {}).items()
        }
        self._handlers: Dict[str, InternalQueryHandler] = dict(self._builtin_handlers)

    @classmethod
    def with_builtins(cls) -> 'QueryHandlerRegistry':
        """Create a registry holding the standard `aria` and `pierce` engines."""
        return cls(BUILTIN_HANDLERS)

    @property
    def default_handler(self) -> InternalQueryHandler:
        return self._default_handler

    def builtin_names(self) -> List[str]:
        return list(self._builtin_handlers)

    def register(self, name: str, handler: CustomQueryHandler) -> None:
        """Register a custom engine under `name`."""
        if name in self._handlers:
            raise DuplicateNameError(name)
        if not is_valid_engine_name(name):
            raise InvalidNameError(name)
        if not isinstance(handler, CustomQueryHandler):
            raise TypeError(f"Expected a CustomQueryHandler, got {type(handler).__name__}")

        internal_handler = create_internal_query_handler(handler)
        self._handlers[name] = internal_handler
        logger.debug(f"Registered custom query handler '{name}'")

    def unregister(self, name: str) -> None:
        """Remove a custom engine. Unknown and built-in names are ignored."""
        if name in self._handlers and name not in self._builtin_handlers:
            del self._handlers[name]
            logger.debug(f"Unregistered custom query handler '{name}'")

    def custom_names(self) -> List[str]:
        return [name for name in self._handlers if name not in self._builtin_handlers]

    def clear(self) -> None:
        """Unregister every custom engine."""
        for name in self.custom_names():
            self.unregister(name)

    def get(self, name: str) -> Optional[InternalQueryHandler]:
        return self._handlers.get(name)

    def get_handler_and_selector(self, selector: str) -> Tuple[str, InternalQueryHandler]:
        """
        Resolve `selector` to (selector for the engine, engine handler).

        Raises:
            UnknownEngineError: if the selector names an engine that is not registered
        """
        name, updated_selector = parse_selector(selector)
        if name is None:
            return updated_selector, self._default_handler

        handler = self._handlers.get(name)
        if handler is None:
            raise UnknownEngineError(name)
        logger.debug(f"Resolved selector '{selector}' to engine '{name}'")
        return updated_selector, handler


# Shared by the whole process.
default_registry = QueryHandlerRegistry.with_builtins()


def register_custom_query_handler(name: str, handler: CustomQueryHandler) -> None:
    """
    Register a selector engine usable as `name/selector`.

    Raises:
        DuplicateNameError: if `name` is already registered (built-in engines included)
        InvalidNameError: if `name` contains anything other than [a-zA-Z]
    """
    default_registry.register(name, handler)


def unregister_custom_query_handler(name: str) -> None:
    default_registry.unregister(name)


def custom_query_handler_names() -> List[str]:
    return default_registry.custom_names()


def clear_custom_query_handlers() -> None:
    default_registry.clear()


def get_query_handler_and_selector(selector: str) -> Tuple[str, InternalQueryHandler]:
    # Used by the query entry points, not meant for callers.
    return default_registry.get_handler_and_selector(selector)
