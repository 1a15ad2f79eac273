from typing import Any, List, Optional

from query_handlers.errors import UnsupportedQueryError
from query_handlers.interface import ExecutionContext, RemoteHandle, WaitForSelectorOptions
from query_handlers.iterator import dispose_quietly
from query_handlers.registry import QueryHandlerRegistry, default_registry


def _registry(registry: Optional[QueryHandlerRegistry]) -> QueryHandlerRegistry:
    return registry if registry is not None else default_registry


async def query_selector(
    root: RemoteHandle,
    selector: str,
    registry: Optional[QueryHandlerRegistry] = None
) -> Optional[RemoteHandle]:
    """Find the first element under `root` matching `selector`, or None."""
    updated_selector, handler = _registry(registry).get_handler_and_selector(selector)
    if handler.query_one is None:
        raise UnsupportedQueryError(f"Cannot query for a single element with selector '{selector}'")
    return await handler.query_one(root, updated_selector)


async def query_selector_all(
    root: RemoteHandle,
    selector: str,
    registry: Optional[QueryHandlerRegistry] = None
) -> List[RemoteHandle]:
    """Find every element under `root` matching `selector`. The caller owns the handles."""
    updated_selector, handler = _registry(registry).get_handler_and_selector(selector)
    if handler.query_all is None:
        raise UnsupportedQueryError(f"Cannot query for all elements with selector '{selector}'")

    elements: List[RemoteHandle] = []
    try:
        async with handler.query_all(root, updated_selector) as iterator:
            async for element in iterator:
                elements.append(element)
    except BaseException:
        for element in elements:
            await dispose_quietly(element)
        raise
    return elements


async def query_selector_all_eval(
    root: RemoteHandle,
    selector: str,
    page_function: str,
    *args: Any,
    registry: Optional[QueryHandlerRegistry] = None
) -> Any:
    """
    Run `page_function(elements, *args)` in the page over every match and return its result.

    The matches are passed to the function as an array without creating a
    handle per element.
    """
    updated_selector, handler = _registry(registry).get_handler_and_selector(selector)
    if handler.query_all_array is None:
        raise UnsupportedQueryError(f"Cannot query for all elements with selector '{selector}'")

    collection = await handler.query_all_array(root, updated_selector)
    try:
        return await collection.evaluate(
            f"(collection, ...args) => ({page_function})(Array.from(collection), ...args)",
            *args
        )
    finally:
        await collection.dispose()


async def wait_for_selector(
    context: ExecutionContext,
    selector: str,
    options: Optional[WaitForSelectorOptions] = None,
    registry: Optional[QueryHandlerRegistry] = None
) -> Optional[RemoteHandle]:
    """
    Wait until `selector` matches inside `context`.

    Returns the element, or None when waiting for `hidden` and nothing matches.
    """
    updated_selector, handler = _registry(registry).get_handler_and_selector(selector)
    if handler.wait_for is None:
        raise UnsupportedQueryError(f"Cannot wait for selector '{selector}'")
    return await handler.wait_for(context, updated_selector, options or WaitForSelectorOptions())
