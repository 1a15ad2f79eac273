from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from query_handlers.interface import ExecutionContext, RemoteHandle, WaitForSelectorOptions
from query_handlers.iterator import RemoteIterator

QueryOne = Callable[[RemoteHandle, str], Awaitable[Optional[RemoteHandle]]]
QueryAll = Callable[[RemoteHandle, str], RemoteIterator]
QueryAllArray = Callable[[RemoteHandle, str], Awaitable[RemoteHandle]]
WaitFor = Callable[[ExecutionContext, str, WaitForSelectorOptions], Awaitable[Optional[RemoteHandle]]]


@dataclass(frozen=True)
class CustomQueryHandler:
    """
    A selector engine made of JavaScript function sources that run inside the page.

    `query_one` is called as `(root, selector) => Node | null` and
    `query_all` as `(root, selector) => Iterable<Node>`. Either may be left out.
    """
    query_one: Optional[str] = None
    query_all: Optional[str] = None

    def __post_init__(self) -> None:
        for field_name in ("query_one", "query_all"):
            value = getattr(self, field_name)
            if value is not None and not isinstance(value, str):
                raise TypeError(
                    f"{field_name} must be the source of a JavaScript function, "
                    f"got {type(value).__name__}"
                )


@dataclass(frozen=True)
class InternalQueryHandler:
    """Controller-side query operations. Operations the engine cannot do are None."""
    query_one: Optional[QueryOne] = None
    query_all: Optional[QueryAll] = None
    query_all_array: Optional[QueryAllArray] = None
    wait_for: Optional[WaitFor] = None


def create_internal_query_handler(handler: CustomQueryHandler) -> InternalQueryHandler:
    """Wrap the page-side functions of `handler` into controller-side query operations."""
    query_one = None
    wait_for = None
    query_all = None
    query_all_array = None

    if handler.query_one is not None:
        query_one_function = handler.query_one

        async def query_one(root: RemoteHandle, selector: str) -> Optional[RemoteHandle]:
            handle = await root.evaluate_handle(query_one_function, selector)
            element = handle.as_element()
            if element is not None:
                return element
            await handle.dispose()
            return None

        async def wait_for(
            context: ExecutionContext,
            selector: str,
            options: WaitForSelectorOptions
        ) -> Optional[RemoteHandle]:
            return await context.wait_for_selector_in_page(query_one_function, selector, options)

    if handler.query_all is not None:
        query_all_function = handler.query_all

        def query_all(root: RemoteHandle, selector: str) -> RemoteIterator:
            return RemoteIterator(root, query_all_function, selector)

        async def query_all_array(root: RemoteHandle, selector: str) -> RemoteHandle:
            return await root.evaluate_handle(query_all_function, selector)

    return InternalQueryHandler(
        query_one=query_one,
        query_all=query_all,
        query_all_array=query_all_array,
        wait_for=wait_for,
    )
