import asyncio
import logging
from typing import Any, AsyncGenerator

from query_handlers.interface import RemoteHandle

logger = logging.getLogger(__name__)

GET_ITERATOR_FUNCTION = "iterable => iterable[Symbol.iterator]()"
NEXT_VALUE_FUNCTION = "iterator => iterator.next().value"


async def dispose_quietly(handle: RemoteHandle) -> None:
    """Dispose a handle while another exception is already propagating."""
    try:
        await handle.dispose()
    except Exception as e:
        logger.warning(f"Failed to dispose remote handle during cleanup: {e}")


async def generate_elements(
    root: RemoteHandle,
    query_all: str,
    selector: str
) -> AsyncGenerator[RemoteHandle, None]:
    """
    Yield the elements of the iterable `query_all(root, selector)` returns inside the page.

    The iterable handle is released as soon as its iterator exists. The
    iterator handle is released when the generator finishes, fails, or is
    closed; an abandoned generator is closed by the event loop.
    """
    iterable = await root.evaluate_handle(query_all, selector)
    try:
        iterator = await iterable.evaluate_handle(GET_ITERATOR_FUNCTION)
    except BaseException:
        await dispose_quietly(iterable)
        raise
    try:
        await iterable.dispose()
    except BaseException:
        await dispose_quietly(iterator)
        raise
    logger.debug(f"Opened remote iterator for selector '{selector}'")

    try:
        while True:
            next_handle = await iterator.evaluate_handle(NEXT_VALUE_FUNCTION)
            element = next_handle.as_element()
            if element is None:
                await next_handle.dispose()
                break
            yield element
    except Exception:
        await dispose_quietly(iterator)
        raise
    except BaseException:
        # GeneratorExit from aclose() or cancellation
        await iterator.dispose()
        raise
    logger.debug(f"Closing remote iterator for selector '{selector}'")
    await iterator.dispose()


class RemoteIterator:
    """
    Lazily drains an iterable living inside the page, one element handle per round-trip.

    Nothing is sent to the page until the first element is requested. The
    remote iterator is disposed exactly once: when it is exhausted, when the
    consumer closes or abandons the sequence, or when a remote call fails.
    Every yielded element handle belongs to the consumer.

    Pulls are serialized, so concurrent consumers of one sequence never have
    more than one round-trip in flight. Close early with `aclose()` or by
    using the sequence as a context manager:

        async with handler.query_all(root, "li") as elements:
            async for element in elements:
                ...
    """

    def __init__(self, root: RemoteHandle, query_all: str, selector: str) -> None:
        self._generator = generate_elements(root, query_all, selector)
        self._closed = False
        self._lock = asyncio.Lock()

    @property
    def closed(self) -> bool:
        return self._closed

    def __aiter__(self) -> 'RemoteIterator':
        return self

    async def __anext__(self) -> RemoteHandle:
        async with self._lock:
            try:
                return await self._generator.__anext__()
            except BaseException:
                self._closed = True
                raise

    async def aclose(self) -> None:
        """Stop iterating and release the remote iterator. Safe to call more than once."""
        async with self._lock:
            self._closed = True
            await self._generator.aclose()

    async def __aenter__(self) -> 'RemoteIterator':
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        await self.aclose()
