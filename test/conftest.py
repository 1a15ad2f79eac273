"""
In-memory stand-in for a page.

Page functions are JavaScript sources; the fake target maps each source to a
Python callable so queries can run without a browser. Every handle the
target hands out is recorded so tests can check disposal.
"""
import asyncio
from typing import Any, Callable, Dict, List, Optional

import pytest

from query_handlers.errors import RemoteExecutionError
from query_handlers.interface import ExecutionContext, RemoteHandle, WaitForSelectorOptions
from query_handlers.iterator import GET_ITERATOR_FUNCTION, NEXT_VALUE_FUNCTION
from query_handlers.registry import QueryHandlerRegistry, clear_custom_query_handlers


class FakeElement:
    def __init__(self, name: str, text: str = "") -> None:
        self.name = name
        self.text = text

    def __repr__(self) -> str:
        return f"FakeElement({self.name!r})"


class FakeHandle(RemoteHandle):
    def __init__(self, target: 'FakeTarget', value: Any) -> None:
        self.target = target
        self.value = value
        self.dispose_count = 0
        self.dispose_error: Optional[str] = None

    async def evaluate_handle(self, page_function: str, *args: Any) -> RemoteHandle:
        result = await self.target.call(page_function, self.value, *args)
        return self.target.make_handle(result)

    async def evaluate(self, page_function: str, *args: Any) -> Any:
        return await self.target.call(page_function, self.value, *args)

    def as_element(self) -> Optional[RemoteHandle]:
        return self if isinstance(self.value, FakeElement) else None

    async def dispose(self) -> None:
        self.dispose_count += 1
        if self.dispose_error is not None:
            raise RemoteExecutionError(self.dispose_error)

    def __repr__(self) -> str:
        return f"FakeHandle({self.value!r}, disposed={self.dispose_count})"


class FakeTarget:
    def __init__(self) -> None:
        self.functions: Dict[str, Callable[..., Any]] = {
            GET_ITERATOR_FUNCTION: iter,
            NEXT_VALUE_FUNCTION: lambda iterator: next(iterator, None),
        }
        self.failing: Dict[str, str] = {}
        self.dispose_failures: List[Callable[[Any], Optional[str]]] = []
        self.handles: List[FakeHandle] = []
        self.calls: List[str] = []

    def define(self, source: str, function: Callable[..., Any]) -> None:
        self.functions[source] = function

    def fail(self, source: str, message: str = "Error: evaluation failed") -> None:
        self.failing[source] = message

    def fail_dispose(self, matches: Callable[[Any], bool], message: str = "Error: target closed") -> None:
        self.dispose_failures.append(lambda value: message if matches(value) else None)

    def make_handle(self, value: Any) -> FakeHandle:
        handle = FakeHandle(self, value)
        for failure in self.dispose_failures:
            handle.dispose_error = handle.dispose_error or failure(value)
        self.handles.append(handle)
        return handle

    def _lookup(self, source: str) -> Callable[..., Any]:
        if source in self.functions:
            return self.functions[source]
        # Wrapped sources, e.g. `(collection, ...args) => (<source>)(...)`
        for known, function in self.functions.items():
            if known in source:
                return function
        raise RemoteExecutionError(f"ReferenceError: unknown page function {source!r}")

    async def call(self, source: str, *args: Any) -> Any:
        await asyncio.sleep(0)
        self.calls.append(source)
        if source in self.failing:
            raise RemoteExecutionError(self.failing[source])
        return self._lookup(source)(*args)

    def undisposed(self) -> List[FakeHandle]:
        return [handle for handle in self.handles if handle.dispose_count == 0]


class FakeContext(ExecutionContext):
    def __init__(self, target: FakeTarget, document: Any) -> None:
        self.target = target
        self._document = document
        self.waits: List[tuple] = []

    async def document(self) -> RemoteHandle:
        return self.target.make_handle(self._document)

    async def wait_for_selector_in_page(
        self,
        query_one: str,
        selector: str,
        options: WaitForSelectorOptions
    ) -> Optional[RemoteHandle]:
        self.waits.append((query_one, selector, options))
        found = await self.target.call(query_one, self._document, selector)
        if isinstance(found, FakeElement):
            return self.target.make_handle(found)
        return None


@pytest.fixture
def target() -> FakeTarget:
    return FakeTarget()


@pytest.fixture
def root(target: FakeTarget) -> FakeHandle:
    handle = target.make_handle(FakeElement("root"))
    target.handles.remove(handle)
    return handle


@pytest.fixture
def registry() -> QueryHandlerRegistry:
    return QueryHandlerRegistry.with_builtins()


@pytest.fixture(autouse=True)
def reset_default_registry():
    yield
    clear_custom_query_handlers()
