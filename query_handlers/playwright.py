import logging
from typing import Any, List, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Frame, JSHandle
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from query_handlers.errors import RemoteExecutionError, WaitTimeoutError
from query_handlers.interface import BrowserAutomation, ExecutionContext, RemoteHandle, WaitForSelectorOptions
from query_handlers.wait import predicate_args, selector_predicate

logger = logging.getLogger(__name__)


def _unwrap(value: Any) -> Any:
    if isinstance(value, PlaywrightHandle):
        return value._handle
    return value


def _spread(page_function: str, args: tuple) -> tuple:
    """Playwright passes a single argument, so pack extra arguments into a list."""
    if not args:
        return page_function, None
    if len(args) == 1:
        return page_function, _unwrap(args[0])
    return (
        f"(value, args) => ({page_function})(value, ...args)",
        [_unwrap(arg) for arg in args],
    )


class PlaywrightHandle(RemoteHandle):
    """RemoteHandle backed by a Playwright JSHandle or ElementHandle."""

    def __init__(self, handle: JSHandle) -> None:
        self._handle = handle

    @property
    def handle(self) -> JSHandle:
        return self._handle

    async def evaluate_handle(self, page_function: str, *args: Any) -> RemoteHandle:
        expression, arg = _spread(page_function, args)
        try:
            return PlaywrightHandle(await self._handle.evaluate_handle(expression, arg))
        except PlaywrightError as e:
            raise RemoteExecutionError(str(e)) from e

    async def evaluate(self, page_function: str, *args: Any) -> Any:
        expression, arg = _spread(page_function, args)
        try:
            return await self._handle.evaluate(expression, arg)
        except PlaywrightError as e:
            raise RemoteExecutionError(str(e)) from e

    def as_element(self) -> Optional[RemoteHandle]:
        element = self._handle.as_element()
        if element is None:
            return None
        return self if element is self._handle else PlaywrightHandle(element)

    async def dispose(self) -> None:
        try:
            await self._handle.dispose()
        except PlaywrightError as e:
            raise RemoteExecutionError(str(e)) from e


class PlaywrightContext(ExecutionContext):
    """ExecutionContext backed by a Playwright frame."""

    def __init__(self, frame: Frame) -> None:
        self._frame = frame

    async def document(self) -> RemoteHandle:
        try:
            return PlaywrightHandle(await self._frame.evaluate_handle("document"))
        except PlaywrightError as e:
            raise RemoteExecutionError(str(e)) from e

    async def wait_for_selector_in_page(
        self,
        query_one: str,
        selector: str,
        options: WaitForSelectorOptions
    ) -> Optional[RemoteHandle]:
        polling = options.polling
        if polling == "mutation":
            # Playwright only polls on animation frames or on an interval
            polling = "raf"

        try:
            handle = await self._frame.wait_for_function(
                f"(args) => ({selector_predicate(query_one)})(...args)",
                arg=predicate_args(selector, options),
                polling=polling,
                timeout=options.timeout,
            )
        except PlaywrightTimeoutError as e:
            raise WaitTimeoutError(
                f"Waiting for selector '{selector}' failed: timeout {options.timeout}ms exceeded"
            ) from e
        except PlaywrightError as e:
            raise RemoteExecutionError(str(e)) from e

        result = PlaywrightHandle(handle)
        element = result.as_element()
        if element is not None:
            return element
        await result.dispose()
        return None


class PlaywrightAutomation(BrowserAutomation):
    """Playwright implementation driving a single Chromium page."""

    def __init__(self) -> None:
        self._playwright = None
        self._browser = None
        self._page = None

    async def launch(self, headless: bool = True) -> None:
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(headless=headless)
        self._page = await self._browser.new_page()
        logger.debug("Launched Chromium through Playwright")

    async def goto(self, url: str) -> None:
        try:
            await self._page.goto(url, wait_until="domcontentloaded")
        except PlaywrightError as e:
            raise RemoteExecutionError(str(e)) from e
        logger.debug(f"Navigated to: {url}")

    def execution_context(self) -> ExecutionContext:
        if self._page is None:
            raise RuntimeError("Browser has not been launched")
        return PlaywrightContext(self._page.main_frame)

    async def cleanup(self) -> None:
        """Close the page, the browser and stop Playwright."""
        if self._page:
            await self._page.close()
            self._page = None

        if self._browser:
            await self._browser.close()
            self._browser = None

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None
