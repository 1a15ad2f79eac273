import logging
from typing import Any, Optional

import pyppeteer
from pyppeteer.errors import PyppeteerError
from pyppeteer.errors import TimeoutError as PyppeteerTimeoutError
from pyppeteer.execution_context import JSHandle
from pyppeteer.frame_manager import Frame

from query_handlers.errors import RemoteExecutionError, WaitTimeoutError
from query_handlers.interface import BrowserAutomation, ExecutionContext, RemoteHandle, WaitForSelectorOptions
from query_handlers.wait import predicate_args, selector_predicate

logger = logging.getLogger(__name__)


def _unwrap(value: Any) -> Any:
    if isinstance(value, PuppeteerHandle):
        return value._handle
    return value


class PuppeteerHandle(RemoteHandle):
    """RemoteHandle backed by a pyppeteer JSHandle or ElementHandle."""

    def __init__(self, handle: JSHandle) -> None:
        self._handle = handle

    @property
    def handle(self) -> JSHandle:
        return self._handle

    async def evaluate_handle(self, page_function: str, *args: Any) -> RemoteHandle:
        context = self._handle.executionContext
        try:
            result = await context.evaluateHandle(page_function, self._handle, *map(_unwrap, args))
        except PyppeteerError as e:
            raise RemoteExecutionError(str(e)) from e
        return PuppeteerHandle(result)

    async def evaluate(self, page_function: str, *args: Any) -> Any:
        context = self._handle.executionContext
        try:
            return await context.evaluate(page_function, self._handle, *map(_unwrap, args))
        except PyppeteerError as e:
            raise RemoteExecutionError(str(e)) from e

    def as_element(self) -> Optional[RemoteHandle]:
        element = self._handle.asElement()
        if element is None:
            return None
        return self if element is self._handle else PuppeteerHandle(element)

    async def dispose(self) -> None:
        try:
            await self._handle.dispose()
        except PyppeteerError as e:
            raise RemoteExecutionError(str(e)) from e


class PuppeteerContext(ExecutionContext):
    """ExecutionContext backed by a pyppeteer frame."""

    def __init__(self, frame: Frame) -> None:
        self._frame = frame

    async def document(self) -> RemoteHandle:
        try:
            return PuppeteerHandle(await self._frame.evaluateHandle("() => document"))
        except PyppeteerError as e:
            raise RemoteExecutionError(str(e)) from e

    async def wait_for_selector_in_page(
        self,
        query_one: str,
        selector: str,
        options: WaitForSelectorOptions
    ) -> Optional[RemoteHandle]:
        try:
            handle = await self._frame.waitForFunction(
                selector_predicate(query_one),
                {"timeout": options.timeout, "polling": options.polling},
                *predicate_args(selector, options)
            )
        except PyppeteerTimeoutError as e:
            raise WaitTimeoutError(
                f"Waiting for selector '{selector}' failed: timeout {options.timeout}ms exceeded"
            ) from e
        except PyppeteerError as e:
            raise RemoteExecutionError(str(e)) from e

        result = PuppeteerHandle(handle)
        element = result.as_element()
        if element is not None:
            return element
        await result.dispose()
        return None


class PuppeteerAutomation(BrowserAutomation):
    """Puppeteer implementation of browser automation."""

    def __init__(self) -> None:
        self._browser = None
        self._page = None

    async def launch(self, headless: bool = True) -> None:
        self._browser = await pyppeteer.launch(
            headless=headless,
            args=['--disable-dev-shm-usage', '--no-sandbox'],
            handleSIGINT=False  # Prevent signal handling conflicts
        )
        self._page = await self._browser.newPage()
        logger.debug("Launched Chromium through pyppeteer")

    async def goto(self, url: str) -> None:
        try:
            await self._page.goto(url, {'waitUntil': 'domcontentloaded', 'timeout': 30000})
        except PyppeteerError as e:
            raise RemoteExecutionError(str(e)) from e
        logger.debug(f"Navigated to: {url}")

    def execution_context(self) -> ExecutionContext:
        if self._page is None:
            raise RuntimeError("Browser has not been launched")
        return PuppeteerContext(self._page.mainFrame)

    async def cleanup(self) -> None:
        if self._page:
            await self._page.close()
            self._page = None
        if self._browser:
            await self._browser.close()
            self._browser = None
