from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional, Union

POLLING_MODES = ("raf", "mutation")


@dataclass
class WaitForSelectorOptions:
    """
    Options for waiting on a selector inside the page.

    `timeout` is in milliseconds, 0 disables it. `polling` is either
    "raf", "mutation" or an interval in milliseconds.
    """
    visible: bool = False
    hidden: bool = False
    timeout: float = 30000
    polling: Union[str, int, float] = "raf"

    def __post_init__(self) -> None:
        if isinstance(self.polling, str):
            if self.polling not in POLLING_MODES:
                raise ValueError(f"Unknown polling option: {self.polling}")
        elif self.polling <= 0:
            raise ValueError(f"Cannot poll with non-positive interval: {self.polling}")
        if self.timeout < 0:
            raise ValueError(f"Timeout must be non-negative, got {self.timeout}")


class RemoteHandle(ABC):
    """A reference to a value that lives inside the page. Must be disposed once."""

    @abstractmethod
    async def evaluate_handle(self, page_function: str, *args: Any) -> 'RemoteHandle':
        """Run `page_function(value, *args)` in the page and return a handle to the result."""
        pass

    @abstractmethod
    async def evaluate(self, page_function: str, *args: Any) -> Any:
        """Run `page_function(value, *args)` in the page and return the serialized result."""
        pass

    @abstractmethod
    def as_element(self) -> Optional['RemoteHandle']:
        """Return this handle as an element handle, or None if it is not a DOM element."""
        pass

    @abstractmethod
    async def dispose(self) -> None:
        """Release the remote reference."""
        pass


class ExecutionContext(ABC):
    """A document inside the page that queries run against."""

    @abstractmethod
    async def document(self) -> RemoteHandle:
        """Return a handle to the context's document."""
        pass

    @abstractmethod
    async def wait_for_selector_in_page(
        self,
        query_one: str,
        selector: str,
        options: WaitForSelectorOptions
    ) -> Optional[RemoteHandle]:
        """
        Poll `query_one(document, selector)` inside the page until the
        options are satisfied. Returns the matched element, or None when
        the satisfied condition has no element (e.g. waiting for hidden).
        """
        pass


class BrowserAutomation(ABC):
    """Interface for browser automation libraries."""

    @abstractmethod
    async def launch(self, headless: bool = True) -> None:
        """Launch a browser instance."""
        pass

    @abstractmethod
    async def goto(self, url: str) -> None:
        """Navigate to the specified URL."""
        pass

    @abstractmethod
    def execution_context(self) -> ExecutionContext:
        """Return the main frame of the current page."""
        pass

    @abstractmethod
    async def cleanup(self) -> None:
        """Clean up resources."""
        pass
