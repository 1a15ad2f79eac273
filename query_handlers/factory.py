from typing import Dict, Type
from query_handlers.interface import BrowserAutomation
from query_handlers.playwright import PlaywrightAutomation

# pyppeteer is an optional extra
try:
    from query_handlers.puppeteer import PuppeteerAutomation
    PUPPETEER_AVAILABLE = True
except ImportError:
    PUPPETEER_AVAILABLE = False


class BrowserFactory:
    """Factory for creating browser automation instances."""

    _implementations: Dict[str, Type[BrowserAutomation]] = {
        "playwright": PlaywrightAutomation
    }

    @classmethod
    def available(cls) -> list:
        return list(cls._implementations)

    @classmethod
    def create(cls, implementation: str = "playwright") -> BrowserAutomation:
        """Create a browser automation instance."""
        if implementation not in cls._implementations:
            supported = ", ".join(cls._implementations.keys())
            raise ValueError(f"Unsupported browser implementation: {implementation}. "
                             f"Supported implementations: {supported}")

        return cls._implementations[implementation]()

    @classmethod
    def register(cls, name: str, implementation: Type[BrowserAutomation]) -> None:
        """Register a new browser automation implementation."""
        cls._implementations[name] = implementation


if PUPPETEER_AVAILABLE:
    BrowserFactory.register("puppeteer", PuppeteerAutomation)
