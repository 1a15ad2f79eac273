import asyncio
import argparse
import csv
import json
import logging
from typing import Any, Dict, List, Optional, Tuple

from query_handlers.factory import BrowserFactory
from query_handlers.handler import CustomQueryHandler
from query_handlers.interface import BrowserAutomation, RemoteHandle, WaitForSelectorOptions
from query_handlers.iterator import dispose_quietly
from query_handlers.query import query_selector, query_selector_all, wait_for_selector
from query_handlers.registry import register_custom_query_handler

logger = logging.getLogger("query_handlers.cli")

TEXT_CONTENT = "(element) => element.textContent || ''"


def load_engine(option: str) -> Tuple[str, CustomQueryHandler]:
    """
    Parse a `NAME=FILE` engine option.

    FILE is JSON with the JavaScript sources under "query_one" and/or "query_all".
    """
    if "=" not in option:
        raise ValueError(f"Engine must be given as NAME=FILE, got '{option}'")
    name, path = option.split("=", 1)
    with open(path, 'r') as f:
        sources: Dict[str, Any] = json.load(f)

    unknown = set(sources) - {"query_one", "query_all"}
    if unknown:
        raise ValueError(f"Unknown keys in engine file {path}: {', '.join(sorted(unknown))}")
    return name, CustomQueryHandler(
        query_one=sources.get("query_one"),
        query_all=sources.get("query_all"),
    )


async def extract_texts(elements: List[RemoteHandle]) -> List[Dict[str, Any]]:
    """Read the text of each element and release its handle."""
    rows = []
    try:
        for index, element in enumerate(elements):
            text = await element.evaluate(TEXT_CONTENT)
            rows.append({"index": index, "text": text.strip()})
    finally:
        for element in elements:
            await dispose_quietly(element)
    return rows


async def run_query(
        url: str,
        selector: str,
        browser_impl: str = "playwright",
        headless: bool = False,
        find_all: bool = False,
        wait: bool = False,
        wait_options: Optional[WaitForSelectorOptions] = None
        ) -> List[Dict[str, Any]]:
    """Open `url` and return the text of the elements matching `selector`."""
    automation: BrowserAutomation = BrowserFactory.create(browser_impl)
    await automation.launch(headless=headless)
    try:
        await automation.goto(url)
        context = automation.execution_context()

        if wait:
            element = await wait_for_selector(context, selector, wait_options)
            return await extract_texts([element] if element else [])

        document = await context.document()
        try:
            if find_all:
                elements = await query_selector_all(document, selector)
            else:
                element = await query_selector(document, selector)
                elements = [element] if element else []
        finally:
            await document.dispose()
        logger.info(f"Selector '{selector}' matched {len(elements)} element(s)")
        return await extract_texts(elements)
    finally:
        await automation.cleanup()


def save_results(results: List[Dict[str, Any]], output_path: str) -> None:
    """Save the results to a file, handling JSON and CSV formats."""
    if output_path.endswith('.json'):
        with open(output_path, 'w') as f:
            json.dump(results, f, indent=2)
        logger.info(f"Results saved to {output_path}")
    elif output_path.endswith('.csv'):
        if results:
            keys = results[0].keys()
            with open(output_path, 'w', newline='') as f:
                writer = csv.DictWriter(f, fieldnames=keys)
                writer.writeheader()
                writer.writerows(results)
            logger.info(f"Results saved to {output_path}")
        else:
            logger.warning("No results to save to CSV.")
    else:
        raise ValueError("Unsupported output file format. Please use .json or .csv.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Query a page with pluggable selector engines')
    parser.add_argument('url', help='Page to open')
    parser.add_argument('selector', help='Selector, optionally prefixed with an engine: aria/Submit, pierce/button')
    parser.add_argument('--all', dest='find_all', action='store_true', help='Return every match instead of the first')
    parser.add_argument('--wait', action='store_true', help='Wait for the selector to appear')
    visibility = parser.add_mutually_exclusive_group()
    visibility.add_argument('--visible', action='store_true', help='With --wait, wait until the element is visible')
    visibility.add_argument('--hidden', action='store_true', help='With --wait, wait until the element is hidden or gone')
    parser.add_argument('--timeout', type=float, help='With --wait, timeout in milliseconds (default 30000, 0 to disable)')
    parser.add_argument('--engine', action='append', default=[], metavar='NAME=FILE',
                        help='Register a custom engine from a JSON file with "query_one"/"query_all" sources')
    parser.add_argument('-o', '--output', help='Output file path (JSON or CSV format)')
    parser.add_argument('-v', '--verbose', action='store_true', help='Print verbose output')
    parser.add_argument('--browser', default='playwright', choices=BrowserFactory.available(),
                        help='Browser automation implementation to use')
    parser.add_argument('--headless', action='store_true', help='Run the browser in headless mode')
    return parser


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="[%(name)s] %(levelname)s: %(message)s",
    )

    if args.find_all and args.wait:
        parser.error("--all cannot be combined with --wait")
    if not args.wait and (args.visible or args.hidden or args.timeout is not None):
        parser.error("--visible, --hidden and --timeout require --wait")
    if args.timeout is not None and args.timeout < 0:
        parser.error("--timeout must not be negative")

    for engine in args.engine:
        name, handler = load_engine(engine)
        register_custom_query_handler(name, handler)

    wait_options = WaitForSelectorOptions(
        visible=args.visible,
        hidden=args.hidden,
        timeout=30000 if args.timeout is None else args.timeout,
    )

    results: List[Dict[str, Any]] = asyncio.run(run_query(
        args.url,
        args.selector,
        args.browser,
        args.headless,
        args.find_all,
        args.wait,
        wait_options
    ))

    # Print the results to stdout
    print(json.dumps(results, indent=2))

    # Save to file if requested
    if args.output:
        save_results(results, args.output)


if __name__ == '__main__':
    main()
