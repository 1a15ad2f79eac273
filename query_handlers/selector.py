import re
from typing import Optional, Tuple

ENGINE_NAME_PATTERN = re.compile(r"[a-zA-Z]+")
ENGINE_PREFIX_PATTERN = re.compile(r"[a-zA-Z]+/")


def is_valid_engine_name(name: str) -> bool:
    return isinstance(name, str) and ENGINE_NAME_PATTERN.fullmatch(name) is not None


def parse_selector(selector: str) -> Tuple[Optional[str], str]:
    """
    Split `selector` into (engine name, selector for that engine).

    'pierce/div > span' -> ('pierce', 'div > span')
    'div.foo'           -> (None, 'div.foo')
    'a[href$="/x"]'     -> (None, 'a[href$="/x"]')

    Only the first '/' is significant.
    """
    if not ENGINE_PREFIX_PATTERN.match(selector):
        return None, selector
    name, updated_selector = selector.split("/", 1)
    return name, updated_selector
