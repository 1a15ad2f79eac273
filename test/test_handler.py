import pytest

from conftest import FakeContext, FakeElement
from query_handlers.handler import CustomQueryHandler, create_internal_query_handler
from query_handlers.interface import WaitForSelectorOptions
from query_handlers.iterator import RemoteIterator

QUERY_ONE = "js:queryOne"
QUERY_ALL = "js:queryAll"


def test_missing_capabilities_stay_missing():
    handler = create_internal_query_handler(CustomQueryHandler())

    assert handler.query_one is None
    assert handler.wait_for is None
    assert handler.query_all is None
    assert handler.query_all_array is None


def test_query_one_only():
    handler = create_internal_query_handler(CustomQueryHandler(query_one=QUERY_ONE))

    assert handler.query_one is not None
    assert handler.wait_for is not None
    assert handler.query_all is None
    assert handler.query_all_array is None


def test_query_all_only():
    handler = create_internal_query_handler(CustomQueryHandler(query_all=QUERY_ALL))

    assert handler.query_one is None
    assert handler.wait_for is None
    assert handler.query_all is not None
    assert handler.query_all_array is not None


@pytest.mark.parametrize("value", [lambda root, selector: None, 42, b"() => null"])
def test_rejects_non_javascript_sources(value):
    with pytest.raises(TypeError):
        CustomQueryHandler(query_one=value)


async def test_query_one_returns_element(target, root):
    found = FakeElement("match")
    target.define(QUERY_ONE, lambda element, selector: found if selector == ".x" else None)
    handler = create_internal_query_handler(CustomQueryHandler(query_one=QUERY_ONE))

    element = await handler.query_one(root, ".x")

    assert element.value is found
    assert element.dispose_count == 0


@pytest.mark.parametrize("result", [None, "text", 0, {"not": "an element"}])
async def test_query_one_disposes_non_elements(target, root, result):
    target.define(QUERY_ONE, lambda element, selector: result)
    handler = create_internal_query_handler(CustomQueryHandler(query_one=QUERY_ONE))

    assert await handler.query_one(root, ".x") is None
    (handle,) = target.handles
    assert handle.dispose_count == 1


async def test_query_one_passes_root_and_selector(target, root):
    seen = []
    target.define(QUERY_ONE, lambda element, selector: seen.append((element, selector)))
    handler = create_internal_query_handler(CustomQueryHandler(query_one=QUERY_ONE))

    await handler.query_one(root, "div > span")

    assert seen == [(root.value, "div > span")]


async def test_query_all_array_is_a_single_round_trip(target, root):
    matches = [FakeElement("a"), FakeElement("b")]
    target.define(QUERY_ALL, lambda element, selector: matches)
    handler = create_internal_query_handler(CustomQueryHandler(query_all=QUERY_ALL))

    collection = await handler.query_all_array(root, "li")

    assert collection.value is matches
    assert target.calls == [QUERY_ALL]
    assert collection.dispose_count == 0


async def test_query_all_returns_remote_iterator(target, root):
    target.define(QUERY_ALL, lambda element, selector: [FakeElement("a")])
    handler = create_internal_query_handler(CustomQueryHandler(query_all=QUERY_ALL))

    iterator = handler.query_all(root, "li")

    assert isinstance(iterator, RemoteIterator)
    assert [h.value.name async for h in iterator] == ["a"]


async def test_wait_for_uses_raw_function(target):
    found = FakeElement("late")
    target.define(QUERY_ONE, lambda document, selector: found)
    context = FakeContext(target, FakeElement("document"))
    handler = create_internal_query_handler(CustomQueryHandler(query_one=QUERY_ONE))
    options = WaitForSelectorOptions(visible=True, timeout=1000)

    element = await handler.wait_for(context, ".late", options)

    assert element.value is found
    assert context.waits == [(QUERY_ONE, ".late", options)]


async def test_wait_for_hidden_returns_none(target):
    target.define(QUERY_ONE, lambda document, selector: None)
    context = FakeContext(target, FakeElement("document"))
    handler = create_internal_query_handler(CustomQueryHandler(query_one=QUERY_ONE))

    assert await handler.wait_for(context, ".gone", WaitForSelectorOptions(hidden=True)) is None


@pytest.mark.parametrize("polling", ["interval", 0, -5])
def test_wait_options_reject_bad_polling(polling):
    with pytest.raises(ValueError):
        WaitForSelectorOptions(polling=polling)


def test_wait_options_reject_negative_timeout():
    with pytest.raises(ValueError):
        WaitForSelectorOptions(timeout=-1)


def test_wait_options_defaults():
    options = WaitForSelectorOptions()

    assert not options.visible
    assert not options.hidden
    assert options.timeout == 30000
    assert options.polling == "raf"
