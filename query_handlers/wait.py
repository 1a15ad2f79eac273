from query_handlers.interface import WaitForSelectorOptions

# Resolves to the matched node, to `true` when waiting for hidden and nothing
# matches, or to a falsy value while the condition does not hold yet.
_PREDICATE_TEMPLATE = """(selector, waitForVisible, waitForHidden) => {
  const node = (%s)(document, selector);
  if (!node) {
    return waitForHidden;
  }
  if (!waitForVisible && !waitForHidden) {
    return node;
  }
  const element = node.nodeType === Node.TEXT_NODE ? node.parentElement : node;
  const style = window.getComputedStyle(element);
  const rect = element.getBoundingClientRect();
  const isVisible = !!style && style.visibility !== 'hidden' && !!(rect.top || rect.bottom || rect.width || rect.height);
  const success = waitForVisible === isVisible || waitForHidden === !isVisible;
  return success ? node : null;
}"""


def selector_predicate(query_one: str) -> str:
    """Page-side predicate polling `query_one` against the document."""
    return _PREDICATE_TEMPLATE % query_one


def predicate_args(selector: str, options: WaitForSelectorOptions) -> list:
    return [selector, options.visible, options.hidden]
