"""
Page-side sources of the built-in selector engines.

These functions are shipped to the page as text and never run in Python.
"""
from query_handlers.handler import CustomQueryHandler

DEFAULT_QUERY_ONE = """(element, selector) => {
  if (element instanceof Element || element instanceof Document) {
    return element.querySelector(selector);
  }
  return null;
}"""

DEFAULT_QUERY_ALL = """(element, selector) => {
  if (element instanceof Element || element instanceof Document) {
    return element.querySelectorAll(selector);
  }
  return [];
}"""

# Depth-first walk that descends into open shadow roots. The root itself never matches.
PIERCE_QUERY_ONE = """(element, selector) => {
  let found = null;
  const search = (root) => {
    const iter = document.createTreeWalker(root, NodeFilter.SHOW_ELEMENT);
    do {
      const currentNode = iter.currentNode;
      if (currentNode.shadowRoot) {
        search(currentNode.shadowRoot);
      }
      if (currentNode !== root && !found && currentNode.matches(selector)) {
        found = currentNode;
      }
    } while (!found && iter.nextNode());
  };
  search(element);
  return found;
}"""

PIERCE_QUERY_ALL = """(element, selector) => {
  function* collect(root) {
    const iter = document.createTreeWalker(root, NodeFilter.SHOW_ELEMENT);
    do {
      const currentNode = iter.currentNode;
      if (currentNode.shadowRoot) {
        yield* collect(currentNode.shadowRoot);
      }
      if (currentNode !== root && currentNode.matches(selector)) {
        yield currentNode;
      }
    } while (iter.nextNode());
  }
  return collect(element);
}"""

# Selector syntax: `accessible name[role="button"][name="other name"]`.
# An attribute overrides the leading name text.
ARIA_MATCHER = """
  const parse = (selector) => {
    const attributes = {};
    const pattern = /\\[\\s*(\\w+)\\s*=\\s*(?:"((?:[^"\\\\]|\\\\.)*)"|'((?:[^'\\\\]|\\\\.)*)')\\s*\\]/g;
    const name = selector.replace(pattern, (_, attribute, doubleQuoted, singleQuoted) => {
      attribute = attribute.trim();
      if (attribute !== 'name' && attribute !== 'role') {
        throw new Error(`Unknown aria attribute "${attribute}" in selector`);
      }
      const value = doubleQuoted !== undefined ? doubleQuoted : singleQuoted;
      attributes[attribute] = value.replace(/\\\\(.)/g, '$1');
      return '';
    }).trim();
    if (name && attributes.name === undefined) {
      attributes.name = name;
    }
    return attributes;
  };
  const normalize = (text) => (text || '').replace(/\\s+/g, ' ').trim();
  const implicitRoles = {
    A: (el) => (el.hasAttribute('href') ? 'link' : ''),
    ARTICLE: () => 'article',
    BUTTON: () => 'button',
    DIALOG: () => 'dialog',
    FORM: () => 'form',
    H1: () => 'heading', H2: () => 'heading', H3: () => 'heading',
    H4: () => 'heading', H5: () => 'heading', H6: () => 'heading',
    IMG: (el) => (el.getAttribute('alt') === '' ? 'presentation' : 'img'),
    INPUT: (el) => {
      const type = (el.getAttribute('type') || 'text').toLowerCase();
      return {
        button: 'button', submit: 'button', reset: 'button', image: 'button',
        checkbox: 'checkbox', radio: 'radio', range: 'slider',
        number: 'spinbutton', search: 'searchbox',
      }[type] || 'textbox';
    },
    LI: () => 'listitem',
    MAIN: () => 'main',
    NAV: () => 'navigation',
    OL: () => 'list', UL: () => 'list',
    OPTION: () => 'option',
    SELECT: () => 'combobox',
    TABLE: () => 'table',
    TEXTAREA: () => 'textbox',
  };
  const role = (el) => {
    const explicit = el.getAttribute('role');
    if (explicit) {
      return explicit.trim().split(/\\s+/)[0];
    }
    const implicit = implicitRoles[el.tagName];
    return implicit ? implicit(el) : '';
  };
  const accessibleName = (el) => {
    const label = el.getAttribute('aria-label');
    if (label && label.trim()) {
      return normalize(label);
    }
    const labelledBy = el.getAttribute('aria-labelledby');
    if (labelledBy) {
      const text = labelledBy.split(/\\s+/)
        .map((id) => el.ownerDocument.getElementById(id))
        .filter(Boolean)
        .map((labelElement) => labelElement.textContent)
        .join(' ');
      if (normalize(text)) {
        return normalize(text);
      }
    }
    if (el.labels && el.labels.length) {
      return normalize(Array.from(el.labels).map((l) => l.textContent).join(' '));
    }
    for (const attribute of ['alt', 'title']) {
      const value = el.getAttribute(attribute);
      if (value && value.trim()) {
        return normalize(value);
      }
    }
    return normalize(el.textContent);
  };
  const matches = (el, query) => {
    if (query.role !== undefined && role(el) !== query.role) {
      return false;
    }
    if (query.name !== undefined && accessibleName(el) !== normalize(query.name)) {
      return false;
    }
    return true;
  };
  const walk = function* (root) {
    const iter = document.createTreeWalker(root, NodeFilter.SHOW_ELEMENT);
    while (iter.nextNode()) {
      yield iter.currentNode;
    }
  };
"""

ARIA_QUERY_ONE = """(element, selector) => {%s
  const query = parse(selector);
  for (const el of walk(element)) {
    if (matches(el, query)) {
      return el;
    }
  }
  return null;
}""" % ARIA_MATCHER

ARIA_QUERY_ALL = """(element, selector) => {%s
  const query = parse(selector);
  return (function* () {
    for (const el of walk(element)) {
      if (matches(el, query)) {
        yield el;
      }
    }
  })();
}""" % ARIA_MATCHER

DEFAULT_HANDLER = CustomQueryHandler(query_one=DEFAULT_QUERY_ONE, query_all=DEFAULT_QUERY_ALL)
PIERCE_HANDLER = CustomQueryHandler(query_one=PIERCE_QUERY_ONE, query_all=PIERCE_QUERY_ALL)
ARIA_HANDLER = CustomQueryHandler(query_one=ARIA_QUERY_ONE, query_all=ARIA_QUERY_ALL)

BUILTIN_HANDLERS = {
    "aria": ARIA_HANDLER,
    "pierce": PIERCE_HANDLER,
}
