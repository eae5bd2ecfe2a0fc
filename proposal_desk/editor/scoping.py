"""Scoped CSS for the proposal editor.

Template stylesheets are written for a standalone document (``body``,
``h1``, ``table`` ...). Inside the admin UI those rules would restyle the
whole dashboard, so every selector is rewritten to only match inside the
editor container::

    body { color: red; }  ->  .proposal-editor-scope body { color: red; }

Grouping at-rules (``@media``, ``@supports`` ...) are kept as they are and
the rules nested inside them are scoped. Other block at-rules such as
``@keyframes`` or ``@font-face`` hold no element selectors and are copied
verbatim. Declaration blocks and whitespace are never touched.
"""

import logging
import re
from typing import List, Optional

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

GROUPING_AT_RULES = {"media", "supports", "container", "layer", "document"}

_AT_RULE_NAME = re.compile(r"@(-?[\w-]+)")
_LEADING_TRIVIA = re.compile(r"^(?:\s|/\*.*?\*/)*", re.DOTALL)
_TRAILING_SPACE = re.compile(r"\s*$")


def scope_css(css: str, scope_class: str) -> str:
    """
    Prefix every selector of a stylesheet with a scope class.

    Args:
        css: Raw stylesheet text
        scope_class: Scope selector, with or without the leading dot

    Returns:
        Stylesheet whose rules only match inside the scope element
    """
    if not css:
        return ""

    scope = scope_class.strip()
    if not scope.startswith((".", "#")):
        scope = f".{scope}"

    return _scope_rules(css, scope)


def extract_styles(html: str) -> str:
    """Collect the text of every <style> element of a template document."""
    if not html:
        return ""

    soup = BeautifulSoup(html, "html.parser")
    blocks = [tag.get_text() for tag in soup.find_all("style")]
    return "\n".join(block for block in blocks if block.strip())


def _scope_rules(css: str, scope: str) -> str:
    out: List[str] = []
    i = 0
    n = len(css)

    while i < n:
        j = _next_structural(css, i)
        if j >= n:
            out.append(css[i:])
            break

        if css[j] == ";":
            # @import / @charset / @layer a, b;
            out.append(css[i:j + 1])
            i = j + 1
            continue

        if css[j] == "}":
            # stray closing brace, nothing to scope
            out.append(css[i:j + 1])
            i = j + 1
            continue

        prelude = css[i:j]
        end = _matching_brace(css, j)
        body = css[j + 1:end]
        closing = css[end:end + 1]

        at_rule = _at_rule_name(prelude)
        if at_rule is None:
            out.append(_scope_prelude(prelude, scope) + "{" + body + closing)
        elif at_rule in GROUPING_AT_RULES:
            out.append(prelude + "{" + _scope_rules(body, scope) + closing)
        else:
            out.append(css[i:end + 1])

        i = end + 1

    return "".join(out)


def _at_rule_name(prelude: str) -> Optional[str]:
    head = prelude[_LEADING_TRIVIA.match(prelude).end():]
    match = _AT_RULE_NAME.match(head)
    if not match:
        return None
    return match.group(1).lower()


def _scope_prelude(prelude: str, scope: str) -> str:
    """Scope a selector list, keeping comments and whitespace in place."""
    lead = _LEADING_TRIVIA.match(prelude).group(0)
    rest = prelude[len(lead):]
    trail = _TRAILING_SPACE.search(rest).group(0)
    selectors = rest[:len(rest) - len(trail)]

    if not selectors:
        return prelude

    scoped = [_scope_selector(part, scope) for part in _split_selectors(selectors)]
    return lead + ",".join(scoped) + trail


def _scope_selector(part: str, scope: str) -> str:
    stripped = part.strip()
    if not stripped:
        return part

    start = part.index(stripped)
    before, after = part[:start], part[start + len(stripped):]

    if _is_scoped(stripped, scope):
        return part

    # a bare "*" becomes "<scope> *" like any other selector
    return f"{before}{scope} {stripped}{after}"


def _is_scoped(selector: str, scope: str) -> bool:
    if not selector.startswith(scope):
        return False
    rest = selector[len(scope):]
    return not rest or not (rest[0].isalnum() or rest[0] in "-_")


def _split_selectors(selectors: str) -> List[str]:
    """Split on top-level commas; commas inside :is(...) or [a="b,c"] stay."""
    parts: List[str] = []
    depth = 0
    quote = None
    current = 0

    for idx, ch in enumerate(selectors):
        if quote:
            if ch == quote and selectors[idx - 1] != "\\":
                quote = None
        elif ch in "\"'":
            quote = ch
        elif ch in "([":
            depth += 1
        elif ch in ")]":
            depth = max(depth - 1, 0)
        elif ch == "," and depth == 0:
            parts.append(selectors[current:idx])
            current = idx + 1

    parts.append(selectors[current:])
    return parts


def _next_structural(css: str, start: int) -> int:
    """Index of the next '{', '}' or ';' outside comments and strings."""
    i = start
    n = len(css)
    while i < n:
        ch = css[i]
        if ch == "/" and css.startswith("/*", i):
            close = css.find("*/", i + 2)
            i = n if close == -1 else close + 2
            continue
        if ch in "\"'":
            i = _skip_string(css, i)
            continue
        if ch in "{};":
            return i
        i += 1
    return n


def _matching_brace(css: str, open_index: int) -> int:
    """Index of the brace closing the block opened at open_index."""
    depth = 0
    i = open_index
    n = len(css)
    while i < n:
        ch = css[i]
        if ch == "/" and css.startswith("/*", i):
            close = css.find("*/", i + 2)
            i = n if close == -1 else close + 2
            continue
        if ch in "\"'":
            i = _skip_string(css, i)
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i
        i += 1

    logger.warning("Unbalanced braces in template stylesheet")
    return n


def _skip_string(css: str, start: int) -> int:
    quote = css[start]
    i = start + 1
    n = len(css)
    while i < n:
        if css[i] == "\\":
            i += 2
            continue
        if css[i] == quote:
            return i + 1
        i += 1
    return n
