"""Formatting and table commands applied to the editor's live HTML.

The cursor is modelled as a :class:`Selection`, a CSS selector that
resolves to the element the operator is working in. ``None`` means the
cursor sits after the last block of the document.
"""

import logging
import re
from enum import Enum
from typing import Callable, Dict, FrozenSet, Optional, Set

from bs4 import BeautifulSoup, NavigableString, Tag

logger = logging.getLogger(__name__)

Selection = Optional[str]


class EditorCommand(str, Enum):
    """Toolbar actions."""
    BOLD = "bold"
    ITALIC = "italic"
    UNDERLINE = "underline"
    HEADING_1 = "heading_1"
    HEADING_2 = "heading_2"
    HEADING_3 = "heading_3"
    BULLET_LIST = "bullet_list"
    ORDERED_LIST = "ordered_list"
    ALIGN_LEFT = "align_left"
    ALIGN_CENTER = "align_center"
    ALIGN_RIGHT = "align_right"
    ALIGN_JUSTIFY = "align_justify"
    INSERT_TABLE = "insert_table"
    ADD_ROW_BEFORE = "add_row_before"
    ADD_ROW_AFTER = "add_row_after"
    ADD_COLUMN_BEFORE = "add_column_before"
    ADD_COLUMN_AFTER = "add_column_after"
    DELETE_ROW = "delete_row"
    DELETE_COLUMN = "delete_column"
    DELETE_TABLE = "delete_table"


class EditorCommandError(Exception):
    """Raised when a command is not offered for the current selection."""


FORMATTING_COMMANDS: FrozenSet[EditorCommand] = frozenset({
    EditorCommand.BOLD,
    EditorCommand.ITALIC,
    EditorCommand.UNDERLINE,
    EditorCommand.HEADING_1,
    EditorCommand.HEADING_2,
    EditorCommand.HEADING_3,
    EditorCommand.BULLET_LIST,
    EditorCommand.ORDERED_LIST,
    EditorCommand.ALIGN_LEFT,
    EditorCommand.ALIGN_CENTER,
    EditorCommand.ALIGN_RIGHT,
    EditorCommand.ALIGN_JUSTIFY,
})

TABLE_EDIT_COMMANDS: FrozenSet[EditorCommand] = frozenset({
    EditorCommand.ADD_ROW_BEFORE,
    EditorCommand.ADD_ROW_AFTER,
    EditorCommand.ADD_COLUMN_BEFORE,
    EditorCommand.ADD_COLUMN_AFTER,
    EditorCommand.DELETE_ROW,
    EditorCommand.DELETE_COLUMN,
    EditorCommand.DELETE_TABLE,
})

HEADING_LEVELS: Dict[EditorCommand, int] = {
    EditorCommand.HEADING_1: 1,
    EditorCommand.HEADING_2: 2,
    EditorCommand.HEADING_3: 3,
}

LIST_TAGS: Dict[EditorCommand, str] = {
    EditorCommand.BULLET_LIST: "ul",
    EditorCommand.ORDERED_LIST: "ol",
}

MARK_TAGS: Dict[EditorCommand, tuple] = {
    EditorCommand.BOLD: ("strong", "b"),
    EditorCommand.ITALIC: ("em", "i"),
    EditorCommand.UNDERLINE: ("u",),
}

ALIGNMENTS: Dict[EditorCommand, str] = {
    EditorCommand.ALIGN_LEFT: "left",
    EditorCommand.ALIGN_CENTER: "center",
    EditorCommand.ALIGN_RIGHT: "right",
    EditorCommand.ALIGN_JUSTIFY: "justify",
}

BLOCK_TAGS = {"p", "h1", "h2", "h3", "h4", "h5", "h6", "li", "td", "th", "div", "blockquote"}
HEADING_TAGS = {"p", "h1", "h2", "h3", "h4", "h5", "h6"}

_TEXT_ALIGN = re.compile(r"\s*text-align\s*:[^;]*;?", re.IGNORECASE)


def available_commands(html: str, selection: Selection) -> Set[EditorCommand]:
    """
    Commands the toolbar offers for a selection.

    Formatting needs an element under the cursor. Headings and lists need
    a paragraph or heading to convert, so a bare table cell or list item
    does not offer them. "Insert table" is only offered outside a table,
    row/column controls only inside one.
    """
    soup = _parse(html)
    if selection is None:
        return {EditorCommand.INSERT_TABLE}

    element = soup.select_one(selection)
    if element is None:
        return set()

    commands = set(FORMATTING_COMMANDS)
    block = _enclosing_block(element)
    convertible = block is not None and block.name in HEADING_TAGS
    if not convertible:
        commands -= set(HEADING_LEVELS)
        if element.name != "li" and element.find_parent("li") is None:
            commands -= set(LIST_TAGS)
    if _enclosing_cell(element) is not None:
        commands |= TABLE_EDIT_COMMANDS
    else:
        commands.add(EditorCommand.INSERT_TABLE)
    return commands


def apply_command(
    html: str,
    command: EditorCommand,
    selection: Selection = None,
    rows: int = 3,
    cols: int = 3,
) -> str:
    """
    Apply a toolbar command and return the new HTML.

    Args:
        html: Current live content
        command: Toolbar action
        selection: CSS selector of the element under the cursor
        rows: Row count for INSERT_TABLE (header row included)
        cols: Column count for INSERT_TABLE

    Raises:
        EditorCommandError: The command is not offered for this selection
    """
    command = EditorCommand(command)
    if command not in available_commands(html, selection):
        raise EditorCommandError(f"'{command.value}' is not available here")

    soup = _parse(html)
    element = soup.select_one(selection) if selection is not None else None

    if command in MARK_TAGS:
        _toggle_mark(soup, element, MARK_TAGS[command])
    elif command in HEADING_LEVELS:
        _toggle_heading(element, HEADING_LEVELS[command])
    elif command in LIST_TAGS:
        _toggle_list(soup, element, LIST_TAGS[command])
    elif command in ALIGNMENTS:
        _set_alignment(element, ALIGNMENTS[command])
    elif command == EditorCommand.INSERT_TABLE:
        _insert_table(soup, element, rows, cols)
    else:
        TABLE_HANDLERS[command](soup, _enclosing_cell(element))

    return str(soup)


# ===========================================
# Formatting
# ===========================================

def _toggle_mark(soup: BeautifulSoup, element: Tag, tags: tuple) -> None:
    if element.name in tags:
        element.unwrap()
        return

    children = [
        child for child in element.contents
        if not (isinstance(child, NavigableString) and not child.strip())
    ]
    if len(children) == 1 and getattr(children[0], "name", None) in tags:
        children[0].unwrap()
        return

    mark = soup.new_tag(tags[0])
    for child in list(element.contents):
        mark.append(child.extract())
    element.append(mark)


def _toggle_heading(element: Tag, level: int) -> None:
    block = _enclosing_block(element)
    block.name = "p" if block.name == f"h{level}" else f"h{level}"


def _toggle_list(soup: BeautifulSoup, element: Tag, list_tag: str) -> None:
    item = element if element.name == "li" else element.find_parent("li")
    if item is not None:
        current = item.find_parent(["ul", "ol"])
        if current.name != list_tag:
            current.name = list_tag
            return
        # leaving the list: every item becomes a paragraph
        for li in current.find_all("li", recursive=False):
            if li.find(list(HEADING_TAGS), recursive=False):
                li.unwrap()
            else:
                li.name = "p"
        current.unwrap()
        return

    block = _enclosing_block(element)
    new_list = soup.new_tag(list_tag)
    li = soup.new_tag("li")
    block.replace_with(new_list)
    new_list.append(li)
    li.append(block)
    if block.name != "p":
        block.name = "p"


def _set_alignment(element: Tag, alignment: str) -> None:
    block = _enclosing_block(element) or element
    style = _TEXT_ALIGN.sub("", block.get("style", "")).strip()
    if style and not style.endswith(";"):
        style += ";"
    block["style"] = f"{style} text-align: {alignment};".strip()


# ===========================================
# Tables
# ===========================================

def _insert_table(soup: BeautifulSoup, element: Optional[Tag], rows: int, cols: int) -> None:
    if rows < 1 or cols < 1:
        raise EditorCommandError("A table needs at least one row and one column")

    table = soup.new_tag("table")
    tbody = soup.new_tag("tbody")
    table.append(tbody)
    for row_index in range(rows):
        tr = soup.new_tag("tr")
        for _ in range(cols):
            tr.append(_new_cell(soup, "th" if row_index == 0 else "td"))
        tbody.append(tr)

    if element is None:
        container = soup.body or soup
        container.append(table)
        return

    anchor = _enclosing_block(element) or element
    anchor.insert_after(table)


def _new_cell(soup: BeautifulSoup, name: str) -> Tag:
    cell = soup.new_tag(name)
    cell.append(soup.new_tag("p"))
    return cell


def _row_cells(row: Tag) -> list:
    return row.find_all(["td", "th"], recursive=False)


def _table_rows(table: Tag) -> list:
    return [tr for tr in table.find_all("tr") if tr.find_parent("table") is table]


def _add_row(soup: BeautifulSoup, cell: Tag, after: bool) -> None:
    row = cell.find_parent("tr")
    new_row = soup.new_tag("tr")
    for _ in _row_cells(row):
        new_row.append(_new_cell(soup, "td"))
    if after:
        row.insert_after(new_row)
    else:
        row.insert_before(new_row)


def _add_column(soup: BeautifulSoup, cell: Tag, after: bool) -> None:
    table = cell.find_parent("table")
    index = _row_cells(cell.parent).index(cell)
    for row in _table_rows(table):
        cells = _row_cells(row)
        if not cells:
            continue
        reference = cells[min(index, len(cells) - 1)]
        new_cell = _new_cell(soup, reference.name)
        if after:
            reference.insert_after(new_cell)
        else:
            reference.insert_before(new_cell)


def _delete_row(soup: BeautifulSoup, cell: Tag) -> None:
    table = cell.find_parent("table")
    cell.find_parent("tr").decompose()
    if not _table_rows(table):
        table.decompose()


def _delete_column(soup: BeautifulSoup, cell: Tag) -> None:
    table = cell.find_parent("table")
    index = _row_cells(cell.parent).index(cell)
    for row in _table_rows(table):
        cells = _row_cells(row)
        if index < len(cells):
            cells[index].decompose()
    if not any(_row_cells(row) for row in _table_rows(table)):
        table.decompose()


def _delete_table(soup: BeautifulSoup, cell: Tag) -> None:
    cell.find_parent("table").decompose()


TABLE_HANDLERS: Dict[EditorCommand, Callable[[BeautifulSoup, Tag], None]] = {
    EditorCommand.ADD_ROW_BEFORE: lambda soup, cell: _add_row(soup, cell, after=False),
    EditorCommand.ADD_ROW_AFTER: lambda soup, cell: _add_row(soup, cell, after=True),
    EditorCommand.ADD_COLUMN_BEFORE: lambda soup, cell: _add_column(soup, cell, after=False),
    EditorCommand.ADD_COLUMN_AFTER: lambda soup, cell: _add_column(soup, cell, after=True),
    EditorCommand.DELETE_ROW: _delete_row,
    EditorCommand.DELETE_COLUMN: _delete_column,
    EditorCommand.DELETE_TABLE: _delete_table,
}


# ===========================================
# Helpers
# ===========================================

def _parse(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "html.parser")


def _enclosing_cell(element: Tag) -> Optional[Tag]:
    if element.name in ("td", "th"):
        return element
    return element.find_parent(["td", "th"])


def _enclosing_block(element: Tag) -> Optional[Tag]:
    if element.name in BLOCK_TAGS:
        return element
    return element.find_parent(list(BLOCK_TAGS))
