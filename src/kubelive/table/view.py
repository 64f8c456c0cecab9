"""Layout and navigation engine for live tables.

``TableView`` projects a ``TableStore`` onto a fixed-size character grid and
turns key/pointer input into cursor movement, scrolling and row callbacks.
It has no terminal dependency beyond producing ``rich.text.Text`` lines, so
it can be driven directly in tests.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

from rich.cells import cell_len
from rich.text import Text

from kubelive.table.actions import ActionList, TableCapabilities
from kubelive.table.operations import Row
from kubelive.table.store import TableStore

ColumnResizer = Callable[[tuple[str, ...], Sequence[Row]], list[int]]

HEADER_HEIGHT = 1
UP_ARROW = "↑"
DOWN_ARROW = "↓"

HEADER_STYLE = "bold"
ROW_STYLE = ""
SELECTED_ROW_STYLE = "reverse"
MENU_STYLE = "black on cyan"
MENU_HIGHLIGHT_STYLE = "bold white on blue"


def fit_columns(header: tuple[str, ...], rows: Sequence[Row]) -> list[int]:
    """Default column sizing: widest cell per column plus one space.

    The last column is left unbounded and reported as 0; the renderer gives
    it whatever width remains.
    """
    widths: list[int] = []
    last = len(header) - 1
    for i, title in enumerate(header):
        if i == last:
            widths.append(0)
            continue
        width = max(1, cell_len(title))
        for row in rows:
            if i < len(row.cells):
                width = max(width, cell_len(row.cells[i]))
        widths.append(width + 1)
    return widths


class TableView:
    """Cursor, scrolling, input dispatch and rendering over a TableStore.

    Args:
        store: Table to display. The view reads it and moves its cursor;
            rows are only ever changed through operation batches.
        capabilities: Optional callbacks the owner supports.
        actions: Hotkeys and drop-down entries layered over navigation.
        column_resizer: Custom column sizing, defaults to ``fit_columns``.
    """

    def __init__(
        self,
        store: TableStore,
        capabilities: TableCapabilities | None = None,
        actions: ActionList | None = None,
        column_resizer: ColumnResizer | None = None,
    ) -> None:
        self.store = store
        self.capabilities = capabilities or TableCapabilities()
        self.actions = actions or ActionList()
        self.column_resizer: ColumnResizer = column_resizer or fit_columns
        self._height = HEADER_HEIGHT + 1

    # =========================================================================
    # Geometry
    # =========================================================================

    @property
    def viewport_height(self) -> int:
        """Number of data rows that fit under the header."""
        return max(1, self._height - HEADER_HEIGHT)

    def resize(self, height: int) -> None:
        """Set the total height in lines, header included."""
        self._height = max(HEADER_HEIGHT + 1, height)
        self.ensure_visible()

    def ensure_visible(self) -> None:
        """Shift the window by the minimal amount to show the cursor."""
        selected = self.store.selected
        top = self.store.top_row
        viewport = self.viewport_height
        if selected < top:
            top = selected
        elif selected >= top + viewport:
            top = selected - viewport + 1
        self.store.scroll_to(top)

    def row_index_at(self, y: int) -> int | None:
        """Map a screen line to a row index, or None for header/blank lines."""
        if y < HEADER_HEIGHT:
            return None
        index = self.store.top_row + (y - HEADER_HEIGHT)
        if index >= len(self.store):
            return None
        return index

    # =========================================================================
    # Navigation
    # =========================================================================

    def move_to(self, index: int) -> bool:
        """Put the cursor on ``index`` and scroll it into view.

        Fires ``on_cursor_change`` when the cursor lands on a different row.

        Returns:
            True if the selection changed.
        """
        changed = self.store.select(index)
        self.ensure_visible()
        if changed:
            row = self.store.selected_row
            if row is not None and self.capabilities.on_cursor_change is not None:
                self.capabilities.on_cursor_change(row)
        return changed

    def cursor_up(self) -> bool:
        return self.move_to(self.store.selected - 1)

    def cursor_down(self) -> bool:
        return self.move_to(self.store.selected + 1)

    def page_up(self) -> bool:
        return self.move_to(self.store.selected - max(1, self.viewport_height - 1))

    def page_down(self) -> bool:
        return self.move_to(self.store.selected + max(1, self.viewport_height - 1))

    def home(self) -> bool:
        return self.move_to(0)

    def end(self) -> bool:
        return self.move_to(len(self.store) - 1)

    def activate(self) -> bool:
        """Invoke ``on_select`` for the cursor row, if declared."""
        row = self.store.selected_row
        if row is None or self.capabilities.on_select is None:
            return False
        self.capabilities.on_select(row)
        return True

    def delete(self) -> bool:
        """Invoke ``on_delete`` for the cursor row, if declared."""
        row = self.store.selected_row
        if row is None or self.capabilities.on_delete is None:
            return False
        self.capabilities.on_delete(row)
        return True

    def click(self, y: int, double: bool = False) -> bool:
        """Handle a pointer click on screen line ``y``.

        A click selects the row under the pointer; a double click also
        activates it.

        Returns:
            True if the click hit a row.
        """
        if self.actions.is_open:
            self.actions.close()
        index = self.row_index_at(y)
        if index is None:
            return False
        self.move_to(index)
        if double:
            self.activate()
        return True

    def handle_key(self, key: str) -> bool:
        """Dispatch a key: open menu first, then navigation, then hotkeys.

        Returns:
            True if the key was consumed.
        """
        if self.actions.is_open:
            return self.actions.handle_key(key, self.store.selected_row)

        navigation: dict[str, Callable[[], bool]] = {
            "up": self.cursor_up,
            "k": self.cursor_up,
            "down": self.cursor_down,
            "j": self.cursor_down,
            "pageup": self.page_up,
            "pagedown": self.page_down,
            "home": self.home,
            "end": self.end,
        }
        if key in navigation:
            navigation[key]()
            return True
        if key == "enter":
            return self.activate()
        if key == "delete":
            return self.delete()
        return self.actions.handle_key(key, self.store.selected_row)

    # =========================================================================
    # Rendering
    # =========================================================================

    def column_widths(self, width: int) -> list[int]:
        """Resolve column widths for a draw, filling the last column."""
        widths = list(self.column_resizer(self.store.header, self.store.rows))
        if widths:
            used = sum(widths[:-1])
            widths[-1] = max(1, width - used) if widths[-1] <= 0 else widths[-1]
        return widths

    def render_lines(self, width: int) -> list[Text]:
        """Draw the header and the visible window of rows.

        Args:
            width: Available width in cells.

        Returns:
            One ``Text`` per screen line, header first.
        """
        self.ensure_visible()
        widths = self.column_widths(width)
        lines = [self._render_row(self.store.header, widths, width, HEADER_STYLE)]

        top = self.store.top_row
        rows = self.store.rows
        visible = rows[top : top + self.viewport_height]
        for offset, row in enumerate(visible):
            style = SELECTED_ROW_STYLE if top + offset == self.store.selected else ROW_STYLE
            lines.append(self._render_row(row.cells, widths, width, style))

        if top > 0 and len(lines) > 1:
            lines[1] = self._with_marker(lines[1], UP_ARROW, width)
        if len(rows) > top + self.viewport_height:
            lines[-1] = self._with_marker(lines[-1], DOWN_ARROW, width)

        if self.actions.is_open:
            self._overlay_menu(lines, width)
        return lines

    def _render_row(
        self,
        cells: Sequence[str],
        widths: list[int],
        width: int,
        style: str,
    ) -> Text:
        line = Text(style=style, no_wrap=True, end="")
        for i, column_width in enumerate(widths):
            value = cells[i] if i < len(cells) else ""
            cell = Text(value)
            is_last = i == len(widths) - 1
            room = column_width if is_last else column_width - 1
            if cell.cell_len > room:
                cell.truncate(max(room, 1), overflow="ellipsis")
            cell.truncate(column_width, pad=True)
            line.append_text(cell)
        line.truncate(width, overflow="ellipsis", pad=True)
        return line

    def _with_marker(self, line: Text, marker: str, width: int) -> Text:
        marked = line.copy()
        marked.truncate(max(width - 1, 0), pad=True)
        marked.append(marker, style="bold")
        return marked

    def _overlay_menu(self, lines: list[Text], width: int) -> None:
        entries = self.actions.menu_lines()
        if not entries:
            return
        menu_width = cell_len(entries[0])
        x = max(width - menu_width, 0)
        start = HEADER_HEIGHT + (self.store.selected - self.store.top_row)
        start = max(HEADER_HEIGHT, min(start, len(lines) - len(entries)))
        for i, entry in enumerate(entries):
            y = start + i
            if y >= len(lines) or y < 0:
                break
            base = lines[y].copy()
            base.truncate(x, pad=True)
            style = MENU_HIGHLIGHT_STYLE if i == self.actions.highlighted else MENU_STYLE
            base.append(entry[: width - x], style=style)
            lines[y] = base
