"""Unit tests for TableStore."""

from __future__ import annotations

import pytest

from kubelive.table.operations import (
    Added,
    Clear,
    Deleted,
    InitFinished,
    InitStart,
    Modified,
    Row,
    SetColumns,
    seed_batch,
)
from kubelive.table.store import TableStore


def row(row_id: str, *cells: str) -> Row:
    return Row(row_id, cells or (row_id,))


def ids(store: TableStore) -> list[str]:
    return [r.id for r in store.rows]


@pytest.fixture
def store() -> TableStore:
    """Store seeded with rows a, b, c."""
    table = TableStore()
    table.apply(seed_batch(["NAME"], [row("a"), row("b"), row("c")]))
    return table


@pytest.mark.unit
class TestApply:
    """Tests for applying operation batches."""

    def test_seed_batch_populates_store(self, store: TableStore) -> None:
        """Seeding sets the header and rows in list order."""
        assert store.header == ("NAME",)
        assert ids(store) == ["a", "b", "c"]
        assert not store.loading

    def test_clear_keeps_header(self, store: TableStore) -> None:
        """Clear drops rows but not columns."""
        store.apply((Clear(),))

        assert len(store) == 0
        assert store.header == ("NAME",)

    def test_set_columns_replaces_header(self, store: TableStore) -> None:
        """SetColumns replaces the header only."""
        store.apply((SetColumns(("A", "B")),))

        assert store.header == ("A", "B")
        assert len(store) == 3

    def test_added_appends_by_default(self, store: TableStore) -> None:
        """Plain Added appends."""
        store.apply((Added(row("0")),))

        assert ids(store) == ["a", "b", "c", "0"]

    def test_added_sorted_by_id(self) -> None:
        """Added with sort_by_id goes before the first greater id."""
        table = TableStore()
        table.apply((Added(row("a")), Added(row("c"))))

        table.apply((Added(row("b"), sort_by_id=True),))
        table.apply((Added(row("d"), sort_by_id=True),))

        assert ids(table) == ["a", "b", "c", "d"]

    def test_added_at_index(self, store: TableStore) -> None:
        """Added with an index pins the row there."""
        store.apply((Added(row("x"), index=1),))

        assert ids(store) == ["a", "x", "b", "c"]

    def test_added_index_is_clamped(self, store: TableStore) -> None:
        """Out of range indices insert at the end."""
        store.apply((Added(row("x"), index=99),))

        assert ids(store)[-1] == "x"

    def test_added_existing_id_replaces_in_place(self, store: TableStore) -> None:
        """Re-adding an id keeps ids unique and the position stable."""
        store.apply((Added(row("b", "new")),))

        assert ids(store) == ["a", "b", "c"]
        assert store.rows[1].cells == ("new",)

    def test_modified_replaces_in_place(self, store: TableStore) -> None:
        """Modified keeps the row's position."""
        store.apply((Modified(row("b", "changed")),))

        assert ids(store) == ["a", "b", "c"]
        assert store.rows[1].cells == ("changed",)

    def test_modified_unknown_id_is_added(self, store: TableStore) -> None:
        """Modified for an unseen id appends the row."""
        store.apply((Modified(row("z")),))

        assert ids(store) == ["a", "b", "c", "z"]

    def test_deleted_removes_row(self, store: TableStore) -> None:
        """Deleted removes the row with that id."""
        store.apply((Deleted("b"),))

        assert ids(store) == ["a", "c"]
        assert "b" not in store

    def test_deleted_is_idempotent(self, store: TableStore) -> None:
        """Deleting twice, or deleting an unknown id, is a no-op."""
        store.apply((Deleted("b"),))
        store.apply((Deleted("b"), Deleted("missing")))

        assert ids(store) == ["a", "c"]

    def test_init_markers_toggle_loading(self) -> None:
        """InitStart/InitFinished bracket a reload."""
        table = TableStore()

        table.apply((InitStart(),))
        assert table.loading

        table.apply((InitFinished(),))
        assert not table.loading

    def test_reload_round_trip(self, store: TableStore) -> None:
        """Reseeding with the same listing leaves an identical table."""
        before = store.rows

        store.apply((InitStart(),))
        store.apply(seed_batch(["NAME"], list(before)))

        assert store.rows == before
        assert not store.loading

    def test_add_then_delete_leaves_table_unchanged(self) -> None:
        """Scenario: pod-a added, pod-b added, pod-a deleted."""
        table = TableStore()
        table.apply((Clear(), SetColumns(("NAME", "STATUS"))))

        table.apply((Added(row("pod-a", "pod-a", "Running"), sort_by_id=True),))
        table.apply((Added(row("pod-b", "pod-b", "Pending"), sort_by_id=True),))
        table.apply((Deleted("pod-a"),))

        assert [r.cells for r in table.rows] == [("pod-b", "Pending")]


@pytest.mark.unit
class TestSelection:
    """Tests for cursor and scroll bookkeeping."""

    def test_empty_store_selection(self) -> None:
        """An empty table selects index 0 and has no selected row."""
        table = TableStore()

        assert table.selected == 0
        assert table.selected_row is None
        assert table.select(3) is False

    def test_select_is_clamped(self, store: TableStore) -> None:
        """Selection stays inside the rows."""
        assert store.select(10) is True
        assert store.selected == 2

        assert store.select(-5) is True
        assert store.selected == 0

    def test_select_same_index_reports_no_change(self, store: TableStore) -> None:
        """Selecting the current row is not a change."""
        assert store.select(0) is False

    def test_deleting_selected_last_row_clamps(self, store: TableStore) -> None:
        """Removing rows under the cursor moves it back into range."""
        store.select(2)
        store.apply((Deleted("c"),))

        assert store.selected == 1
        assert store.selected_row == row("b")

    def test_clear_resets_selection_and_scroll(self, store: TableStore) -> None:
        """Clear returns the cursor and window to the top."""
        store.select(2)
        store.scroll_to(2)

        store.apply((Clear(),))

        assert store.selected == 0
        assert store.top_row == 0

    def test_selection_invariant_after_each_batch(self) -> None:
        """selected stays in [0, len) (or 0 when empty) after any batch."""
        table = TableStore()
        batches = [
            seed_batch(["NAME"], [row(str(i)) for i in range(5)]),
            (Deleted("4"), Deleted("3")),
            (Added(row("9"), index=0),),
            (Clear(),),
            (Added(row("x")),),
        ]
        table.select(4)
        for batch in batches:
            table.apply(batch)
            if len(table):
                assert 0 <= table.selected < len(table)
            else:
                assert table.selected == 0
            table.select(len(table) - 1)

    def test_row_at(self, store: TableStore) -> None:
        """row_at returns None out of range."""
        assert store.row_at(1) == row("b")
        assert store.row_at(3) is None
        assert store.row_at(-1) is None

    def test_scroll_to_is_clamped(self, store: TableStore) -> None:
        """The window cannot start past the last row."""
        store.scroll_to(50)

        assert store.top_row == 2
