"""Tests for the progression ordering helpers."""

import pytest

from planipeda.services.ordering import array_move, move_by_direction, next_order, renumber, sort_by_order


def items(*ordres):
    return [{"id": f"item-{i}", "ordre": o} for i, o in enumerate(ordres)]


class TestNextOrder:
    """Tests for next_order."""

    def test_empty_progression_starts_at_one(self):
        assert next_order([]) == 1

    def test_max_plus_one(self):
        assert next_order(items(1, 4, 2)) == 5

    def test_ignores_missing_orders(self):
        assert next_order(items(None, 2)) == 3


class TestRenumber:
    """Tests for renumber."""

    def test_assigns_one_to_n_in_list_order(self):
        result = renumber(items(7, 3, 10))
        assert [i["ordre"] for i in result] == [1, 2, 3]
        assert [i["id"] for i in result] == ["item-0", "item-1", "item-2"]

    def test_does_not_mutate_input_dicts(self):
        original = items(5, 6)
        renumber(original)
        assert [i["ordre"] for i in original] == [5, 6]


class TestSortByOrder:
    """Tests for sort_by_order."""

    def test_sorts_ascending_and_keeps_ties_stable(self):
        result = sort_by_order(items(2, 1, 2))
        assert [i["id"] for i in result] == ["item-1", "item-0", "item-2"]

    def test_missing_order_goes_last(self):
        result = sort_by_order(items(None, 1))
        assert [i["id"] for i in result] == ["item-1", "item-0"]


class TestArrayMove:
    """Tests for array_move (drag and drop)."""

    def test_move_forward(self):
        assert array_move(["a", "b", "c", "d"], 0, 2) == ["b", "c", "a", "d"]

    def test_move_backward(self):
        assert array_move(["a", "b", "c", "d"], 3, 1) == ["a", "d", "b", "c"]

    def test_same_index_is_identity(self):
        assert array_move(["a", "b"], 1, 1) == ["a", "b"]

    def test_input_untouched(self):
        original = ["a", "b", "c"]
        array_move(original, 0, 2)
        assert original == ["a", "b", "c"]

    @pytest.mark.parametrize("from_index,to_index", [(-1, 0), (0, 3), (5, 1)])
    def test_out_of_range(self, from_index, to_index):
        with pytest.raises(IndexError):
            array_move(["a", "b", "c"], from_index, to_index)


class TestMoveByDirection:
    """Tests for move_by_direction (arrow buttons)."""

    def test_up(self):
        assert move_by_direction(["a", "b", "c"], 1, "up") == ["b", "a", "c"]

    def test_down(self):
        assert move_by_direction(["a", "b", "c"], 1, "down") == ["a", "c", "b"]

    def test_first_up_is_noop(self):
        assert move_by_direction(["a", "b", "c"], 0, "up") == ["a", "b", "c"]

    def test_last_down_is_noop(self):
        assert move_by_direction(["a", "b", "c"], 2, "down") == ["a", "b", "c"]

    def test_unknown_direction(self):
        with pytest.raises(ValueError):
            move_by_direction(["a", "b"], 0, "left")
