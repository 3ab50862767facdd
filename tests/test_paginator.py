"""Tests for paginator.py - filtering, paging and the selection loop."""
import io

import pytest
from rich.console import Console

from catalog_client import Offer, Publisher
from paginator import (
    ListPaginator,
    PaginationState,
    SelectionOutcome,
    filter_items,
    page_slice,
    show_paginated_list,
    total_pages,
)


def make_prompt(answers):
    """Return a prompt callable that replays answers in order."""
    remaining = iter(answers)

    def prompt(message):
        try:
            return next(remaining)
        except StopIteration:
            raise AssertionError("paginator asked for more input than expected")

    return prompt


def make_console():
    return Console(file=io.StringIO(), width=120)


def output_of(console):
    return console.file.getvalue()


@pytest.fixture
def publishers():
    return [Publisher(name=f"Publisher{i:02d}") for i in range(1, 46)]


@pytest.fixture
def mixed():
    return [
        Publisher(name="Canonical"),
        Publisher(name="RedHat"),
        Publisher(name="CanonicalCore"),
    ]


class TestFilterItems:
    """Tests for filter_items()."""

    def test_case_insensitive_substring(self, mixed):
        result = filter_items(mixed, "canonical")
        assert [p.name for p in result] == ["Canonical", "CanonicalCore"]

    def test_uppercase_filter(self, mixed):
        result = filter_items(mixed, "HAT")
        assert [p.name for p in result] == ["RedHat"]

    def test_empty_filter_keeps_everything(self, mixed):
        assert filter_items(mixed, "") == mixed

    def test_idempotent(self, mixed):
        once = filter_items(mixed, "canon")
        assert filter_items(once, "canon") == once

    def test_does_not_modify_input(self, mixed):
        filter_items(mixed, "redhat")
        assert len(mixed) == 3

    def test_uses_display_key_of_variant(self):
        offers = [Offer(offer="UbuntuServer"), Offer(offer="WindowsServer")]
        assert filter_items(offers, "ubuntu") == [offers[0]]


class TestPaging:
    """Tests for page count and page slicing."""

    def test_total_pages(self):
        assert total_pages(45, 20) == 3
        assert total_pages(40, 20) == 2
        assert total_pages(1, 20) == 1
        assert total_pages(0, 20) == 0

    def test_pages_cover_list_in_order(self, publishers):
        pages = [page_slice(publishers, page, 20) for page in range(1, total_pages(45, 20) + 1)]
        flattened = [item for page in pages for item in page]
        assert flattened == publishers
        assert [len(page) for page in pages] == [20, 20, 5]

    def test_state_next_stops_at_last_page(self):
        state = PaginationState(page=3, page_size=20, total_items=45)
        assert state.next_page() is False
        assert state.page == 3

    def test_state_previous_stops_at_first_page(self):
        state = PaginationState(page=1, page_size=20, total_items=45)
        assert state.previous_page() is False
        assert state.page == 1

    def test_state_moves_between_pages(self):
        state = PaginationState(page=1, page_size=20, total_items=45)
        assert state.next_page() is True
        assert state.next_page() is True
        assert state.page == 3
        assert state.previous_page() is True
        assert state.page == 2


class TestSelectionLoop:
    """Tests for ListPaginator.run()."""

    def test_direct_selection_beyond_current_page(self, publishers):
        console = make_console()
        paginator = ListPaginator(publishers, "Publishers", console=console, prompt=make_prompt(["25"]))
        assert paginator.run() is publishers[24]
        assert paginator.outcome == SelectionOutcome.SELECTED
        assert paginator.state.total_pages == 3
        assert paginator.state.page == 1

    def test_selection_independent_of_current_page(self, publishers):
        paginator = ListPaginator(
            publishers, "Publishers", console=make_console(), prompt=make_prompt(["n", "n", "5"])
        )
        assert paginator.run() is publishers[4]
        assert paginator.state.page == 3

    def test_renders_global_indices(self, publishers):
        console = make_console()
        show_paginated_list(publishers, "Publishers", console=console, prompt=make_prompt(["n", "q"]))
        output = output_of(console)
        assert "1. Publisher01" in output
        assert "21. Publisher21" in output
        assert "Page 2 of 3 (45 items)" in output

    @pytest.mark.parametrize("bad", ["0", "-3", "46"])
    def test_out_of_range_reprompts(self, publishers, bad):
        console = make_console()
        paginator = ListPaginator(publishers, "Publishers", console=console, prompt=make_prompt([bad, "7"]))
        assert paginator.run() is publishers[6]
        assert "out of range" in output_of(console)

    def test_next_on_last_page_is_noop(self, mixed):
        console = make_console()
        paginator = ListPaginator(mixed, "Publishers", console=console, prompt=make_prompt(["n", "q"]))
        assert paginator.run() is None
        assert paginator.state.page == 1
        assert "last page" in output_of(console)

    def test_previous_on_first_page_is_noop(self, publishers):
        console = make_console()
        paginator = ListPaginator(publishers, "Publishers", console=console, prompt=make_prompt(["p", "q"]))
        assert paginator.run() is None
        assert paginator.state.page == 1
        assert "first page" in output_of(console)

    def test_quit_returns_none(self, mixed):
        paginator = ListPaginator(mixed, "Publishers", console=make_console(), prompt=make_prompt(["q"]))
        assert paginator.run() is None
        assert paginator.outcome == SelectionOutcome.QUIT

    def test_commands_are_case_insensitive(self, publishers):
        paginator = ListPaginator(publishers, "Publishers", console=make_console(), prompt=make_prompt(["N", "Q"]))
        assert paginator.run() is None
        assert paginator.state.page == 2
        assert paginator.outcome == SelectionOutcome.QUIT

    def test_select_command_validates_index(self, mixed):
        console = make_console()
        paginator = ListPaginator(
            mixed, "Publishers", console=console, prompt=make_prompt(["s", "99", "s", "abc", "s", "3"])
        )
        assert paginator.run() is mixed[2]
        output = output_of(console)
        assert "out of range" in output
        assert "not a number" in output

    def test_invalid_input_keeps_page(self, publishers):
        console = make_console()
        paginator = ListPaginator(
            publishers, "Publishers", console=console, prompt=make_prompt(["n", "hello", "", "q"])
        )
        paginator.run()
        assert paginator.state.page == 2
        assert "Invalid input" in output_of(console)

    @pytest.mark.parametrize("odd_number", ["1_0", "+7", "１２", "3.0", "1e1"])
    def test_non_plain_integers_are_invalid(self, publishers, odd_number):
        console = make_console()
        paginator = ListPaginator(
            publishers, "Publishers", console=console, prompt=make_prompt([odd_number, "q"])
        )
        assert paginator.run() is None
        assert paginator.outcome == SelectionOutcome.QUIT
        assert "Invalid input" in output_of(console)

    @pytest.mark.parametrize("odd_number", ["1_0", "+7", "１２"])
    def test_select_command_rejects_non_plain_integers(self, publishers, odd_number):
        console = make_console()
        paginator = ListPaginator(
            publishers, "Publishers", console=console, prompt=make_prompt(["s", odd_number, "q"])
        )
        assert paginator.run() is None
        assert "not a number" in output_of(console)

    def test_filter_command_restarts_on_first_page(self, mixed):
        paginator = ListPaginator(
            mixed, "Publishers", page_size=1, console=make_console(),
            prompt=make_prompt(["n", "f", "canonical", "2"]),
        )
        assert paginator.run() is mixed[2]
        assert paginator.state.filter_text == "canonical"
        assert paginator.state.total_items == 2

    def test_filter_replaces_previous_filter(self, mixed):
        paginator = ListPaginator(
            mixed, "Publishers", filter_text="red", console=make_console(),
            prompt=make_prompt(["f", "canonical", "1"]),
        )
        assert paginator.run() is mixed[0]

    def test_empty_filter_clears(self, mixed):
        paginator = ListPaginator(
            mixed, "Publishers", filter_text="red", console=make_console(),
            prompt=make_prompt(["f", "", "3"]),
        )
        assert paginator.run() is mixed[2]
        assert paginator.state.total_items == 3

    def test_repeated_filtering_does_not_recurse(self, publishers):
        answers = []
        for _ in range(1100):
            answers += ["f", "publisher01"]
        answers.append("q")
        paginator = ListPaginator(publishers, "Publishers", console=make_console(), prompt=make_prompt(answers))
        assert paginator.run() is None
        assert paginator.outcome == SelectionOutcome.QUIT

    def test_filter_matching_nothing_ends_empty(self, mixed):
        console = make_console()
        paginator = ListPaginator(mixed, "Publishers", console=console, prompt=make_prompt(["f", "zzz"]))
        assert paginator.run() is None
        assert paginator.outcome == SelectionOutcome.EMPTY
        assert "No items match 'zzz'" in output_of(console)

    def test_empty_list_returns_without_prompting(self):
        paginator = ListPaginator([], "Publishers", console=make_console(), prompt=make_prompt([]))
        assert paginator.run() is None
        assert paginator.outcome == SelectionOutcome.EMPTY

    def test_initial_filter_applied(self, mixed):
        paginator = ListPaginator(
            mixed, "Publishers", filter_text="CANONICAL", console=make_console(), prompt=make_prompt(["2"])
        )
        assert paginator.run() is mixed[2]

    def test_invalid_page_size(self, mixed):
        with pytest.raises(ValueError):
            ListPaginator(mixed, "Publishers", page_size=0)
