"""
Interactive paginated list selection.

Presents any ordered list of named items a page at a time and lets the user
pick one item by number, move between pages, filter the list, or quit.
"""
from typing import Callable, List, Optional, Sequence, TypeVar
from dataclasses import dataclass
from enum import Enum
import logging
import math
import re

from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt

from catalog_client import NamedItem

logger = logging.getLogger(__name__)

INDEX_PATTERN = re.compile(r"-?[0-9]+")

T = TypeVar("T", bound=NamedItem)

DEFAULT_PAGE_SIZE = 20

COMMAND_HELP = (
    "[dim][bold]#[/bold] select  [bold]n[/bold] next  [bold]p[/bold] previous  "
    "[bold]s[/bold] select by number  [bold]f[/bold] filter  [bold]q[/bold] quit[/dim]"
)


class SelectionOutcome(Enum):
    """How a paginated selection ended."""
    SELECTED = "selected"
    QUIT = "quit"
    EMPTY = "empty"


@dataclass
class PaginationState:
    """Cursor and filter context for one browsing session."""
    page: int
    page_size: int
    total_items: int
    filter_text: str = ""

    @property
    def total_pages(self) -> int:
        return total_pages(self.total_items, self.page_size)

    def next_page(self) -> bool:
        """Advance one page. Returns False if already on the last page."""
        if self.page >= self.total_pages:
            return False
        self.page += 1
        return True

    def previous_page(self) -> bool:
        """Go back one page. Returns False if already on the first page."""
        if self.page <= 1:
            return False
        self.page -= 1
        return True


def total_pages(count: int, page_size: int) -> int:
    return math.ceil(count / page_size)


def is_index(text: str) -> bool:
    """True for a plain ASCII integer such as "7" or "-3"."""
    return INDEX_PATTERN.fullmatch(text) is not None


def filter_items(items: Sequence[T], filter_text: str) -> List[T]:
    """Keep items whose display key contains filter_text, ignoring case.

    An empty filter keeps everything. The input is never modified.
    """
    if not filter_text:
        return list(items)
    needle = filter_text.lower()
    return [item for item in items if needle in item.display_key.lower()]


def page_slice(items: Sequence[T], page: int, page_size: int) -> List[T]:
    """Return the items shown on a 1-based page."""
    start = (page - 1) * page_size
    return list(items[start:start + page_size])


class ListPaginator:
    """Blocking read-eval loop selecting one item from a list.

    Args:
        items: Items to browse. Not modified.
        title: Heading shown above every page
        page_size: Items per page (must be positive)
        filter_text: Initial filter applied before paging
        console: Console used for output
        prompt: Callable reading one line of input for a given message.
            Defaults to rich's Prompt.ask on the console.
    """

    def __init__(
        self,
        items: Sequence[T],
        title: str,
        page_size: int = DEFAULT_PAGE_SIZE,
        filter_text: str = "",
        console: Optional[Console] = None,
        prompt: Optional[Callable[[str], str]] = None,
    ):
        if page_size < 1:
            raise ValueError(f"page_size must be a positive integer, got {page_size}")
        self.items = items
        self.title = title
        self.page_size = page_size
        self.filter_text = filter_text or ""
        self.console = console or Console()
        self._prompt = prompt or self._rich_prompt
        self.state: Optional[PaginationState] = None
        self.outcome: Optional[SelectionOutcome] = None

    def _rich_prompt(self, message: str) -> str:
        return Prompt.ask(message, console=self.console, default="", show_default=False)

    def _reset(self, filter_text: str) -> List[T]:
        filtered = filter_items(self.items, filter_text)
        self.state = PaginationState(
            page=1,
            page_size=self.page_size,
            total_items=len(filtered),
            filter_text=filter_text,
        )
        return filtered

    def _render(self, filtered: List[T]) -> None:
        state = self.state
        self.console.print()
        self.console.rule(f"[bold cyan]{escape(self.title)}[/bold cyan]")
        header = f"Page {state.page} of {state.total_pages} ({state.total_items} items)"
        if state.filter_text:
            header += f"  [yellow]filter: '{escape(state.filter_text)}'[/yellow]"
        self.console.print(header)
        self.console.print()

        offset = (state.page - 1) * state.page_size
        for position, item in enumerate(page_slice(filtered, state.page, state.page_size), start=1):
            self.console.print(f"  [cyan]{offset + position:>4}.[/cyan] {escape(item.display_key)}")

        self.console.print()
        self.console.print(COMMAND_HELP)

    def _select(self, filtered: List[T], answer: str) -> Optional[T]:
        text = answer.strip()
        if not is_index(text):
            self.console.print(f"[red]'{escape(answer)}' is not a number.[/red]")
            return None
        index = int(text)
        if index < 1 or index > len(filtered):
            self.console.print(
                f"[red]Selection out of range. Enter a number between 1 and {len(filtered)}.[/red]"
            )
            return None
        return filtered[index - 1]

    def run(self) -> Optional[T]:
        """Run the selection loop.

        Returns:
            The chosen item, or None if the user quit or nothing matched.
            ``outcome`` tells the two apart.
        """
        filtered = self._reset(self.filter_text)

        while True:
            if self.state.total_items == 0:
                if self.state.filter_text:
                    self.console.print(f"[yellow]No items match '{escape(self.state.filter_text)}'.[/yellow]")
                else:
                    self.console.print("[yellow]No items to select from.[/yellow]")
                self.outcome = SelectionOutcome.EMPTY
                return None

            self._render(filtered)
            answer = self._prompt("[cyan]Selection[/cyan]")
            command = answer.strip().lower()

            if command == "q":
                self.outcome = SelectionOutcome.QUIT
                return None
            elif command == "n":
                if not self.state.next_page():
                    self.console.print("[dim]Already on the last page.[/dim]")
            elif command == "p":
                if not self.state.previous_page():
                    self.console.print("[dim]Already on the first page.[/dim]")
            elif command == "f":
                new_filter = self._prompt("[cyan]Filter (empty to clear)[/cyan]").strip()
                logger.debug(f"Filter changed to '{new_filter}'")
                filtered = self._reset(new_filter)
            elif command == "s":
                answer = self._prompt(f"[cyan]Item number (1-{len(filtered)})[/cyan]")
                item = self._select(filtered, answer)
                if item is not None:
                    self.outcome = SelectionOutcome.SELECTED
                    return item
            else:
                if not is_index(command):
                    self.console.print(f"[red]Invalid input '{escape(answer)}'.[/red]")
                    continue
                item = self._select(filtered, command)
                if item is not None:
                    self.outcome = SelectionOutcome.SELECTED
                    return item


def show_paginated_list(
    items: Sequence[T],
    title: str,
    page_size: int = DEFAULT_PAGE_SIZE,
    filter_text: str = "",
    console: Optional[Console] = None,
    prompt: Optional[Callable[[str], str]] = None,
) -> Optional[T]:
    """Convenience function to run one paginated selection."""
    return ListPaginator(
        items,
        title,
        page_size=page_size,
        filter_text=filter_text,
        console=console,
        prompt=prompt,
    ).run()
