"""
Browse workflow: publisher -> offer -> SKU -> latest version -> report.
"""
from typing import Callable, List, Optional, Sequence, Tuple
from dataclasses import dataclass, field
from enum import Enum
import logging

from rich.console import Console
from rich.markup import escape

from catalog_client import CatalogClient, FetchFailed, ImageDetail, NamedItem
from config import LATEST_VERSION_TOKEN, MICROSOFT_PUBLISHER_PREFIX
from paginator import DEFAULT_PAGE_SIZE, show_paginated_list

logger = logging.getLogger(__name__)


def version_sort_key(version: str) -> Tuple[int, ...]:
    """Sort key comparing dotted versions segment by segment as integers.

    Non-numeric segments count as 0.
    """
    return tuple(int(part) if part.isdigit() else 0 for part in version.split("."))


def sort_versions(versions: Sequence[str]) -> List[str]:
    """Sort versions oldest first, e.g. 1.2.9 before 1.2.10."""
    return sorted(versions, key=version_sort_key)


class WorkflowState(Enum):
    SELECT_PUBLISHER = "select_publisher"
    SELECT_OFFER = "select_offer"
    SELECT_SKU = "select_sku"
    RESOLVE_VERSIONS = "resolve_versions"
    RENDER_REPORT = "render_report"
    DONE = "done"
    ABORTED = "aborted"


@dataclass
class ImageSelection:
    """The image chosen by the user, plus what was fetched about it."""
    region: str
    publisher: str
    offer: str
    sku: str
    version: str = LATEST_VERSION_TOKEN
    versions: List[str] = field(default_factory=list)  # oldest first
    detail: Optional[ImageDetail] = None

    @property
    def urn(self) -> str:
        return f"{self.publisher}:{self.offer}:{self.sku}:{self.version}"

    @property
    def quick_uri(self) -> str:
        return f"{self.publisher}:{self.offer}:{self.sku}:{LATEST_VERSION_TOKEN}"


@dataclass
class WorkflowResult:
    """Terminal state of one browse run."""
    state: WorkflowState
    exit_code: int = 0
    message: str = ""
    selection: Optional[ImageSelection] = None
    report_path: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.state == WorkflowState.DONE


Selector = Callable[..., Optional[NamedItem]]


def filter_publishers(publishers, microsoft_only: bool = False, search: str = ""):
    """Apply the publisher pre-filters from the command line."""
    result = list(publishers)
    if microsoft_only:
        result = [p for p in result if p.name.lower().startswith(MICROSOFT_PUBLISHER_PREFIX)]
    if search:
        needle = search.lower()
        result = [p for p in result if needle in p.name.lower()]
    return result


class ImageBrowser:
    """Drives the interactive browse-and-report workflow.

    Each selection state fetches one list from the catalog client and hands
    it to the selector. Fetch failures and empty lists abort with exit code
    1; a declined selection aborts with exit code 0.
    """

    def __init__(
        self,
        client: CatalogClient,
        region: str,
        report_writer: Callable[..., str],
        page_size: int = DEFAULT_PAGE_SIZE,
        microsoft_only: bool = False,
        publisher_search: str = "",
        output_dir: str = ".",
        report_prefix: str = "azure-vm-image",
        recent_versions: int = 10,
        console: Optional[Console] = None,
        selector: Optional[Selector] = None,
    ):
        self.client = client
        self.region = region
        self.page_size = page_size
        self.microsoft_only = microsoft_only
        self.publisher_search = publisher_search or ""
        self.output_dir = output_dir
        self.report_prefix = report_prefix
        self.recent_versions = recent_versions
        self.console = console or Console()
        self.selector = selector or show_paginated_list
        self.report_writer = report_writer

        self.state = WorkflowState.SELECT_PUBLISHER
        self.publisher: Optional[str] = None
        self.offer: Optional[str] = None
        self.sku: Optional[str] = None
        self.selection: Optional[ImageSelection] = None
        self.result: Optional[WorkflowResult] = None

    def run(self) -> WorkflowResult:
        """Run the workflow until it finishes or aborts."""
        steps = {
            WorkflowState.SELECT_PUBLISHER: self._select_publisher,
            WorkflowState.SELECT_OFFER: self._select_offer,
            WorkflowState.SELECT_SKU: self._select_sku,
            WorkflowState.RESOLVE_VERSIONS: self._resolve_versions,
            WorkflowState.RENDER_REPORT: self._render_report,
        }
        while self.state not in (WorkflowState.DONE, WorkflowState.ABORTED):
            logger.debug(f"Entering state {self.state.value}")
            self.state = steps[self.state]()
        return self.result

    def _abort(self, exit_code: int, message: str) -> WorkflowState:
        color = "red" if exit_code else "yellow"
        self.console.print(f"[{color}]{escape(message)}[/{color}]")
        self.result = WorkflowResult(
            state=WorkflowState.ABORTED,
            exit_code=exit_code,
            message=message,
            selection=self.selection,
        )
        return WorkflowState.ABORTED

    def _choose(self, fetch: Callable[[], List[NamedItem]], what: str, title: str):
        """Fetch a list and let the user pick from it.

        Returns:
            (item, next_state_on_failure). Exactly one is not None.
        """
        try:
            with self.console.status(f"[cyan]Fetching {what}...[/cyan]"):
                items = fetch()
        except FetchFailed as e:
            logger.error(f"Fetching {what} failed: {e}")
            return None, self._abort(1, f"Error fetching {what}: {e}")

        if not items:
            return None, self._abort(1, f"No {what} found in region '{self.region}'.")

        selected = self.selector(items, title, page_size=self.page_size, console=self.console)
        if selected is None:
            return None, self._abort(0, f"Nothing selected from {what}. Exiting.")
        self.console.print(f"[green]Selected: {escape(selected.display_key)}[/green]")
        return selected, None

    def _fetch_publishers(self):
        publishers = self.client.list_publishers(self.region)
        return filter_publishers(publishers, self.microsoft_only, self.publisher_search)

    def _select_publisher(self) -> WorkflowState:
        title = f"Publishers in {self.region}"
        if self.microsoft_only:
            title += " (Microsoft only)"
        if self.publisher_search:
            title += f" matching '{self.publisher_search}'"
        item, aborted = self._choose(self._fetch_publishers, "publishers", title)
        if aborted:
            return aborted
        self.publisher = item.display_key
        return WorkflowState.SELECT_OFFER

    def _select_offer(self) -> WorkflowState:
        item, aborted = self._choose(
            lambda: self.client.list_offers(self.region, self.publisher),
            "offers",
            f"Offers from {self.publisher}",
        )
        if aborted:
            return aborted
        self.offer = item.display_key
        return WorkflowState.SELECT_SKU

    def _select_sku(self) -> WorkflowState:
        item, aborted = self._choose(
            lambda: self.client.list_skus(self.region, self.publisher, self.offer),
            "SKUs",
            f"SKUs for {self.publisher}:{self.offer}",
        )
        if aborted:
            return aborted
        self.sku = item.display_key
        return WorkflowState.RESOLVE_VERSIONS

    def _resolve_versions(self) -> WorkflowState:
        try:
            with self.console.status("[cyan]Fetching versions...[/cyan]"):
                versions = self.client.list_versions(self.region, self.publisher, self.offer, self.sku)
        except FetchFailed as e:
            logger.error(f"Fetching versions failed: {e}")
            return self._abort(1, f"Error fetching versions: {e}")

        ordered = sort_versions([v.version for v in versions])
        # Without an enumerated version the CLI resolves "latest" itself
        version = ordered[-1] if ordered else LATEST_VERSION_TOKEN
        logger.info(f"Resolved version {version} from {len(ordered)} candidates")

        self.selection = ImageSelection(
            region=self.region,
            publisher=self.publisher,
            offer=self.offer,
            sku=self.sku,
            version=version,
            versions=ordered,
        )

        try:
            with self.console.status(f"[cyan]Fetching image details for {version}...[/cyan]"):
                self.selection.detail = self.client.get_image_detail(
                    self.region, self.publisher, self.offer, self.sku, version
                )
        except FetchFailed as e:
            logger.error(f"Fetching image detail failed: {e}")
            return self._abort(1, f"Error fetching image details: {e}")

        if self.selection.detail is None:
            self.console.print(
                f"[yellow]Image details unavailable for {escape(self.selection.urn)}; "
                "the report will use N/A placeholders.[/yellow]"
            )
        return WorkflowState.RENDER_REPORT

    def _render_report(self) -> WorkflowState:
        report_path = self.report_writer(
            self.selection,
            self.output_dir,
            self.report_prefix,
            recent_versions=self.recent_versions,
        )
        logger.info(f"Report written to {report_path}")
        self.result = WorkflowResult(
            state=WorkflowState.DONE,
            exit_code=0,
            message="Report generated",
            selection=self.selection,
            report_path=report_path,
        )
        return WorkflowState.DONE
