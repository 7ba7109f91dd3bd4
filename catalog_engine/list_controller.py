"""
Incremental List Controller — Owns a growing product list and its "load more" cycle.

One controller backs one rendered list. It starts from a first page (either
hydrated from a server-rendered Connection or fetched through reset()) and
appends later pages as the UI asks for them:

    IDLE ──load_more()──► FETCHING ──success, more pages──► IDLE
                              │    ──success, last page──► EXHAUSTED
                              └────failure────────────────► ERROR (retry allowed)

Triggers:
    VISIBILITY  The end of the list scrolled into view. Honoured only while
                the list is shorter than auto_load_limit, which bounds the
                network traffic of pure scrolling.
    BUTTON      The manual "load more" control, shown once the auto-load
                limit is reached (see show_load_more_button).

Guarantees:
    * One request per cursor. The cursor is recorded in `requested` before the
      request is awaited. Success keeps it recorded so a late duplicate trigger
      is a no-op. Failure removes it so the page can be retried. A failed
      first page (no cursor yet) is re-requested by the next load_more().
    * Strict cursor order. No new request starts while one is in flight, so a
      page is always merged before the next one is requested.
    * Deduplication by product id, in case adjacent pages overlap because the
      catalog changed between requests.
    * Supersession. reset() and hydrate() start a new generation. A response
      that arrives for an older generation is dropped, never merged.

Everything runs on one asyncio event loop. The check-and-record of a cursor
happens without awaiting in between, which is what makes overlapping triggers
safe without a lock.
"""

import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Hashable, List, Optional, Set

from .exceptions import PageLoadError
from .models import Connection, PageInfo, Product
from .settings import DEFAULT_SETTINGS

logger = logging.getLogger(__name__)

VISIBILITY = "visibility"
BUTTON = "button"

# Async callable fetching the page after the given cursor (None = first page)
PageLoader = Callable[[Optional[str]], Awaitable[Connection]]


class ListState(Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    ERROR = "error"
    EXHAUSTED = "exhausted"


class IncrementalListController:
    """Append-only product list driven by cursor pagination.

    Attributes:
        items: Products loaded so far, in page order, unique by id.
        page_info: PageInfo of the most recently merged page.
        state: Current ListState.
        error: Message of the last failed load (ERROR state only).
        generation: Incremented on every reset; tags in-flight requests.
        key: The filter/sort configuration the current list belongs to.
        requested: Cursors already requested in this generation.
        auto_load_limit: Visibility triggers stop at this many items.
    """

    def __init__(self, loader: Optional[PageLoader] = None, auto_load_limit: int = DEFAULT_SETTINGS["AUTO_LOAD_LIMIT"]):
        self.auto_load_limit = auto_load_limit
        self.items: List[Product] = []
        self.page_info = PageInfo()
        self.state = ListState.EXHAUSTED
        self.error: Optional[str] = None
        self.generation = 0
        self.key: Optional[Hashable] = None
        self.requested: Set[str] = set()
        self.duplicates_dropped = 0
        self._loader = loader
        self._ids: Set[Any] = set()
        self._first_page_failed = False

    # -- lifecycle -------------------------------------------------------

    def hydrate(self, connection: Connection, key: Optional[Hashable] = None, loader: Optional[PageLoader] = None) -> None:
        """Start a new list from an already fetched first page."""
        self._start_generation(key, loader)
        self._merge(connection)

    async def reset(self, loader: PageLoader, key: Optional[Hashable] = None) -> bool:
        """Discard the list and rebuild it from a freshly fetched first page.

        Called whenever the facet/sort state changes. Any response still in
        flight for the previous state is dropped on arrival.

        Returns:
            True if the first page was merged.
        """
        generation = self._start_generation(key, loader)
        self.state = ListState.FETCHING
        return await self._load(None, generation)

    def _start_generation(self, key: Optional[Hashable], loader: Optional[PageLoader]) -> int:
        self.generation += 1
        if loader is not None:
            self._loader = loader
        self.key = key
        self.items = []
        self._ids = set()
        self.requested = set()
        self.page_info = PageInfo()
        self.state = ListState.IDLE
        self.error = None
        self.duplicates_dropped = 0
        self._first_page_failed = False
        logger.debug("List generation %d started (key=%r)", self.generation, key)
        return self.generation

    # -- loading ---------------------------------------------------------

    @property
    def has_more(self) -> bool:
        return self.page_info.has_next_page and bool(self.page_info.end_cursor)

    @property
    def fully_loaded(self) -> bool:
        return self.state is ListState.EXHAUSTED

    @property
    def should_auto_load(self) -> bool:
        return len(self.items) < self.auto_load_limit

    @property
    def show_load_more_button(self) -> bool:
        """The manual control replaces infinite scroll past the auto-load limit."""
        return self.has_more and not self.should_auto_load and self.state is not ListState.FETCHING

    @property
    def show_retry(self) -> bool:
        return self.state is ListState.ERROR

    async def load_more(self, trigger: str = BUTTON) -> bool:
        """Fetch and merge the next page, if one may be requested now.

        Args:
            trigger: VISIBILITY or BUTTON.

        Returns:
            True if a page was fetched and merged; False if the trigger was
            ignored, the load failed, or the response was stale.

        After a failed first page (ERROR with no page merged yet) this
        re-requests the first page, so the retry control always works.
        """
        if trigger == VISIBILITY and not self.should_auto_load:
            return False
        if self.state is ListState.FETCHING:
            return False
        if self._first_page_failed:
            self._require_loader()
            self._first_page_failed = False
            self.state = ListState.FETCHING
            self.error = None
            return await self._load(None, self.generation)
        if not self.has_more:
            return False
        self._require_loader()

        cursor = self.page_info.end_cursor
        if cursor in self.requested:
            logger.debug("Cursor %s already requested, ignoring %s trigger", cursor, trigger)
            return False

        self.requested.add(cursor)
        self.state = ListState.FETCHING
        self.error = None
        return await self._load(cursor, self.generation)

    async def _load(self, cursor: Optional[str], generation: int) -> bool:
        try:
            connection = await self._loader(cursor)
        except Exception as e:
            if generation != self.generation:
                logger.debug("Dropping failure of superseded generation %d: %s", generation, e)
                return False
            if cursor is None:
                self._first_page_failed = True
            else:
                self.requested.discard(cursor)
            self.state = ListState.ERROR
            self.error = str(e)
            if isinstance(e, PageLoadError):
                logger.warning("Loading more products failed: %s", e)
            else:
                logger.exception("Unexpected error while loading products")
            return False

        if generation != self.generation:
            logger.debug("Dropping stale page for generation %d (current %d)", generation, self.generation)
            return False

        self._merge(connection)
        return True

    def _require_loader(self) -> None:
        if self._loader is None:
            raise RuntimeError("No page loader configured; call reset() or hydrate() with a loader first")

    def _merge(self, connection: Connection) -> None:
        added = 0
        for product in connection.nodes():
            product_id = product.get("id")
            if product_id is not None and product_id in self._ids:
                self.duplicates_dropped += 1
                continue
            if product_id is not None:
                self._ids.add(product_id)
            self.items.append(product)
            added += 1

        self.page_info = connection.page_info
        self.state = ListState.IDLE if self.has_more else ListState.EXHAUSTED
        logger.debug("Merged %d products (%d total, state=%s)", added, len(self.items), self.state.value)

    def to_connection(self) -> Connection:
        """The whole loaded list as one Connection (for rendering or saving)."""
        return Connection(edges=[{"node": p} for p in self.items], page_info=self.page_info)
