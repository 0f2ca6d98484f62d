"""Walk every page of the asset menu and merge the results."""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Callable, List, Optional

from ..errors import MenuFormatError
from .dialect import DEFAULT_DIALECT, MenuDialect
from .models import Asset, AssetSet, PaginationInfo, ParsedPage
from .parser import parse_jumpserver_output

logger = logging.getLogger(__name__)

DEFAULT_MAX_PAGES = 100
DEFAULT_MAX_TOTAL_TIME = 5 * 60.0

PageParser = Callable[[str], ParsedPage]


class StopReason(str, Enum):
    """Why the last enumeration stopped paging."""

    COMPLETE = "complete"
    EMPTY_PAGE = "empty_page"          # remote truncated results
    NO_NEW_ASSETS = "no_new_assets"    # remote repeats the last page
    PAGE_LIMIT = "page_limit"
    TIME_LIMIT = "time_limit"


class PaginationDriver:
    """Issues list / next-page exchanges until the listing is exhausted.

    All-or-nothing: an exchange failure propagates and the partial set is
    dropped. Stalls are soft: they are logged and end enumeration early.
    """

    def __init__(
        self,
        run_exchange: Callable[[str], str],
        parser: PageParser = parse_jumpserver_output,
        *,
        dialect: MenuDialect = DEFAULT_DIALECT,
        max_pages: int = DEFAULT_MAX_PAGES,
        max_total_time: float = DEFAULT_MAX_TOTAL_TIME,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._run_exchange = run_exchange
        self._parser = parser
        self.dialect = dialect
        self.max_pages = max_pages
        self.max_total_time = max_total_time
        self._clock = clock
        self.stop_reason: Optional[StopReason] = None
        self.pages_fetched = 0

    def _fetch(self, command: str) -> ParsedPage:
        output = self._run_exchange(command)
        self.pages_fetched += 1
        try:
            return self._parser(output)
        except Exception as exc:
            raise MenuFormatError(f"Page parser failed: {exc}") from exc

    def enumerate_all(self) -> List[Asset]:
        self.stop_reason = None
        self.pages_fetched = 0
        started = self._clock()

        first = self._fetch(self.dialect.list_command)
        if not first.recognized:
            raise MenuFormatError(
                "Asset listing not recognised; the remote menu format may have changed"
            )
        assets = AssetSet(first.assets)
        pagination = first.pagination or PaginationInfo()
        logger.info(
            "First page: %d assets, page %d of %d",
            len(first.assets),
            pagination.current_page,
            pagination.total_pages,
        )

        stop = StopReason.COMPLETE
        while pagination.current_page < pagination.total_pages:
            if self.pages_fetched >= self.max_pages:
                logger.warning(
                    "Reached page limit (%d) with %d pages reported, stopping",
                    self.max_pages,
                    pagination.total_pages,
                )
                stop = StopReason.PAGE_LIMIT
                break
            if self._clock() - started > self.max_total_time:
                logger.warning(
                    "Enumeration running for more than %.0fs, stopping", self.max_total_time
                )
                stop = StopReason.TIME_LIMIT
                break

            next_page = pagination.current_page + 1
            page = self._fetch(self.dialect.next_page_command)
            pagination = self._merge_pagination(pagination, page.pagination)

            if not page.assets:
                logger.warning(
                    "Page %d has no assets, stopping pagination (expected %d pages)",
                    next_page,
                    pagination.total_pages,
                )
                stop = StopReason.EMPTY_PAGE
                break

            if not assets.extend(page.assets):
                logger.warning(
                    "Page %d found no new assets, may be duplicate data, stopping pagination",
                    next_page,
                )
                stop = StopReason.NO_NEW_ASSETS
                break
            logger.info("Page %d processed, total assets: %d", next_page, len(assets))

        self.stop_reason = stop
        logger.info(
            "Enumeration finished (%s): %d assets in %d pages",
            stop.value,
            len(assets),
            self.pages_fetched,
        )
        return assets.to_list()

    @staticmethod
    def _merge_pagination(
        current: PaginationInfo, reported: Optional[PaginationInfo]
    ) -> PaginationInfo:
        # Some remotes only print totals on the first page; advance locally then.
        if reported is not None and reported.total_pages > 1:
            return reported
        return PaginationInfo(
            current_page=current.current_page + 1,
            total_pages=current.total_pages,
        )
