"""Screen-scraping parser for the JumpServer asset listing.

Handles both the Chinese and the English koko menu, e.g.::

      ID | NAME        | ADDRESS      | PLATFORM | ORGANIZATION | COMMENT
    -----+-------------+--------------+----------+--------------+---------
      1  | demo-app-01 | 192.0.2.10   | Linux    | ExampleOrg   | sample
    Page: 1, Count: 15, Total Page: 6, Total Count: 88

Never raises: unrecognised text yields no assets and no pagination.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional

from .models import Asset, PaginationInfo, ParsedPage

logger = logging.getLogger(__name__)

HEADER_MARKERS = ("ID | 名称", "ID | NAME", "-----+--")

ASSET_ROW = re.compile(
    r"^\s*(\d+)\s*\|\s*([^|]+?)\s*\|\s*([^|]+?)\s*\|\s*([^|]+?)\s*\|\s*([^|]+?)\s*\|\s*([^|]*?)\s*$"
)

PAGINATION_PATTERNS = (
    re.compile(r"页码：\s*(\d+)，每页行数：\s*\d+，总页数：\s*(\d+)"),
    re.compile(r"Page:\s*(\d+),\s*Count:\s*\d+,\s*Total Page:\s*(\d+)", re.IGNORECASE),
)


def parse_assets(output: str) -> List[Asset]:
    assets: List[Asset] = []
    found_header = False
    for line in output.split("\n"):
        if any(marker in line for marker in HEADER_MARKERS):
            found_header = True
            continue
        if not found_header:
            continue
        match = ASSET_ROW.match(line)
        if not match:
            continue
        assets.append(
            Asset(
                id=int(match.group(1)),
                name=match.group(2).strip(),
                address=match.group(3).strip(),
                platform=match.group(4).strip(),
                organization=match.group(5).strip(),
                comment=match.group(6).strip(),
            )
        )
    return assets


def parse_pagination(output: str) -> Optional[PaginationInfo]:
    for pattern in PAGINATION_PATTERNS:
        match = pattern.search(output)
        if match:
            return PaginationInfo(
                current_page=int(match.group(1)),
                total_pages=int(match.group(2)),
            )
    return None


def parse_jumpserver_output(output: str) -> ParsedPage:
    """Parse one sanitized page of menu output."""
    page = ParsedPage(assets=parse_assets(output), pagination=parse_pagination(output))
    logger.debug(
        "Parsed page: %d assets, pagination=%s", len(page.assets), page.pagination
    )
    return page
