"""Data models for the asset enumeration."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional


@dataclass
class Asset:
    """One row of the bastion's asset listing; ``address`` is its identity."""

    name: str
    address: str
    id: Optional[int] = None
    platform: str = ""
    organization: str = ""
    comment: str = ""

    def to_payload(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "platform": self.platform,
            "organization": self.organization,
            "comment": self.comment,
        }


@dataclass
class PaginationInfo:
    current_page: int = 1
    total_pages: int = 1


@dataclass
class ParsedPage:
    """Parser output for one page. ``pagination`` is None when the page had none."""

    assets: List[Asset] = field(default_factory=list)
    pagination: Optional[PaginationInfo] = None

    @property
    def recognized(self) -> bool:
        return bool(self.assets) or self.pagination is not None


class AssetSet:
    """Insertion-ordered assets, unique by address (first seen wins)."""

    def __init__(self, assets: Iterable[Asset] = ()) -> None:
        self._by_address: Dict[str, Asset] = {}
        self.extend(assets)

    def add(self, asset: Asset) -> bool:
        if asset.address in self._by_address:
            return False
        self._by_address[asset.address] = asset
        return True

    def extend(self, assets: Iterable[Asset]) -> int:
        """Add ``assets``; return how many addresses were new."""
        return sum(1 for asset in assets if self.add(asset))

    def __contains__(self, address: object) -> bool:
        return address in self._by_address

    def __len__(self) -> int:
        return len(self._by_address)

    def __iter__(self) -> Iterator[Asset]:
        return iter(self._by_address.values())

    def to_list(self) -> List[Asset]:
        return list(self._by_address.values())
