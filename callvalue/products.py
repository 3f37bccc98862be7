"""
Product catalog and product detection.

Products are phase converters sold by horsepower rating. A call's product is
detected from its free text (transcription, note, tags) by looking for an
"<N> hp" / "<N> horse power" / "<N> horsepower" mention whose number is a
catalog key. Calls with no usable mention fall back to the catalog's
"default" price (the average sale).
"""

import re
import logging
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_PRODUCT = "default"

DEFAULT_PRODUCT_PRICES = {
    "3": 895, "5": 1095, "7": 1395, "10": 1995,
    "15": 2495, "20": 2995, "25": 3495, "30": 3995,
    "40": 4995, "50": 5995, "60": 6995, "75": 8495, "100": 10995,
    DEFAULT_PRODUCT: 3500,
}

# Tried in order; the first number that is a catalog key wins
HP_PATTERNS = [
    re.compile(r"(\d+)\s*hp", re.IGNORECASE),
    re.compile(r"(\d+)\s*horse\s*power", re.IGNORECASE),
    re.compile(r"(\d+)\s*horsepower", re.IGNORECASE),
]


class ProductCatalog:
    """
    Immutable horsepower → price lookup with a default fallback price.

    Attributes:
        prices: Read-only mapping of product key to price (includes "default")
    """

    def __init__(self, prices: Optional[Mapping[str, float]] = None):
        prices = dict(DEFAULT_PRODUCT_PRICES if prices is None else prices)
        if DEFAULT_PRODUCT not in prices:
            raise ValueError(f"Product catalog must define a '{DEFAULT_PRODUCT}' price")
        self._prices = MappingProxyType({str(k): prices[k] for k in prices})

    @property
    def prices(self) -> Mapping[str, float]:
        return self._prices

    @property
    def default_price(self) -> float:
        return self._prices[DEFAULT_PRODUCT]

    def __contains__(self, key: object) -> bool:
        return key in self._prices

    def __iter__(self) -> Iterator[str]:
        return iter(self._prices)

    def __len__(self) -> int:
        return len(self._prices)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ProductCatalog):
            return NotImplemented
        return dict(self._prices) == dict(other._prices)

    def __hash__(self) -> int:
        return hash(tuple(sorted(self._prices.items())))

    def __repr__(self) -> str:
        return f"ProductCatalog({dict(self._prices)!r})"

    def price_for(self, product: Optional[str]) -> float:
        """Price of a product key, falling back to the default price."""
        price = self._prices.get(product) if product else None
        return price if price else self.default_price


DEFAULT_CATALOG = ProductCatalog()


def _transcription_text(transcription) -> str:
    if isinstance(transcription, dict):
        return str(transcription.get("text") or "")
    if isinstance(transcription, str):
        return transcription
    return ""


def _tag_names(tags) -> List[str]:
    if not isinstance(tags, (list, tuple)):
        return []
    names = []
    for tag in tags:
        if isinstance(tag, dict):
            name = tag.get("name")
            if name:
                names.append(str(name))
        elif tag:
            names.append(str(tag))
    return names


def build_search_text(call: Dict) -> str:
    """
    Combine transcription, note and tag names into one lowercased blob.

    Args:
        call: CallRail call record

    Returns:
        Lowercased text to scan for product mentions
    """
    note = call.get("note")
    parts = [
        _transcription_text(call.get("transcription")),
        note if isinstance(note, str) else "",
        " ".join(_tag_names(call.get("tags"))),
    ]
    return " ".join(parts).lower()


def detect_product(call: Dict, catalog: ProductCatalog = DEFAULT_CATALOG) -> str:
    """
    Detect the horsepower product referenced by a call.

    A captured number that is not in the catalog is skipped and scanning
    continues with the next match, then the next pattern.

    Args:
        call: CallRail call record
        catalog: Product catalog used to validate captured numbers

    Returns:
        Catalog key (e.g. "25"), or "default" when nothing matches
    """
    text = build_search_text(call)
    if not text.strip():
        return DEFAULT_PRODUCT

    for pattern in HP_PATTERNS:
        for match in pattern.finditer(text):
            hp = match.group(1)
            if hp != DEFAULT_PRODUCT and hp in catalog:
                return hp

    return DEFAULT_PRODUCT
