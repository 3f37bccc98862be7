"""
Repeat-caller aggregation.

A customer who rings three times is one lead, not three. Calls are grouped
by normalized phone number; the group is valued once, from the best lead
score and the detected product seen across its calls, and that value is
split evenly across the group's calls.

Known quirk (kept on purpose, switchable via merge_unknown): every call
without a customer phone number lands in the same "unknown" group and is
valued as a single caller.
"""

import re
import logging
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Tuple

from .lead_score import score_percent
from .products import ProductCatalog, DEFAULT_CATALOG, DEFAULT_PRODUCT, detect_product
from .tiers import Tier, TierPolicy, DEFAULT_TIER_POLICY

logger = logging.getLogger(__name__)

UNKNOWN_PHONE = "unknown"
PHONE_KEY_DIGITS = 10

CallPair = Tuple[Dict, str]


def round_currency(amount: float) -> float:
    """Round to cents, halves away from zero."""
    return float(Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def normalize_phone(phone: Optional[str]) -> str:
    """
    Reduce a phone number to its last 10 digits.

    "(555) 123-4567", "555.123.4567" and "+1 555 123 4567" all become
    "5551234567". Missing or digitless numbers become "unknown".
    """
    if not phone:
        return UNKNOWN_PHONE
    digits = re.sub(r"\D", "", str(phone))
    if not digits:
        return UNKNOWN_PHONE
    return digits[-PHONE_KEY_DIGITS:]


@dataclass
class CallerGroup:
    """Calls from one caller, in fetch order."""
    key: str
    calls: List[CallPair] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.calls)

    def add(self, call: Dict, gclid: str) -> None:
        self.calls.append((call, gclid))


@dataclass(frozen=True)
class GroupValuation:
    """Value decision for one caller group."""
    key: str
    call_count: int
    best_score: float
    tier: Tier
    multiplier: float
    product: str
    product_price: float
    total_value: float
    per_call_value: float

    @property
    def is_zero(self) -> bool:
        return self.total_value <= 0


def group_by_caller(pairs: List[CallPair], merge_unknown: bool = True) -> List[CallerGroup]:
    """
    Partition (call, gclid) pairs by normalized customer phone.

    Groups come back in the order their first call was seen.

    Args:
        pairs: Calls that have a GCLID, in fetch order
        merge_unknown: Pool phoneless calls into one group; when False each
            phoneless call becomes its own group

    Returns:
        List of CallerGroup
    """
    groups: Dict[str, CallerGroup] = {}
    unknown_seq = 0

    for call, gclid in pairs:
        key = normalize_phone(call.get("customer_phone_number"))
        if key == UNKNOWN_PHONE and not merge_unknown:
            unknown_seq += 1
            key = f"{UNKNOWN_PHONE}:{unknown_seq}"
        if key not in groups:
            groups[key] = CallerGroup(key=key)
        groups[key].add(call, gclid)

    return list(groups.values())


def value_group(
    group: CallerGroup,
    catalog: ProductCatalog = DEFAULT_CATALOG,
    tier_policy: TierPolicy = DEFAULT_TIER_POLICY,
) -> GroupValuation:
    """
    Value a caller group.

    - Best score: highest score in the group (first one wins ties)
    - Product: last non-default detection in call order
    - total = round(price * tier multiplier); per call = round(total / calls)

    Args:
        group: Non-empty caller group
        catalog: Product prices
        tier_policy: Score thresholds and multipliers

    Returns:
        GroupValuation (per_call_value is 0 when the group is zero-valued)
    """
    if not group.calls:
        raise ValueError(f"Caller group {group.key!r} has no calls")

    best_score = None
    product = DEFAULT_PRODUCT
    detections = set()

    for call, _gclid in group.calls:
        score = score_percent(call)
        if best_score is None or score > best_score:
            best_score = score
        detected = detect_product(call, catalog)
        if detected != DEFAULT_PRODUCT:
            detections.add(detected)
            product = detected

    if len(detections) > 1:
        logger.info(
            f"Caller {group.key} mentioned several products {sorted(detections)}; using {product}"
        )

    tier = tier_policy.classify(best_score)
    multiplier = tier_policy.multiplier(tier)
    product_price = catalog.price_for(product)
    total_value = round_currency(product_price * multiplier)
    per_call_value = round_currency(total_value / len(group)) if total_value > 0 else 0.0

    return GroupValuation(
        key=group.key,
        call_count=len(group),
        best_score=best_score,
        tier=tier,
        multiplier=multiplier,
        product=product,
        product_price=product_price,
        total_value=total_value,
        per_call_value=per_call_value,
    )
