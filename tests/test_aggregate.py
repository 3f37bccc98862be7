"""
Repeat-caller grouping and group valuation.
"""

import os
import sys

import pytest

_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, _root)

from callvalue.aggregate import (
    CallerGroup,
    group_by_caller,
    normalize_phone,
    round_currency,
    value_group,
)
from callvalue.tiers import Tier


def _call(call_id, phone=None, lead_score=None, note=None):
    return {
        "id": call_id,
        "customer_phone_number": phone,
        "lead_score": lead_score,
        "note": note,
    }


def _group(*calls):
    group = CallerGroup(key="5551234567")
    for i, call in enumerate(calls):
        group.add(call, f"gclid-{i}")
    return group


def test_normalize_phone_formats_match():
    assert normalize_phone("(555) 123-4567") == "5551234567"
    assert normalize_phone("555.123.4567") == "5551234567"
    assert normalize_phone("+1 555 123 4567") == "5551234567"
    assert normalize_phone("+15551234567") == "5551234567"


def test_normalize_phone_unknown():
    assert normalize_phone(None) == "unknown"
    assert normalize_phone("") == "unknown"
    assert normalize_phone("private") == "unknown"


def test_group_by_caller_merges_formats_in_first_seen_order():
    pairs = [
        (_call("A", "(555) 123-4567"), "g1"),
        (_call("B", "480-555-0000"), "g2"),
        (_call("C", "555.123.4567"), "g3"),
    ]
    groups = group_by_caller(pairs)
    assert [g.key for g in groups] == ["5551234567", "4805550000"]
    assert [c["id"] for c, _ in groups[0].calls] == ["A", "C"]
    assert [g for _, g in groups[0].calls] == ["g1", "g3"]


def test_phoneless_calls_share_one_group_by_default():
    pairs = [(_call("A"), "g1"), (_call("B", ""), "g2")]
    groups = group_by_caller(pairs)
    assert len(groups) == 1
    assert groups[0].key == "unknown"
    assert len(groups[0]) == 2


def test_phoneless_calls_split_when_not_merging():
    pairs = [(_call("A"), "g1"), (_call("B", ""), "g2"), (_call("C", "5551234567"), "g3")]
    groups = group_by_caller(pairs, merge_unknown=False)
    assert [g.key for g in groups] == ["unknown:1", "unknown:2", "5551234567"]


def test_two_calls_very_good_10hp_split_evenly():
    group = _group(
        _call("A", "5551234567", lead_score=85),
        _call("B", "5551234567", lead_score=40, note="quote for a 10 hp converter"),
    )
    v = value_group(group)
    assert v.best_score == 85
    assert v.tier == Tier.VERY_GOOD
    assert v.product == "10"
    assert v.product_price == 1995
    assert v.total_value == 1995.00
    assert v.per_call_value == 997.50


def test_best_score_is_group_maximum():
    group = _group(_call("A", lead_score=10), _call("B", lead_score="good"), _call("C", lead_score=65))
    v = value_group(group)
    assert v.best_score == 70
    assert v.tier == Tier.GOOD


def test_last_detected_product_wins():
    group = _group(
        _call("A", lead_score=90, note="5 hp"),
        _call("B", lead_score=90, note="50 hp"),
        _call("C", lead_score=90),
    )
    v = value_group(group)
    assert v.product == "50"
    assert v.product_price == 5995


def test_default_product_price():
    v = value_group(_group(_call("A", lead_score="fair")))
    assert v.product == "default"
    assert v.total_value == 1750.00
    assert v.per_call_value == 1750.00


def test_very_poor_group_is_zero_valued():
    v = value_group(_group(_call("A", lead_score=5), _call("B", lead_score="very_poor")))
    assert v.is_zero
    assert v.total_value == 0
    assert v.per_call_value == 0


def test_split_rounding_stays_within_half_cent_per_call():
    calls = [_call(str(i), lead_score=30, note="7hp") for i in range(3)]
    v = value_group(_group(*calls))
    # 1395 * 0.25 = 348.75; / 3 = 116.25
    assert v.total_value == 348.75
    assert v.per_call_value == 116.25
    assert abs(v.per_call_value * 3 - v.total_value) <= 3 * 0.005

    calls = [_call(str(i), lead_score=85) for i in range(3)]
    v = value_group(_group(*calls))
    assert v.per_call_value == 1166.67
    assert abs(v.per_call_value * 3 - v.total_value) <= 3 * 0.005


def test_empty_group_rejected():
    with pytest.raises(ValueError):
        value_group(CallerGroup(key="x"))


def test_round_currency_half_up():
    assert round_currency(2.675) == 2.68
    assert round_currency(0.125) == 0.13
    assert round_currency(997.5) == 997.5
