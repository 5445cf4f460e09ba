from __future__ import annotations

import itertools

import pytest

from stampcard.card import ledger
from stampcard.card.errors import PreconditionFailure, ValidationFailure
from stampcard.card.schemas import Reward


def _reward(reward_id: str, cost: int = 5, name: str = "Coffee") -> Reward:
    return Reward(id=reward_id, name=name, cost=cost)


def test_point_delta_clamps_at_zero():
    for points in range(0, 6):
        for delta in (1, -1):
            assert ledger.apply_point_delta(points, delta) == max(0, points + delta)
    assert ledger.apply_point_delta(0, -1) == 0


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("", ""),
        ("   ", ""),
        (None, ""),
        ("https://example.com/banner.png", "https://example.com/banner.png"),
        ("HTTP://EXAMPLE.COM/a.png", "HTTP://EXAMPLE.COM/a.png"),
        ("  https://example.com/stamp.png  ", "https://example.com/stamp.png"),
    ],
)
def test_image_url_accepted(raw, expected):
    assert ledger.validate_image_url(raw) == expected


@pytest.mark.parametrize(
    "raw",
    ["ftp://example.com/a.png", "example.com/a.png", "javascript:alert(1)", "https:/example.com", "data:image/png"],
)
def test_image_url_rejected(raw):
    with pytest.raises(ValidationFailure) as exc:
        ledger.validate_image_url(raw)
    assert str(exc.value) == ledger.IMAGE_URL_MESSAGE


@pytest.mark.parametrize("raw, expected", [("5", 5), (5.9, 5), ("2.5", 2), ("1e2", 100), (" 7 ", 7), (3, 3)])
def test_reward_cost_floors(raw, expected):
    assert ledger.parse_reward_cost(raw) == expected


@pytest.mark.parametrize("raw", ["", "abc", "0", "-1", "nan", "inf", None, True, "0.5", -2.0])
def test_reward_cost_rejected(raw):
    with pytest.raises(ValidationFailure):
        ledger.parse_reward_cost(raw)


def test_reward_name_trimmed_and_required():
    assert ledger.validate_reward_name("  Coffee ") == "Coffee"
    for raw in ("", "   ", None):
        with pytest.raises(ValidationFailure):
            ledger.validate_reward_name(raw)


def test_new_reward_id_skips_taken_ids():
    candidates = iter(["r1", "r1", "r2"])
    assert ledger.new_reward_id([_reward("r1")], lambda: next(candidates)) == "r2"


def test_prepend_reward_puts_newest_first_and_ids_unique():
    counter = itertools.count(1)
    rewards = []
    for name in ("Coffee", "Cake", "Tea"):
        rewards = ledger.prepend_reward(rewards, name, 3, "", lambda: f"r{next(counter)}", created_at_ms=1)
    assert [r.name for r in rewards] == ["Tea", "Cake", "Coffee"]
    assert len({r.id for r in rewards}) == 3


def test_redeem_points():
    assert ledger.redeem_points(5, _reward("r1", cost=5)) == 0
    assert ledger.redeem_points(9, _reward("r1", cost=5)) == 4
    with pytest.raises(PreconditionFailure) as exc:
        ledger.redeem_points(3, _reward("r1", cost=5))
    assert str(exc.value) == "Not enough points (currently 3, need 5)."


def test_remove_reward_keeps_relative_order():
    rewards = [_reward("a"), _reward("b"), _reward("c"), _reward("d")]
    remaining = ledger.remove_reward(rewards, "b")
    assert [r.id for r in remaining] == ["a", "c", "d"]
    assert remaining[0] == rewards[0]
    assert ledger.remove_reward(rewards, "missing") == rewards


@pytest.mark.parametrize("raw", [10**400, "1e300", 2**53, float(2**60), "1e400"])
def test_reward_cost_rejects_out_of_range_values(raw):
    with pytest.raises(ValidationFailure):
        ledger.parse_reward_cost(raw)


def test_reward_cost_upper_bound_is_inclusive():
    assert ledger.parse_reward_cost(ledger.MAX_REWARD_COST) == ledger.MAX_REWARD_COST


def test_reward_catalog_edits_keep_stored_entries():
    legacy = {"id": "legacy", "name": "Old", "cost": 0}
    stored = [{"id": "r1", "name": "Coffee", "cost": 5}, legacy]

    added = ledger.prepend_reward(stored, "Cake", 8, "", lambda: "r1-new", created_at_ms=1)
    assert added[0].id == "r1-new"
    assert added[1:] == stored

    assert ledger.remove_reward(stored, "r1") == [legacy]
    candidates = iter(["legacy", "r2"])
    assert ledger.new_reward_id(stored, lambda: next(candidates)) == "r2"
