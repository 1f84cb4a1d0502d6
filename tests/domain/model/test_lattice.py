from __future__ import annotations

import pytest

from reconcilio.domain.model import ASSET_STATUS, JOB_STATUS, WEBPAGE_STATE, Lattice


def test_chain_orders_values_lowest_first() -> None:
    lattice = Lattice.chain("level", "low", "mid", "high")

    assert lattice.leq("low", "high")
    assert lattice.leq("mid", "mid")
    assert not lattice.leq("high", "low")
    assert lattice.values == frozenset({"low", "mid", "high"})


def test_join_takes_the_maximum() -> None:
    assert WEBPAGE_STATE.join("uninteresting", "interesting") == "interesting"
    assert WEBPAGE_STATE.join("interesting", "unanalyzed") == "interesting"


def test_join_treats_blank_as_bottom() -> None:
    assert ASSET_STATUS.join(None, "P") == "P"
    assert ASSET_STATUS.join("A", "") == "A"
    assert ASSET_STATUS.join(None, None) is None


def test_join_refuses_incomparable_values() -> None:
    assert JOB_STATUS.join("JP", "JF") is None
    assert JOB_STATUS.join("JF", "JP") is None


def test_join_refuses_values_outside_the_lattice() -> None:
    assert ASSET_STATUS.join("A", "X") is None
    assert ASSET_STATUS.join(None, "X") is None


def test_job_status_terminal_states_outrank_running() -> None:
    assert JOB_STATUS.join("JR", "JF") == "JF"
    assert JOB_STATUS.join("JQ", "JP") == "JP"
    assert not JOB_STATUS.comparable("JP", "JF")


def test_cycle_is_rejected() -> None:
    with pytest.raises(ValueError, match="cycle"):
        Lattice(name="broken", covers=(("a", "b"), ("b", "a")))


def test_self_cover_is_rejected() -> None:
    with pytest.raises(ValueError, match="cover itself"):
        Lattice(name="broken", covers=(("a", "a"),))
