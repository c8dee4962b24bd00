# tests/test_domain_epc.py
import pytest

from yieldpilot.domain.epc import (
    FALLBACK_NOTE,
    GENERIC_MEASURES,
    RETROFIT_MEASURES,
    CostBand,
    ListingFacts,
    advise,
    epc_gap,
    round_half_up,
)


def _facts(rating="E", price=200000.0, rent=1000.0):
    return ListingFacts(listing_id="L1", epc_rating=rating, price=price, estimated_rent=rent)


def test_gap_counts_bands_towards_a():
    assert epc_gap("E", "C") == 2
    assert epc_gap("C", "C") == 0
    assert epc_gap("B", "C") == -1


def test_already_meets_target():
    a = advise(_facts(rating="B"), "C", CostBand(1000, 2000))
    assert a.epc_gap == 0
    assert a.recommended_measures == []
    assert a.cost_estimate_median == 0.0
    assert a.message is not None


def test_table_costs():
    a = advise(_facts(rating="E", rent=1000.0), "C", CostBand(6000.0, 12000.0))
    assert a.epc_gap == 2
    assert a.cost_estimate_median == 9000.0
    assert a.amort_years == 7
    assert a.monthly_cost == round_half_up(9000.0 / 7 / 12)
    assert a.expected_yield_uplift_pct == pytest.approx(0.6)
    # 9000 / (12000 * 0.6%) = 125
    assert a.payback_years == 125
    assert a.recommended_measures == list(RETROFIT_MEASURES[:4])
    assert a.note is None
    assert not a.is_fallback


def test_rent_falls_back_to_half_percent_of_price():
    a = advise(_facts(rating="D", price=100000.0, rent=None), "C", CostBand(3000.0, 3000.0))
    # rent 500/mo -> 6000/yr, uplift 0.3% -> 18/yr
    assert a.payback_years == round_half_up(3000.0 / 18.0)


def test_fallback_estimates_without_cost_row():
    a = advise(_facts(rating="F", price=150000.0), "C", None)
    assert a.epc_gap == 3
    assert a.cost_estimate_min == 9000.0
    assert a.cost_estimate_max == 18000.0
    assert a.cost_estimate_median == 13500.0
    assert a.recommended_measures == list(GENERIC_MEASURES)
    assert a.expected_yield_uplift_pct == 0.3
    assert a.payback_years == 30
    assert a.note == FALLBACK_NOTE
    assert a.is_fallback


def test_missing_or_unknown_current_grade_defaults_to_d():
    assert advise(_facts(rating=None), "C", None).current_epc == "D"
    assert advise(_facts(rating="X"), "C", None).epc_gap == 1


def test_zero_price_payback_is_zero():
    a = advise(_facts(rating="G", price=0.0), "C", None)
    assert a.payback_years == 0


def test_unknown_target_rejected():
    with pytest.raises(ValueError):
        advise(_facts(), "Z", None)


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(2.49) == 2
