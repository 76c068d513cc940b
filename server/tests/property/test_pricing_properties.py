"""Property-based tests for booking pricing invariants."""

from datetime import date
from decimal import Decimal

from hypothesis import given
from hypothesis import strategies as st

from tourdesk.models.booking import BookingTier
from tourdesk.services.pricing import compute_end_date, compute_total_price, resolve_price_per_person

# Strategies for generating test data
prices = st.decimals(min_value=Decimal("0"), max_value=Decimal("99999.99"), places=2)
optional_prices = st.one_of(st.none(), prices)
guest_counts = st.integers(min_value=1, max_value=20)
tiers = st.sampled_from(list(BookingTier))
durations = st.integers(min_value=1, max_value=30)
start_dates = st.dates(min_value=date(2020, 1, 1), max_value=date(2035, 12, 31))


@given(tier=tiers, standard=prices, premium=optional_prices, guests=guest_counts)
def test_total_is_price_per_person_times_guests(tier, standard, premium, guests):
    """Two-decimal prices multiply exactly; rounding never changes the total."""
    per_person = resolve_price_per_person(tier, standard, premium)

    assert compute_total_price(per_person, guests) == per_person * guests


@given(standard=prices, premium=optional_prices)
def test_premium_price_applies_only_when_present(standard, premium):
    expected = premium if premium is not None else standard

    assert resolve_price_per_person(BookingTier.PREMIUM, standard, premium) == expected
    assert resolve_price_per_person(BookingTier.STANDARD, standard, premium) == standard


@given(standard=prices, guests=guest_counts)
def test_total_grows_with_guests(standard, guests):
    assert compute_total_price(standard, guests + 1) >= compute_total_price(standard, guests)


@given(start=start_dates, duration=durations)
def test_end_date_is_duration_days_after_start(start, duration):
    end = compute_end_date(start, duration)

    assert end > start
    assert (end - start).days == duration
