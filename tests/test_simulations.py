"""Tests for the amortization, growth and milestone simulators."""

import pytest

from finchat.models.finance import Loan, LoanPosition
from finchat.simulations import (
    HORIZON_CAP,
    project_growth,
    project_growth_detail,
    simulate_amortization,
    simulate_position,
    solve_milestone,
)


class TestAmortization:
    """Tests for loan payoff simulation."""

    def test_zero_interest(self):
        """Test that without interest the payoff is principal / payment."""
        result = simulate_amortization(1200, 100, 0.0)
        assert result.as_tuple() == (12, 0.0)
        assert result.converged

    def test_final_payment_is_partial(self):
        """Test that the last period only pays what is left."""
        result = simulate_amortization(250, 100, 0.0)
        assert result.months_to_payoff == 3

    def test_higher_payment_pays_off_sooner(self):
        """Test that paying more never takes longer or costs more interest."""
        slow = simulate_amortization(5000, 200, 0.01)
        fast = simulate_amortization(5000, 300, 0.01)
        assert fast.months_to_payoff < slow.months_to_payoff
        assert fast.total_interest_paid < slow.total_interest_paid

    def test_payment_below_interest_does_not_converge(self):
        """Test that a payment under the first period's interest hits the cap."""
        result = simulate_amortization(1000, 15, 0.02)
        assert result.months_to_payoff == HORIZON_CAP
        assert result.total_interest_paid == pytest.approx(12000.0)
        assert not result.converged

    def test_nothing_owed(self):
        """Test that a zero balance is already paid off."""
        assert simulate_amortization(0, 100, 0.01).as_tuple() == (0, 0.0)

    def test_position_uses_monthly_rate(self):
        """Test simulating a loan snapshot at its annual rate."""
        loan = Loan(user_id="u1", remaining_amount=1200, interest_rate=0, installment_amount=100)
        result = simulate_position(LoanPosition.from_loan(loan, extra=100))
        assert result.months_to_payoff == 6


class TestGrowth:
    """Tests for compound growth projections."""

    def test_zero_rate_adds_contributions(self):
        """Test that at 0% the future value is the sum of contributions."""
        assert project_growth(0, 100, 12, 0, 10) == 12000

    def test_principal_compounds(self):
        """Test yearly compounding of a lump sum."""
        assert project_growth(1000, 0, 1, 0.10, 2) == pytest.approx(1210)

    def test_contributions_compound(self):
        """Test the annuity part of the formula."""
        assert project_growth(0, 100, 1, 0.10, 2) == pytest.approx(210)

    def test_no_compounding_periods(self):
        """Test that zero periods per year leaves the principal as is."""
        assert project_growth(100, 10, 0, 0.05, 10) == 100
        assert project_growth_detail(100, 10, 0, 0.05, 10).investment_gains == 0

    def test_detail_reports_gains(self):
        """Test that the detailed projection separates gains from contributions."""
        projection = project_growth_detail(1000, 100, 12, 0.05, 10)
        assert projection.total_contributions == 13000
        assert projection.investment_gains == pytest.approx(projection.future_value - 13000)
        assert projection.investment_gains > 0


class TestMilestone:
    """Tests for the milestone timeline solver."""

    def test_simple_savings(self):
        """Test months to reach a target without interest."""
        assert solve_milestone(0, 100, 0, 1000) == 10

    def test_interest_shortens_timeline(self):
        """Test that interest never makes the timeline longer."""
        assert solve_milestone(0, 100, 0.12, 1000) <= solve_milestone(0, 100, 0, 1000)

    def test_no_contribution(self):
        """Test that nothing saved means no timeline."""
        assert solve_milestone(0, 0, 0.05, 1000) == 0

    def test_target_already_met(self):
        """Test that a met target needs zero months."""
        assert solve_milestone(5000, 100, 0.05, 1000) == 0

    def test_out_of_reach(self):
        """Test that an unreachable target stops at the horizon cap."""
        assert solve_milestone(0, 1, 0, 1_000_000_000) == HORIZON_CAP
