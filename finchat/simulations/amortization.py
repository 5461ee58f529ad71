"""
Amortization Simulator

Pays a loan down one period at a time: interest accrues on the balance,
the rest of the payment reduces principal. The loop is bounded by
HORIZON_CAP periods (50 years of monthly payments).

A payment that does not cover the period's interest can never pay the
loan off. That is reported as a non-converged result at the cap, with
interest extrapolated over the whole horizon, instead of looping.
"""

from finchat.models.finance import AmortizationResult, LoanPosition


HORIZON_CAP = 600


def simulate_amortization(
    principal: float,
    payment: float,
    periodic_rate: float,
    horizon_cap: int = HORIZON_CAP,
) -> AmortizationResult:
    """
    Simulate paying off a loan.

    Args:
        principal: Outstanding balance
        payment: Amount paid each period
        periodic_rate: Interest per period as a fraction (0.01 = 1%)
        horizon_cap: Maximum number of periods simulated

    Returns:
        Periods until the balance reaches zero and total interest paid.
    """
    if principal <= 0 or payment <= 0:
        return AmortizationResult(months_to_payoff=0, total_interest_paid=0.0)

    balance = principal
    total_interest = 0.0
    periods = 0

    while balance > 0 and periods < horizon_cap:
        interest = balance * periodic_rate
        total_interest += interest
        principal_reduction = min(payment - interest, balance)
        if principal_reduction <= 0:
            return AmortizationResult(
                months_to_payoff=horizon_cap,
                total_interest_paid=total_interest * horizon_cap,
                converged=False,
            )
        balance -= principal_reduction
        periods += 1

    return AmortizationResult(
        months_to_payoff=periods,
        total_interest_paid=total_interest,
        converged=balance <= 0,
    )


def simulate_position(position: LoanPosition, horizon_cap: int = HORIZON_CAP) -> AmortizationResult:
    """Simulate a loan snapshot at its monthly rate."""
    return simulate_amortization(
        position.outstanding_principal,
        position.periodic_payment,
        position.monthly_rate,
        horizon_cap,
    )
