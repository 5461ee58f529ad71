"""
Milestone Timeline Solver

How many months of saving until a balance reaches a target, with each
month's contribution deposited before that month's interest is applied.
Bounded by the same horizon as the amortization simulator.
"""

from finchat.simulations.amortization import HORIZON_CAP


def solve_milestone(
    starting_balance: float,
    contribution: float,
    annual_rate: float,
    target: float,
    horizon_cap: int = HORIZON_CAP,
) -> int:
    """
    Months until `starting_balance` grows to `target`.

    Returns 0 when the target is already met or nothing is being
    contributed, and `horizon_cap` when the target is out of reach.
    """
    if contribution <= 0 or starting_balance >= target:
        return 0

    monthly_rate = annual_rate / 12
    balance = starting_balance
    months = 0
    while balance < target and months < horizon_cap:
        balance += contribution
        balance *= 1 + monthly_rate
        months += 1
    return months
