"""Compound growth of a starting balance plus regular contributions."""

from finchat.models.finance import GrowthProjection


def project_growth(
    principal: float,
    contribution: float,
    periods_per_year: int,
    annual_rate: float,
    years: float,
) -> float:
    """
    Future value after `years` of compounding.

    FV = P * g + C * (g - 1) / (r / n), with g = (1 + r / n) ** (n * years).
    At a zero rate the contributions simply add up; without any
    compounding periods the principal is returned unchanged.
    """
    if periods_per_year <= 0:
        return principal
    periods = periods_per_year * years
    if annual_rate == 0:
        return principal + contribution * periods

    periodic_rate = annual_rate / periods_per_year
    growth = (1 + periodic_rate) ** periods
    return principal * growth + contribution * (growth - 1) / periodic_rate


def project_growth_detail(
    principal: float,
    contribution: float,
    periods_per_year: int,
    annual_rate: float,
    years: int,
) -> GrowthProjection:
    """Like project_growth, but also reports what was paid in."""
    return GrowthProjection(
        years=years,
        rate=annual_rate,
        future_value=project_growth(principal, contribution, periods_per_year, annual_rate, years),
        total_contributions=principal + contribution * periods_per_year * years,
    )
