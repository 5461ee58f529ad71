"""
What-if scenarios and long-range planning.

These handlers feed this month's figures into the simulators: spending
cuts compound at a modest return, savings milestones are solved month by
month, and wealth is projected across several return assumptions.
"""

from finchat.intents.extraction import (
    days_in_month,
    extract_amount,
    extract_category,
    mentions_percent,
    shift_months,
)
from finchat.models.intent import IntentKind
from finchat.models.response import ResponseType, ResultBundle
from finchat.routing.handlers.base import HandlerSupport, in_category, money, percent, total
from finchat.routing.handlers.loans import avalanche_order, sequential_payoff
from finchat.simulations import project_growth, project_growth_detail, solve_milestone


REDUCTION_SCENARIOS = (5, 10, 15, 20, 25)
GOAL_IMPACT_SCENARIOS = (10, 20)
SAVINGS_RETURN = 0.05

OPTIMIZATION_LEVELS = (
    ("conservative", 10),
    ("moderate", 20),
    ("aggressive", 30),
    ("extreme", 50),
)

WEALTH_BUILDING_TARGETS = (10_000, 25_000, 50_000, 100_000)
MILESTONES_SHOWN = 5
ACCELERATION_STEPS = (100, 200, 500)

RETURN_SCENARIOS = (
    ("conservative", 0.02),
    ("moderate", 0.05),
    ("balanced", 0.07),
    ("growth", 0.10),
    ("aggressive", 0.12),
)
PROJECTION_YEARS = (5, 10, 20, 30)
WEALTH_TARGETS = (100_000, 250_000, 500_000, 1_000_000)
BALANCED_RETURN = 0.07
MAX_TARGET_YEARS = 50

HIGH_INTEREST_RATE = 7.0
EMERGENCY_FUND_MONTHS = 3
INVESTABLE_SHARE = 0.5


class PlanningHandlers(HandlerSupport):
    """Scenario modelling on top of the current month."""

    def handlers(self):
        return {
            IntentKind.WHAT_IF_REDUCE_SPENDING: self.what_if_reduce_spending,
            IntentKind.CATEGORY_OPTIMIZATION: self.category_optimization,
            IntentKind.FINANCIAL_MILESTONES: self.financial_milestones,
            IntentKind.WEALTH_PROJECTION: self.wealth_projection,
            IntentKind.INVESTMENT_ADVICE: self.investment_advice,
        }

    async def _monthly_position(self, user_id: str) -> tuple[float, float]:
        """(income, expenses) so far this month."""
        income, expenses = await self.month_to_date(user_id)
        return total(income), total(expenses)

    async def what_if_reduce_spending(self, user_id: str, query: str, locale: str) -> ResultBundle:
        """
        Savings from cutting projected monthly spending by 5-25%.

        An amount in the question becomes an extra scenario: read as a
        percentage when the question says so, otherwise as money per month.
        """
        today = self.today()
        _, spent = await self._monthly_position(user_id)
        projected = spent / today.day * days_in_month(today)

        scenarios = []
        for cut in REDUCTION_SCENARIOS:
            reduction = projected * cut / 100
            scenarios.append({
                "reduction_percent": cut,
                "monthly_savings": money(reduction),
                "new_monthly_spending": money(projected - reduction),
                "yearly_savings": money(reduction * 12),
                "five_year_savings": money(reduction * 60),
                "ten_year_with_growth": money(project_growth(0, reduction, 12, SAVINGS_RETURN, 10)),
            })

        custom = None
        amount = extract_amount(query)
        if amount is not None:
            if mentions_percent(query):
                monthly = projected * amount / 100
                custom = {"reduction_percent": amount, "monthly_savings": money(monthly)}
            else:
                monthly = amount
                custom = {"reduction_percent": percent(amount, projected), "monthly_savings": money(amount)}
            custom["yearly_savings"] = money(monthly * 12)
            custom["ten_year_with_growth"] = money(project_growth(0, monthly, 12, SAVINGS_RETURN, 10))

        goal_impact = None
        goals = await self.open_goals(user_id)
        if goals:
            goal = max(goals, key=lambda g: g.target_amount)
            goal_impact = {
                "goal": goal.name,
                "remaining": money(goal.remaining),
                "scenarios": [
                    {
                        "reduction_percent": cut,
                        "months_to_goal": solve_milestone(
                            goal.current_amount, projected * cut / 100, 0.0, goal.target_amount
                        ),
                    }
                    for cut in GOAL_IMPACT_SCENARIOS
                ],
            }

        return self.bundle(
            IntentKind.WHAT_IF_REDUCE_SPENDING,
            locale,
            {
                "projected_monthly_spending": money(projected),
                "scenarios": scenarios,
                "custom_scenario": custom,
                "goal_impact": goal_impact,
            },
            response_type=ResponseType.INSIGHT,
        )

    async def category_optimization(self, user_id: str, query: str, locale: str) -> ResultBundle:
        category = extract_category(query)
        _, expenses = await self.month_to_date(user_id)
        in_cat = [t for t in expenses if in_category(t, category)]
        spent = total(in_cat)

        if not in_cat:
            return self.bundle(
                IntentKind.CATEGORY_OPTIMIZATION,
                locale,
                {"category": category, "current_spending": 0.0, "scenarios": []},
            )

        scenarios = []
        for level, cut in OPTIMIZATION_LEVELS:
            saving = spent * cut / 100
            scenarios.append({
                "level": level,
                "reduction_percent": cut,
                "new_spending": money(spent - saving),
                "monthly_savings": money(saving),
                "yearly_savings": money(saving * 12),
                "five_year_with_growth": money(project_growth(0, saving, 12, SAVINGS_RETURN, 5)),
            })

        largest = sorted(in_cat, key=lambda t: t.amount, reverse=True)[:3]
        return self.bundle(
            IntentKind.CATEGORY_OPTIMIZATION,
            locale,
            {
                "category": category,
                "current_spending": money(spent),
                "transaction_count": len(in_cat),
                "average_per_transaction": money(spent / len(in_cat)),
                "scenarios": scenarios,
                "largest_transactions": [
                    {
                        "description": t.description or t.category,
                        "amount": money(t.amount),
                        "date": t.date.isoformat(),
                    }
                    for t in largest
                ],
            },
            response_type=ResponseType.INSIGHT,
        )

    async def financial_milestones(self, user_id: str, query: str, locale: str) -> ResultBundle:
        """
        When this month's savings pace reaches emergency-fund and
        wealth-building milestones, plus the debt-free date.
        """
        today = self.today()
        earned, spent = await self._monthly_position(user_id)
        monthly_savings = earned - spent

        targets = [
            ("emergency_fund_1_month", spent, "safety_net"),
            ("emergency_fund_3_months", spent * 3, "safety_net"),
            ("emergency_fund_6_months", spent * 6, "safety_net"),
        ] + [
            (f"savings_{amount}", float(amount), "wealth_building") for amount in WEALTH_BUILDING_TARGETS
        ]

        milestones = []
        for name, amount, kind in targets[:MILESTONES_SHOWN]:
            milestone = {"name": name, "amount": money(amount), "kind": kind}
            if monthly_savings > 0:
                months = solve_milestone(0.0, monthly_savings, 0.0, amount)
                milestone["months"] = months
                milestone["target_month"] = shift_months(today, months).strftime("%Y-%m")
            milestones.append(milestone)

        loans = avalanche_order(await self.active_loans(user_id))
        debt_free = None
        if loans:
            months, interest = sequential_payoff(loans)
            debt_free = {
                "total_debt": money(sum(loan.remaining_amount for loan in loans)),
                "months": months,
                "target_month": shift_months(today, months).strftime("%Y-%m"),
                "total_interest": money(interest),
            }

        accelerated = []
        first_amount = targets[0][1]
        if monthly_savings > 0 and first_amount > 0:
            baseline = solve_milestone(0.0, monthly_savings, 0.0, first_amount)
            for step in ACCELERATION_STEPS:
                months = solve_milestone(0.0, monthly_savings + step, 0.0, first_amount)
                accelerated.append({
                    "extra_savings": step,
                    "months": months,
                    "months_saved": baseline - months,
                })

        return self.bundle(
            IntentKind.FINANCIAL_MILESTONES,
            locale,
            {
                "monthly_savings": money(monthly_savings),
                "savings_rate_percent": percent(monthly_savings, earned),
                "milestones": milestones,
                "debt_free": debt_free,
                "accelerated": accelerated,
            },
            response_type=ResponseType.WARNING if monthly_savings <= 0 else ResponseType.INSIGHT,
            action_link="/goals",
        )

    async def wealth_projection(self, user_id: str, query: str, locale: str) -> ResultBundle:
        earned, spent = await self._monthly_position(user_id)
        monthly_savings = earned - spent
        current = await self.saved_total(user_id)

        if monthly_savings <= 0:
            return self.bundle(
                IntentKind.WEALTH_PROJECTION,
                locale,
                {"current_savings": money(current), "monthly_savings": money(monthly_savings), "projections": []},
                response_type=ResponseType.WARNING,
                action_link="/goals",
            )

        projections = []
        for scenario, rate in RETURN_SCENARIOS:
            horizons = []
            for years in PROJECTION_YEARS:
                projection = project_growth_detail(current, monthly_savings, 12, rate, years)
                horizons.append({
                    "years": years,
                    "future_value": money(projection.future_value),
                    "contributions": money(projection.total_contributions),
                    "gains": money(projection.investment_gains),
                })
            projections.append({"scenario": scenario, "rate": rate, "horizons": horizons})

        targets = []
        for target in WEALTH_TARGETS:
            years = solve_milestone(current, monthly_savings, BALANCED_RETURN, target) // 12
            if 0 < years < MAX_TARGET_YEARS:
                targets.append({"target": target, "years": years, "year_reached": self.today().year + years})

        return self.bundle(
            IntentKind.WEALTH_PROJECTION,
            locale,
            {
                "current_savings": money(current),
                "monthly_savings": money(monthly_savings),
                "annual_income": money(earned * 12),
                "projections": projections,
                "targets": targets,
            },
            response_type=ResponseType.INSIGHT,
            action_link="/goals",
        )

    async def investment_advice(self, user_id: str, query: str, locale: str) -> ResultBundle:
        """Order of priorities for the monthly surplus: safety net, expensive debt, then investing."""
        earned, spent = await self._monthly_position(user_id)
        surplus = earned - spent
        saved = await self.saved_total(user_id)
        months_covered = saved / spent if spent > 0 else 0.0

        expensive_debt = [
            loan for loan in await self.active_loans(user_id)
            if (loan.interest_rate or 0.0) > HIGH_INTEREST_RATE
        ]

        if surplus <= 0:
            priority = "reduce_spending"
        elif months_covered < EMERGENCY_FUND_MONTHS:
            priority = "emergency_fund"
        elif expensive_debt:
            priority = "high_interest_debt"
        else:
            priority = "invest"

        investable = surplus * INVESTABLE_SHARE if surplus > 0 else 0.0

        return self.bundle(
            IntentKind.INVESTMENT_ADVICE,
            locale,
            {
                "monthly_surplus": money(surplus),
                "emergency_fund_months": round(months_covered, 2),
                "high_interest_debt": money(sum(loan.remaining_amount for loan in expensive_debt)),
                "priority": priority,
                "suggested_monthly_investment": money(investable),
                "ten_year_value": money(project_growth(0, investable, 12, BALANCED_RETURN, 10)),
            },
            response_type=ResponseType.WARNING if surplus <= 0 else ResponseType.SUGGESTION,
        )
