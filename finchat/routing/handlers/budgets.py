"""Budgets and savings goals."""

from finchat.intents.extraction import days_in_month, extract_category
from finchat.models.finance import Budget
from finchat.models.intent import IntentKind
from finchat.models.response import ResponseType, ResultBundle
from finchat.routing.handlers.base import HandlerSupport, money, percent, total
from finchat.simulations import solve_milestone


OVER_BUDGET_PERCENT = 100
AT_RISK_PERCENT = 80


def budget_state(progress: float) -> str:
    if progress > OVER_BUDGET_PERCENT:
        return "over"
    if progress > AT_RISK_PERCENT:
        return "at_risk"
    return "on_track"


def describe_budget(budget: Budget) -> dict:
    progress = budget.progress_percent
    return {
        "category": budget.category,
        "amount": money(budget.amount),
        "spent": money(budget.spent_amount),
        "remaining": money(budget.amount - budget.spent_amount),
        "progress_percent": round(progress, 2),
        "status": budget_state(progress),
    }


class BudgetHandlers(HandlerSupport):
    """Budget progress and savings goal pacing."""

    def handlers(self):
        return {
            IntentKind.BUDGET_STATUS: self.budget_status,
            IntentKind.BUDGET_CATEGORIES: self.budget_categories,
            IntentKind.SAVINGS_GOALS: self.savings_goals,
        }

    async def budget_status(self, user_id: str, query: str, locale: str) -> ResultBundle:
        """
        Progress of every active budget, most used first.

        Spending comes from each budget's recorded spent amount, not from
        re-summing transactions.
        """
        budgets = await self.active_budgets(user_id)
        if not budgets:
            return self.bundle(
                IntentKind.BUDGET_STATUS,
                locale,
                {"budgets": [], "has_budgets": False},
                response_type=ResponseType.SUGGESTION,
                action_link="/budgets",
            )

        rows = sorted(
            (describe_budget(budget) for budget in budgets),
            key=lambda row: row["progress_percent"],
            reverse=True,
        )
        total_budget = sum(budget.amount for budget in budgets)
        total_spent = sum(budget.spent_amount for budget in budgets)
        remaining = total_budget - total_spent
        over = sum(1 for row in rows if row["status"] == "over")
        at_risk = sum(1 for row in rows if row["status"] == "at_risk")

        today = self.today()
        days_left = days_in_month(today) - today.day
        daily_allowance = remaining / days_left if remaining > 0 and days_left > 0 else 0.0

        return self.bundle(
            IntentKind.BUDGET_STATUS,
            locale,
            {
                "has_budgets": True,
                "budgets": rows,
                "total_budget": money(total_budget),
                "total_spent": money(total_spent),
                "total_remaining": money(remaining),
                "overall_progress_percent": percent(total_spent, total_budget),
                "over_budget_count": over,
                "at_risk_count": at_risk,
                "days_left": days_left,
                "daily_allowance": money(daily_allowance),
            },
            response_type=ResponseType.WARNING if over else ResponseType.INSIGHT,
            action_link="/budgets",
        )

    async def budget_categories(self, user_id: str, query: str, locale: str) -> ResultBundle:
        category = extract_category(query)
        budgets = await self.active_budgets(user_id)
        matching = [b for b in budgets if category in b.category.lower() or b.category.lower() in category]

        rows = [describe_budget(budget) for budget in matching]
        return self.bundle(
            IntentKind.BUDGET_CATEGORIES,
            locale,
            {
                "category": category,
                "budgets": rows,
                "other_categories": sorted({b.category for b in budgets} - {b.category for b in matching}),
            },
            response_type=(
                ResponseType.WARNING if any(row["status"] == "over" for row in rows)
                else ResponseType.TEXT if rows
                else ResponseType.SUGGESTION
            ),
            action_link="/budgets",
        )

    async def savings_goals(self, user_id: str, query: str, locale: str) -> ResultBundle:
        """
        Progress per open goal, soonest target date first.

        The months-to-target estimate assumes this month's balance is
        saved every month, with no interest.
        """
        goals = sorted(
            await self.open_goals(user_id),
            key=lambda goal: (goal.target_date is None, goal.target_date),
        )
        income, expenses = await self.month_to_date(user_id)
        monthly_savings = total(income) - total(expenses)
        today = self.today()

        rows = []
        for goal in goals:
            row = {
                "name": goal.name,
                "target": money(goal.target_amount),
                "current": money(goal.current_amount),
                "remaining": money(goal.remaining),
                "progress_percent": round(goal.progress_percent, 2),
                "target_date": goal.target_date.isoformat() if goal.target_date else None,
                "months_at_current_pace": solve_milestone(
                    goal.current_amount, monthly_savings, 0.0, goal.target_amount
                ),
            }
            if goal.target_date is not None:
                days_left = (goal.target_date - today).days
                row["days_left"] = days_left
                if days_left > 0 and goal.remaining > 0:
                    daily = goal.remaining / days_left
                    row["daily_needed"] = money(daily)
                    row["monthly_needed"] = money(daily * 30)
                row["overdue"] = days_left <= 0 and goal.remaining > 0
            rows.append(row)

        total_target = sum(goal.target_amount for goal in goals)
        total_current = sum(goal.current_amount for goal in goals)

        return self.bundle(
            IntentKind.SAVINGS_GOALS,
            locale,
            {
                "goals": rows,
                "total_target": money(total_target),
                "total_saved": money(total_current),
                "overall_progress_percent": percent(total_current, total_target),
                "monthly_savings": money(monthly_savings),
            },
            response_type=ResponseType.INSIGHT if goals else ResponseType.SUGGESTION,
            action_link="/goals",
        )
