"""
Analytical answers: insights, savings ideas, health score and ratios.

DESIGN DECISION: Every threshold used to grade the household lives in a
module constant so reviewers can audit the rubric without reading code
paths. Ratios with an empty denominator come out as 0 rather than raising.
"""

from collections import defaultdict
from datetime import date, timedelta

from finchat.intents.extraction import shift_months
from finchat.models.intent import IntentKind
from finchat.models.response import ResponseType, ResultBundle
from finchat.routing.handlers.base import (
    HandlerSupport,
    by_category,
    in_category,
    money,
    percent,
    total,
)


FALLBACK_TYPICAL_MONTH = 2000.0

# save_money: (share of spending above which, reduction suggested)
HEAVY_CATEGORY_CUTS = ((35.0, 0.15), (20.0, 0.10))
DAILY_CHALLENGE_THRESHOLD = 100.0
DAILY_CHALLENGE_CUT = 0.15

# financial_ratios: typical share of income per category, in percent
CATEGORY_BENCHMARKS = {
    "food": 15,
    "groceries": 15,
    "transport": 15,
    "housing": 28,
    "rent": 28,
    "utilities": 5,
    "insurance": 10,
    "entertainment": 5,
    "dining": 5,
    "health": 5,
}
DEFAULT_BENCHMARK = 10
HOUSING_KEYWORDS = ("rent", "mortgage", "home", "housing")

SUBSCRIPTION_WINDOW_DAYS = 90
SUBSCRIPTION_WARNING_MONTHLY = 200.0

TAX_DEDUCTIBLE_GROUPS = {
    "medical": ("health", "medical"),
    "home": ("home",),
    "education": ("education",),
    "charity": ("charity", "donation"),
}
ASSUMED_TAX_RATE = 0.22

BILL_CATEGORIES = ("bills", "utilities", "insurance", "internet", "phone", "subscription")
NEGOTIATION_SAVINGS = (0.10, 0.20)


def grade(score: int) -> str:
    for threshold, letter in ((90, "A"), (80, "B"), (70, "C"), (60, "D")):
        if score >= threshold:
            return letter
    return "F"


def benchmark_for(category: str) -> int:
    category = category.lower()
    for name, value in CATEGORY_BENCHMARKS.items():
        if name in category:
            return value
    return DEFAULT_BENCHMARK


class InsightHandlers(HandlerSupport):
    """Scores, ratios and savings opportunities."""

    def handlers(self):
        return {
            IntentKind.SPENDING_INSIGHTS: self.spending_insights,
            IntentKind.SAVE_MONEY: self.save_money,
            IntentKind.FINANCIAL_HEALTH_SCORE: self.financial_health_score,
            IntentKind.FINANCIAL_RATIOS: self.financial_ratios,
            IntentKind.SUBSCRIPTION_ANALYSIS: self.subscription_analysis,
            IntentKind.TAX_PLANNING: self.tax_planning,
            IntentKind.BILL_NEGOTIATION: self.bill_negotiation,
        }

    async def spending_insights(self, user_id: str, query: str, locale: str) -> ResultBundle:
        """Snapshot of the month: balance, savings rate and where spending concentrates."""
        income, expenses = await self.month_to_date(user_id)
        earned, spent = total(income), total(expenses)
        balance = earned - spent

        history = [amount for amount in await self.previous_month_totals(user_id, 3) if amount > 0]
        typical = sum(history) / len(history) if history else FALLBACK_TYPICAL_MONTH

        categories = [
            {"category": category, "total": money(amount), "share_percent": percent(amount, spent)}
            for category, amount in by_category(expenses)
        ]

        return self.bundle(
            IntentKind.SPENDING_INSIGHTS,
            locale,
            {
                "total_income": money(earned),
                "total_expenses": money(spent),
                "balance": money(balance),
                "savings_rate_percent": percent(balance, earned),
                "typical_month": money(typical),
                "vs_typical_percent": percent(spent - typical, typical),
                "categories": categories[:5],
                "largest_category": categories[0] if categories else None,
            },
            response_type=ResponseType.WARNING if balance < 0 else ResponseType.INSIGHT,
        )

    async def save_money(self, user_id: str, query: str, locale: str) -> ResultBundle:
        """
        Savings potential from trimming the heaviest categories over the
        last month and a bit, plus a daily spending challenge for
        households averaging more than 100 a day.
        """
        today = self.today()
        start = shift_months(today, -1)
        expenses = await self.expenses(user_id, start, today)
        spent = total(expenses)

        suggestions = []
        potential = 0.0
        for category, amount in by_category(expenses)[:5]:
            share = percent(amount, spent)
            for threshold, cut in HEAVY_CATEGORY_CUTS:
                if share > threshold:
                    saving = amount * cut
                    potential += saving
                    suggestions.append({
                        "category": category,
                        "share_percent": share,
                        "reduction_percent": int(cut * 100),
                        "monthly_saving": money(saving),
                    })
                    break

        days = (today - start).days + 1
        daily_average = spent / days
        challenge = None
        if daily_average > DAILY_CHALLENGE_THRESHOLD:
            target = daily_average * (1 - DAILY_CHALLENGE_CUT)
            monthly = (daily_average - target) * 30
            potential += monthly
            challenge = {
                "daily_average": money(daily_average),
                "daily_target": money(target),
                "monthly_saving": money(monthly),
            }

        return self.bundle(
            IntentKind.SAVE_MONEY,
            locale,
            {
                "suggestions": suggestions,
                "daily_challenge": challenge,
                "potential_monthly_savings": money(potential),
                "potential_yearly_savings": money(potential * 12),
            },
            response_type=ResponseType.SUGGESTION,
        )

    async def financial_health_score(self, user_id: str, query: str, locale: str) -> ResultBundle:
        """
        Five 20-point sub-scores and a letter grade.

        - savings rate: balance / income this month
        - debt: outstanding debt against a year of income
        - budgets: how many active budgets are overspent
        - emergency fund: goal savings in months of expenses
        - goals: whether goals exist and their average progress
        """
        income, expenses = await self.month_to_date(user_id)
        earned, spent = total(income), total(expenses)
        balance = earned - spent
        loans = await self.active_loans(user_id)
        goals = await self.data.fetch_savings_goals(user_id)
        budgets = await self.active_budgets(user_id)

        savings_rate = balance / earned if earned > 0 else 0.0
        savings_score = _tiered(savings_rate, ((0.20, 20), (0.15, 16), (0.10, 12), (0.05, 8)), 4)

        debt = sum(loan.remaining_amount for loan in loans)
        debt_to_income = debt / (earned * 12) if earned > 0 else 0.0
        if debt_to_income == 0:
            debt_score = 20
        elif debt_to_income < 0.20:
            debt_score = 16
        elif debt_to_income < 0.36:
            debt_score = 12
        elif debt_to_income < 0.50:
            debt_score = 8
        else:
            debt_score = 4

        over_budget = sum(1 for budget in budgets if budget.spent_amount > budget.amount)
        if not budgets:
            budget_score = 10
        else:
            budget_score = {0: 20, 1: 15, 2: 10}.get(over_budget, 5)

        saved = sum(goal.current_amount for goal in goals)
        months_covered = saved / spent if spent > 0 else 0.0
        emergency_score = _tiered(months_covered, ((6, 20), (3, 15), (1, 10)), 5 if months_covered > 0 else 0)

        if goals:
            average_progress = sum(
                goal.current_amount / goal.target_amount if goal.target_amount > 0 else 0.0
                for goal in goals
            ) / len(goals)
            goals_score = 10 + _tiered(average_progress, ((0.75, 10), (0.50, 7), (0.25, 5)), 3)
        else:
            average_progress = 0.0
            goals_score = 0

        components = {
            "savings_rate": {"score": savings_score, "value": round(savings_rate * 100, 2)},
            "debt_management": {"score": debt_score, "value": round(debt_to_income * 100, 2)},
            "budget_adherence": {
                "score": budget_score,
                "value": f"{len(budgets) - over_budget}/{len(budgets)}" if budgets else None,
            },
            "emergency_fund": {"score": emergency_score, "value": round(months_covered, 2)},
            "financial_goals": {"score": goals_score, "value": round(average_progress * 100, 2)},
        }
        score = sum(component["score"] for component in components.values())
        letter = grade(score)

        return self.bundle(
            IntentKind.FINANCIAL_HEALTH_SCORE,
            locale,
            {"score": score, "grade": letter, "components": components},
            response_type=ResponseType.WARNING if letter in ("D", "F") else ResponseType.INSIGHT,
        )

    async def financial_ratios(self, user_id: str, query: str, locale: str) -> ResultBundle:
        income, expenses = await self.month_to_date(user_id)
        earned, spent = total(income), total(expenses)
        balance = earned - spent
        loans = await self.active_loans(user_id)
        saved = await self.saved_total(user_id)

        savings_rate = percent(balance, earned) if balance > 0 else 0.0
        monthly_debt = sum(loan.installment_amount or 0.0 for loan in loans)
        debt_to_income = percent(monthly_debt, earned)
        housing = sum(
            amount for category, amount in by_category(expenses)
            if any(keyword in category for keyword in HOUSING_KEYWORDS)
        )
        months_covered = saved / spent if spent > 0 else 0.0

        categories = []
        for category, amount in by_category(expenses)[:5]:
            share = percent(amount, spent)
            benchmark = benchmark_for(category)
            if share < benchmark * 0.8:
                status = "below"
            elif share < benchmark * 1.2:
                status = "typical"
            else:
                status = "above"
            categories.append({
                "category": category,
                "share_percent": share,
                "benchmark_percent": benchmark,
                "status": status,
            })

        strengths, issues = [], []
        if savings_rate >= 15:
            strengths.append("savings_rate")
        elif savings_rate < 10:
            issues.append("savings_rate")
        if debt_to_income == 0:
            strengths.append("debt_free")
        elif debt_to_income > 36:
            issues.append("debt_burden")
        if months_covered >= 3:
            strengths.append("emergency_fund")
        else:
            issues.append("emergency_fund")
        issues.extend(c["category"] for c in categories if c["status"] == "above")

        return self.bundle(
            IntentKind.FINANCIAL_RATIOS,
            locale,
            {
                "savings_rate_percent": savings_rate,
                "debt_to_income_percent": debt_to_income,
                "monthly_debt_payments": money(monthly_debt),
                "housing_ratio_percent": percent(housing, earned) if housing > 0 else None,
                "emergency_fund_months": round(months_covered, 2),
                "categories": categories,
                "strengths": strengths,
                "issues": issues,
            },
            response_type=ResponseType.WARNING if len(issues) > 2 else ResponseType.INSIGHT,
        )

    async def subscription_analysis(self, user_id: str, query: str, locale: str) -> ResultBundle:
        """Expenses repeating with the same description and amount in the last 90 days."""
        today = self.today()
        expenses = await self.expenses(user_id, today - timedelta(days=SUBSCRIPTION_WINDOW_DAYS), today)

        groups: dict[tuple[str, float], list] = defaultdict(list)
        for t in expenses:
            name = (t.description or t.category).strip().lower()
            groups[(name, round(t.amount, 2))].append(t)

        subscriptions = sorted(
            (
                {
                    "name": name,
                    "amount": amount,
                    "category": records[0].category,
                    "occurrences": len(records),
                    "last_date": max(t.date for t in records).isoformat(),
                    "total_spent": money(total(records)),
                }
                for (name, amount), records in groups.items()
                if len(records) >= 2
            ),
            key=lambda s: s["total_spent"],
            reverse=True,
        )
        monthly = sum(s["amount"] for s in subscriptions)

        return self.bundle(
            IntentKind.SUBSCRIPTION_ANALYSIS,
            locale,
            {
                "subscriptions": subscriptions,
                "count": len(subscriptions),
                "monthly_total": money(monthly),
                "yearly_total": money(monthly * 12),
                "share_of_spending_percent": percent(
                    sum(s["total_spent"] for s in subscriptions), total(expenses)
                ),
            },
            response_type=ResponseType.WARNING if monthly > SUBSCRIPTION_WARNING_MONTHLY else ResponseType.TEXT,
            action_link="/transactions",
        )

    async def tax_planning(self, user_id: str, query: str, locale: str) -> ResultBundle:
        today = self.today()
        records = await self.transactions(user_id, date(today.year, 1, 1), today)
        expenses = [t for t in records if t.is_expense]

        deductions = {}
        for group, keywords in TAX_DEDUCTIBLE_GROUPS.items():
            amount = total(t for t in expenses if any(in_category(t, keyword) for keyword in keywords))
            if amount > 0:
                deductions[group] = money(amount)
        deductible = sum(deductions.values())

        return self.bundle(
            IntentKind.TAX_PLANNING,
            locale,
            {
                "year_to_date_income": money(total(t for t in records if not t.is_expense)),
                "year_to_date_expenses": money(total(expenses)),
                "potential_deductions": deductions,
                "total_deductible": money(deductible),
                "assumed_tax_rate": ASSUMED_TAX_RATE,
                "estimated_tax_savings": money(deductible * ASSUMED_TAX_RATE),
            },
            response_type=ResponseType.INSIGHT,
        )

    async def bill_negotiation(self, user_id: str, query: str, locale: str) -> ResultBundle:
        """Monthly spend on negotiable bills and what a 10-20% reduction is worth."""
        today = self.today()
        expenses = await self.expenses(user_id, shift_months(today, -3), today)
        bills = [t for t in expenses if any(in_category(t, name) for name in BILL_CATEGORIES)]
        monthly = total(bills) / 3
        low, high = NEGOTIATION_SAVINGS

        return self.bundle(
            IntentKind.BILL_NEGOTIATION,
            locale,
            {
                "monthly_bills": money(monthly),
                "bill_categories": [category for category, _ in by_category(bills)],
                "potential_monthly_savings": {"low": money(monthly * low), "high": money(monthly * high)},
                "potential_yearly_savings": {"low": money(monthly * low * 12), "high": money(monthly * high * 12)},
            },
            response_type=ResponseType.SUGGESTION,
        )


def _tiered(value: float, tiers, floor: int) -> int:
    """First score whose threshold `value` reaches, else `floor`."""
    for threshold, score in tiers:
        if value >= threshold:
            return score
    return floor
