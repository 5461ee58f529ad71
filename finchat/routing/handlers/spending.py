"""Spending questions: totals, categories, comparisons, trends and forecasts."""

from collections import defaultdict
from datetime import timedelta

from finchat.intents.extraction import (
    date_range,
    days_in_month,
    extract_category,
    extract_time_period,
    month_end,
    month_start,
    shift_months,
)
from finchat.models.intent import IntentKind
from finchat.models.response import ResponseType, ResultBundle
from finchat.routing.handlers.base import (
    HandlerSupport,
    by_category,
    by_month,
    in_category,
    money,
    percent,
    total,
)


TOP_EXPENSES_LIMIT = 10
TREND_MONTHS = 6
SEASONAL_MONTHS = 12
SEASONAL_HIGH_FACTOR = 1.15
HISTORY_WEIGHT = 0.3
PREDICTION_HISTORY_MONTHS = 3


class SpendingHandlers(HandlerSupport):
    """Answers about where the money went."""

    def handlers(self):
        return {
            IntentKind.TOTAL_SPENDING: self.total_spending,
            IntentKind.CATEGORY_SPENDING: self.category_spending,
            IntentKind.MONTHLY_SPENDING: self.monthly_spending,
            IntentKind.DAILY_AVERAGE: self.daily_average,
            IntentKind.COMPARE_MONTHS: self.compare_months,
            IntentKind.COMPARE_PARTNERS: self.compare_partners,
            IntentKind.SPENDING_TRENDS: self.spending_trends,
            IntentKind.TOP_EXPENSES: self.top_expenses,
            IntentKind.TOP_CATEGORIES: self.top_categories,
            IntentKind.PREDICT_SPENDING: self.predict_spending,
            IntentKind.SEASONAL_SPENDING: self.seasonal_spending,
        }

    async def total_spending(self, user_id: str, query: str, locale: str) -> ResultBundle:
        """Expenses in the period the question names, against the period before it."""
        period = extract_time_period(query, self.registry(locale))
        start, end = date_range(period, self.today())
        current = await self.expenses(user_id, start, end)

        span = (end - start).days + 1
        previous = await self.expenses(
            user_id, start - timedelta(days=span), start - timedelta(days=1)
        )

        spent = total(current)
        previous_spent = total(previous)
        change = spent - previous_spent

        return self.bundle(
            IntentKind.TOTAL_SPENDING,
            locale,
            {
                "period": period,
                "start": start.isoformat(),
                "end": end.isoformat(),
                "total": money(spent),
                "count": len(current),
                "average_per_transaction": money(spent / len(current)) if current else 0.0,
                "previous_total": money(previous_spent),
                "change": money(change),
                "change_percent": percent(change, previous_spent),
            },
            action_link="/transactions",
        )

    async def monthly_spending(self, user_id: str, query: str, locale: str) -> ResultBundle:
        bundle = await self.total_spending(user_id, "this month", locale)
        return bundle.model_copy(update={"intent": IntentKind.MONTHLY_SPENDING})

    async def category_spending(self, user_id: str, query: str, locale: str) -> ResultBundle:
        """One category this month, its share of all spending and the change from last month."""
        category = extract_category(query)
        today = self.today()
        this_month = await self.expenses(user_id, month_start(today), today)
        in_cat = [t for t in this_month if in_category(t, category)]

        last_start = shift_months(today, -1)
        last_month = await self.expenses(user_id, last_start, month_end(last_start))
        last_total = total(t for t in last_month if in_category(t, category))

        spent = total(in_cat)
        change = spent - last_total

        return self.bundle(
            IntentKind.CATEGORY_SPENDING,
            locale,
            {
                "category": category,
                "total": money(spent),
                "share_percent": percent(spent, total(this_month)),
                "count": len(in_cat),
                "average_per_transaction": money(spent / len(in_cat)) if in_cat else 0.0,
                "last_month_total": money(last_total),
                "change": money(change),
                "change_percent": percent(change, last_total),
            },
            action_link="/transactions",
        )

    async def daily_average(self, user_id: str, query: str, locale: str) -> ResultBundle:
        today = self.today()
        _, expenses = await self.month_to_date(user_id)
        spent = total(expenses)
        average = spent / today.day

        return self.bundle(
            IntentKind.DAILY_AVERAGE,
            locale,
            {
                "total": money(spent),
                "days_elapsed": today.day,
                "daily_average": money(average),
                "projected_month_total": money(average * days_in_month(today)),
            },
        )

    async def compare_months(self, user_id: str, query: str, locale: str) -> ResultBundle:
        today = self.today()
        _, this_month = await self.month_to_date(user_id)
        last_start = shift_months(today, -1)
        last_month = await self.expenses(user_id, last_start, month_end(last_start))

        current, previous = total(this_month), total(last_month)
        difference = current - previous

        return self.bundle(
            IntentKind.COMPARE_MONTHS,
            locale,
            {
                "this_month": money(current),
                "last_month": money(previous),
                "difference": money(difference),
                "change_percent": percent(difference, previous),
                "direction": "up" if difference > 0 else "down" if difference < 0 else "flat",
            },
            response_type=ResponseType.INSIGHT,
        )

    async def compare_partners(self, user_id: str, query: str, locale: str) -> ResultBundle:
        """Who paid for what this month, for households that record the payer."""
        _, expenses = await self.month_to_date(user_id)
        grouped = defaultdict(list)
        unassigned = 0.0
        for t in expenses:
            if t.paid_by:
                grouped[t.paid_by].append(t)
            else:
                unassigned += t.amount

        month_total = total(expenses)
        partners = []
        for name, records in grouped.items():
            spent = total(records)
            partners.append({
                "partner": name,
                "total": money(spent),
                "count": len(records),
                "average": money(spent / len(records)),
                "share_percent": percent(spent, month_total),
                "top_categories": [
                    {"category": category, "total": money(amount)}
                    for category, amount in by_category(records)[:3]
                ],
            })
        partners.sort(key=lambda p: p["total"], reverse=True)

        return self.bundle(
            IntentKind.COMPARE_PARTNERS,
            locale,
            {
                "partners": partners,
                "month_total": money(month_total),
                "unassigned_total": money(unassigned),
            },
            response_type=ResponseType.INSIGHT if partners else ResponseType.TEXT,
        )

    async def spending_trends(self, user_id: str, query: str, locale: str) -> ResultBundle:
        """Monthly totals for the last six months, current month projected."""
        today = self.today()
        expenses = await self.expenses(user_id, shift_months(today, -(TREND_MONTHS - 1)), today)
        monthly = by_month(expenses)
        months = [
            {"month": key, "total": money(monthly.get(key, 0.0))}
            for key in (
                shift_months(today, offset).strftime("%Y-%m")
                for offset in range(-(TREND_MONTHS - 1), 1)
            )
        ]

        completed = [m["total"] for m in months[:-1]]
        average = sum(completed) / len(completed)
        projected = months[-1]["total"] / today.day * days_in_month(today)
        if average > 0 and projected > average * 1.05:
            trend = "increasing"
        elif average > 0 and projected < average * 0.95:
            trend = "decreasing"
        else:
            trend = "stable"

        return self.bundle(
            IntentKind.SPENDING_TRENDS,
            locale,
            {
                "months": months,
                "average_completed_month": money(average),
                "current_month_projected": money(projected),
                "trend": trend,
            },
            response_type=ResponseType.WARNING if trend == "increasing" else ResponseType.INSIGHT,
        )

    async def top_expenses(self, user_id: str, query: str, locale: str) -> ResultBundle:
        _, expenses = await self.month_to_date(user_id)
        ranked = sorted(expenses, key=lambda t: t.amount, reverse=True)
        month_total = total(expenses)

        return self.bundle(
            IntentKind.TOP_EXPENSES,
            locale,
            {
                "expenses": [
                    {
                        "description": t.description or t.category,
                        "category": t.category,
                        "amount": money(t.amount),
                        "date": t.date.isoformat(),
                    }
                    for t in ranked[:TOP_EXPENSES_LIMIT]
                ],
                "month_total": money(month_total),
                "top_five_share_percent": percent(total(ranked[:5]), month_total),
            },
            action_link="/transactions",
        )

    async def top_categories(self, user_id: str, query: str, locale: str) -> ResultBundle:
        _, expenses = await self.month_to_date(user_id)
        month_total = total(expenses)
        return self.bundle(
            IntentKind.TOP_CATEGORIES,
            locale,
            {
                "categories": [
                    {
                        "category": category,
                        "total": money(amount),
                        "share_percent": percent(amount, month_total),
                    }
                    for category, amount in by_category(expenses)
                ],
                "month_total": money(month_total),
            },
            response_type=ResponseType.INSIGHT,
        )

    async def predict_spending(self, user_id: str, query: str, locale: str) -> ResultBundle:
        """
        Month-end forecast three ways: straight-line from the daily average,
        nudged toward the recent monthly average, and the higher of the two.
        """
        today = self.today()
        _, expenses = await self.month_to_date(user_id)
        month_days = days_in_month(today)
        spent = total(expenses)
        linear = spent / today.day * month_days

        history = [amount for amount in await self.previous_month_totals(user_id, PREDICTION_HISTORY_MONTHS) if amount > 0]
        historical_average = sum(history) / len(history) if history else linear
        history_based = linear + (historical_average - linear) * HISTORY_WEIGHT
        conservative = max(linear, history_based)

        categories = [
            {"category": category, "projected": money(amount / today.day * month_days)}
            for category, amount in by_category(expenses)[:5]
        ]
        over_usual = bool(history) and linear > historical_average * 1.2

        return self.bundle(
            IntentKind.PREDICT_SPENDING,
            locale,
            {
                "spent_so_far": money(spent),
                "days_elapsed": today.day,
                "days_in_month": month_days,
                "linear_projection": money(linear),
                "historical_average": money(historical_average),
                "history_based_projection": money(history_based),
                "conservative_projection": money(conservative),
                "category_projections": categories,
            },
            response_type=ResponseType.WARNING if over_usual else ResponseType.INSIGHT,
        )

    async def seasonal_spending(self, user_id: str, query: str, locale: str) -> ResultBundle:
        """Which months of the past year run hot."""
        today = self.today()
        expenses = await self.expenses(user_id, shift_months(today, -(SEASONAL_MONTHS - 1)), today)
        monthly = sorted(by_month(expenses).items())

        if len(monthly) < 2:
            return self.bundle(
                IntentKind.SEASONAL_SPENDING,
                locale,
                {"months_of_data": len(monthly), "months": []},
                response_type=ResponseType.SUGGESTION,
            )

        average = sum(amount for _, amount in monthly) / len(monthly)
        highest = max(monthly, key=lambda item: item[1])
        lowest = min(monthly, key=lambda item: item[1])

        return self.bundle(
            IntentKind.SEASONAL_SPENDING,
            locale,
            {
                "months_of_data": len(monthly),
                "months": [{"month": key, "total": money(amount)} for key, amount in monthly],
                "average": money(average),
                "highest": {"month": highest[0], "total": money(highest[1])},
                "lowest": {"month": lowest[0], "total": money(lowest[1])},
                "high_months": [
                    key for key, amount in monthly if amount > average * SEASONAL_HIGH_FACTOR
                ],
            },
            response_type=ResponseType.INSIGHT,
        )
