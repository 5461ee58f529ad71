"""Income and balance questions for the current month."""

from finchat.models.intent import IntentKind
from finchat.models.response import ResponseType, ResultBundle
from finchat.routing.handlers.base import HandlerSupport, by_category, money, percent, total


class BalanceHandlers(HandlerSupport):
    """Income, balance and savings for the month to date."""

    def handlers(self):
        return {
            IntentKind.TOTAL_INCOME: self.total_income,
            IntentKind.INCOME_SOURCES: self.income_sources,
            IntentKind.CURRENT_BALANCE: self.current_balance,
            IntentKind.SAVINGS: self.savings,
        }

    async def total_income(self, user_id: str, query: str, locale: str) -> ResultBundle:
        income, expenses = await self.month_to_date(user_id)
        earned = total(income)
        return self.bundle(
            IntentKind.TOTAL_INCOME,
            locale,
            {
                "total_income": money(earned),
                "count": len(income),
                "total_expenses": money(total(expenses)),
            },
        )

    async def income_sources(self, user_id: str, query: str, locale: str) -> ResultBundle:
        income, _ = await self.month_to_date(user_id)
        earned = total(income)
        return self.bundle(
            IntentKind.INCOME_SOURCES,
            locale,
            {
                "sources": [
                    {
                        "category": category,
                        "total": money(amount),
                        "share_percent": percent(amount, earned),
                    }
                    for category, amount in by_category(income)
                ],
                "total_income": money(earned),
            },
        )

    async def current_balance(self, user_id: str, query: str, locale: str) -> ResultBundle:
        """Income minus expenses this month; negative balances come back as a warning."""
        income, expenses = await self.month_to_date(user_id)
        earned, spent = total(income), total(expenses)
        balance = earned - spent

        return self.bundle(
            IntentKind.CURRENT_BALANCE,
            locale,
            {
                "total_income": money(earned),
                "total_expenses": money(spent),
                "balance": money(balance),
                "savings_rate_percent": percent(balance, earned),
            },
            response_type=ResponseType.WARNING if balance < 0 else ResponseType.TEXT,
        )

    async def savings(self, user_id: str, query: str, locale: str) -> ResultBundle:
        income, expenses = await self.month_to_date(user_id)
        balance = total(income) - total(expenses)
        in_goals = await self.saved_total(user_id)

        return self.bundle(
            IntentKind.SAVINGS,
            locale,
            {
                "month_balance": money(balance),
                "goal_savings": money(in_goals),
                "total_savings": money(balance + in_goals),
            },
            response_type=ResponseType.WARNING if balance < 0 else ResponseType.TEXT,
            action_link="/goals",
        )
