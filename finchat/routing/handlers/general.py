"""Help, money tips and the clarification fallback."""

import random

from finchat.intents.registry import compile_pattern
from finchat.models.intent import IntentKind
from finchat.models.response import ResponseType, ResultBundle
from finchat.routing.handlers.base import HandlerSupport


CAPABILITIES = {
    "spending": (
        IntentKind.TOTAL_SPENDING, IntentKind.CATEGORY_SPENDING, IntentKind.DAILY_AVERAGE,
        IntentKind.TOP_EXPENSES, IntentKind.TOP_CATEGORIES, IntentKind.SPENDING_TRENDS,
    ),
    "income_and_balance": (
        IntentKind.TOTAL_INCOME, IntentKind.INCOME_SOURCES, IntentKind.CURRENT_BALANCE, IntentKind.SAVINGS,
    ),
    "comparisons": (IntentKind.COMPARE_MONTHS, IntentKind.COMPARE_PARTNERS, IntentKind.SEASONAL_SPENDING),
    "loans": (
        IntentKind.LOAN_STATUS, IntentKind.NEXT_PAYMENT, IntentKind.LOAN_PAYOFF_SCENARIO,
        IntentKind.DEBT_FREE_TIMELINE,
    ),
    "budgets_and_goals": (IntentKind.BUDGET_STATUS, IntentKind.BUDGET_CATEGORIES, IntentKind.SAVINGS_GOALS),
    "planning": (
        IntentKind.PREDICT_SPENDING, IntentKind.WHAT_IF_REDUCE_SPENDING, IntentKind.CATEGORY_OPTIMIZATION,
        IntentKind.FINANCIAL_MILESTONES, IntentKind.WEALTH_PROJECTION, IntentKind.INVESTMENT_ADVICE,
    ),
    "health": (
        IntentKind.SPENDING_INSIGHTS, IntentKind.FINANCIAL_HEALTH_SCORE, IntentKind.FINANCIAL_RATIOS,
        IntentKind.SAVE_MONEY, IntentKind.SUBSCRIPTION_ANALYSIS, IntentKind.TAX_PLANNING,
        IntentKind.BILL_NEGOTIATION, IntentKind.MONEY_TIPS,
    ),
}

# Keys into the templating layer's tip catalogue
MONEY_TIPS = (
    "pay_yourself_first", "24_hour_rule", "meal_prep", "cancel_unused_subscriptions",
    "automate_savings", "cashback_apps", "negotiate_bills", "buy_generic",
    "energy_efficiency", "emergency_fund_first", "avoid_lifestyle_inflation", "bulk_non_perishables",
    "review_insurance", "use_library", "sell_unused_items", "cash_envelopes",
    "track_every_expense", "shop_with_list", "refinance_high_interest", "annual_money_review",
)
TIPS_SHOWN = 10

TOPIC_SUGGESTIONS = {
    "spending": (IntentKind.TOTAL_SPENDING, IntentKind.TOP_CATEGORIES, IntentKind.SPENDING_INSIGHTS),
    "balance": (IntentKind.CURRENT_BALANCE, IntentKind.SAVINGS, IntentKind.SAVINGS_GOALS),
    "loans": (IntentKind.LOAN_STATUS, IntentKind.NEXT_PAYMENT, IntentKind.DEBT_FREE_TIMELINE),
    "budget": (IntentKind.BUDGET_STATUS, IntentKind.BUDGET_CATEGORIES),
    "income": (IntentKind.TOTAL_INCOME, IntentKind.INCOME_SOURCES),
}


class GeneralHandlers(HandlerSupport):
    """Answers that do not need the household's data."""

    def handlers(self):
        return {
            IntentKind.HELP: self.help,
            IntentKind.MONEY_TIPS: self.money_tips,
            IntentKind.UNKNOWN: self.clarify,
        }

    async def help(self, user_id: str, query: str, locale: str) -> ResultBundle:
        return self.bundle(
            IntentKind.HELP,
            locale,
            {
                "capabilities": {
                    group: [intent.value for intent in intents]
                    for group, intents in CAPABILITIES.items()
                },
                "examples": list(self.registry(locale).suggested_questions.get("general", ())),
            },
        )

    async def money_tips(self, user_id: str, query: str, locale: str) -> ResultBundle:
        """A fixed-size, seeded selection so the same deployment gives stable answers."""
        tips = random.Random(self.settings.money_tips_seed).sample(MONEY_TIPS, TIPS_SHOWN)
        return self.bundle(
            IntentKind.MONEY_TIPS,
            locale,
            {"tips": tips},
            response_type=ResponseType.SUGGESTION,
        )

    async def clarify(self, user_id: str, query: str, locale: str) -> ResultBundle:
        """
        Guess the topic from keywords and offer the matching questions;
        with no recognizable topic, fall back to the generic suggestions.
        """
        registry = self.registry(locale)
        topic = None
        for name, pattern in registry.clarification_topics:
            if compile_pattern(pattern).search(query):
                topic = name
                break

        return self.bundle(
            IntentKind.UNKNOWN,
            locale,
            {
                "topic": topic,
                "suggested_intents": [intent.value for intent in TOPIC_SUGGESTIONS.get(topic, ())],
                "suggested_questions": list(registry.suggested_questions.get("fallback", ())),
            },
            response_type=ResponseType.SUGGESTION,
        )
