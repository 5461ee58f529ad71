"""
Intent Models for finchat

DESIGN DECISION: The set of intents is a closed enum. Every member must
have pattern data in every locale and a handler in the router; both are
checked at startup, so a new intent cannot ship half-wired.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class IntentKind(str, Enum):
    """
    Financial concerns a question can be about.

    Declaration order is significant: it is the registry order, which
    decides ties between equally scored intents.
    """
    # Spending
    TOTAL_SPENDING = "total_spending"
    CATEGORY_SPENDING = "category_spending"
    MONTHLY_SPENDING = "monthly_spending"
    DAILY_AVERAGE = "daily_average"

    # Income
    TOTAL_INCOME = "total_income"
    INCOME_SOURCES = "income_sources"

    # Balance
    CURRENT_BALANCE = "current_balance"
    SAVINGS = "savings"

    # Comparisons
    COMPARE_MONTHS = "compare_months"
    COMPARE_PARTNERS = "compare_partners"

    # Loans
    TOTAL_LOANS = "total_loans"
    LOAN_STATUS = "loan_status"
    NEXT_PAYMENT = "next_payment"

    # Budgets
    BUDGET_STATUS = "budget_status"
    BUDGET_CATEGORIES = "budget_categories"

    # Insights
    SPENDING_INSIGHTS = "spending_insights"
    SAVE_MONEY = "save_money"
    SPENDING_TRENDS = "spending_trends"
    TOP_EXPENSES = "top_expenses"
    TOP_CATEGORIES = "top_categories"

    # Goals and forecasting
    SAVINGS_GOALS = "savings_goals"
    PREDICT_SPENDING = "predict_spending"

    # Scenarios
    LOAN_PAYOFF_SCENARIO = "loan_payoff_scenario"
    DEBT_FREE_TIMELINE = "debt_free_timeline"
    WHAT_IF_REDUCE_SPENDING = "what_if_reduce_spending"
    CATEGORY_OPTIMIZATION = "category_optimization"
    FINANCIAL_MILESTONES = "financial_milestones"
    WEALTH_PROJECTION = "wealth_projection"

    # Planning
    TAX_PLANNING = "tax_planning"
    FINANCIAL_HEALTH_SCORE = "financial_health_score"
    SUBSCRIPTION_ANALYSIS = "subscription_analysis"
    BILL_NEGOTIATION = "bill_negotiation"
    INVESTMENT_ADVICE = "investment_advice"
    SEASONAL_SPENDING = "seasonal_spending"
    FINANCIAL_RATIOS = "financial_ratios"
    MONEY_TIPS = "money_tips"

    HELP = "help"
    UNKNOWN = "unknown"

    @classmethod
    def routable(cls) -> list["IntentKind"]:
        """Every intent that has patterns (everything except UNKNOWN)."""
        return [kind for kind in cls if kind is not cls.UNKNOWN]

    @classmethod
    def parse(cls, label: str) -> "IntentKind":
        """Map a label to an intent, falling back to UNKNOWN."""
        try:
            return cls(label)
        except ValueError:
            return cls.UNKNOWN


class ClassificationCandidate(BaseModel):
    """One intent the query may express, with how strongly it matched."""

    model_config = ConfigDict(frozen=True)

    intent: IntentKind
    confidence: float = Field(..., ge=0.0, le=1.0)

    @classmethod
    def unknown(cls) -> "ClassificationCandidate":
        return cls(intent=IntentKind.UNKNOWN, confidence=0.0)

    @property
    def is_unknown(self) -> bool:
        return self.intent is IntentKind.UNKNOWN
