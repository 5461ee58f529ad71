"""Intent handlers, grouped by the part of the household's finances they cover."""

from finchat.routing.handlers.balance import BalanceHandlers
from finchat.routing.handlers.base import Handler, HandlerSupport
from finchat.routing.handlers.budgets import BudgetHandlers
from finchat.routing.handlers.general import GeneralHandlers
from finchat.routing.handlers.insights import InsightHandlers
from finchat.routing.handlers.loans import LoanHandlers
from finchat.routing.handlers.planning import PlanningHandlers
from finchat.routing.handlers.spending import SpendingHandlers

HANDLER_GROUPS = (
    SpendingHandlers,
    BalanceHandlers,
    LoanHandlers,
    BudgetHandlers,
    InsightHandlers,
    PlanningHandlers,
    GeneralHandlers,
)

__all__ = [
    "BalanceHandlers",
    "BudgetHandlers",
    "GeneralHandlers",
    "HANDLER_GROUPS",
    "Handler",
    "HandlerSupport",
    "InsightHandlers",
    "LoanHandlers",
    "PlanningHandlers",
    "SpendingHandlers",
]
