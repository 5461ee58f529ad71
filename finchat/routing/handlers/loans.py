"""
Loan questions and payoff scenarios.

Loans without a recorded installment are simulated with a default
payment of DEFAULT_PAYMENT per month; loans without a rate are treated
as interest-free.
"""

from finchat.intents.extraction import extract_amount, shift_months
from finchat.models.finance import Loan, LoanPosition
from finchat.models.intent import IntentKind
from finchat.models.response import ResponseType, ResultBundle
from finchat.routing.handlers.base import HandlerSupport, money
from finchat.simulations import simulate_position


DEFAULT_PAYMENT = 100.0
SCENARIO_EXTRAS = (0, 50, 100, 200)
TIMELINE_EXTRAS = (50, 100, 200, 500)
SCENARIO_LOANS = 3


def describe_loan(loan: Loan) -> dict:
    return {
        "description": loan.description or "loan",
        "remaining": money(loan.remaining_amount),
        "interest_rate": loan.interest_rate or 0.0,
        "installment": money(loan.installment_amount or DEFAULT_PAYMENT),
        "next_payment_date": loan.next_payment_date.isoformat() if loan.next_payment_date else None,
    }


def payoff(loan: Loan, extra: float = 0.0):
    return simulate_position(LoanPosition.from_loan(loan, DEFAULT_PAYMENT, extra))


def avalanche_order(loans: list[Loan]) -> list[Loan]:
    """Highest interest rate first."""
    return sorted(loans, key=lambda loan: loan.interest_rate or 0.0, reverse=True)


def sequential_payoff(loans: list[Loan], extra: float = 0.0) -> tuple[int, float]:
    """Months and interest when loans are cleared one after another."""
    months, interest = 0, 0.0
    for loan in loans:
        result = payoff(loan, extra)
        months += result.months_to_payoff
        interest += result.total_interest_paid
    return months, interest


class LoanHandlers(HandlerSupport):
    """Outstanding debt and what extra payments would change."""

    def handlers(self):
        return {
            IntentKind.TOTAL_LOANS: self.total_loans,
            IntentKind.LOAN_STATUS: self.loan_status,
            IntentKind.NEXT_PAYMENT: self.next_payment,
            IntentKind.LOAN_PAYOFF_SCENARIO: self.loan_payoff_scenario,
            IntentKind.DEBT_FREE_TIMELINE: self.debt_free_timeline,
        }

    def _next_due(self, loans: list[Loan]):
        scheduled = [loan for loan in loans if loan.next_payment_date is not None]
        if not scheduled:
            return None
        loan = min(scheduled, key=lambda loan: loan.next_payment_date)
        return {
            "description": loan.description or "loan",
            "amount": money(loan.installment_amount or loan.remaining_amount),
            "date": loan.next_payment_date.isoformat(),
            "days_until_due": (loan.next_payment_date - self.today()).days,
        }

    async def total_loans(self, user_id: str, query: str, locale: str) -> ResultBundle:
        loans = await self.active_loans(user_id)
        return self.bundle(
            IntentKind.TOTAL_LOANS,
            locale,
            {
                "active_count": len(loans),
                "total_owed": money(sum(loan.remaining_amount for loan in loans)),
                "monthly_payments": money(sum(loan.installment_amount or 0.0 for loan in loans)),
                "loans": [describe_loan(loan) for loan in loans],
            },
            action_link="/loans",
        )

    async def loan_status(self, user_id: str, query: str, locale: str) -> ResultBundle:
        loans = await self.active_loans(user_id)
        return self.bundle(
            IntentKind.LOAN_STATUS,
            locale,
            {
                "active_count": len(loans),
                "total_owed": money(sum(loan.remaining_amount for loan in loans)),
                "next_payment": self._next_due(loans),
            },
            response_type=ResponseType.TEXT if loans else ResponseType.INSIGHT,
            action_link="/loans",
        )

    async def next_payment(self, user_id: str, query: str, locale: str) -> ResultBundle:
        due = self._next_due(await self.active_loans(user_id))
        overdue = due is not None and due["days_until_due"] < 0
        return self.bundle(
            IntentKind.NEXT_PAYMENT,
            locale,
            {"next_payment": due},
            response_type=ResponseType.WARNING if overdue else ResponseType.TEXT,
            action_link="/loans",
        )

    async def loan_payoff_scenario(self, user_id: str, query: str, locale: str) -> ResultBundle:
        """
        Payoff time and interest for the largest loans at the current
        installment and with extra monthly payments.

        An amount in the question ("what if I pay 75 more") is added as a
        custom scenario unless it is one of the standard extras.
        """
        loans = sorted(await self.active_loans(user_id), key=lambda loan: loan.remaining_amount, reverse=True)
        extras = list(SCENARIO_EXTRAS)
        amount = extract_amount(query)
        custom = int(amount) if amount else 0
        if custom and custom not in SCENARIO_EXTRAS:
            extras.append(custom)

        results = []
        for loan in loans[:SCENARIO_LOANS]:
            baseline = payoff(loan)
            scenarios = []
            for extra in extras:
                result = baseline if extra == 0 else payoff(loan, extra)
                scenarios.append({
                    "extra_payment": extra,
                    "months": result.months_to_payoff,
                    "total_interest": money(result.total_interest_paid),
                    "months_saved": baseline.months_to_payoff - result.months_to_payoff,
                    "interest_saved": money(baseline.total_interest_paid - result.total_interest_paid),
                    "payoff_month": shift_months(self.today(), result.months_to_payoff).strftime("%Y-%m"),
                    "converged": result.converged,
                })
            results.append({**describe_loan(loan), "scenarios": scenarios})

        return self.bundle(
            IntentKind.LOAN_PAYOFF_SCENARIO,
            locale,
            {
                "total_outstanding": money(sum(loan.remaining_amount for loan in loans)),
                "loans": results,
            },
            response_type=ResponseType.INSIGHT,
            action_link="/loans",
        )

    async def debt_free_timeline(self, user_id: str, query: str, locale: str) -> ResultBundle:
        """Debt-free date paying the highest-rate loan first, then the next."""
        loans = avalanche_order(await self.active_loans(user_id))
        today = self.today()

        schedule = []
        elapsed = 0
        for loan in loans:
            result = payoff(loan)
            elapsed += result.months_to_payoff
            schedule.append({
                **describe_loan(loan),
                "months": result.months_to_payoff,
                "paid_off_month": shift_months(today, elapsed).strftime("%Y-%m"),
            })

        months, interest = sequential_payoff(loans)
        accelerated = []
        if loans:
            for extra in TIMELINE_EXTRAS:
                faster_months, faster_interest = sequential_payoff(loans, extra)
                accelerated.append({
                    "extra_payment": extra,
                    "months": faster_months,
                    "debt_free_month": shift_months(today, faster_months).strftime("%Y-%m"),
                    "months_saved": months - faster_months,
                    "interest_saved": money(interest - faster_interest),
                })

        return self.bundle(
            IntentKind.DEBT_FREE_TIMELINE,
            locale,
            {
                "debt_free": not loans,
                "total_debt": money(sum(loan.remaining_amount for loan in loans)),
                "months": months,
                "debt_free_month": shift_months(today, months).strftime("%Y-%m"),
                "total_interest": money(interest),
                "schedule": schedule,
                "accelerated": accelerated,
            },
            response_type=ResponseType.INSIGHT,
            action_link="/loans",
        )
