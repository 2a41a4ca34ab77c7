from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from models import Transaction, TransactionType
from reporting.format_utils import parse_amount

HUNDRED = Decimal("100")
ZERO = Decimal("0")

DEFAULT_KDV_RATE = Decimal("20")
CORPORATE_TAX_RATE = Decimal("25")
RENT_WITHHOLDING_RATE = Decimal("20")
DIVIDEND_WITHHOLDING_RATE = Decimal("10")


@dataclass(frozen=True)
class IncomeTaxBracket:
    min: Decimal
    max: Optional[Decimal]
    rate: Decimal
    base_amount: Decimal


# G.V.K. md. 103, 2025 tariff
INCOME_TAX_BRACKETS_2025: tuple[IncomeTaxBracket, ...] = (
    IncomeTaxBracket(Decimal("0"), Decimal("158000"), Decimal("15"), Decimal("0")),
    IncomeTaxBracket(Decimal("158000"), Decimal("330000"), Decimal("20"), Decimal("23700")),
    IncomeTaxBracket(Decimal("330000"), Decimal("800000"), Decimal("27"), Decimal("58100")),
    IncomeTaxBracket(Decimal("800000"), Decimal("4300000"), Decimal("35"), Decimal("185000")),
    IncomeTaxBracket(Decimal("4300000"), None, Decimal("40"), Decimal("1410000")),
)


@dataclass
class BracketDetail:
    bracket: int
    income: Decimal
    rate: Decimal
    tax: Decimal


@dataclass
class IncomeTaxResult:
    tax: Decimal
    net_income: Decimal
    effective_rate: Decimal
    bracket_details: List[BracketDetail] = field(default_factory=list)


@dataclass
class TaxableItem:
    amount: Decimal
    has_kdv: bool = True


@dataclass
class TaxSummary:
    gross_income: Decimal
    gross_expense: Decimal
    profit: Decimal
    kdv_collected: Decimal
    kdv_paid: Decimal
    kdv_net_payable: Decimal
    income_tax: Decimal
    income_tax_effective_rate: Decimal
    corporate_tax: Decimal
    total_tax_burden: Decimal
    net_profit: Decimal
    is_company: bool = True

    def to_dict(self) -> dict[str, object]:
        return {
            "gross_income": str(self.gross_income),
            "gross_expense": str(self.gross_expense),
            "profit": str(self.profit),
            "kdv": {
                "collected": str(self.kdv_collected),
                "paid": str(self.kdv_paid),
                "net_payable": str(self.kdv_net_payable),
            },
            "income_tax": {
                "amount": str(self.income_tax),
                "effective_rate": str(self.income_tax_effective_rate),
            },
            "corporate_tax": str(self.corporate_tax),
            "total_tax_burden": str(self.total_tax_burden),
            "net_profit": str(self.net_profit),
            "is_company": self.is_company,
        }


def calculate_kdv(amount: Decimal, rate: Decimal = DEFAULT_KDV_RATE) -> Decimal:
    """KDV (VAT) on a net amount; general rate 20%."""
    return amount * rate / HUNDRED


def calculate_corporate_tax(profit: Decimal, rate: Decimal = CORPORATE_TAX_RATE) -> Decimal:
    return profit * rate / HUNDRED


def calculate_income_tax(income: Decimal) -> IncomeTaxResult:
    """
    Progressive income tax over the 2025 brackets.

    Each bracket taxes only the slice of income that falls inside it; the
    bracket's base_amount is the cumulative tax of all lower brackets.
    """
    total = ZERO
    details: List[BracketDetail] = []
    brackets = INCOME_TAX_BRACKETS_2025
    for i, bracket in enumerate(brackets):
        if income <= bracket.min:
            break
        upper = brackets[i + 1].min if i + 1 < len(brackets) else None
        slice_income = income - bracket.min if upper is None else min(income, upper) - bracket.min
        slice_tax = slice_income * bracket.rate / HUNDRED
        total += slice_tax
        details.append(BracketDetail(bracket=i + 1, income=slice_income, rate=bracket.rate, tax=slice_tax))
        if bracket.max is None or income <= bracket.max:
            break
    effective = total / income * HUNDRED if income > 0 else ZERO
    return IncomeTaxResult(tax=total, net_income=income - total, effective_rate=effective, bracket_details=details)


def calculate_dividend_withholding(amount: Decimal) -> Decimal:
    return amount * DIVIDEND_WITHHOLDING_RATE / HUNDRED


def calculate_advance_tax(quarterly_profit: Decimal) -> Decimal:
    """Geçici vergi: quarterly, at the corporate rate."""
    return calculate_corporate_tax(quarterly_profit, CORPORATE_TAX_RATE)


def calculate_withholding_tax(amount: Decimal, kind: str) -> Decimal:
    if kind == "salary":
        return calculate_income_tax(amount).tax
    if kind == "rent":
        return amount * RENT_WITHHOLDING_RATE / HUNDRED
    if kind == "dividend":
        return calculate_dividend_withholding(amount)
    raise ValueError(f"Unknown withholding type: {kind!r}")


def calculate_tax_summary(
    incomes: Iterable[TaxableItem],
    expenses: Iterable[TaxableItem],
    is_company: bool = True,
    kdv_rate: Decimal = DEFAULT_KDV_RATE,
) -> TaxSummary:
    incomes = list(incomes)
    expenses = list(expenses)
    gross_income = sum((i.amount for i in incomes), ZERO)
    gross_expense = sum((e.amount for e in expenses), ZERO)
    kdv_collected = sum((calculate_kdv(i.amount, kdv_rate) for i in incomes if i.has_kdv), ZERO)
    kdv_paid = sum((calculate_kdv(e.amount, kdv_rate) for e in expenses if e.has_kdv), ZERO)
    kdv_net = kdv_collected - kdv_paid
    profit = gross_income - gross_expense

    income_tax = ZERO
    effective_rate = ZERO
    corporate_tax = ZERO
    if is_company:
        corporate_tax = calculate_corporate_tax(profit)
    else:
        result = calculate_income_tax(profit)
        income_tax = result.tax
        effective_rate = result.effective_rate

    burden = kdv_net + (corporate_tax if is_company else income_tax)
    return TaxSummary(
        gross_income=gross_income,
        gross_expense=gross_expense,
        profit=profit,
        kdv_collected=kdv_collected,
        kdv_paid=kdv_paid,
        kdv_net_payable=kdv_net,
        income_tax=income_tax,
        income_tax_effective_rate=effective_rate,
        corporate_tax=corporate_tax,
        total_tax_burden=burden,
        net_profit=profit - burden,
        is_company=is_company,
    )


def tax_summary_for_transactions(
    transactions: Sequence[Transaction],
    is_company: bool = True,
    kdv_rate: Decimal = DEFAULT_KDV_RATE,
) -> TaxSummary:
    """All transaction amounts are treated as KDV-exclusive and KDV-bearing."""
    incomes = [
        TaxableItem(parse_amount(t.amount)) for t in transactions if t.type == TransactionType.INCOME
    ]
    expenses = [
        TaxableItem(parse_amount(t.amount)) for t in transactions if t.type == TransactionType.EXPENSE
    ]
    return calculate_tax_summary(incomes, expenses, is_company=is_company, kdv_rate=kdv_rate)
