"""
gqlcache - Operation Tables

TTLs for cacheable GraphQL queries and the mutation -> query invalidation
graph for the personal-finance API.
"""

from typing import Final

# Cache TTL in seconds
DASHBOARD_TTL: Final = 60 * 2
USER_PROFILE_TTL: Final = 60 * 5
CATEGORIES_TTL: Final = 60 * 10
LIST_DATA_TTL: Final = 60 * 2  # expenses, incomes, installments, debts...
BALANCE_TTL: Final = 60 * 2
TEMPLATES_TTL: Final = 60 * 10
PAYMENTS_TTL: Final = 60 * 2

CACHEABLE_QUERIES: Final[dict[str, int]] = {
    "GetDashboard": DASHBOARD_TTL,
    "GetMe": USER_PROFILE_TTL,
    "GetCategories": CATEGORIES_TTL,
    "GetIncomeCategories": CATEGORIES_TTL,
    "GetExpenses": LIST_DATA_TTL,
    "GetIncomes": LIST_DATA_TTL,
    "GetInstallments": LIST_DATA_TTL,
    "GetDebts": LIST_DATA_TTL,
    "GetRecurringIncomes": LIST_DATA_TTL,
    "GetExpenseTemplateGroups": TEMPLATES_TTL,
    "GetBalance": BALANCE_TTL,
    "GetUpcomingPayments": PAYMENTS_TTL,
    "GetActualPayments": PAYMENTS_TTL,
}

_EXPENSE_VIEWS = ("GetExpenses", "GetDashboard", "GetBalance", "GetCategories")
_INSTALLMENT_VIEWS = ("GetInstallments", "GetDashboard", "GetBalance", "GetUpcomingPayments", "GetActualPayments")
_DEBT_VIEWS = ("GetDebts", "GetDashboard", "GetBalance", "GetUpcomingPayments", "GetActualPayments")
_INCOME_VIEWS = ("GetIncomes", "GetDashboard", "GetBalance")

INVALIDATION_MAP: Final[dict[str, tuple[str, ...]]] = {
    # Expenses
    "CreateExpense": _EXPENSE_VIEWS,
    "UpdateExpense": _EXPENSE_VIEWS,
    "DeleteExpense": _EXPENSE_VIEWS,
    # Expense categories
    "CreateCategory": ("GetCategories",),
    "UpdateCategory": ("GetCategories", "GetExpenses"),
    "DeleteCategory": ("GetCategories", "GetExpenses"),
    # Installments
    "CreateInstallment": _INSTALLMENT_VIEWS,
    "UpdateInstallment": _INSTALLMENT_VIEWS,
    "DeleteInstallment": _INSTALLMENT_VIEWS,
    "RecordInstallmentPayment": _INSTALLMENT_VIEWS,
    "MarkInstallmentComplete": _INSTALLMENT_VIEWS,
    # Debts
    "CreateDebt": _DEBT_VIEWS,
    "UpdateDebt": _DEBT_VIEWS,
    "DeleteDebt": _DEBT_VIEWS,
    "RecordDebtPayment": _DEBT_VIEWS,
    "MarkDebtComplete": _DEBT_VIEWS,
    # Incomes
    "CreateIncome": _INCOME_VIEWS,
    "UpdateIncome": _INCOME_VIEWS,
    "DeleteIncome": _INCOME_VIEWS,
    "CreateIncomeCategory": ("GetIncomeCategories",),
    "UpdateIncomeCategory": ("GetIncomeCategories", "GetIncomes"),
    "DeleteIncomeCategory": ("GetIncomeCategories", "GetIncomes"),
    # Recurring incomes
    "CreateRecurringIncome": ("GetRecurringIncomes",),
    "UpdateRecurringIncome": ("GetRecurringIncomes",),
    "DeleteRecurringIncome": ("GetRecurringIncomes",),
    "CreateIncomeFromRecurring": (*_INCOME_VIEWS, "GetRecurringIncomes"),
    # Expense templates
    "CreateExpenseTemplateGroup": ("GetExpenseTemplateGroups",),
    "UpdateExpenseTemplateGroup": ("GetExpenseTemplateGroups",),
    "DeleteExpenseTemplateGroup": ("GetExpenseTemplateGroups",),
    "AddExpenseTemplateItem": ("GetExpenseTemplateGroups",),
    "UpdateExpenseTemplateItem": ("GetExpenseTemplateGroups",),
    "DeleteExpenseTemplateItem": ("GetExpenseTemplateGroups",),
    "CreateExpensesFromTemplateGroup": _EXPENSE_VIEWS,
    # Profile
    "UpdateProfile": ("GetMe",),
    "ChangePassword": (),
    "Enable2FA": ("GetMe",),
    "Disable2FA": ("GetMe",),
    "DeleteAccount": (),
}
