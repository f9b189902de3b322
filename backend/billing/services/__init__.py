from .approval import approve_payment, reject_payment  # noqa: F401
from .debts import (  # noqa: F401
    delete_debt, generate_mass_debt, generate_monthly_debts, mark_overdue_debts, update_debt,
)
from .reconciliation import reconcile_all, reconcile_owner  # noqa: F401
from .reporting import register_advance_payment, report_payment  # noqa: F401
from .reversal import delete_payment  # noqa: F401
