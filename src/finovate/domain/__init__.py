"""Domain layer for finovate application."""

from finovate.domain.entities import InvoiceStatus, TransactionKind

_SERVICES = {
    "TransactionService": "finovate.domain.transaction",
    "InvoiceService": "finovate.domain.invoice",
    "PaymentReconciler": "finovate.domain.reconciler",
    "GoalService": "finovate.domain.goal",
    "BankAccountService": "finovate.domain.bank_account",
    "DashboardService": "finovate.domain.dashboard",
}

__all__ = ["InvoiceStatus", "TransactionKind", *_SERVICES]


# Services import the database layer, which imports entities from here,
# so they are resolved lazily.
def __getattr__(name):
    if name in _SERVICES:
        import importlib

        return getattr(importlib.import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
