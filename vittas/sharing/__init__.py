"""Group expense sharing."""

from vittas.sharing.splits import SharedExpenseService, split_expense

__all__ = ["SharedExpenseService", "split_expense"]
