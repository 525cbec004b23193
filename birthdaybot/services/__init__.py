"""Background services for the birthday bot."""

from .reconciler import BirthdayReconciler, ReconcileResult

__all__ = [
    "BirthdayReconciler",
    "ReconcileResult",
]
