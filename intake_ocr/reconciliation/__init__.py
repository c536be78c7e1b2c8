"""Per-field and session-level OCR reconciliation."""

from .reconciler import FieldReconciler
from .session import IntakeCollaborators, SessionReconciler

__all__ = ["FieldReconciler", "IntakeCollaborators", "SessionReconciler"]
