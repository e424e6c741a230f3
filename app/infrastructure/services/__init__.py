"""Servicios de infraestructura."""

from app.infrastructure.services.reconciliation_alerts_logging import LoggingReconciliationAlerts

__all__ = [
    "LoggingReconciliationAlerts",
]
