"""Match decision audit trail."""
