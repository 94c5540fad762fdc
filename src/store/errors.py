"""Store exceptions."""

from __future__ import annotations


class StoreError(Exception):
    """Base class for alert store errors."""


class DuplicateAlertError(StoreError):
    def __init__(self, alert_id: str) -> None:
        super().__init__(f"Alert '{alert_id}' is already in the store")
        self.alert_id = alert_id
