"""Service implementations for upgradewatch."""

from upgradewatch.services.app_data import AppData
from upgradewatch.services.memory_store import InMemoryObjectStore
from upgradewatch.services.rest_store import DEFAULT_KINDS, KindInfo, RestObjectStore
from upgradewatch.services.run_report import RunReportWriter

__all__ = [
    "AppData",
    "InMemoryObjectStore",
    "DEFAULT_KINDS",
    "KindInfo",
    "RestObjectStore",
    "RunReportWriter",
]
