"""Core configuration exports."""

from .config import (
    COLLECTION_PATH,
    CONFIG,
    AnalyticsConfig,
    DashboardConfig,
    FirebaseConfig,
    SyncConfig,
    UIConfig,
)

__all__ = [
    "COLLECTION_PATH",
    "CONFIG",
    "AnalyticsConfig",
    "DashboardConfig",
    "FirebaseConfig",
    "SyncConfig",
    "UIConfig",
]
