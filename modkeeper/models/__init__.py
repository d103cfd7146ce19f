"""
ModKeeper 数据模型包

包含配置模型和模组包模型定义。
"""

from modkeeper.models.config import (
    PackageDescriptor,
    CatalogConfig,
    DownloadConfig,
    ModKeeperConfig,
)
from modkeeper.models.package import (
    ProgressPhase,
    NotificationType,
    RemotePackageVersion,
    LocalPackageRecord,
    Registry,
    UpdateDecision,
    ProgressEvent,
    Notification,
    ProgressSink,
    utc_timestamp,
)

__all__ = [
    # 配置模型
    "PackageDescriptor",
    "CatalogConfig",
    "DownloadConfig",
    "ModKeeperConfig",
    # 模组包模型
    "ProgressPhase",
    "NotificationType",
    "RemotePackageVersion",
    "LocalPackageRecord",
    "Registry",
    "UpdateDecision",
    "ProgressEvent",
    "Notification",
    "ProgressSink",
    "utc_timestamp",
]
