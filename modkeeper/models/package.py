"""
模组包数据模型

定义远端版本、本地安装记录、注册表、更新决策以及进度/通知事件。
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S UTC"


def utc_timestamp() -> str:
    """当前 UTC 时间的注册表时间戳"""
    return datetime.now(timezone.utc).strftime(TIMESTAMP_FORMAT)


class ProgressPhase(Enum):
    """更新阶段"""

    DOWNLOADING = "downloading"
    EXTRACTING = "extracting"
    INSTALLING = "installing"
    COMPLETE = "complete"


class NotificationType(Enum):
    """通知类型"""

    UP_TO_DATE = "up-to-date"
    UPDATES_AVAILABLE = "updates-available"
    ERROR = "error"


@dataclass
class RemotePackageVersion:
    """远端目录中的模组版本，每次获取时重新生成，不持久化"""

    name: str
    version: str
    download_url: str
    checksum: Optional[str] = None
    size: Optional[int] = None


@dataclass
class LocalPackageRecord:
    """本地已安装模组的记录"""

    name: str
    version: str
    installed_path: str
    last_updated: str
    checksum: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "checksum": self.checksum,
            "installedPath": self.installed_path,
            "lastUpdated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LocalPackageRecord":
        """从注册表 JSON 还原记录，兼容旧版 snake_case 字段"""
        return cls(
            name=data["name"],
            version=data["version"],
            checksum=data.get("checksum"),
            installed_path=data.get("installedPath", data.get("installed_path", "")),
            last_updated=data.get("lastUpdated", data.get("last_updated", "")),
        )


@dataclass
class Registry:
    """本地模组注册表：已安装内容的唯一事实来源"""

    records: Dict[str, LocalPackageRecord] = field(default_factory=dict)
    last_check: str = field(default_factory=utc_timestamp)

    @classmethod
    def default(cls) -> "Registry":
        return cls()

    def get(self, name: str) -> Optional[LocalPackageRecord]:
        return self.records.get(name)

    def record_install(
        self,
        name: str,
        version: str,
        checksum: Optional[str],
        installed_path: str,
    ) -> LocalPackageRecord:
        """
        记录一次成功安装

        整条记录被替换，版本、校验值和安装路径总是一起更新。
        """
        now = utc_timestamp()
        record = LocalPackageRecord(
            name=name,
            version=version,
            checksum=checksum,
            installed_path=installed_path,
            last_updated=now,
        )
        self.records[name] = record
        self.last_check = now
        return record

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mods": {name: record.to_dict() for name, record in self.records.items()},
            "lastCheck": self.last_check,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Registry":
        mods = data.get("mods", {})
        if not isinstance(mods, dict):
            raise TypeError("mods 必须是对象")
        last_check = data.get("lastCheck", data.get("last_check"))
        if last_check is None:
            raise KeyError("lastCheck")
        return cls(
            records={
                name: LocalPackageRecord.from_dict(record)
                for name, record in mods.items()
            },
            last_check=last_check,
        )


@dataclass
class UpdateDecision:
    """单个模组的更新决策，每次检查重新计算"""

    name: str
    current_version: Optional[str]
    remote_version: str
    needs_update: bool
    is_new: bool
    download_url: str
    size: Optional[int] = None

    @property
    def action(self) -> str:
        return "installed" if self.is_new else "updated"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "currentVersion": self.current_version,
            "remoteVersion": self.remote_version,
            "needsUpdate": self.needs_update,
            "isNew": self.is_new,
            "downloadUrl": self.download_url,
            "size": self.size,
        }


@dataclass
class ProgressEvent:
    """进度事件，仅用于推送"""

    name: str
    phase: ProgressPhase
    current: int
    total: int
    percentage: float
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "phase": self.phase.value,
            "current": self.current,
            "total": self.total,
            "percentage": self.percentage,
            "message": self.message,
        }


@dataclass
class Notification:
    """检查/更新结果通知"""

    type: NotificationType
    title: str
    message: str
    count: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "type": self.type.value,
            "title": self.title,
            "message": self.message,
        }
        if self.count is not None:
            data["count"] = self.count
        return data


ProgressSink = Callable[[ProgressEvent], None]
