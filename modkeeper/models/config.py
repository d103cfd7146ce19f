"""
配置模型

定义模组目录、下载参数和整体配置，支持从字典（TOML/JSON/YAML 解析结果）构建。
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from modkeeper.exceptions import ConfigError

DEFAULT_BASE_URL = "https://mod.innovativedevsolutions.org"
DEFAULT_PACKAGE_IDS = ["forge_client", "forge_mod", "forge_phone", "forge_server"]
DEFAULT_REGISTRY_PATH = os.path.join("~", ".modkeeper", "mod_registry.json")


@dataclass
class PackageDescriptor:
    """
    模组描述符

    新增模组只需在配置中追加一项，无需修改代码。
    """

    id: str
    manifest_path: str = ""
    archive_path: str = ""

    def __post_init__(self):
        if not self.id:
            raise ConfigError("模组 id 不能为空")
        if not self.manifest_path:
            self.manifest_path = f"{self.id}_version.json"
        if not self.archive_path:
            self.archive_path = f"{self.id}.zip"

    @classmethod
    def from_value(cls, value: Union[str, Dict[str, Any]]) -> "PackageDescriptor":
        """从字符串 id 或 {id, manifest, archive} 表构建"""
        if isinstance(value, str):
            return cls(id=value)
        if isinstance(value, dict):
            return cls(
                id=value.get("id", ""),
                manifest_path=value.get("manifest", ""),
                archive_path=value.get("archive", ""),
            )
        raise ConfigError(f"无效的模组描述: {value!r}")


@dataclass
class CatalogConfig:
    """远端目录配置"""

    base_url: str = DEFAULT_BASE_URL
    packages: List[PackageDescriptor] = field(
        default_factory=lambda: [PackageDescriptor(id=i) for i in DEFAULT_PACKAGE_IDS]
    )

    def manifest_url(self, descriptor: PackageDescriptor) -> str:
        return f"{self.base_url.rstrip('/')}/{descriptor.manifest_path}"

    def archive_url(self, descriptor: PackageDescriptor) -> str:
        return f"{self.base_url.rstrip('/')}/{descriptor.archive_path}"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CatalogConfig":
        config = cls()
        if "base_url" in data:
            config.base_url = str(data["base_url"])
        if "packages" in data:
            packages = data["packages"]
            if not isinstance(packages, list):
                raise ConfigError("catalog.packages 必须是列表")
            config.packages = [PackageDescriptor.from_value(p) for p in packages]
        ids = [p.id for p in config.packages]
        if len(ids) != len(set(ids)):
            raise ConfigError("catalog.packages 中存在重复的模组 id")
        return config


@dataclass
class DownloadConfig:
    """下载配置"""

    chunk_size: int = 8192
    progress_interval: int = 512 * 1024

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DownloadConfig":
        config = cls(
            chunk_size=data.get("chunk_size", 8192),
            progress_interval=data.get("progress_interval", 512 * 1024),
        )
        for key in ("chunk_size", "progress_interval"):
            value = getattr(config, key)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ConfigError(f"download.{key} 必须为正整数")
        return config


@dataclass
class ModKeeperConfig:
    """ModKeeper 配置"""

    game_directory: str
    registry_path: str = DEFAULT_REGISTRY_PATH
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    download: DownloadConfig = field(default_factory=DownloadConfig)

    def __post_init__(self):
        self.registry_path = os.path.expanduser(self.registry_path)
        self.game_directory = os.path.expanduser(self.game_directory)

    def install_path(self, name: str) -> str:
        """模组在游戏目录中的安装位置"""
        return os.path.join(self.game_directory, f"@{name}")

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ModKeeperConfig":
        if not data or not isinstance(data, dict):
            raise ConfigError("配置为空或格式不是对象")
        game_directory = data.get("game_directory")
        if not game_directory:
            raise ConfigError("请配置 game_directory")
        return cls(
            game_directory=str(game_directory),
            registry_path=str(data.get("registry_path", DEFAULT_REGISTRY_PATH)),
            catalog=CatalogConfig.from_dict(data.get("catalog", {}) or {}),
            download=DownloadConfig.from_dict(data.get("download", {}) or {}),
        )
