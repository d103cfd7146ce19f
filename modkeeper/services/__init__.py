"""
ModKeeper 服务层

包含业务逻辑服务：远端目录、本地注册表、版本比对。
"""

from modkeeper.services.catalog import CatalogClient
from modkeeper.services.registry import RegistryStore
from modkeeper.services.diff import diff, pending

__all__ = [
    "CatalogClient",
    "RegistryStore",
    "diff",
    "pending",
]
