"""
ModKeeper 安装层
"""

from modkeeper.installer.archive import ArchiveInstaller

__all__ = ["ArchiveInstaller"]
