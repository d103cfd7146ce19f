"""
本地注册表存储

读写已安装模组的 JSON 注册表。读-改-写通过 transaction() 在进程内加锁；
不提供跨进程锁，多个进程同时更新时以最后写入者为准。
"""

import asyncio
import json
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator

import aiofiles
from loguru import logger

from modkeeper.exceptions import FilesystemError, ParseError
from modkeeper.models import Registry


class RegistryStore:
    """注册表存储"""

    def __init__(self, path: str):
        self.path = path
        self._lock = asyncio.Lock()

    async def load(self) -> Registry:
        """
        加载注册表

        文件不存在时返回空注册表；文件存在但无法解析时抛出 ParseError。
        """
        if not os.path.exists(self.path):
            logger.debug(f"注册表不存在，使用空注册表: {self.path}")
            return Registry.default()

        try:
            async with aiofiles.open(self.path, "r", encoding="utf-8") as f:
                content = await f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise FilesystemError(
                f"读取模组注册表失败: {e}", context={"path": self.path}
            ) from e

        try:
            return Registry.from_dict(json.loads(content))
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise ParseError(
                f"解析模组注册表失败: {e}", context={"path": self.path}
            ) from e

    async def save(self, registry: Registry) -> None:
        """整体覆盖写入注册表"""
        try:
            parent = os.path.dirname(self.path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            content = json.dumps(registry.to_dict(), indent=2, ensure_ascii=False)
            async with aiofiles.open(self.path, "w", encoding="utf-8") as f:
                await f.write(content)
        except OSError as e:
            raise FilesystemError(
                f"写入模组注册表失败: {e}", context={"path": self.path}
            ) from e
        logger.debug(f"注册表已保存: {len(registry.records)} 条记录")

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Registry]:
        """
        加锁的读-改-写

        正常退出时保存，出错时不写入。
        """
        async with self._lock:
            registry = await self.load()
            yield registry
            await self.save(registry)
