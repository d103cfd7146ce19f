"""
远端目录客户端

逐个请求模组版本清单，获取远端最新版本。目录可用性是尽力而为的：
单个模组请求失败只会让该模组从结果中缺席。
"""

import asyncio
from typing import Dict, Optional

import aiohttp
from loguru import logger

from modkeeper.models import CatalogConfig, PackageDescriptor, RemotePackageVersion


def parse_manifest(body: str) -> str:
    """清单内容是一个裸版本号，可能带引号"""
    return body.strip().strip('"')


class CatalogClient:
    """远端目录客户端"""

    def __init__(
        self,
        config: CatalogConfig,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.config = config
        self._session = session
        self._owned_session = session is None

    @property
    def session(self) -> aiohttp.ClientSession:
        """获取或创建 aiohttp session"""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    async def fetch_version(self, descriptor: PackageDescriptor) -> Optional[str]:
        """获取单个模组的远端版本，失败返回 None"""
        url = self.config.manifest_url(descriptor)
        try:
            async with self.session.get(url) as response:
                if not 200 <= response.status < 300:
                    logger.warning(
                        f"获取 {descriptor.id} 版本失败: HTTP {response.status}"
                    )
                    return None
                body = await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"获取 {descriptor.id} 版本时网络错误: {e}")
            return None
        except UnicodeDecodeError as e:
            logger.warning(f"读取 {descriptor.id} 版本失败: {e}")
            return None

        version = parse_manifest(body)
        if not version:
            logger.warning(f"{descriptor.id} 的版本清单为空")
            return None
        return version

    async def fetch_catalog(self) -> Dict[str, RemotePackageVersion]:
        """
        获取所有已知模组的远端版本

        Returns:
            模组名到远端版本的映射（可能为空）
        """
        catalog: Dict[str, RemotePackageVersion] = {}

        for descriptor in self.config.packages:
            version = await self.fetch_version(descriptor)
            if version is None:
                continue
            catalog[descriptor.id] = RemotePackageVersion(
                name=descriptor.id,
                version=version,
                download_url=self.config.archive_url(descriptor),
            )
            logger.debug(f"远端 {descriptor.id}: {version}")

        logger.info(f"远端目录获取完成: {len(catalog)}/{len(self.config.packages)}")
        return catalog

    async def close(self):
        """关闭客户端"""
        if self._owned_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
