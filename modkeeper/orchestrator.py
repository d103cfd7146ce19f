"""
主协调器

按 获取目录 -> 比对 -> (下载 -> 安装 -> 更新注册表) 的顺序编排更新流程。
同一批次中的模组严格逐个处理。
"""

import asyncio
from typing import Dict, List, Optional

from loguru import logger

from modkeeper.download import PackageDownloader
from modkeeper.events import EventBus
from modkeeper.exceptions import ModKeeperError, NotFoundError
from modkeeper.installer import ArchiveInstaller
from modkeeper.models import (
    ModKeeperConfig,
    Notification,
    NotificationType,
    ProgressEvent,
    ProgressPhase,
    RemotePackageVersion,
    UpdateDecision,
)
from modkeeper.services import CatalogClient, RegistryStore, diff, pending


class UpdateOrchestrator:
    """ModKeeper 主协调器"""

    def __init__(
        self,
        config: ModKeeperConfig,
        store: Optional[RegistryStore] = None,
        events: Optional[EventBus] = None,
        catalog: Optional[CatalogClient] = None,
        downloader: Optional[PackageDownloader] = None,
        installer: Optional[ArchiveInstaller] = None,
    ):
        self.config = config
        self.store = store or RegistryStore(config.registry_path)
        self.events = events or EventBus()
        self.catalog = catalog or CatalogClient(config.catalog)
        self.downloader = downloader or PackageDownloader(config.download)
        self.installer = installer or ArchiveInstaller()

    async def fetch_catalog(self) -> Dict[str, RemotePackageVersion]:
        """获取远端目录"""
        return await self.catalog.fetch_catalog()

    async def check_updates(self) -> List[UpdateDecision]:
        """比对本地注册表与远端目录"""
        registry = await self.store.load()
        remote = await self.catalog.fetch_catalog()
        decisions = diff(registry, remote)
        logger.info(
            f"检查完成: {len(decisions)} 个模组, {len(pending(decisions))} 个需要更新"
        )
        return decisions

    async def check_updates_with_notifications(self) -> List[UpdateDecision]:
        """检查更新并推送汇总通知"""
        decisions = await self.check_updates()
        count = len(pending(decisions))

        if count == 0:
            self.events.notify(
                Notification(
                    type=NotificationType.UP_TO_DATE,
                    title="All mods are up to date!",
                    message="Your mods are current with the latest versions.",
                )
            )
        else:
            plural = "s" if count > 1 else ""
            self.events.notify(
                Notification(
                    type=NotificationType.UPDATES_AVAILABLE,
                    title=f"{count} mod update{plural} available!",
                    message="Visit the Mods section to review and apply updates.",
                    count=count,
                )
            )
        return decisions

    async def update_one(self, decision: UpdateDecision) -> str:
        """
        下载并安装单个模组

        成功后立即写入注册表。错误原样抛给调用方。

        Returns:
            形如 "updated forge_mod to version 1.2" 的结果描述
        """
        name = decision.name
        data, checksum = await self.downloader.download_package(
            name, decision.download_url, self.events.progress
        )

        target = self.config.install_path(name)
        self.events.progress(
            ProgressEvent(
                name=name,
                phase=ProgressPhase.EXTRACTING,
                current=0,
                total=100,
                percentage=0.0,
                message=f"Extracting {name}...",
            )
        )
        await self.installer.install(name, data, target, self.events.progress)

        self.events.progress(
            ProgressEvent(
                name=name,
                phase=ProgressPhase.INSTALLING,
                current=90,
                total=100,
                percentage=90.0,
                message=f"Finalizing installation of {name}...",
            )
        )
        async with self.store.transaction() as registry:
            registry.record_install(
                name=name,
                version=decision.remote_version,
                checksum=checksum,
                installed_path=target,
            )

        summary = f"{decision.action} {name} to version {decision.remote_version}"
        self.events.progress(
            ProgressEvent(
                name=name,
                phase=ProgressPhase.COMPLETE,
                current=100,
                total=100,
                percentage=100.0,
                message=f"Successfully {summary}",
            )
        )
        logger.success(f"[完成] {summary}")
        return summary

    async def update_by_name(self, name: str) -> str:
        """按名称更新单个模组"""
        decisions = await self.check_updates()
        for decision in decisions:
            if decision.name == name:
                return await self.update_one(decision)
        raise NotFoundError(f"远端目录中不存在模组: {name}", context={"name": name})

    async def update_all(self) -> List[str]:
        """
        更新所有需要更新的模组

        单个模组失败只记录日志并推送错误通知，批次继续执行；
        失败的模组不会出现在返回列表中。
        """
        decisions = pending(await self.check_updates())
        updated = []

        for decision in decisions:
            try:
                updated.append(await self.update_one(decision))
            except ModKeeperError as e:
                logger.error(f"更新 {decision.name} 失败: {e}")
                self.events.notify(
                    Notification(
                        type=NotificationType.ERROR,
                        title=f"Failed to update {decision.name}",
                        message=e.message,
                    )
                )

        logger.info(f"批量更新完成: {len(updated)}/{len(decisions)} 成功")
        return updated

    def spawn_update_all(self) -> "asyncio.Task[List[str]]":
        """在后台任务中运行批量更新"""
        return asyncio.create_task(self.update_all(), name="modkeeper-update-all")

    async def close(self):
        await self.catalog.close()
        await self.downloader.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
