"""
压缩包安装器

将下载的 ZIP 解压到模组目录。每次安装都会先清空目标目录（完整替换），
并在所有条目共享同一个顶层目录时将其剥离。
"""

import asyncio
import io
import os
import re
import shutil
import zipfile
import zlib
from typing import List, Optional

from loguru import logger

from modkeeper.events import guard_sink
from modkeeper.exceptions import ArchiveError, FilesystemError
from modkeeper.models import ProgressEvent, ProgressPhase, ProgressSink

# 每解压 N 个条目推送一次进度
PROGRESS_EVERY = 10

# Windows 盘符，如 C: 或 d:
DRIVE_PREFIX = re.compile(r"^[A-Za-z]:")


def split_entry(name: str) -> List[str]:
    """把条目路径拆成路径段，忽略空段和 '.'"""
    return [part for part in name.replace("\\", "/").split("/") if part not in ("", ".")]


def find_wrapper(entries: List[zipfile.ZipInfo]) -> Optional[str]:
    """
    查找包裹目录

    所有非空条目的第一段相同、且该段是目录时返回它，否则返回 None。
    """
    root = None
    for info in entries:
        parts = split_entry(info.filename)
        if not parts:
            continue
        if root is None:
            root = parts[0]
        elif parts[0] != root:
            return None
        # 顶层只有单个文件时不剥离
        if len(parts) == 1 and not info.is_dir():
            return None
    return root


class ArchiveInstaller:
    """ZIP 安装器"""

    def __init__(self, progress_every: int = PROGRESS_EVERY):
        self.progress_every = progress_every

    async def install(
        self,
        name: str,
        data: bytes,
        target_dir: str,
        progress: Optional[ProgressSink] = None,
    ) -> None:
        """
        安装压缩包到目标目录

        解压在工作线程中进行，进度回调被转回事件循环线程执行。

        Raises:
            ArchiveError: 压缩包损坏、条目不可读或路径越界
            FilesystemError: 目录创建/删除或文件写入失败
        """
        loop = asyncio.get_running_loop()
        deliver = guard_sink(progress)

        def report(event: ProgressEvent) -> None:
            loop.call_soon_threadsafe(deliver, event)

        await asyncio.to_thread(self.extract, name, data, target_dir, report)

    def extract(
        self,
        name: str,
        data: bytes,
        target_dir: str,
        progress: Optional[ProgressSink] = None,
    ) -> None:
        """同步解压（阻塞）"""
        target = os.path.abspath(target_dir)
        report = guard_sink(progress)
        self._reset_target(name, target)

        try:
            archive = zipfile.ZipFile(io.BytesIO(data))
        except (zipfile.BadZipFile, zlib.error, ValueError) as e:
            raise ArchiveError(
                f"读取模组 {name} 的压缩包失败: {e}", context={"name": name}
            ) from e

        with archive:
            entries = archive.infolist()
            wrapper = find_wrapper(entries)
            if wrapper:
                logger.debug(f"{name}: 剥离顶层目录 '{wrapper}'")

            total = len(entries)
            for index, info in enumerate(entries):
                if index % self.progress_every == 0 or index == total - 1:
                    report(
                        ProgressEvent(
                            name=name,
                            phase=ProgressPhase.EXTRACTING,
                            current=index,
                            total=total,
                            percentage=(index / total) * 100,
                            message=f"Extracting file {index + 1} of {total}...",
                        )
                    )
                self._extract_entry(name, archive, info, target, wrapper)

        logger.info(f"[解压] {name}: {total} 个条目 -> {target}")

    def _reset_target(self, name: str, target: str) -> None:
        try:
            if os.path.exists(target):
                shutil.rmtree(target)
            os.makedirs(target)
        except OSError as e:
            raise FilesystemError(
                f"重建模组 {name} 的目录失败: {e}",
                context={"name": name, "path": target},
            ) from e

    def _resolve(
        self, name: str, info: zipfile.ZipInfo, target: str, wrapper: Optional[str]
    ) -> Optional[str]:
        """计算条目的最终路径，越界时抛出 ArchiveError"""
        raw = info.filename.replace("\\", "/")
        if raw.startswith("/") or DRIVE_PREFIX.match(raw):
            raise ArchiveError(
                f"模组 {name} 的条目使用了绝对路径: {info.filename}",
                context={"name": name, "entry": info.filename},
            )

        parts = split_entry(raw)
        if not parts:
            return None
        if wrapper and parts[0] == wrapper:
            parts = parts[1:]

        final_path = os.path.normpath(os.path.join(target, *parts))
        if os.path.commonpath([target, final_path]) != target:
            raise ArchiveError(
                f"模组 {name} 的条目越出安装目录: {info.filename}",
                context={"name": name, "entry": info.filename},
            )
        return final_path

    def _extract_entry(
        self,
        name: str,
        archive: zipfile.ZipFile,
        info: zipfile.ZipInfo,
        target: str,
        wrapper: Optional[str],
    ) -> None:
        final_path = self._resolve(name, info, target, wrapper)
        if final_path is None:
            return

        try:
            if info.is_dir():
                if final_path != target:
                    os.makedirs(final_path, exist_ok=True)
                return

            if final_path == target:
                raise ArchiveError(
                    f"模组 {name} 的文件条目指向安装目录本身: {info.filename}",
                    context={"name": name, "entry": info.filename},
                )
            os.makedirs(os.path.dirname(final_path), exist_ok=True)
            with archive.open(info) as src, open(final_path, "wb") as dst:
                shutil.copyfileobj(src, dst)
        except (zipfile.BadZipFile, zlib.error, RuntimeError, NotImplementedError) as e:
            raise ArchiveError(
                f"解压模组 {name} 的条目 {info.filename} 失败: {e}",
                context={"name": name, "entry": info.filename},
            ) from e
        except OSError as e:
            raise FilesystemError(
                f"写入模组 {name} 的文件 {info.filename} 失败: {e}",
                context={"name": name, "entry": info.filename},
            ) from e
