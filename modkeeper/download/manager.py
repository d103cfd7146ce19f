"""
下载管理器

流式下载模组压缩包，边下载边计算摘要并按字节间隔推送进度。
"""

import asyncio
from typing import Optional, Tuple

import aiohttp
from loguru import logger

from modkeeper.download.verifier import DigestStream
from modkeeper.events import guard_sink
from modkeeper.exceptions import HttpStatusError, NetworkError
from modkeeper.models import DownloadConfig, ProgressEvent, ProgressPhase, ProgressSink

MB = 1024 * 1024


class PackageDownloader:
    """模组包下载器"""

    def __init__(
        self,
        config: Optional[DownloadConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.config = config or DownloadConfig()
        self._session = session
        self._owned_session = session is None
        self.bytes_downloaded = 0

    @property
    def session(self) -> aiohttp.ClientSession:
        """获取或创建 aiohttp session"""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    @staticmethod
    def _event(name: str, downloaded: int, total: int, message: str) -> ProgressEvent:
        percentage = (downloaded / total) * 100 if total > 0 else 0.0
        return ProgressEvent(
            name=name,
            phase=ProgressPhase.DOWNLOADING,
            current=downloaded,
            total=total,
            percentage=percentage,
            message=message,
        )

    async def download_package(
        self,
        name: str,
        url: str,
        progress: Optional[ProgressSink] = None,
    ) -> Tuple[bytes, str]:
        """
        下载模组包

        Args:
            name: 模组名称（用于进度和错误信息）
            url: 压缩包地址
            progress: 进度回调（出错只记录日志）

        Returns:
            (完整数据, SHA-256 十六进制摘要)

        Raises:
            HttpStatusError: 非 2xx 响应
            NetworkError: 连接或传输中断
        """
        report = guard_sink(progress)
        report(self._event(name, 0, 0, f"Starting download of {name}..."))
        logger.info(f"[开始] 下载: {name}")

        buffer = bytearray()
        digest = DigestStream()
        downloaded = 0
        total = 0

        try:
            async with self.session.get(url) as response:
                if not 200 <= response.status < 300:
                    raise HttpStatusError(
                        f"下载模组 {name} 失败: HTTP {response.status}",
                        status=response.status,
                        url=url,
                        context={"name": name},
                    )

                total = int(response.headers.get("Content-Length", 0) or 0)
                logger.info(f"[信息] {name} 大小: {total / MB:.2f} MB")

                last_reported = 0
                async for chunk in response.content.iter_chunked(
                    self.config.chunk_size
                ):
                    buffer.extend(chunk)
                    digest.update(chunk)
                    downloaded += len(chunk)

                    if downloaded - last_reported >= self.config.progress_interval:
                        last_reported = downloaded
                        report(
                            self._event(
                                name,
                                downloaded,
                                total,
                                f"Downloaded {downloaded // MB} / {total // MB} MB",
                            )
                        )
        except HttpStatusError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NetworkError(
                f"下载模组 {name} 时网络错误: {e}",
                context={"name": name, "url": url, "downloaded": downloaded},
            ) from e

        self.bytes_downloaded += downloaded
        report(
            self._event(
                name,
                downloaded,
                total,
                f"Downloaded {downloaded // MB} / {total // MB} MB",
            )
        )
        checksum = digest.hexdigest()
        logger.success(f"[完成] '{name}' 下载完成 ({downloaded} 字节, sha256={checksum[:12]})")
        return bytes(buffer), checksum

    async def close(self):
        """关闭下载器"""
        if self._owned_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
