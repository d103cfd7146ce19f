"""
ModKeeper 下载层

包含流式下载与内容摘要。
"""

from modkeeper.download.manager import PackageDownloader, ProgressSink
from modkeeper.download.verifier import DigestStream, digest_bytes

__all__ = [
    "PackageDownloader",
    "ProgressSink",
    "DigestStream",
    "digest_bytes",
]
