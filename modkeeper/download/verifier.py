"""
内容摘要

下载时增量计算 SHA-256，结果作为安装记录的完整性指纹。
远端目录不提供校验值，因此摘要只用于记录，不做比对。
"""

import hashlib


class DigestStream:
    """增量 SHA-256 摘要"""

    def __init__(self):
        self._hash = hashlib.sha256()
        self.size = 0

    def update(self, chunk: bytes) -> None:
        self._hash.update(chunk)
        self.size += len(chunk)

    def hexdigest(self) -> str:
        return self._hash.hexdigest()


def digest_bytes(data: bytes) -> str:
    """计算完整数据的摘要，与分块计算结果一致"""
    stream = DigestStream()
    stream.update(data)
    return stream.hexdigest()
