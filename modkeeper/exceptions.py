"""
ModKeeper 统一异常体系

提供分层的异常结构，支持错误代码、上下文信息和字典序列化。
错误信息应当写明出错的模组名称以及根本原因。
"""

from typing import Any, Dict, Optional


class ModKeeperError(Exception):
    """ModKeeper 基础异常类"""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self._get_default_code()
        self.context = context or {}

    def _get_default_code(self) -> str:
        """获取默认错误代码"""
        return "E000"

    def to_dict(self) -> Dict[str, Any]:
        """将异常转换为字典格式"""
        return {
            "error": True,
            "code": self.code,
            "message": self.message,
            "context": self.context,
            "type": self.__class__.__name__,
        }

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


class ConfigError(ModKeeperError):
    """配置相关错误"""

    def _get_default_code(self) -> str:
        return "E100"


class NetworkError(ModKeeperError):
    """网络传输错误（连接失败、读取中断等）"""

    def _get_default_code(self) -> str:
        return "E200"


class HttpStatusError(NetworkError):
    """HTTP 非 2xx 响应"""

    def __init__(
        self,
        message: str,
        status: int,
        url: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, code, context)
        self.status = status
        self.url = url
        self.context["status_code"] = status
        self.context["url"] = url

    def _get_default_code(self) -> str:
        return "E201"


class ParseError(ModKeeperError):
    """清单或注册表格式错误"""

    def _get_default_code(self) -> str:
        return "E300"


class FilesystemError(ModKeeperError):
    """文件系统操作（创建、删除、复制）失败"""

    def _get_default_code(self) -> str:
        return "E400"


class NotFoundError(ModKeeperError):
    """注册表或更新列表中不存在指定条目"""

    def _get_default_code(self) -> str:
        return "E404"


class ArchiveError(ModKeeperError):
    """压缩包损坏、条目不可读或路径越界"""

    def _get_default_code(self) -> str:
        return "E500"


__all__ = [
    "ModKeeperError",
    "ConfigError",
    "NetworkError",
    "HttpStatusError",
    "ParseError",
    "FilesystemError",
    "NotFoundError",
    "ArchiveError",
]
