"""
ModKeeper - 游戏模组更新管理工具

跟踪、下载、校验并安装版本化的模组包，保持本地注册表与远端目录同步。
"""

__version__ = "0.1.0"

from modkeeper.orchestrator import UpdateOrchestrator  # noqa: E402

__all__ = ["UpdateOrchestrator", "__version__"]
