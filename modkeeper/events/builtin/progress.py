"""
进度日志内置监听器

将更新进度写入日志。
"""

from loguru import logger

from modkeeper.events.bus import EventListener, EventType
from modkeeper.models import ProgressEvent, ProgressPhase


class ProgressListener(EventListener):
    """更新进度日志监听器"""

    name = "progress"
    description = "记录下载/解压/安装进度"

    def register_handlers(self):
        return {
            EventType.PROGRESS: self.on_progress,
        }

    def on_progress(self, event: ProgressEvent) -> None:
        if event.phase == ProgressPhase.COMPLETE:
            logger.success(f"[完成] {event.name}: {event.message}")
        elif event.total > 0:
            logger.info(f"[进度] {event.name} {event.phase.value}: {event.percentage:.1f}%")
        else:
            logger.debug(f"[进度] {event.name} {event.phase.value}: {event.message}")
