"""
通知内置监听器

将检查结果和失败通知写入日志。
"""

from loguru import logger

from modkeeper.events.bus import EventListener, EventType
from modkeeper.models import Notification, NotificationType


class NotifyListener(EventListener):
    """通知日志监听器"""

    name = "notify"
    description = "记录更新检查通知"

    def register_handlers(self):
        return {
            EventType.NOTIFICATION: self.on_notification,
        }

    def on_notification(self, notification: Notification) -> None:
        if notification.type == NotificationType.ERROR:
            logger.error(f"{notification.title}: {notification.message}")
        elif notification.type == NotificationType.UPDATES_AVAILABLE:
            logger.warning(f"{notification.title} {notification.message}")
        else:
            logger.success(notification.title)
