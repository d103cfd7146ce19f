"""
JSON 事件输出监听器

按行输出事件载荷，供启动器前端等外部进程读取。
"""

import json

import click

from modkeeper.events.bus import EventListener, EventType


class JsonEventListener(EventListener):
    """以 JSON Lines 输出事件载荷"""

    name = "json-events"
    description = "以 JSON 行输出进度与通知事件"

    def register_handlers(self):
        return {
            EventType.PROGRESS: self.on_progress,
            EventType.NOTIFICATION: self.on_notification,
        }

    def _write(self, event_type: EventType, payload: dict) -> None:
        click.echo(json.dumps({"event": event_type.value, "payload": payload}))

    def on_progress(self, event) -> None:
        self._write(EventType.PROGRESS, event.to_dict())

    def on_notification(self, notification) -> None:
        self._write(EventType.NOTIFICATION, notification.to_dict())
