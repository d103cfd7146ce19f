"""
ModKeeper 事件系统

进度与通知的推送通道。
"""

from modkeeper.events.bus import EventBus, EventListener, EventType, guard_sink

__all__ = [
    "EventBus",
    "EventListener",
    "EventType",
    "guard_sink",
]
