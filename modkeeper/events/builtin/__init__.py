"""
ModKeeper 内置事件监听器
"""

from modkeeper.events.builtin.progress import ProgressListener
from modkeeper.events.builtin.notify import NotifyListener
from modkeeper.events.builtin.json_events import JsonEventListener

BUILTIN_LISTENERS = [
    ProgressListener,
    NotifyListener,
    JsonEventListener,
]

__all__ = [
    "ProgressListener",
    "NotifyListener",
    "JsonEventListener",
    "BUILTIN_LISTENERS",
]
