"""
事件总线

定义进度/通知两个推送通道、监听器接口以及即发即弃的事件分发。
没有监听器或监听器出错都不会影响更新流程本身。
"""

import asyncio
import inspect
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from loguru import logger

from modkeeper.models import Notification, ProgressEvent, ProgressSink


class EventType(Enum):
    """事件通道"""

    PROGRESS = "mod-update-progress"
    NOTIFICATION = "mod-notification"


Handler = Callable[[Any], Any]


def guard_sink(sink: Optional[ProgressSink]) -> ProgressSink:
    """包装进度回调：回调出错只记录日志，不中断下载或解压"""

    def deliver(event: ProgressEvent) -> None:
        if sink is None:
            return
        try:
            sink(event)
        except Exception as e:
            logger.error(f"进度回调处理失败 ({event.name}): {e}")

    return deliver


class EventListener(ABC):
    """
    事件监听器基类

    子类通过 register_handlers 声明自己关心的通道。
    """

    name: str = ""
    description: str = ""

    def __init__(self):
        self._enabled = True

    @property
    def enabled(self) -> bool:
        """监听器是否启用"""
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool):
        self._enabled = value

    @abstractmethod
    def register_handlers(self) -> Dict[EventType, Handler]:
        """
        注册事件处理器

        Returns:
            Dict[EventType, Callable]: 通道到处理函数的映射
        """
        pass


class EventBus:
    """
    事件总线

    负责监听器的注册以及事件的分发。
    """

    def __init__(self):
        self._listeners: Dict[str, EventListener] = {}
        self._handlers: Dict[EventType, List[Tuple[Optional[str], Handler]]] = {
            event_type: [] for event_type in EventType
        }
        self._pending: Set[asyncio.Task] = set()

    def register_listener(self, listener: EventListener) -> bool:
        """
        注册监听器

        Returns:
            bool: 是否注册成功
        """
        if listener.name in self._listeners:
            logger.warning(f"监听器 {listener.name} 已存在，跳过注册")
            return False

        self._listeners[listener.name] = listener
        for event_type, handler in listener.register_handlers().items():
            self._handlers[event_type].append((listener.name, handler))

        logger.debug(f"监听器 {listener.name} 注册成功")
        return True

    def unregister_listener(self, name: str) -> bool:
        """移除监听器及其全部处理器"""
        if name not in self._listeners:
            logger.warning(f"监听器 {name} 不存在")
            return False

        del self._listeners[name]
        for event_type in EventType:
            self._handlers[event_type] = [
                entry for entry in self._handlers[event_type] if entry[0] != name
            ]
        logger.debug(f"监听器 {name} 已移除")
        return True

    def subscribe(self, event_type: EventType, handler: Handler) -> None:
        """直接订阅某个通道"""
        self._handlers[event_type].append((None, handler))

    def unsubscribe(self, event_type: EventType, handler: Handler) -> None:
        self._handlers[event_type] = [
            entry for entry in self._handlers[event_type] if entry[1] != handler
        ]

    def emit(self, event_type: EventType, payload: Any) -> None:
        """
        分发事件

        同步处理器直接调用，协程处理器作为任务调度；任何异常只记录日志。
        """
        for owner, handler in list(self._handlers[event_type]):
            if owner is not None:
                listener = self._listeners.get(owner)
                if listener is None or not listener.enabled:
                    continue

            try:
                if inspect.iscoroutinefunction(handler):
                    self._schedule(event_type, handler, payload)
                else:
                    handler(payload)
            except Exception as e:
                logger.error(f"事件 {event_type.value} 处理失败: {e}")

    def _schedule(self, event_type: EventType, handler: Handler, payload: Any) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug(f"没有运行中的事件循环，丢弃 {event_type.value} 异步处理")
            return

        task = loop.create_task(handler(payload))
        self._pending.add(task)

        def _done(t: asyncio.Task):
            self._pending.discard(t)
            if not t.cancelled() and t.exception() is not None:
                logger.error(f"事件 {event_type.value} 处理失败: {t.exception()}")

        task.add_done_callback(_done)

    def progress(self, event: ProgressEvent) -> None:
        """推送进度事件"""
        self.emit(EventType.PROGRESS, event)

    def notify(self, notification: Notification) -> None:
        """推送通知"""
        self.emit(EventType.NOTIFICATION, notification)

    async def drain(self) -> None:
        """等待已调度的异步处理器完成"""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def list_listeners(self) -> List[Dict[str, Any]]:
        """列出所有已注册的监听器"""
        return [
            {
                "name": listener.name,
                "description": listener.description,
                "enabled": listener.enabled,
            }
            for listener in self._listeners.values()
        ]
