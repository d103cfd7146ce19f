"""
测试辅助工具
"""

import io
import zipfile
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Dict, Optional, Union

from aiohttp import web
from aiohttp.test_utils import TestServer

from modkeeper.events import EventBus, EventType


def make_zip(entries: Dict[str, Optional[Union[bytes, str]]]) -> bytes:
    """构建内存 ZIP，值为 None 的条目作为目录写入"""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for name, content in entries.items():
            if content is None:
                archive.writestr(zipfile.ZipInfo(name.rstrip("/") + "/"), b"")
            else:
                archive.writestr(name, content)
    return buffer.getvalue()


def static(body: Union[bytes, str], status: int = 200) -> Callable:
    """返回固定内容的处理器"""

    async def handler(request: web.Request) -> web.Response:
        if isinstance(body, str):
            return web.Response(text=body, status=status)
        return web.Response(body=body, status=status)

    return handler


def chunked(body: bytes, piece: int = 1000) -> Callable:
    """分块传输且不带 Content-Length 的处理器"""

    async def handler(request: web.Request) -> web.StreamResponse:
        response = web.StreamResponse()
        response.enable_chunked_encoding()
        await response.prepare(request)
        for start in range(0, len(body), piece):
            await response.write(body[start : start + piece])
        await response.write_eof()
        return response

    return handler


@asynccontextmanager
async def serve(routes: Dict[str, Callable]) -> AsyncIterator[str]:
    """启动本地 HTTP 服务，产出其基础地址"""
    app = web.Application()
    for path, handler in routes.items():
        app.router.add_get(path, handler)
    server = TestServer(app)
    await server.start_server()
    try:
        yield f"http://{server.host}:{server.port}"
    finally:
        await server.close()


class EventRecorder:
    """记录事件总线上的所有事件"""

    def __init__(self, events: EventBus):
        self.progress = []
        self.notifications = []
        events.subscribe(EventType.PROGRESS, self.progress.append)
        events.subscribe(EventType.NOTIFICATION, self.notifications.append)
