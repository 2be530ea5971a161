#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
逐行读取

以"由消费方控制节奏"的方式逐行交付文件内容:
在消费方表示可以继续之前，不会读取或交付下一行。

提供两种形式:

- iter_lines / iter_lines_async: 拉取式惰性序列，消费方每请求一次才读一行，
  天然具备背压，且不存在可被误用的 resume。
- step_through_lines: 回调式接口，每行调用一次 on_line(line, resume)，
  在 resume() 被调用之前读取一直处于挂起状态 (可以无限期挂起)。

换行符按通用换行处理 (\\n, \\r\\n, \\r)，最后一行无论是否以换行结尾都会交付。
"""

import asyncio
import contextlib
import inspect
import logging
import os
from typing import Any, AsyncIterator, Callable, Iterator, Optional, TextIO

from .config import get_settings
from .core.schema import LineSession
from .exceptions import CallerProtocolError, PathNotFoundError, StreamIOError
from .utils import translate_os_error

logger = logging.getLogger(__name__)

# on_line(line, resume) -> None 或 awaitable
LineCallback = Callable[[str, Callable[[], None]], Any]


class _LineSource:
    """已打开的文本源，每次读取一行"""

    def __init__(self, path: str, handle: TextIO):
        self._path = path
        self._handle = handle

    @classmethod
    def open(cls, path: str, encoding: Optional[str] = None) -> "_LineSource":
        """
        打开文本文件

        Raises:
            PathNotFoundError: 文件不存在 (在读取任何一行之前检查)
            AccessDeniedError: 无权读取
            StreamIOError: 其他错误 (如 path 是目录)
        """
        path = os.fspath(path)
        if not os.path.exists(path):
            raise PathNotFoundError(path)
        encoding = encoding or get_settings().encoding
        try:
            handle = open(path, "r", encoding=encoding, newline=None)
        except OSError as exc:
            raise translate_os_error(path, exc) from exc
        return cls(path, handle)

    def read_line(self) -> Optional[str]:
        """读取下一行 (不含换行符)，到达末尾返回 None"""
        try:
            raw = self._handle.readline()
        except (OSError, UnicodeDecodeError) as exc:
            raise StreamIOError(self._path, exc) from exc
        if not raw:
            return None
        return raw[:-1] if raw.endswith("\n") else raw

    def close(self) -> None:
        self._handle.close()


def _iter_source(source: _LineSource) -> Iterator[str]:
    try:
        while True:
            line = source.read_line()
            if line is None:
                return
            yield line
    finally:
        source.close()


def iter_lines(path: str, encoding: Optional[str] = None) -> Iterator[str]:
    """
    惰性逐行读取

    文件在调用时立即打开 (文件不存在时立即抛出)，
    之后每次 next() 才读取一行。

    Args:
        path: 文件路径
        encoding: 文本编码 (默认使用配置值)

    Returns:
        行迭代器

    Raises:
        PathNotFoundError: 文件不存在
        StreamIOError: 读取过程中出错 (迭代时抛出)
    """
    return _iter_source(_LineSource.open(path, encoding))


async def iter_lines_async(
    path: str,
    encoding: Optional[str] = None
) -> AsyncIterator[str]:
    """
    iter_lines 的可挂起版本

    打开与每次读取都在线程中执行。
    """
    source = await asyncio.to_thread(_LineSource.open, path, encoding)
    try:
        while True:
            line = await asyncio.to_thread(source.read_line)
            if line is None:
                return
            yield line
    finally:
        source.close()


class _ResumeGate:
    """
    单行的 resume 能力

    每行一个实例，只能调用一次；重复调用抛出 CallerProtocolError。
    异步模式下须在事件循环所在线程中调用
    (其他线程请通过 loop.call_soon_threadsafe 转交)。
    """

    def __init__(self, session: LineSession, event: Optional[asyncio.Event] = None):
        self._session = session
        self._event = event
        self._line_number = session.line_number
        self._used = False

    @property
    def used(self) -> bool:
        return self._used

    def __call__(self) -> None:
        if self._used:
            raise CallerProtocolError(
                f"第 {self._line_number} 行的 resume 被重复调用"
            )
        self._used = True
        self._session.resume()
        if self._event is not None:
            self._event.set()

    async def wait(self) -> None:
        await self._event.wait()


async def step_through_lines(
    path: str,
    on_line: LineCallback,
    encoding: Optional[str] = None
) -> int:
    """
    逐行回调，由消费方控制节奏

    每行调用一次 on_line(line, resume)。on_line 可以是普通函数或协程函数；
    resume 可以在 on_line 内同步调用，也可以稍后在别处调用。
    在 resume 被调用之前不会读取下一行；永不调用 resume 会使本协程永久挂起。

    Args:
        path: 文件路径
        on_line: 行回调
        encoding: 文本编码 (默认使用配置值)

    Returns:
        交付的行数 (最后一行的 resume 被调用且到达文件末尾后返回)

    Raises:
        PathNotFoundError: 文件不存在 (在读取任何一行之前检查)
        StreamIOError: 读取过程中出错，会话中止，不再调用 on_line
        CallerProtocolError: 同一行的 resume 被重复调用 (在调用方处抛出)
    """
    source = await asyncio.to_thread(_LineSource.open, path, encoding)
    session = LineSession(source_path=os.fspath(path))
    logger.debug("开始逐行读取 %s", session.source_path)

    try:
        while True:
            line = await asyncio.to_thread(source.read_line)
            if line is None:
                break

            session.deliver(line)
            gate = _ResumeGate(session, asyncio.Event())
            result = on_line(line, gate)
            if inspect.isawaitable(result):
                await result
            await gate.wait()
    finally:
        source.close()
        session.close()

    logger.debug("逐行读取 %s 完成, 共 %d 行", session.source_path, session.line_number)
    return session.line_number


def step_through_lines_sync(
    path: str,
    on_line: LineCallback,
    encoding: Optional[str] = None
) -> int:
    """
    step_through_lines 的阻塞版本

    单线程下无人能在 on_line 返回后再调用 resume，
    因此 resume 必须在 on_line 返回之前调用，否则抛出 CallerProtocolError
    (而不是永久挂起)。

    Returns:
        交付的行数
    """
    session = LineSession(source_path=os.fspath(path))

    with contextlib.closing(iter_lines(path, encoding)) as lines:
        try:
            for line in lines:
                session.deliver(line)
                gate = _ResumeGate(session)
                on_line(line, gate)
                if not gate.used:
                    raise CallerProtocolError(
                        f"第 {session.line_number} 行的 on_line 返回前未调用 resume"
                    )
        finally:
            session.close()

    return session.line_number
