#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
文件拼接

按通配符匹配文件，并将匹配到的文件原始字节按匹配顺序拼接写入单个输出文件。
文件之间不插入任何分隔符。
"""

import glob
import logging
import os
import re
from typing import List, Optional

from .config import get_settings
from .exceptions import GlobPatternError, StreamIOError
from .utils import translate_os_error

logger = logging.getLogger(__name__)


def resolve_pattern(pattern: str, sort: bool = False, recursive: bool = True) -> List[str]:
    """
    解析通配符，返回匹配到的常规文件

    支持 *, ?, ** (recursive=True 时) 与 [...] 字符类。
    sort=False 时保持文件系统遍历顺序。

    Raises:
        GlobPatternError: 模式为空、类型错误或解析失败
    """
    if isinstance(pattern, os.PathLike):
        pattern = os.fspath(pattern)
    if not isinstance(pattern, str):
        raise GlobPatternError(pattern, "模式必须是字符串")
    if not pattern:
        raise GlobPatternError(pattern, "模式为空")

    try:
        matches = glob.glob(pattern, recursive=recursive)
    except (OSError, ValueError, re.error) as exc:
        raise GlobPatternError(pattern, str(exc)) from exc

    files = [path for path in matches if os.path.isfile(path)]
    if sort:
        files.sort()
    return files


def concatenate(
    pattern: str,
    destination: str,
    sort: bool = False,
    recursive: bool = True,
    chunk_size: Optional[int] = None
) -> List[str]:
    """
    拼接匹配到的文件

    任一文件打开或读取失败都会中止整个操作，
    已写出的部分输出文件保留在磁盘上，不做清理。

    Args:
        pattern: 通配符模式
        destination: 输出文件路径 (已存在则覆盖)
        sort: 是否按路径排序匹配结果
        recursive: ** 是否匹配多级目录
        chunk_size: 流式复制块大小 (默认使用配置值)

    Returns:
        按拼接顺序排列的匹配文件路径

    Raises:
        GlobPatternError: 模式解析失败
        PathNotFoundError / AccessDeniedError / StreamIOError: 读写失败
    """
    chunk_size = chunk_size or get_settings().chunk_size
    destination = os.fspath(destination)

    # 输出文件本身也可能被模式匹配到
    own_output = os.path.abspath(destination)
    matches = [
        path for path in resolve_pattern(pattern, sort, recursive)
        if os.path.abspath(path) != own_output
    ]

    try:
        sink = open(destination, "wb")
    except OSError as exc:
        raise translate_os_error(destination, exc) from exc

    total = 0
    with sink:
        for path in matches:
            total += _append(path, sink, destination, chunk_size)

    logger.info("已拼接 %d 个文件 -> %s (%d 字节)", len(matches), destination, total)
    return matches


def _append(path: str, sink, destination: str, chunk_size: int) -> int:
    try:
        source = open(path, "rb")
    except OSError as exc:
        raise translate_os_error(path, exc) from exc

    written = 0
    with source:
        while True:
            try:
                chunk = source.read(chunk_size)
            except OSError as exc:
                raise StreamIOError(path, exc) from exc
            if not chunk:
                return written
            try:
                sink.write(chunk)
            except OSError as exc:
                raise translate_os_error(destination, exc) from exc
            written += len(chunk)
