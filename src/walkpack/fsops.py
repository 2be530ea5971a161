#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
文件系统基础操作

目录创建与文件删除。
"""

import asyncio
import logging
import os
from typing import Iterable, Union

from .utils import translate_os_error

logger = logging.getLogger(__name__)


def ensure_directory(path: str) -> None:
    """
    确保目录存在 (含中间目录)

    Raises:
        StreamIOError: 同名文件已存在或其他错误
        AccessDeniedError: 无权创建
    """
    if not path:
        return
    try:
        os.makedirs(path, exist_ok=True)
    except OSError as exc:
        raise translate_os_error(path, exc) from exc


def _as_list(files: Union[str, Iterable[str]]):
    if isinstance(files, (str, os.PathLike)):
        return [files]
    return list(files)


def remove_files(files: Union[str, Iterable[str]]) -> int:
    """
    删除单个或多个文件 (需完整路径)

    遇到第一个失败即停止，之前已删除的文件不会恢复。

    Returns:
        删除的文件数

    Raises:
        PathNotFoundError: 文件不存在
        AccessDeniedError: 无权删除
    """
    count = 0
    for path in _as_list(files):
        try:
            os.unlink(path)
        except OSError as exc:
            raise translate_os_error(os.fspath(path), exc) from exc
        count += 1
    logger.debug("已删除 %d 个文件", count)
    return count


async def remove_files_async(files: Union[str, Iterable[str]]) -> int:
    """remove_files 的可挂起版本，逐个文件让出事件循环"""
    count = 0
    for path in _as_list(files):
        try:
            await asyncio.to_thread(os.unlink, path)
        except OSError as exc:
            raise translate_os_error(os.fspath(path), exc) from exc
        count += 1
    logger.debug("已删除 %d 个文件", count)
    return count
