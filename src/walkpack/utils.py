#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
walkpack 工具函数

提供路径处理、扩展名提取和 OSError 转换等通用功能。
"""

import os
import re
from typing import List

from .exceptions import (
    WalkpackError,
    PathNotFoundError,
    AccessDeniedError,
    StreamIOError,
)

# 本机路径分隔符 (Windows 下包含反斜杠)
_LOCAL_SEPARATORS = "".join(sep for sep in (os.sep, os.altsep) if sep)
_LOCAL_SPLIT = re.compile("[" + re.escape(_LOCAL_SEPARATORS) + "]")

# 条目名分隔符: 正斜杠，外加本机分隔符
_ENTRY_SPLIT = re.compile("[" + re.escape("/" + _LOCAL_SEPARATORS) + "]")


def split_entry_name(name: str) -> List[str]:
    """
    拆分归档条目名

    条目名以正斜杠分隔；本机分隔符 (Windows 下的反斜杠) 同样视为分隔符。
    POSIX 下反斜杠是合法的文件名字符，原样保留。
    空段与 '.' 段被丢弃，'..' 保留，由调用方判断。

    Examples:
        >>> split_entry_name("./docs//api/")
        ['docs', 'api']
    """
    return [part for part in _ENTRY_SPLIT.split(name) if part not in ("", ".")]


def file_extension(name: str) -> str:
    """
    提取扩展名 (含点号, 区分大小写)

    与 os.path.splitext 一致: 以点号开头的隐藏文件没有扩展名。

    Examples:
        >>> file_extension("report.TXT")
        '.TXT'
        >>> file_extension("archive.tar.gz")
        '.gz'
        >>> file_extension(".bashrc")
        ''
    """
    return os.path.splitext(os.path.basename(name))[1]


def relative_fragment(path: str, root: str) -> str:
    """
    返回 path 相对 root 的路径, 以正斜杠连接

    只按本机分隔符拆分，POSIX 下文件名中的反斜杠原样保留。
    """
    relative = os.path.relpath(path, root)
    return "/".join(part for part in _LOCAL_SPLIT.split(relative) if part)


def translate_os_error(path: str, exc: OSError) -> WalkpackError:
    """
    将 OSError 转换为 walkpack 异常

    调用方负责 ``raise translate_os_error(path, exc) from exc``。
    """
    if isinstance(exc, FileNotFoundError):
        return PathNotFoundError(path)
    if isinstance(exc, PermissionError):
        return AccessDeniedError(path)
    return StreamIOError(path, exc)
