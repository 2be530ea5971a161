#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
容器格式注册表

提供格式名到实现的映射，以及按魔法数/后缀推断格式。
"""

import os
from typing import BinaryIO, Dict, Optional, Type, Union

from ..exceptions import UnknownFormatError
from .formats import ContainerFormat, TarGzFormat, ZipFormat


# 内置格式列表 (新增格式时只需在此添加)
_BUILTIN_FORMATS = [
    ZipFormat,
    TarGzFormat,
]

# 别名 -> 正式名称
FORMAT_ALIASES: Dict[str, str] = {
    'tgz': 'tar.gz',
    'targz': 'tar.gz',
}


def _build_format_registry() -> Dict[str, Type[ContainerFormat]]:
    """从格式类自动构建 name -> 格式类映射"""
    registry = {}
    for format_cls in _BUILTIN_FORMATS:
        registry[format_cls().name] = format_cls
    return registry


# name -> 格式类 映射表
FORMAT_REGISTRY: Dict[str, Type[ContainerFormat]] = _build_format_registry()


def get_format(fmt: Union[str, ContainerFormat]) -> ContainerFormat:
    """
    获取格式实例

    Args:
        fmt: 格式名 (不区分大小写，支持别名) 或 ContainerFormat 实例

    Raises:
        UnknownFormatError: 未注册的格式
    """
    if isinstance(fmt, ContainerFormat):
        return fmt
    name = fmt.strip().lower()
    name = FORMAT_ALIASES.get(name, name)
    if name not in FORMAT_REGISTRY:
        raise UnknownFormatError(fmt)
    return FORMAT_REGISTRY[name]()


def format_from_suffix(path: str) -> Optional[ContainerFormat]:
    """按文件后缀推断格式，无法推断返回 None"""
    lowered = os.path.basename(path).lower()
    for format_cls in _BUILTIN_FORMATS:
        fmt = format_cls()
        if lowered.endswith(fmt.suffixes):
            return fmt
    return None


def sniff_format(stream: BinaryIO) -> Optional[ContainerFormat]:
    """
    读取流开头的魔法数推断格式

    仅对支持 seek 的流生效，读取后恢复原位置。
    """
    seekable = getattr(stream, "seekable", None)
    if not (seekable and seekable()):
        return None

    position = stream.tell()
    head = stream.read(4)
    stream.seek(position)

    for format_cls in _BUILTIN_FORMATS:
        fmt = format_cls()
        if head.startswith(fmt.magic):
            return fmt
    return None


def detect_format(
    stream: Optional[BinaryIO] = None,
    path: Optional[str] = None
) -> Optional[ContainerFormat]:
    """
    推断容器格式

    优先嗅探魔法数，其次按路径后缀。

    Returns:
        格式实例，无法推断返回 None
    """
    if stream is not None:
        fmt = sniff_format(stream)
        if fmt is not None:
            return fmt
    if path:
        return format_from_suffix(path)
    return None
