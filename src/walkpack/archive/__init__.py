#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
walkpack 归档模块

提供目录树的流式打包与解包。
"""

from .formats import ContainerFormat, ContainerWriter, ContainerEntry, ZipFormat, TarGzFormat
from .registry import FORMAT_REGISTRY, get_format, detect_format
from .packer import ArchivePacker, pack_dir, pack_dir_async
from .unpacker import ArchiveUnpacker, unpack_archive, unpack_archive_async

__all__ = [
    # 格式
    "ContainerFormat",
    "ContainerWriter",
    "ContainerEntry",
    "ZipFormat",
    "TarGzFormat",
    # 注册表
    "FORMAT_REGISTRY",
    "get_format",
    "detect_format",
    # 打包
    "ArchivePacker",
    "pack_dir",
    "pack_dir_async",
    # 解包
    "ArchiveUnpacker",
    "unpack_archive",
    "unpack_archive_async",
]
