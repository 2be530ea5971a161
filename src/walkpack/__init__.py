#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
walkpack - 流式目录遍历、归档与逐行读取工具

支持递归遍历 (扩展名过滤)、目录树流式打包/解包 (zip, tar.gz)、
由消费方控制节奏的逐行读取，以及按通配符拼接文件。
"""

__version__ = "0.1.0"

# 异常类
from .exceptions import (
    WalkpackError,
    PathNotFoundError,
    AccessDeniedError,
    StreamIOError,
    CorruptArchiveError,
    GlobPatternError,
    CallerProtocolError,
    UnknownFormatError,
    ConfigurationError,
    MissingEntryWarning,
)

# 数据结构
from .core import (
    PathKind,
    PathEntry,
    ExtensionFilter,
    JobState,
    ArchiveJob,
    LineSession,
    ProgressInfo,
    classify,
)

# 遍历
from .walker import (
    walk,
    walk_async,
    iter_entries,
    iter_entries_async,
    list_files,
    list_files_async,
)

# 归档
from .archive import (
    ArchivePacker,
    ArchiveUnpacker,
    pack_dir,
    pack_dir_async,
    unpack_archive,
    unpack_archive_async,
)

# 逐行读取
from .lines import (
    iter_lines,
    iter_lines_async,
    step_through_lines,
    step_through_lines_sync,
)

# 拼接与文件操作
from .concat import concatenate
from .fsops import remove_files, remove_files_async, ensure_directory

# 配置
from .config import Settings, get_settings, load_settings, reset_settings

__all__ = [
    # 版本
    "__version__",
    # 异常
    "WalkpackError",
    "PathNotFoundError",
    "AccessDeniedError",
    "StreamIOError",
    "CorruptArchiveError",
    "GlobPatternError",
    "CallerProtocolError",
    "UnknownFormatError",
    "ConfigurationError",
    "MissingEntryWarning",
    # 数据结构
    "PathKind",
    "PathEntry",
    "ExtensionFilter",
    "JobState",
    "ArchiveJob",
    "LineSession",
    "ProgressInfo",
    "classify",
    # 遍历
    "walk",
    "walk_async",
    "iter_entries",
    "iter_entries_async",
    "list_files",
    "list_files_async",
    # 归档
    "ArchivePacker",
    "ArchiveUnpacker",
    "pack_dir",
    "pack_dir_async",
    "unpack_archive",
    "unpack_archive_async",
    # 逐行读取
    "iter_lines",
    "iter_lines_async",
    "step_through_lines",
    "step_through_lines_sync",
    # 拼接与文件操作
    "concatenate",
    "remove_files",
    "remove_files_async",
    "ensure_directory",
    # 配置
    "Settings",
    "get_settings",
    "load_settings",
    "reset_settings",
]
