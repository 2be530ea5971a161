#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
walkpack 数据结构定义

定义 PathEntry、ExtensionFilter、ArchiveJob、LineSession 等核心数据结构。
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Iterable, List, Optional, Union

from ..utils import file_extension


# ==================== 节点类型 ====================

class PathKind(Enum):
    """文件系统节点类型 (基于 lstat，不跟随符号链接)"""
    FILE = "file"
    DIRECTORY = "directory"
    OTHER = "other"    # 符号链接、设备、管道等，遍历时忽略


@dataclass(frozen=True)
class PathEntry:
    """
    单个文件系统节点的分类结果

    kind 在分类的瞬间确定；若节点在分类之后被修改 (TOCTOU)，
    不保证与实际状态一致。
    """
    absolute_path: str
    relative_fragment: str    # 相对遍历根目录，使用正斜杠
    kind: PathKind

    @property
    def name(self) -> str:
        """节点名称 (不含目录)"""
        return self.relative_fragment.rsplit("/", 1)[-1]

    @property
    def is_file(self) -> bool:
        return self.kind is PathKind.FILE

    @property
    def is_directory(self) -> bool:
        return self.kind is PathKind.DIRECTORY


# ==================== 扩展名过滤 ====================

@dataclass(frozen=True)
class ExtensionFilter:
    """
    扩展名白名单

    每项包含前导点号 (如 ".txt")，按原样区分大小写匹配。
    空集合表示匹配全部文件。
    """
    extensions: FrozenSet[str] = frozenset()

    @classmethod
    def of(
        cls,
        extensions: Union[None, str, Iterable[str], "ExtensionFilter"] = None
    ) -> "ExtensionFilter":
        """
        从 None、单个字符串或字符串序列构造

        Examples:
            >>> ExtensionFilter.of(".txt").matches("a.txt")
            True
            >>> ExtensionFilter.of(None).matches("a.bin")
            True
        """
        if isinstance(extensions, ExtensionFilter):
            return extensions
        if not extensions:
            return cls()
        if isinstance(extensions, str):
            extensions = [extensions]
        return cls(frozenset(extensions))

    @property
    def match_all(self) -> bool:
        return not self.extensions

    def matches(self, name: str) -> bool:
        """判断文件名是否通过过滤"""
        if self.match_all:
            return True
        return file_extension(name) in self.extensions


# ==================== 归档任务 ====================

class JobState(Enum):
    """归档任务状态"""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class ArchiveJob:
    """
    单次打包/解包任务

    仅在一次 pack/unpack 调用期间存在，不做持久化。
    任务结束后作为结果返回给调用方。
    """
    source: str
    destination: str
    format_name: str
    state: JobState = JobState.PENDING
    entry_count: int = 0
    total_bytes: int = 0
    skipped_files: List[str] = field(default_factory=list)
    error: Optional[BaseException] = None
    started_at: float = 0.0
    finished_at: float = 0.0

    def start(self) -> None:
        self.state = JobState.IN_PROGRESS
        self.started_at = time.time()

    def complete(self) -> None:
        self.state = JobState.COMPLETED
        self.finished_at = time.time()

    def fail(self, error: BaseException) -> None:
        self.state = JobState.FAILED
        self.error = error
        self.finished_at = time.time()

    @property
    def elapsed_time(self) -> float:
        """已耗时 (秒)"""
        if not self.started_at:
            return 0.0
        end = self.finished_at or time.time()
        return end - self.started_at

    @property
    def is_partial(self) -> bool:
        """完成但有条目被跳过"""
        return self.state is JobState.COMPLETED and bool(self.skipped_files)


# ==================== 逐行读取会话 ====================

@dataclass
class LineSession:
    """
    逐行读取会话

    每次调用独占一个会话，不在并发调用方之间共享。
    每交付一行更新一次，到达文件末尾或出错时关闭。
    """
    source_path: str
    current_line: Optional[str] = None
    line_number: int = 0
    suspended: bool = False
    closed: bool = False

    def deliver(self, line: str) -> None:
        """交付新的一行并挂起，等待 resume"""
        self.current_line = line
        self.line_number += 1
        self.suspended = True

    def resume(self) -> None:
        self.suspended = False

    def close(self) -> None:
        self.suspended = False
        self.closed = True
