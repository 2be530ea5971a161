#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
节点分类

对单个文件系统节点执行 lstat，判定其为文件、目录或其他。
遍历器的所有递归决策都基于这里的结果。
"""

import asyncio
import os
import stat

from ..utils import relative_fragment, translate_os_error
from .schema import PathEntry, PathKind


def kind_from_mode(mode: int) -> PathKind:
    """根据 st_mode 判定节点类型"""
    if stat.S_ISREG(mode):
        return PathKind.FILE
    if stat.S_ISDIR(mode):
        return PathKind.DIRECTORY
    return PathKind.OTHER


def classify(path: str) -> PathKind:
    """
    判定节点类型

    使用 lstat，符号链接本身被判定为 OTHER，不跟随。
    对未变化的路径重复调用总是返回相同结果。

    Raises:
        PathNotFoundError: 路径不存在
        AccessDeniedError: 无权访问
        StreamIOError: 其他 I/O 错误
    """
    try:
        st = os.lstat(path)
    except OSError as exc:
        raise translate_os_error(path, exc) from exc
    return kind_from_mode(st.st_mode)


async def classify_async(path: str) -> PathKind:
    """classify 的可挂起版本，在线程中执行 lstat"""
    return await asyncio.to_thread(classify, path)


class PathClassifier:
    """
    以某个根目录为基准生成 PathEntry

    relative_fragment 相对于 root 计算。
    """

    def __init__(self, root: str):
        self._root = os.path.abspath(root)

    @property
    def root(self) -> str:
        return self._root

    def entry(self, path: str) -> PathEntry:
        """分类并构造 PathEntry"""
        return self.entry_for(path, classify(path))

    async def entry_async(self, path: str) -> PathEntry:
        return self.entry_for(path, await classify_async(path))

    def entry_for(self, path: str, kind: PathKind) -> PathEntry:
        return PathEntry(
            absolute_path=os.path.abspath(path),
            relative_fragment=relative_fragment(path, self._root),
            kind=kind,
        )
