#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
目录遍历

递归枚举根目录下的所有文件，支持扩展名过滤与同级排序。

遍历使用显式的目录迭代器栈代替递归，深层目录树不会触及递归上限，
且产出顺序与先序深度优先递归完全一致:
遇到子目录时立即进入，子目录遍历完毕后再继续其后的兄弟节点。

同步与异步两种模式共用同一套列目录/排序/过滤逻辑，
相同的文件系统状态下结果完全相同。
"""

import asyncio
import logging
import os
from typing import AsyncIterator, Callable, Iterable, Iterator, List, Optional, Union

from .core.classify import PathClassifier, classify, classify_async
from .core.schema import ExtensionFilter, PathEntry, PathKind
from .exceptions import PathNotFoundError
from .utils import translate_os_error

logger = logging.getLogger(__name__)

# 可选的同级排序键
SORT_KEYS = ("name", "mtime")

Extensions = Union[None, str, Iterable[str], ExtensionFilter]

# on_missing(path, error)
MissingCallback = Callable[[str, PathNotFoundError], None]


def _check_sort_key(sort_key: Optional[str]) -> None:
    if sort_key is not None and sort_key not in SORT_KEYS:
        raise ValueError(
            f"不支持的排序键: {sort_key!r}, 可选: {', '.join(SORT_KEYS)}"
        )


def _mtime_key(directory: str):
    def key(name: str):
        try:
            mtime = os.lstat(os.path.join(directory, name)).st_mtime
        except OSError as exc:
            raise translate_os_error(os.path.join(directory, name), exc) from exc
        return mtime, name
    return key


def _list_ordered(directory: str, sort_key: Optional[str] = None) -> List[str]:
    """
    列出目录内容并按需排序

    sort_key 为 None 时保持文件系统返回的顺序。

    Raises:
        PathNotFoundError: 目录不存在
        AccessDeniedError: 目录无法列出
        StreamIOError: 其他错误 (如 directory 不是目录)
    """
    try:
        names = os.listdir(directory)
    except OSError as exc:
        raise translate_os_error(directory, exc) from exc

    if sort_key == "name":
        names.sort()
    elif sort_key == "mtime":
        names.sort(key=_mtime_key(directory))
    return names


def iter_entries(
    root: str,
    extensions: Extensions = None,
    sort_key: Optional[str] = None,
    on_missing: Optional[MissingCallback] = None
) -> Iterator[PathEntry]:
    """
    惰性遍历目录树，逐个产出文件条目

    目录本身不会被产出，只产出其后代文件。
    错误在遍历到出错目录时抛出，已产出的条目不会撤回；
    需要"全有或全无"语义请使用 walk()。

    Args:
        root: 根目录
        extensions: 扩展名白名单 (None/空 表示全部)
        sort_key: 同级排序键 (None, "name", "mtime")
        on_missing: 子节点在列出之后被删除时的回调 on_missing(path, error)；
                    提供时跳过该节点继续遍历，否则抛出 PathNotFoundError。
                    根目录缺失总是抛出。

    Yields:
        kind 为 FILE 的 PathEntry
    """
    _check_sort_key(sort_key)
    ext_filter = ExtensionFilter.of(extensions)
    classifier = PathClassifier(root)

    stack = [(root, iter(_list_ordered(root, sort_key)))]
    while stack:
        directory, names = stack[-1]
        name = next(names, None)
        if name is None:
            stack.pop()
            continue

        path = os.path.join(directory, name)
        try:
            entry = classifier.entry(path)
            if entry.kind is PathKind.DIRECTORY:
                stack.append((path, iter(_list_ordered(path, sort_key))))
                continue
        except PathNotFoundError as exc:
            if on_missing is None:
                raise
            logger.debug("节点在列出后消失: %s", path)
            on_missing(path, exc)
            continue

        if entry.kind is PathKind.FILE and ext_filter.matches(name):
            yield entry


async def iter_entries_async(
    root: str,
    extensions: Extensions = None,
    sort_key: Optional[str] = None,
    on_missing: Optional[MissingCallback] = None
) -> AsyncIterator[PathEntry]:
    """
    iter_entries 的可挂起版本

    每次列目录与每次分类都在线程中执行，期间让出事件循环。
    """
    _check_sort_key(sort_key)
    ext_filter = ExtensionFilter.of(extensions)
    classifier = PathClassifier(root)

    names = await asyncio.to_thread(_list_ordered, root, sort_key)
    stack = [(root, iter(names))]
    while stack:
        directory, names = stack[-1]
        name = next(names, None)
        if name is None:
            stack.pop()
            continue

        path = os.path.join(directory, name)
        try:
            entry = await classifier.entry_async(path)
            if entry.kind is PathKind.DIRECTORY:
                children = await asyncio.to_thread(_list_ordered, path, sort_key)
                stack.append((path, iter(children)))
                continue
        except PathNotFoundError as exc:
            if on_missing is None:
                raise
            logger.debug("节点在列出后消失: %s", path)
            on_missing(path, exc)
            continue

        if entry.kind is PathKind.FILE and ext_filter.matches(name):
            yield entry


def _identifier(entry: PathEntry, full_path: bool) -> str:
    return entry.absolute_path if full_path else entry.name


def walk(
    root: str,
    extensions: Extensions = None,
    full_path: bool = True,
    sort_key: Optional[str] = None
) -> List[str]:
    """
    递归获取根目录下的所有文件

    遍历全部完成后才返回；任何目录出错都会使整个调用失败，
    不返回部分结果。

    Args:
        root: 根目录
        extensions: 扩展名白名单，如 ".txt" 或 [".txt", ".md"]
        full_path: True 返回绝对路径，False 仅返回文件名
        sort_key: 同级排序键 (None, "name", "mtime")

    Returns:
        文件路径列表 (先序深度优先)

    Raises:
        PathNotFoundError: 根目录不存在
        AccessDeniedError: 某个子目录无法列出
    """
    results = [
        _identifier(entry, full_path)
        for entry in iter_entries(root, extensions, sort_key)
    ]
    logger.debug("遍历 %s 完成, 共 %d 个文件", root, len(results))
    return results


async def walk_async(
    root: str,
    extensions: Extensions = None,
    full_path: bool = True,
    sort_key: Optional[str] = None
) -> List[str]:
    """walk 的可挂起版本，结果与 walk 相同"""
    results = [
        _identifier(entry, full_path)
        async for entry in iter_entries_async(root, extensions, sort_key)
    ]
    logger.debug("遍历 %s 完成, 共 %d 个文件", root, len(results))
    return results


def list_files(directory: str, full_path: bool = True) -> List[str]:
    """
    获取目录下直接包含的文件 (不递归)

    子目录与符号链接被忽略。
    """
    results = []
    for name in _list_ordered(directory):
        path = os.path.join(directory, name)
        if classify(path) is PathKind.FILE:
            results.append(path if full_path else name)
    return results


async def list_files_async(directory: str, full_path: bool = True) -> List[str]:
    """list_files 的可挂起版本"""
    results = []
    for name in await asyncio.to_thread(_list_ordered, directory):
        path = os.path.join(directory, name)
        if await classify_async(path) is PathKind.FILE:
            results.append(path if full_path else name)
    return results
