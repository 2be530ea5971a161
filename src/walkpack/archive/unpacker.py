#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
归档解包器

按容器顺序流式读取条目并写入磁盘。
不假设目录条目先于其中的文件出现，父目录在首次需要时才创建。
"""

import asyncio
import contextlib
import logging
import ntpath
import os
import re
from typing import BinaryIO, Iterator, Optional, Union

from ..config import get_settings
from ..core.progress import ProgressCallback, ProgressTracker
from ..core.schema import ArchiveJob
from ..exceptions import CorruptArchiveError, StreamIOError
from ..fsops import ensure_directory
from ..utils import split_entry_name, translate_os_error
from .formats import CORRUPT_ERRORS, UNSUPPORTED_ENTRY_ERRORS, ContainerEntry, ContainerFormat
from .registry import detect_format, get_format

logger = logging.getLogger(__name__)

Source = Union[str, "os.PathLike[str]", BinaryIO]

# 以分隔符开头即为绝对路径 (Windows 下包含反斜杠)
_ROOT_PREFIXES = tuple(sep for sep in ("/", os.sep, os.altsep) if sep)

# 盘符根路径，如 C:/windows
_DRIVE_ROOT = re.compile(r"^[A-Za-z]:/")


def safe_target(destination_root: str, name: str) -> str:
    """
    计算条目的落盘路径

    拒绝绝对路径、盘符路径与包含 '..' 的条目名，防止写出目标目录之外。
    POSIX 下 'c:notes.txt' 这类不带分隔符的名称是普通文件名。

    Raises:
        CorruptArchiveError: 条目名不安全
    """
    if name.startswith(_ROOT_PREFIXES) or _DRIVE_ROOT.match(name):
        raise CorruptArchiveError("条目使用了绝对路径", entry=name)
    if os.name == "nt" and ntpath.splitdrive(name)[0]:
        raise CorruptArchiveError("条目使用了盘符路径", entry=name)

    parts = split_entry_name(name)
    if ".." in parts:
        raise CorruptArchiveError("条目路径越出目标目录", entry=name)
    if not parts:
        raise CorruptArchiveError("条目名为空", entry=name)
    return os.path.join(destination_root, *parts)


class ArchiveUnpacker:
    """
    归档解包器

    已存在的同名文件会被直接覆盖；重复条目按容器顺序依次覆盖。
    失败时已写出的文件保留在磁盘上，不做回滚。
    """

    def __init__(
        self,
        format: Union[None, str, ContainerFormat] = None,
        progress_callback: Optional[ProgressCallback] = None,
        chunk_size: Optional[int] = None
    ):
        """
        初始化解包器

        Args:
            format: 容器格式 (默认嗅探魔法数，其次按后缀，最后使用配置默认值)
            progress_callback: 进度回调
            chunk_size: 流式复制块大小 (默认使用配置值)
        """
        settings = get_settings()
        self._format = get_format(format) if format is not None else None
        self._progress_callback = progress_callback
        self._chunk_size = chunk_size or settings.chunk_size
        self._default_format = settings.archive_format

    def unpack(self, container: Source, destination_root: str) -> ArchiveJob:
        """
        解包容器到目标目录

        Args:
            container: 容器路径，或可读的二进制流
            destination_root: 目标根目录 (不存在时自动创建)

        Returns:
            状态为 COMPLETED 的 ArchiveJob

        Raises:
            PathNotFoundError: 容器路径不存在
            CorruptArchiveError: 容器无法解析或条目名不安全
            StreamIOError / AccessDeniedError: 目标路径无法写入
        """
        destination_root = os.fspath(destination_root)

        with self._open_source(container) as (stream, label):
            fmt = self._resolve_format(stream, label)
            job = ArchiveJob(
                source=label,
                destination=destination_root,
                format_name=fmt.name
            )
            job.start()
            logger.info("开始解包 %s -> %s (%s)", label, destination_root, fmt.name)

            try:
                tracker = ProgressTracker(self._progress_callback)
                ensure_directory(destination_root)
                for entry in self._iter_entries(fmt, stream, label):
                    self._extract(entry, destination_root, job, tracker)
                tracker.finish()
            except Exception as exc:
                job.fail(exc)
                logger.error("解包失败 %s: %s", label, exc)
                raise

        job.complete()
        logger.info(
            "解包完成 %s: %d 个文件, %d 字节",
            label, job.entry_count, job.total_bytes
        )
        return job

    @contextlib.contextmanager
    def _open_source(self, container: Source):
        if not isinstance(container, (str, os.PathLike)):
            label = getattr(container, "name", None)
            yield container, label if isinstance(label, str) else repr(container)
            return

        path = os.fspath(container)
        try:
            stream = open(path, "rb")
        except OSError as exc:
            raise translate_os_error(path, exc) from exc
        with stream:
            yield stream, path

    def _resolve_format(self, stream: BinaryIO, label: str) -> ContainerFormat:
        if self._format is not None:
            return self._format
        fmt = detect_format(stream, label)
        if fmt is None:
            logger.debug("无法推断 %s 的格式, 使用默认格式 %s", label, self._default_format)
            fmt = get_format(self._default_format)
        return fmt

    def _iter_entries(
        self,
        fmt: ContainerFormat,
        stream: BinaryIO,
        label: str
    ) -> Iterator[ContainerEntry]:
        entries = fmt.iter_entries(stream, self._chunk_size)
        while True:
            try:
                entry = next(entries, None)
            except CORRUPT_ERRORS as exc:
                raise CorruptArchiveError(f"容器数据损坏 ({exc})", entry=label) from exc
            except OSError as exc:
                raise StreamIOError(label, exc) from exc
            if entry is None:
                return
            yield entry

    def _extract(
        self,
        entry: ContainerEntry,
        destination_root: str,
        job: ArchiveJob,
        tracker: ProgressTracker
    ) -> None:
        target = safe_target(destination_root, entry.name)

        if entry.is_dir:
            ensure_directory(target)
            return

        ensure_directory(os.path.dirname(target))

        try:
            source = entry.open()
        except CORRUPT_ERRORS as exc:
            raise CorruptArchiveError(f"条目无法读取 ({exc})", entry=entry.name) from exc
        except UNSUPPORTED_ENTRY_ERRORS as exc:
            raise CorruptArchiveError(f"条目无法解码 ({exc})", entry=entry.name) from exc

        with source:
            try:
                sink = open(target, "wb")
            except OSError as exc:
                raise translate_os_error(target, exc) from exc
            with sink:
                written = self._copy(source, sink, entry.name, target)

        job.entry_count += 1
        job.total_bytes += written
        tracker.update(entry.name, written)
        logger.debug("已解出 %s (%d 字节)", entry.name, written)

    def _copy(self, source: BinaryIO, sink: BinaryIO, name: str, target: str) -> int:
        written = 0
        while True:
            try:
                chunk = source.read(self._chunk_size)
            except CORRUPT_ERRORS as exc:
                raise CorruptArchiveError(f"条目数据损坏 ({exc})", entry=name) from exc
            except UNSUPPORTED_ENTRY_ERRORS as exc:
                raise CorruptArchiveError(f"条目无法解码 ({exc})", entry=name) from exc
            if not chunk:
                return written
            try:
                sink.write(chunk)
            except OSError as exc:
                raise translate_os_error(target, exc) from exc
            written += len(chunk)


def unpack_archive(container: Source, destination_root: str, **kwargs) -> ArchiveJob:
    """
    解包容器 (便捷函数)

    Args:
        container: 容器路径或可读二进制流
        destination_root: 目标根目录
        **kwargs: 传递给 ArchiveUnpacker

    Returns:
        ArchiveJob
    """
    return ArchiveUnpacker(**kwargs).unpack(container, destination_root)


async def unpack_archive_async(container: Source, destination_root: str, **kwargs) -> ArchiveJob:
    """unpack_archive 的可挂起版本，在线程中执行"""
    return await asyncio.to_thread(unpack_archive, container, destination_root, **kwargs)
