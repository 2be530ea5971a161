#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
归档打包器

将目录树流式写入单个压缩容器。
枚举与写入交替进行，任何时刻都不会把整棵目录树或整个文件读入内存。
容器顶层直接是源目录的子节点，不包含源目录本身。
"""

import asyncio
import contextlib
import logging
import os
import stat
from typing import BinaryIO, Callable, Iterator, Optional, Union

from ..config import get_settings
from ..core.progress import ProgressCallback, ProgressTracker
from ..core.schema import ArchiveJob, PathEntry
from ..exceptions import MissingEntryWarning, StreamIOError, WalkpackError
from ..utils import translate_os_error
from ..walker import iter_entries
from .formats import ContainerFormat, ContainerWriter
from .registry import format_from_suffix, get_format

logger = logging.getLogger(__name__)

Destination = Union[str, "os.PathLike[str]", BinaryIO]
WarningCallback = Callable[[MissingEntryWarning], None]


class ArchivePacker:
    """
    归档打包器

    同一目标同时只能有一个写入者，调用方需保证任务期间独占目标。
    """

    def __init__(
        self,
        destination: Destination,
        format: Union[None, str, ContainerFormat] = None,
        compress_level: Optional[int] = None,
        on_warning: Optional[WarningCallback] = None,
        progress_callback: Optional[ProgressCallback] = None
    ):
        """
        初始化打包器

        Args:
            destination: 目标路径，或可写的二进制流
            format: 容器格式 (默认按目标后缀推断，其次使用配置默认值)
            compress_level: 压缩级别 (默认使用配置值)
            on_warning: 非致命警告回调 (条目缺失)；在回调中抛出异常可中止任务
            progress_callback: 进度回调
        """
        settings = get_settings()

        if isinstance(destination, (str, os.PathLike)):
            self._dest_path: Optional[str] = os.fspath(destination)
            self._dest_stream: Optional[BinaryIO] = None
        else:
            self._dest_path = None
            self._dest_stream = destination

        if format is not None:
            self._format = get_format(format)
        else:
            inferred = format_from_suffix(self._dest_path) if self._dest_path else None
            self._format = inferred or get_format(settings.archive_format)

        if compress_level is None:
            compress_level = settings.compress_level
        self._compress_level = compress_level
        self._on_warning = on_warning
        self._progress_callback = progress_callback

    @property
    def format(self) -> ContainerFormat:
        return self._format

    @property
    def destination_label(self) -> str:
        if self._dest_path is not None:
            return self._dest_path
        return getattr(self._dest_stream, "name", None) or repr(self._dest_stream)

    def pack(self, source_root: str) -> ArchiveJob:
        """
        打包目录

        条目按遍历顺序写入；收尾步骤完成后目标才算写完。

        Args:
            source_root: 源目录

        Returns:
            状态为 COMPLETED 的 ArchiveJob

        Raises:
            StreamIOError: 源目录无法读取 (cause 为底层异常)
            WalkpackError: 其他错误，此时目标处于未定义的部分写入状态，
                           调用方应在重试前删除它
        """
        job = ArchiveJob(
            source=os.fspath(source_root),
            destination=self.destination_label,
            format_name=self._format.name
        )
        job.start()
        logger.info("开始打包 %s -> %s (%s)", job.source, job.destination, job.format_name)

        try:
            self._check_source(job.source)
            tracker = ProgressTracker(self._progress_callback)
            with self._open_destination() as stream:
                writer = self._format.open_writer(stream, self._compress_level)
                try:
                    for entry in self._iter_sources(job):
                        self._add_entry(writer, entry, job, tracker)
                except BaseException:
                    # 在目标流关闭之前释放写入器
                    writer.abandon()
                    raise
                self._finalize(writer, stream)
            tracker.finish()
        except Exception as exc:
            job.fail(exc)
            logger.error("打包失败 %s: %s", job.source, exc)
            raise

        job.complete()
        logger.info(
            "打包完成 %s: %d 个条目, %d 字节, 跳过 %d 个",
            job.source, job.entry_count, job.total_bytes, len(job.skipped_files)
        )
        return job

    def _check_source(self, source_root: str) -> None:
        # 与遍历一致: 根目录本身是指向目录的符号链接时跟随它
        try:
            st = os.stat(source_root)
        except OSError as exc:
            cause = translate_os_error(source_root, exc)
            raise StreamIOError(source_root, cause) from exc
        if not stat.S_ISDIR(st.st_mode):
            raise StreamIOError(source_root, NotADirectoryError(source_root))

    def _iter_sources(self, job: ArchiveJob) -> Iterator[PathEntry]:
        # 目标文件位于源目录内时不能把自己打包进去
        own_output = os.path.abspath(self._dest_path) if self._dest_path else None

        def on_missing(path: str, error: WalkpackError) -> None:
            self._report_missing(job, path, error)

        for entry in iter_entries(job.source, on_missing=on_missing):
            if entry.absolute_path == own_output:
                logger.debug("跳过目标文件自身: %s", own_output)
                continue
            yield entry

    @contextlib.contextmanager
    def _open_destination(self) -> Iterator[BinaryIO]:
        if self._dest_stream is not None:
            yield self._dest_stream
            return

        try:
            stream = open(self._dest_path, "wb")
        except OSError as exc:
            raise translate_os_error(self._dest_path, exc) from exc
        with stream:
            yield stream

    def _add_entry(
        self,
        writer: ContainerWriter,
        entry: PathEntry,
        job: ArchiveJob,
        tracker: ProgressTracker
    ) -> None:
        arcname = entry.relative_fragment
        try:
            size = writer.add_file(entry.absolute_path, arcname)
        except FileNotFoundError as exc:
            # 分类之后、读取之前被删除
            self._report_missing(job, entry.absolute_path, exc)
            return
        except OSError as exc:
            raise translate_os_error(entry.absolute_path, exc) from exc

        job.entry_count += 1
        job.total_bytes += size
        tracker.update(arcname, size)
        logger.debug("已写入 %s (%d 字节)", arcname, size)

    def _report_missing(self, job: ArchiveJob, path: str, cause: BaseException) -> None:
        warning = MissingEntryWarning(os.path.abspath(path), cause)
        logger.warning("%s", warning)
        job.skipped_files.append(warning.path)
        if self._on_warning:
            self._on_warning(warning)

    def _finalize(self, writer: ContainerWriter, stream: BinaryIO) -> None:
        try:
            writer.close()
            stream.flush()
        except OSError as exc:
            raise translate_os_error(self.destination_label, exc) from exc


def pack_dir(source_root: str, destination: Destination, **kwargs) -> ArchiveJob:
    """
    打包目录 (便捷函数)

    Args:
        source_root: 源目录
        destination: 目标路径或可写二进制流
        **kwargs: 传递给 ArchivePacker

    Returns:
        ArchiveJob
    """
    return ArchivePacker(destination, **kwargs).pack(source_root)


async def pack_dir_async(source_root: str, destination: Destination, **kwargs) -> ArchiveJob:
    """pack_dir 的可挂起版本，在线程中执行"""
    return await asyncio.to_thread(pack_dir, source_root, destination, **kwargs)
