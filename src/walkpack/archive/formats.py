#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
容器格式定义

定义容器格式的抽象接口，以及内置的 zip 与 tar.gz 实现。
条目名统一使用正斜杠分隔的相对路径。
"""

import gzip
import logging
import shutil
import tarfile
import tempfile
import zipfile
import zlib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import BinaryIO, Callable, Iterator, Tuple

from ..exceptions import CorruptArchiveError

logger = logging.getLogger(__name__)

# 读取容器内容时表示数据损坏的异常
CORRUPT_ERRORS = (
    zipfile.BadZipFile,
    tarfile.TarError,
    gzip.BadGzipFile,
    zlib.error,
    EOFError,
)

# 条目无法解码: 加密条目 (RuntimeError) 或不支持的压缩方法 (NotImplementedError)
UNSUPPORTED_ENTRY_ERRORS = (
    NotImplementedError,
    RuntimeError,
)


@dataclass
class ContainerEntry:
    """
    容器中的单个条目

    open() 返回条目内容的只读流，仅在迭代到下一个条目之前有效。
    """
    name: str
    is_dir: bool
    size: int
    opener: Callable[[], BinaryIO]

    def open(self) -> BinaryIO:
        return self.opener()


class ContainerWriter(ABC):
    """
    容器写入器

    close() 为显式的收尾步骤 (写入目录区/结束块)，
    在它返回之前容器内容都不完整。
    """

    @abstractmethod
    def add_file(self, local_path: str, arcname: str) -> int:
        """
        以流式方式写入单个文件

        Args:
            local_path: 本地文件路径
            arcname: 条目名

        Returns:
            写入的原始字节数

        Raises:
            FileNotFoundError: 文件在写入前已被删除 (此时不产生半个条目)
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """收尾并关闭写入器 (不关闭底层 stream)"""
        pass

    def abandon(self) -> None:
        """
        任务失败时释放写入器

        必须在底层 stream 关闭之前调用。关闭过程中的 I/O 错误只记录日志，
        由调用方继续传播导致失败的原始异常。
        """
        try:
            self.close()
        except (OSError, ValueError) as exc:
            logger.debug("释放未完成的容器写入器失败: %s", exc)

    def __enter__(self) -> "ContainerWriter":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class ContainerFormat(ABC):
    """
    容器格式

    用于实现具体的归档格式 (如 zip, tar.gz)。
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """
        格式名称

        注册表中的键，同时用于 WALKPACK_ARCHIVE_FORMAT 环境变量。
        """
        pass

    @property
    @abstractmethod
    def suffixes(self) -> Tuple[str, ...]:
        """文件后缀 (小写，含点号)，用于按路径推断格式"""
        pass

    @property
    @abstractmethod
    def magic(self) -> Tuple[bytes, ...]:
        """文件开头的魔法数，用于嗅探格式"""
        pass

    @abstractmethod
    def open_writer(self, stream: BinaryIO, compress_level: int) -> ContainerWriter:
        """
        在可写的二进制流上创建写入器

        Args:
            stream: 目标流 (可以不支持 seek)
            compress_level: 压缩级别 0-9
        """
        pass

    @abstractmethod
    def iter_entries(self, stream: BinaryIO, chunk_size: int) -> Iterator[ContainerEntry]:
        """
        按容器顺序迭代条目

        Raises:
            CorruptArchiveError: 容器无法解析
        """
        pass


# ==================== zip ====================

class _ZipWriter(ContainerWriter):

    def __init__(self, stream: BinaryIO, compress_level: int):
        self._zip = zipfile.ZipFile(
            stream, "w",
            compression=zipfile.ZIP_DEFLATED,
            compresslevel=compress_level
        )

    def add_file(self, local_path: str, arcname: str) -> int:
        # ZipFile.write 先 stat 再分块读写，文件缺失时不会留下半个条目
        self._zip.write(local_path, arcname)
        return self._zip.getinfo(arcname).file_size

    def close(self) -> None:
        self._zip.close()


class ZipFormat(ContainerFormat):
    """
    zip 容器 (DEFLATE)

    写入可直接流向不支持 seek 的目标；读取时由于中央目录位于文件末尾，
    不支持 seek 的来源会先转存到临时文件。
    """

    @property
    def name(self) -> str:
        return "zip"

    @property
    def suffixes(self) -> Tuple[str, ...]:
        return (".zip",)

    @property
    def magic(self) -> Tuple[bytes, ...]:
        # 本地文件头 / 空归档的中央目录结束记录
        return (b"PK\x03\x04", b"PK\x05\x06")

    def open_writer(self, stream: BinaryIO, compress_level: int) -> ContainerWriter:
        return _ZipWriter(stream, compress_level)

    def iter_entries(self, stream: BinaryIO, chunk_size: int) -> Iterator[ContainerEntry]:
        if _seekable(stream):
            yield from self._iter_zip(stream)
            return

        logger.debug("来源不支持 seek, 转存到临时文件")
        with tempfile.TemporaryFile() as spool:
            shutil.copyfileobj(stream, spool, chunk_size)
            spool.seek(0)
            yield from self._iter_zip(spool)

    def _iter_zip(self, stream: BinaryIO) -> Iterator[ContainerEntry]:
        try:
            archive = zipfile.ZipFile(stream, "r")
        except zipfile.BadZipFile as exc:
            raise CorruptArchiveError(f"无法解析 zip 容器 ({exc})") from exc

        with archive:
            for info in archive.infolist():
                yield ContainerEntry(
                    name=info.filename,
                    is_dir=info.is_dir(),
                    size=info.file_size,
                    opener=_bind(archive.open, info)
                )


# ==================== tar.gz ====================

class _TarGzWriter(ContainerWriter):

    def __init__(self, stream: BinaryIO, compress_level: int):
        self._gzip = gzip.GzipFile(
            fileobj=stream, mode="wb", compresslevel=compress_level
        )
        self._tar = tarfile.open(fileobj=self._gzip, mode="w|")

    def add_file(self, local_path: str, arcname: str) -> int:
        tarinfo = self._tar.gettarinfo(local_path, arcname)
        with open(local_path, "rb") as f:
            self._tar.addfile(tarinfo, f)
        return tarinfo.size

    def close(self) -> None:
        try:
            self._tar.close()
        finally:
            # GzipFile 不会关闭传入的 fileobj
            self._gzip.close()


class TarGzFormat(ContainerFormat):
    """
    tar.gz 容器

    读写均使用 tarfile 的纯流模式，全程不需要 seek。
    """

    @property
    def name(self) -> str:
        return "tar.gz"

    @property
    def suffixes(self) -> Tuple[str, ...]:
        return (".tar.gz", ".tgz")

    @property
    def magic(self) -> Tuple[bytes, ...]:
        return (b"\x1f\x8b",)

    def open_writer(self, stream: BinaryIO, compress_level: int) -> ContainerWriter:
        return _TarGzWriter(stream, compress_level)

    def iter_entries(self, stream: BinaryIO, chunk_size: int) -> Iterator[ContainerEntry]:
        try:
            archive = tarfile.open(fileobj=stream, mode="r|*", bufsize=chunk_size)
        except CORRUPT_ERRORS as exc:
            raise CorruptArchiveError(f"无法解析 tar 容器 ({exc})") from exc

        with archive:
            for member in archive:
                if not (member.isfile() or member.isdir()):
                    logger.debug("跳过非常规条目: %s", member.name)
                    continue
                yield ContainerEntry(
                    name=member.name,
                    is_dir=member.isdir(),
                    size=member.size,
                    opener=_bind(archive.extractfile, member)
                )


def _bind(func, arg):
    return lambda: func(arg)


def _seekable(stream: BinaryIO) -> bool:
    seekable = getattr(stream, "seekable", None)
    return bool(seekable and seekable())
