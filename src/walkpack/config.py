#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
运行参数

集中管理可调常量 (压缩级别、复制块大小、默认容器格式、文本编码)，
支持通过环境变量覆盖:

    WALKPACK_COMPRESS_LEVEL   压缩级别 0-9, 默认 5 (偏向速度)
    WALKPACK_CHUNK_SIZE       流式复制块大小 (字节), 默认 64 KiB
    WALKPACK_ARCHIVE_FORMAT   默认容器格式, 默认 zip
    WALKPACK_ENCODING         逐行读取的文本编码, 默认 utf-8
"""

import codecs
import os
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from .exceptions import ConfigurationError


DEFAULT_COMPRESS_LEVEL = 5
DEFAULT_CHUNK_SIZE = 64 * 1024
DEFAULT_ARCHIVE_FORMAT = "zip"
DEFAULT_ENCODING = "utf-8"


@dataclass(frozen=True)
class Settings:
    """可调参数集合"""
    compress_level: int = DEFAULT_COMPRESS_LEVEL
    chunk_size: int = DEFAULT_CHUNK_SIZE
    archive_format: str = DEFAULT_ARCHIVE_FORMAT
    encoding: str = DEFAULT_ENCODING


# 字段名到环境变量名的映射
ENV_VAR_MAP: Dict[str, str] = {
    'compress_level': 'WALKPACK_COMPRESS_LEVEL',
    'chunk_size': 'WALKPACK_CHUNK_SIZE',
    'archive_format': 'WALKPACK_ARCHIVE_FORMAT',
    'encoding': 'WALKPACK_ENCODING',
}

_cached: Optional[Settings] = None


def _parse_int(key: str, raw: str, low: int, high: Optional[int] = None) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(key, raw, "需要整数") from None
    if value < low or (high is not None and value > high):
        bound = f">= {low}" if high is None else f"{low}-{high}"
        raise ConfigurationError(key, raw, f"取值范围 {bound}")
    return value


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    从环境变量读取参数

    Args:
        environ: 环境变量映射，默认 os.environ

    Returns:
        Settings 实例

    Raises:
        ConfigurationError: 环境变量取值无效
    """
    if environ is None:
        environ = os.environ

    values = {}

    raw = environ.get(ENV_VAR_MAP['compress_level'])
    if raw:
        values['compress_level'] = _parse_int(
            ENV_VAR_MAP['compress_level'], raw, 0, 9
        )

    raw = environ.get(ENV_VAR_MAP['chunk_size'])
    if raw:
        values['chunk_size'] = _parse_int(ENV_VAR_MAP['chunk_size'], raw, 1)

    raw = environ.get(ENV_VAR_MAP['archive_format'])
    if raw:
        # 延迟导入，避免 archive 包与 config 的循环依赖
        from .archive.registry import FORMAT_REGISTRY
        name = raw.strip().lower()
        if name not in FORMAT_REGISTRY:
            raise ConfigurationError(
                ENV_VAR_MAP['archive_format'], raw,
                f"可选: {', '.join(sorted(FORMAT_REGISTRY))}"
            )
        values['archive_format'] = name

    raw = environ.get(ENV_VAR_MAP['encoding'])
    if raw:
        try:
            codecs.lookup(raw)
        except LookupError:
            raise ConfigurationError(
                ENV_VAR_MAP['encoding'], raw, "未知编码"
            ) from None
        values['encoding'] = raw

    return Settings(**values)


def get_settings() -> Settings:
    """获取缓存的参数 (首次调用时读取环境变量)"""
    global _cached
    if _cached is None:
        _cached = load_settings()
    return _cached


def reset_settings() -> None:
    """清空缓存，下次 get_settings() 重新读取环境变量"""
    global _cached
    _cached = None
