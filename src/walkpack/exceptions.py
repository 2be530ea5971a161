#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
walkpack 异常定义

所有异常均继承自 WalkpackError，便于统一捕获。
底层异常通过 ``raise ... from exc`` 保留在 ``__cause__`` 中。
"""

from dataclasses import dataclass
from typing import Optional


class WalkpackError(Exception):
    """walkpack 基础异常"""
    pass


class PathNotFoundError(WalkpackError):
    """
    路径不存在异常

    遍历根目录、待读取文件等不存在时抛出。
    """
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"路径不存在: {path}")


class AccessDeniedError(WalkpackError):
    """
    权限不足异常

    目录无法列出或文件无法打开 (EACCES / EPERM) 时抛出。
    """
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"权限不足: {path}")


class StreamIOError(WalkpackError):
    """
    读写失败异常

    包装底层的 OSError 等异常，cause 中保存原始异常。
    """
    def __init__(self, path: str, cause: Optional[BaseException] = None):
        self.path = path
        self.cause = cause
        message = f"读写失败: {path}"
        if cause is not None:
            message = f"{message} ({cause})"
        super().__init__(message)


class CorruptArchiveError(WalkpackError):
    """
    归档损坏异常

    当容器无法解析，或条目路径越出解包目标目录时抛出。
    """
    def __init__(self, message: str, entry: Optional[str] = None):
        self.entry = entry
        if entry:
            message = f"{message}: '{entry}'"
        super().__init__(message)


class GlobPatternError(WalkpackError):
    """通配符模式解析失败"""
    def __init__(self, pattern, reason: str = "无效的模式"):
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"通配符模式 {pattern!r} 解析失败: {reason}")


class CallerProtocolError(WalkpackError):
    """
    调用方协议错误

    逐行读取时 resume 被重复调用，或同步模式下未调用 resume。
    """
    pass


class UnknownFormatError(WalkpackError):
    """未注册的容器格式"""
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"未知的容器格式: {name}")


class ConfigurationError(WalkpackError):
    """环境变量配置值无效"""
    def __init__(self, key: str, value: str, reason: str = ""):
        self.key = key
        self.value = value
        message = f"配置项 {key} 的值无效: {value!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


@dataclass
class MissingEntryWarning:
    """
    条目缺失警告 (非致命)

    打包过程中文件在枚举之后、读取之前被删除时产生，
    通过 on_warning 回调上报，不会中止打包任务。
    """
    path: str
    cause: Optional[BaseException] = None

    def __str__(self) -> str:
        return f"条目已缺失, 跳过: {self.path}"
