#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
walkpack 核心模块

提供数据结构定义、节点分类和进度回调。
"""

from .schema import (
    PathKind, PathEntry, ExtensionFilter, JobState, ArchiveJob, LineSession
)
from .classify import classify, classify_async, PathClassifier
from .progress import ProgressInfo, ProgressTracker

__all__ = [
    "PathKind",
    "PathEntry",
    "ExtensionFilter",
    "JobState",
    "ArchiveJob",
    "LineSession",
    # 分类
    "classify",
    "classify_async",
    "PathClassifier",
    # 进度
    "ProgressInfo",
    "ProgressTracker",
]
