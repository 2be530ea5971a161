#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
进度回调

打包/解包任务在每个条目完成后更新进度，按最小间隔调用回调。
"""

import time
from dataclasses import dataclass
from typing import Callable, Optional


@dataclass
class ProgressInfo:
    """
    进度信息

    传递给进度回调函数的数据结构。流式任务事先不知道条目总数，
    因此只报告已处理的数量。
    """
    current: int              # 已处理条目数
    current_file: str         # 刚处理完的条目名
    bytes_processed: int      # 已处理字节数
    elapsed_time: float       # 已耗时 (秒)

    @property
    def rate(self) -> float:
        """处理速率 (bytes/second)"""
        if self.elapsed_time == 0:
            return 0.0
        return self.bytes_processed / self.elapsed_time


# 进度回调函数类型
ProgressCallback = Callable[[ProgressInfo], None]


class ProgressTracker:
    """
    进度跟踪器

    封装进度计算和回调调用逻辑。
    """

    def __init__(
        self,
        callback: Optional[ProgressCallback] = None,
        callback_interval: float = 0.1  # 最小回调间隔 (秒)
    ):
        self._callback = callback
        self._callback_interval = callback_interval

        self._current = 0
        self._processed_bytes = 0
        self._start_time = time.time()
        self._last_callback_time = 0.0
        self._last_file = ""
        self._reported = 0

    @property
    def current(self) -> int:
        return self._current

    @property
    def processed_bytes(self) -> int:
        return self._processed_bytes

    def update(self, file_path: str, bytes_processed: int = 0) -> None:
        """
        更新进度

        Args:
            file_path: 当前处理的条目
            bytes_processed: 本次处理的字节数
        """
        self._current += 1
        self._processed_bytes += bytes_processed
        self._last_file = file_path

        if self._callback:
            now = time.time()
            # 限制回调频率
            if now - self._last_callback_time >= self._callback_interval:
                self._emit(now)

    def finish(self) -> float:
        """完成并返回总耗时；有回调时保证最后一次进度被报告"""
        now = time.time()
        if self._callback and self._current != self._reported:
            self._emit(now)
        return now - self._start_time

    def _emit(self, now: float) -> None:
        info = ProgressInfo(
            current=self._current,
            current_file=self._last_file,
            bytes_processed=self._processed_bytes,
            elapsed_time=now - self._start_time
        )
        self._callback(info)
        self._last_callback_time = now
        self._reported = self._current
