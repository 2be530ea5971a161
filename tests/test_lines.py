#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
逐行读取测试

测试 step_through_lines / step_through_lines_sync / iter_lines。
"""

import asyncio

import pytest

from walkpack import (
    iter_lines,
    iter_lines_async,
    step_through_lines,
    step_through_lines_sync,
)
from walkpack.exceptions import CallerProtocolError, PathNotFoundError, StreamIOError


@pytest.fixture
def text_file(tmp_path):
    path = tmp_path / "lines.txt"
    path.write_bytes(b"first\nsecond\nthird\n")
    return path


def _step(path, on_line, **kwargs):
    return asyncio.run(step_through_lines(str(path), on_line, **kwargs))


# ==================== step_through_lines ====================

class TestStepThroughLines:
    """回调式逐行读取"""

    def test_order_and_count(self, text_file):
        """每行按文件顺序恰好交付一次"""
        received = []

        def on_line(line, resume):
            received.append(line)
            resume()

        assert _step(text_file, on_line) == 3
        assert received == ["first", "second", "third"]

    def test_deferred_resume(self, text_file):
        """resume 稍后在别处调用"""
        received = []

        def on_line(line, resume):
            received.append(line)
            asyncio.get_running_loop().call_later(0.01, resume)

        assert _step(text_file, on_line) == 3
        assert received == ["first", "second", "third"]

    def test_no_read_ahead(self, text_file):
        """resume 之前不会交付下一行"""
        received = []
        pending = []

        def on_line(line, resume):
            received.append(line)
            pending.append(resume)

        async def run():
            task = asyncio.create_task(step_through_lines(str(text_file), on_line))
            for expected in (1, 2, 3):
                while len(received) < expected:
                    await asyncio.sleep(0.01)
                await asyncio.sleep(0.05)
                assert len(received) == expected
                pending.pop()()
            return await task

        assert asyncio.run(run()) == 3

    def test_stall_without_resume(self, text_file):
        """永不调用 resume 时挂起，不会交付第二行"""
        received = []

        def on_line(line, resume):
            received.append(line)

        async def run():
            await asyncio.wait_for(step_through_lines(str(text_file), on_line), 0.2)

        with pytest.raises(asyncio.TimeoutError):
            asyncio.run(run())
        assert received == ["first"]

    def test_coroutine_callback(self, text_file):
        received = []

        async def on_line(line, resume):
            await asyncio.sleep(0)
            received.append(line)
            resume()

        assert _step(text_file, on_line) == 3
        assert received == ["first", "second", "third"]

    def test_double_resume(self, text_file):
        """同一行 resume 重复调用"""
        errors = []

        def on_line(line, resume):
            resume()
            try:
                resume()
            except CallerProtocolError as exc:
                errors.append(exc)

        assert _step(text_file, on_line) == 3
        assert len(errors) == 3

    def test_stale_resume_rejected(self, text_file):
        """上一行的 resume 不能推进下一行"""
        gates = []

        def on_line(line, resume):
            gates.append(resume)
            resume()

        _step(text_file, on_line)
        with pytest.raises(CallerProtocolError):
            gates[0]()

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.txt"
        path.write_bytes(b"")
        calls = []

        assert _step(path, lambda line, resume: calls.append(line)) == 0
        assert calls == []

    def test_missing_file(self, tmp_path):
        calls = []
        with pytest.raises(PathNotFoundError):
            _step(tmp_path / "missing.txt", lambda line, resume: calls.append(line))
        assert calls == []

    def test_universal_newlines(self, tmp_path):
        """\\r\\n 与 \\r 都视为行结束，末行无换行也会交付"""
        path = tmp_path / "mixed.txt"
        path.write_bytes(b"a\r\nb\rc\nd")
        received = []

        def on_line(line, resume):
            received.append(line)
            resume()

        assert _step(path, on_line) == 4
        assert received == ["a", "b", "c", "d"]

    def test_blank_lines_kept(self, tmp_path):
        path = tmp_path / "blank.txt"
        path.write_bytes(b"a\n\nb\n")
        received = []

        def on_line(line, resume):
            received.append(line)
            resume()

        _step(path, on_line)
        assert received == ["a", "", "b"]

    def test_decode_error_aborts(self, tmp_path):
        """读取中途出错: 抛出 StreamIOError，不再交付后续行"""
        path = tmp_path / "bad.txt"
        path.write_bytes(b"ok\n" + b"a" * 20000 + b"\xff\xfe\n" + b"never\n")
        received = []

        def on_line(line, resume):
            received.append(line)
            resume()

        with pytest.raises(StreamIOError):
            _step(path, on_line)
        assert received == ["ok"]

    def test_encoding(self, tmp_path):
        path = tmp_path / "gbk.txt"
        path.write_bytes("中文\n".encode("gbk"))
        received = []

        def on_line(line, resume):
            received.append(line)
            resume()

        _step(path, on_line, encoding="gbk")
        assert received == ["中文"]


class TestStepThroughLinesSync:
    """阻塞版本"""

    def test_order(self, text_file):
        received = []

        def on_line(line, resume):
            received.append(line)
            resume()

        assert step_through_lines_sync(str(text_file), on_line) == 3
        assert received == ["first", "second", "third"]

    def test_missing_resume(self, text_file):
        """on_line 返回前未调用 resume"""
        received = []
        with pytest.raises(CallerProtocolError):
            step_through_lines_sync(str(text_file), lambda line, resume: received.append(line))
        assert received == ["first"]

    def test_double_resume(self, text_file):
        def on_line(line, resume):
            resume()
            resume()

        with pytest.raises(CallerProtocolError):
            step_through_lines_sync(str(text_file), on_line)

    def test_missing_file(self, tmp_path):
        with pytest.raises(PathNotFoundError):
            step_through_lines_sync(str(tmp_path / "missing.txt"), lambda line, resume: resume())


# ==================== iter_lines ====================

class TestIterLines:
    """拉取式逐行读取"""

    def test_lines(self, text_file):
        assert list(iter_lines(str(text_file))) == ["first", "second", "third"]

    def test_lazy_reads(self, text_file):
        lines = iter_lines(str(text_file))
        assert next(lines) == "first"
        lines.close()

    def test_missing_raises_immediately(self, tmp_path):
        """文件不存在时在调用处立即抛出"""
        with pytest.raises(PathNotFoundError):
            iter_lines(str(tmp_path / "missing.txt"))

    def test_directory(self, tmp_path):
        with pytest.raises(StreamIOError):
            list(iter_lines(str(tmp_path)))

    def test_async(self, text_file):
        async def run():
            return [line async for line in iter_lines_async(str(text_file))]

        assert asyncio.run(run()) == ["first", "second", "third"]

    def test_async_missing(self, tmp_path):
        async def run():
            return [line async for line in iter_lines_async(str(tmp_path / "missing.txt"))]

        with pytest.raises(PathNotFoundError):
            asyncio.run(run())
