#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
数据结构测试

测试 ExtensionFilter、PathEntry、ArchiveJob、LineSession。
"""

import dataclasses

import pytest

from walkpack.core.schema import (
    ArchiveJob,
    ExtensionFilter,
    JobState,
    LineSession,
    PathEntry,
    PathKind,
)


class TestExtensionFilter:
    """ExtensionFilter 测试"""

    @pytest.mark.parametrize("value", [None, [], "", ()])
    def test_empty_matches_all(self, value):
        """空过滤器匹配全部文件"""
        ext_filter = ExtensionFilter.of(value)
        assert ext_filter.match_all
        assert ext_filter.matches("a.txt")
        assert ext_filter.matches("noext")

    def test_single_string(self):
        """单个字符串等价于只含一项的列表"""
        ext_filter = ExtensionFilter.of(".txt")
        assert ext_filter.extensions == frozenset({".txt"})
        assert ext_filter.matches("a.txt")
        assert not ext_filter.matches("a.log")

    def test_multiple(self):
        ext_filter = ExtensionFilter.of([".txt", ".md"])
        assert ext_filter.matches("a.md")
        assert ext_filter.matches("b.txt")
        assert not ext_filter.matches("c.rst")

    def test_case_sensitive(self):
        """按原样区分大小写"""
        ext_filter = ExtensionFilter.of(".txt")
        assert not ext_filter.matches("A.TXT")

    def test_last_dot_only(self):
        ext_filter = ExtensionFilter.of(".gz")
        assert ext_filter.matches("a.tar.gz")
        assert not ExtensionFilter.of(".tar.gz").matches("a.tar.gz")

    def test_passthrough(self):
        ext_filter = ExtensionFilter.of(".txt")
        assert ExtensionFilter.of(ext_filter) is ext_filter


class TestPathEntry:
    """PathEntry 测试"""

    def test_name_and_kind(self):
        entry = PathEntry("/r/a/b.txt", "a/b.txt", PathKind.FILE)
        assert entry.name == "b.txt"
        assert entry.is_file
        assert not entry.is_directory

    def test_immutable(self):
        """创建后不可修改"""
        entry = PathEntry("/r/a", "a", PathKind.DIRECTORY)
        with pytest.raises(dataclasses.FrozenInstanceError):
            entry.kind = PathKind.FILE


class TestArchiveJob:
    """ArchiveJob 状态流转测试"""

    def test_lifecycle(self):
        job = ArchiveJob(source="src", destination="out.zip", format_name="zip")
        assert job.state is JobState.PENDING
        assert job.elapsed_time == 0.0

        job.start()
        assert job.state is JobState.IN_PROGRESS

        job.complete()
        assert job.state is JobState.COMPLETED
        assert job.elapsed_time >= 0.0
        assert not job.is_partial

    def test_partial(self):
        job = ArchiveJob(source="src", destination="out.zip", format_name="zip")
        job.start()
        job.skipped_files.append("src/gone.txt")
        job.complete()
        assert job.is_partial

    def test_fail(self):
        job = ArchiveJob(source="src", destination="out.zip", format_name="zip")
        job.start()
        error = RuntimeError("boom")
        job.fail(error)
        assert job.state is JobState.FAILED
        assert job.error is error


class TestLineSession:
    """LineSession 测试"""

    def test_deliver_and_resume(self):
        session = LineSession(source_path="a.txt")
        session.deliver("first")
        assert session.current_line == "first"
        assert session.line_number == 1
        assert session.suspended

        session.resume()
        assert not session.suspended

        session.deliver("second")
        assert session.line_number == 2

    def test_close(self):
        session = LineSession(source_path="a.txt")
        session.deliver("x")
        session.close()
        assert session.closed
        assert not session.suspended
