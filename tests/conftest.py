#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
pytest 全局配置

提供共享 fixtures、自定义 markers 和测试工具。
"""

import io
import os
import sys
from pathlib import Path

import pytest


# ==================== 路径常量 ====================

# 项目根目录
PROJECT_ROOT = Path(__file__).parent.parent

# src 目录 (未安装时也能导入 walkpack)
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))


# ==================== 环境检测 ====================

# root 用户不受目录权限限制，相关测试无法构造 EACCES
IS_ROOT = hasattr(os, "geteuid") and os.geteuid() == 0

requires_permissions = pytest.mark.skipif(
    IS_ROOT or sys.platform == "win32",
    reason="需要非 root 的 POSIX 权限环境"
)

# Windows 下反斜杠是路径分隔符，不能出现在文件名中
posix_only = pytest.mark.skipif(
    sys.platform == "win32",
    reason="需要允许反斜杠文件名的 POSIX 文件系统"
)


# ==================== 自定义 Markers ====================

def pytest_configure(config):
    """注册自定义 markers"""
    config.addinivalue_line("markers", "slow: 耗时较长的测试")


# ==================== 基础 Fixtures ====================

@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """
    隔离配置缓存与环境变量

    每个测试开始和结束时清空 get_settings() 的缓存。
    """
    from walkpack.config import ENV_VAR_MAP, reset_settings

    for env_var in ENV_VAR_MAP.values():
        monkeypatch.delenv(env_var, raising=False)
    reset_settings()
    yield
    reset_settings()


def write_tree(root: Path, files: dict) -> None:
    """按 {相对路径: 内容} 创建文件"""
    for name, content in files.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)


@pytest.fixture
def sample_files(tmp_path) -> tuple:
    """
    创建测试文件集

    Returns:
        (目录路径, 文件内容字典)
    """
    root = tmp_path / "src"
    root.mkdir()
    files = {
        "hero.txt": b"Hero data content",
        "config.json": b'{"name": "test", "value": 123}',
        "subdir/data.bin": b"\x00\x01\x02\x03\x04\x05\x06\x07",
        "subdir/nested/deep.txt": b"Deep nested file content",
        "subdir/nested/empty.log": b"",
        "中文文件.txt": "这是中文内容测试".encode("utf-8"),
    }
    write_tree(root, files)
    return root, files


@pytest.fixture
def large_files(tmp_path) -> tuple:
    """
    创建大文件测试集 (用于压缩与分块复制测试)

    Returns:
        (目录路径, 文件内容字典)
    """
    root = tmp_path / "large"
    root.mkdir()
    files = {
        "repeated.txt": b"Hello, walkpack! " * 10000,  # 可压缩内容
        "binary.dat": bytes(range(256)) * 1000,
        "random.bin": os.urandom(300000),  # 随机数据 (难压缩，跨越多个块)
    }
    write_tree(root, files)
    return root, files


@pytest.fixture
def scenario_tree(tmp_path) -> Path:
    """
    a/x.txt 与 a/sub/y.log

    Returns:
        根目录 a
    """
    root = tmp_path / "a"
    write_tree(root, {"x.txt": b"x", "sub/y.log": b"y"})
    return root


@pytest.fixture
def deny_access(monkeypatch):
    """
    模拟权限不足 (root 用户下同样生效)

    Returns:
        deny(path): 之后对该路径的 os.listdir 与 open 抛出 PermissionError
    """
    import builtins

    denied = set()
    real_listdir = os.listdir
    real_open = builtins.open

    def is_denied(path) -> bool:
        if not isinstance(path, (str, os.PathLike)):
            return False
        return os.path.abspath(os.fspath(path)) in denied

    def listdir(path="."):
        if is_denied(path):
            raise PermissionError(13, "Permission denied", os.fspath(path))
        return real_listdir(path)

    def open_(file, *args, **kwargs):
        if is_denied(file):
            raise PermissionError(13, "Permission denied", os.fspath(file))
        return real_open(file, *args, **kwargs)

    monkeypatch.setattr(os, "listdir", listdir)
    monkeypatch.setattr(builtins, "open", open_)

    def deny(path) -> None:
        denied.add(os.path.abspath(os.fspath(path)))

    return deny


def read_tree(root: Path) -> dict:
    """读取目录下所有文件为 {相对路径: 内容}"""
    result = {}
    for path in root.rglob("*"):
        if path.is_file():
            result[path.relative_to(root).as_posix()] = path.read_bytes()
    return result


class OneWayWriter:
    """只写、不支持 seek/tell 的输出流"""

    def __init__(self):
        self.buffer = io.BytesIO()
        self.flushed = False

    def write(self, data) -> int:
        return self.buffer.write(data)

    def flush(self) -> None:
        self.flushed = True

    def seekable(self) -> bool:
        return False

    def getvalue(self) -> bytes:
        return self.buffer.getvalue()


class OneWayReader:
    """只读、不支持 seek 的输入流"""

    def __init__(self, data: bytes):
        self._buffer = io.BytesIO(data)

    def read(self, size: int = -1) -> bytes:
        return self._buffer.read(size)

    def seekable(self) -> bool:
        return False
