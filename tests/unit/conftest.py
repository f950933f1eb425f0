"""
测试公共夹具

在临时目录中生成真实的 .deb 文件（ar 归档：debian-binary、
control.tar.gz、data.tar.xz），供读取器和完整构建测试使用。
"""

import io
import tarfile
from pathlib import Path
from typing import Dict, Iterable, Optional

import pytest

from aptbuilder.config.schema import BuilderConfig

AR_MAGIC = b"!<arch>\n"


def _ar_member(name: str, content: bytes) -> bytes:
    """单个 ar 成员：60 字节头部 + 数据，奇数长度补一个换行"""
    header = (
        f"{name:<16}"
        f"{0:<12}"
        f"{0:<6}"
        f"{0:<6}"
        f"{'100644':<8}"
        f"{len(content):<10}"
        "`\n"
    ).encode("ascii")
    member = header + content
    if len(content) % 2:
        member += b"\n"
    return member


def _tar_bytes(entries: Dict[str, Optional[bytes]], mode: str) -> bytes:
    """生成 tar 数据；值为 None 的条目是目录"""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode=mode, format=tarfile.GNU_FORMAT) as tar:
        for name, content in entries.items():
            info = tarfile.TarInfo(name)
            if content is None:
                info.type = tarfile.DIRTYPE
                info.mode = 0o755
                tar.addfile(info)
            else:
                info.size = len(content)
                info.mode = 0o644
                tar.addfile(info, io.BytesIO(content))
    return buffer.getvalue()


def build_control_text(package: str, architecture: str, version: str = "1.0", **extra: str) -> str:
    lines = [
        f"Package: {package}",
        f"Version: {version}",
        f"Architecture: {architecture}",
        "Maintainer: Test <test@example.com>",
    ]
    lines.extend(f"{key.replace('_', '-')}: {value}" for key, value in extra.items())
    lines.append(f"Description: {package} test package")
    return "\n".join(lines) + "\n"


def write_deb(
    path: Path,
    package: str = "foo",
    architecture: str = "all",
    files: Iterable[str] = ("data/data/com.termux/files/usr/bin/foo",),
    control_text: Optional[str] = None,
) -> Path:
    """写出一个最小但结构完整的 .deb 文件"""
    if control_text is None:
        control_text = build_control_text(package, architecture)

    data_entries: Dict[str, Optional[bytes]] = {"./": None}
    for file_path in files:
        parts = file_path.split("/")
        for depth in range(1, len(parts)):
            data_entries.setdefault("./" + "/".join(parts[:depth]) + "/", None)
        data_entries["./" + file_path] = f"{package}:{file_path}\n".encode("utf-8", "surrogateescape")

    control_tar = _tar_bytes({"./": None, "./control": control_text.encode("utf-8", "surrogateescape")}, "w:gz")
    data_tar = _tar_bytes(data_entries, "w:xz")

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        f.write(AR_MAGIC)
        f.write(_ar_member("debian-binary", b"2.0\n"))
        f.write(_ar_member("control.tar.gz", control_tar))
        f.write(_ar_member("data.tar.xz", data_tar))
    return path


class StaticReader:
    """不读取归档的 ControlReader，按文件名返回预设内容"""

    def __init__(self, controls: Dict[str, str], files: Optional[Dict[str, list]] = None):
        self.controls = controls
        self.files = files or {}

    def read_control(self, package_path: Path) -> str:
        return self.controls[package_path.name]

    def read_file_list(self, package_path: Path) -> list:
        return list(self.files.get(package_path.name, []))


@pytest.fixture
def make_deb():
    """返回写 .deb 文件的工厂函数"""
    return write_deb


@pytest.fixture
def input_dir(tmp_path):
    path = tmp_path / "debs"
    path.mkdir()
    return path


@pytest.fixture
def output_dir(tmp_path):
    return tmp_path / "repo"


@pytest.fixture
def make_config(input_dir, output_dir):
    """返回创建构建配置的工厂函数，关键字参数直接传给 BuilderConfig"""
    def _make(**kwargs) -> BuilderConfig:
        kwargs.setdefault("input", input_dir)
        kwargs.setdefault("output", output_dir)
        return BuilderConfig(**kwargs)
    return _make


@pytest.fixture
def static_reader():
    """返回 StaticReader 类，按需构造"""
    return StaticReader
