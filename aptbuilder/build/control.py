"""
控制信息提取

从 .deb 软件包中读取 control 段落和安装文件列表，并解析出
软件包名与架构。读取归档的部分封装在 ControlReader 协议后面。
"""

import tarfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Collection, Dict, List, Protocol

from debian.arfile import ArError
from debian.deb822 import Deb822
from debian.debfile import DebError, DebFile


class ControlError(Exception):
    """控制信息读取或解析错误"""
    pass


class MissingControlFieldError(ControlError):
    """control 中缺少必需字段"""

    def __init__(self, field_name: str, package_path: Path):
        super().__init__(f"'{package_path.name}' 的 control 信息缺少字段 {field_name}")
        self.field_name = field_name
        self.package_path = package_path


class UnsupportedArchitectureError(ControlError):
    """软件包声明了不支持的架构"""

    def __init__(self, architecture: str, package_path: Path):
        super().__init__(f"不支持的架构 '{architecture}'，软件包 '{package_path.name}'")
        self.architecture = architecture
        self.package_path = package_path


@dataclass
class ControlRecord:
    """软件包的 control 信息"""
    name: str
    architecture: str
    text: str
    fields: Dict[str, str] = field(default_factory=dict)


class ControlReader(Protocol):
    """软件包归档读取接口"""

    def read_control(self, package_path: Path) -> str:
        """返回 control 文件的文本内容"""
        ...

    def read_file_list(self, package_path: Path) -> List[str]:
        """返回软件包安装的文件路径列表（不含目录）"""
        ...


class DebControlReader:
    """基于 python-debian 的 .deb 读取实现"""

    def _open(self, package_path: Path) -> DebFile:
        try:
            return DebFile(filename=str(package_path))
        except (DebError, ArError, tarfile.TarError, OSError, EOFError) as e:
            raise ControlError(f"无法读取软件包 '{package_path.name}': {e}") from e

    def read_control(self, package_path: Path) -> str:
        deb = self._open(package_path)
        try:
            content = deb.control.get_content("control")
        except (DebError, tarfile.TarError, OSError, KeyError, EOFError) as e:
            raise ControlError(f"无法从 '{package_path.name}' 提取 control 文件: {e}") from e
        finally:
            deb.close()

        if content is None:
            raise ControlError(f"'{package_path.name}' 中没有 control 文件")
        return content.decode('utf-8', errors='surrogateescape')

    def read_file_list(self, package_path: Path) -> List[str]:
        deb = self._open(package_path)
        try:
            members = deb.data.tgz().getmembers()
        except (DebError, ArError, tarfile.TarError, OSError, EOFError) as e:
            raise ControlError(f"无法列出 '{package_path.name}' 的文件: {e}") from e
        finally:
            deb.close()

        files = []
        for member in members:
            if member.isdir():
                continue
            name = member.name
            if name.startswith("./"):
                name = name[2:]
            if name and name != ".":
                files.append(name)
        return files


def parse_control(text: str) -> Dict[str, str]:
    """将 control 段落解析为字段映射（支持续行）"""
    return dict(Deb822(text))


def classify(reader: ControlReader, package_path: Path, supported_architectures: Collection[str]) -> ControlRecord:
    """读取并校验软件包的名称与架构

    Args:
        reader: 归档读取实现
        package_path: 软件包路径
        supported_architectures: 支持的架构集合

    Returns:
        ControlRecord: 解析结果

    Raises:
        ControlError: 读取失败、缺少字段或架构不受支持
    """
    text = reader.read_control(package_path)
    fields = parse_control(text)

    for field_name in ("Package", "Architecture"):
        if not fields.get(field_name, "").strip():
            raise MissingControlFieldError(field_name, package_path)

    architecture = fields["Architecture"].strip()
    if architecture not in supported_architectures:
        raise UnsupportedArchitectureError(architecture, package_path)

    return ControlRecord(
        name=fields["Package"].strip(),
        architecture=architecture,
        text=text,
        fields=fields,
    )
