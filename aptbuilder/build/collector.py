"""
软件包收集器

扫描输入目录及其下一级子目录中的 .deb 文件，并确定每个软件包所属的组件。
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

from ..utils.paths import sorted_glob

PACKAGE_PATTERN = "*.deb"


@dataclass
class PackageSource:
    """待处理的软件包"""
    path: Path  # 绝对路径
    relative_path: Path  # 相对于输入根目录的路径
    component: str  # 所属组件
    size: int  # 文件大小（字节）

    def to_dict(self) -> Dict[str, Any]:
        return {
            'path': self.relative_path.as_posix(),
            'component': self.component,
            'size': self.size,
        }


class PackageCollector:
    """软件包收集器

    根目录下的软件包属于默认组件，子目录中的软件包以子目录名作为组件。
    先返回根目录的软件包，再返回子目录的软件包，两组都按路径排序。
    """

    def __init__(self, default_component: str):
        self.default_component = default_component
        self.collected: List[PackageSource] = []

    def collect(self, input_dir: Path) -> List[PackageSource]:
        """收集软件包

        Args:
            input_dir: 输入根目录

        Returns:
            List[PackageSource]: 按处理顺序排列的软件包

        Raises:
            FileNotFoundError: 输入目录不存在
            NotADirectoryError: 输入路径不是目录
        """
        if not input_dir.exists():
            raise FileNotFoundError(f"'{input_dir}' 不存在")
        if not input_dir.is_dir():
            raise NotADirectoryError(f"'{input_dir}' 不是目录")

        self.collected = []
        candidates = sorted_glob(input_dir, PACKAGE_PATTERN) + sorted_glob(input_dir, f"*/{PACKAGE_PATTERN}")

        for path in candidates:
            if not path.is_file():
                continue
            relative_path = path.relative_to(input_dir)
            self.collected.append(PackageSource(
                path=path.resolve(),
                relative_path=relative_path,
                component=self.component_for(relative_path),
                size=path.stat().st_size,
            ))

        return self.collected

    def component_for(self, relative_path: Path) -> str:
        """根据相对路径确定组件名"""
        if len(relative_path.parts) == 1:
            return self.default_component
        return relative_path.parts[0]

    def get_statistics(self) -> Dict[str, Any]:
        """获取收集统计信息"""
        components: Dict[str, int] = {}
        for package in self.collected:
            components[package.component] = components.get(package.component, 0) + 1
        return {
            'total_packages': len(self.collected),
            'total_size': sum(p.size for p in self.collected),
            'components': components,
        }


def collect_packages(input_dir: Path, default_component: str) -> List[PackageSource]:
    """便捷函数：收集软件包"""
    return PackageCollector(default_component).collect(input_dir)
