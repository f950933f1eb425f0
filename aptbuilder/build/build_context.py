"""
构建上下文模块

定义在构建步骤之间传递的共享状态和异常类。
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Set, TYPE_CHECKING

from ..config.schema import BuilderConfig

if TYPE_CHECKING:
    from .collector import PackageSource
    from .control import ControlReader, ControlRecord

# 进度回调类型
ProgressCallback = Callable[[str, int, int, str], None]


@dataclass
class PlacedPackage:
    """已放入仓库目录树的软件包"""
    source: 'PackageSource'
    record: 'ControlRecord'
    destination: Path
    file_count: int = 0


@dataclass
class BuildContext:
    """构建上下文，包含构建过程中的共享数据

    components 按本次运行首次出现的顺序登记；architectures 只记录
    实际遇到的架构，即 Release 中声明的架构集合。
    """
    config: BuilderConfig
    reader: 'ControlReader'
    progress_callback: Optional[ProgressCallback] = None

    # 构建过程中生成的数据
    packages: List['PackageSource'] = field(default_factory=list)
    components: List[str] = field(default_factory=list)
    architectures: Set[str] = field(default_factory=set)
    placed: List[PlacedPackage] = field(default_factory=list)
    index_files: List[Path] = field(default_factory=list)
    release_components: List[str] = field(default_factory=list)
    release_path: Optional[Path] = None
    signed_files: List[Path] = field(default_factory=list)

    # 统计信息
    build_stats: Dict[str, Any] = field(default_factory=lambda: {
        'start_time': 0,
        'end_time': 0,
        'total_packages': 0,
        'total_size': 0,
        'total_contents_rows': 0,
        'index_files': 0,
    })

    @property
    def distribution_path(self) -> Path:
        """dists/<distribution> 目录"""
        return self.config.distribution_path

    def component_path(self, component: str) -> Path:
        return self.distribution_path / component

    def report_progress(self, stage: str, current: int, message: str = "") -> None:
        if self.progress_callback:
            self.progress_callback(stage, current, 100, message)


class BuildError(Exception):
    """构建错误"""
    pass


class InputError(BuildError):
    """输入错误：缺少输入目录、没有找到软件包等"""
    pass


class PackageError(BuildError):
    """软件包数据错误：control 信息损坏、架构不受支持等"""

    def __init__(self, message: str, package_path: Optional[Path] = None):
        super().__init__(message)
        self.package_path = package_path


class RepositoryIOError(BuildError):
    """文件系统或压缩失败"""
    pass


class SigningError(BuildError):
    """签名失败（仅在 signing.strict 开启时中止构建）"""
    pass
