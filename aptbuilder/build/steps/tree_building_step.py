"""
目录树构建步骤模块

对每个软件包确定组件和架构，放入 <component>/binary-<arch>/ 目录，
并把安装文件列表追加到该架构的 Contents 索引。
"""

import os
import shutil
from pathlib import Path

from ...utils.logging import info, success, debug, error, LogStage
from aptbuilder.build.build_context import (
    BuildContext,
    PackageError,
    PlacedPackage,
    RepositoryIOError,
)
from aptbuilder.build.collector import PackageSource
from aptbuilder.build.control import ControlError, classify
from .build_step import BuildStep

CHUNK_SIZE = 64 * 1024


def copy_file_durably(source: Path, destination: Path) -> None:
    """逐块复制文件，并在返回前将数据刷入存储"""
    with open(source, 'rb') as src, open(destination, 'wb') as dst:
        for chunk in iter(lambda: src.read(CHUNK_SIZE), b''):
            dst.write(chunk)
        dst.flush()
        os.fsync(dst.fileno())


def contents_row(path: str, package_name: str, width: int) -> str:
    """Contents 索引中的一行：路径左对齐填充到固定列宽（不截断）"""
    return f"{path:<{width}} {package_name}\n"


class TreeBuildingStep(BuildStep):
    """目录树构建步骤"""

    def __init__(self):
        super().__init__("tree", "构建组件/架构目录树")

    def get_progress_range(self) -> tuple[int, int]:
        return (10, 50)

    def execute(self, context: BuildContext) -> None:
        total = len(context.packages)
        start, end = self.get_progress_range()

        for i, source in enumerate(context.packages):
            context.report_progress("构建目录树", start + int(i / max(1, total) * (end - start)),
                                    f"添加: {source.path.name}")
            self.place(context, source)

        context.report_progress("构建目录树", end, f"已添加 {len(context.placed)} 个软件包")
        success("目录树构建完成", stage=LogStage.TREE)
        info(f"  组件: {' '.join(context.components)}")
        info(f"  架构: {' '.join(sorted(context.architectures))}")
        info(f"  Contents 行数: {context.build_stats['total_contents_rows']}")

    def place(self, context: BuildContext, source: PackageSource) -> PlacedPackage:
        """放置单个软件包

        Raises:
            PackageError: control 信息无效或架构不受支持
            RepositoryIOError: 文件系统操作失败
        """
        component = source.component
        component_path = context.component_path(component)

        if component not in context.components:
            self._reset_component(component_path)
            context.components.append(component)

        # 先校验，再写入任何属于该软件包的文件
        try:
            record = classify(context.reader, source.path, context.config.repository.architectures)
        except ControlError as e:
            error(str(e), stage=LogStage.TREE)
            raise PackageError(str(e), source.path) from e

        context.architectures.add(record.architecture)
        arch_dir = component_path / f"binary-{record.architecture}"
        destination = arch_dir / source.path.name

        info(f"添加软件包: {source.path.name} -> {component}/binary-{record.architecture}", stage=LogStage.TREE)

        try:
            arch_dir.mkdir(parents=True, exist_ok=True)
            self._materialize(source.path, destination, context.config.use_hard_links)
        except OSError as e:
            error(f"无法放置软件包 '{source.path.name}': {e}", stage=LogStage.TREE)
            raise RepositoryIOError(f"无法放置软件包 '{source.path.name}': {e}") from e

        file_count = self._append_contents(context, component_path, destination, record.name, record.architecture)

        placed = PlacedPackage(source=source, record=record, destination=destination, file_count=file_count)
        context.placed.append(placed)
        return placed

    def _reset_component(self, component_path: Path) -> None:
        """组件在本次运行中首次出现时，整体删除后重建"""
        if not component_path.exists():
            return
        debug(f"删除已有组件目录: {component_path}", stage=LogStage.TREE)
        try:
            shutil.rmtree(component_path)
        except OSError as e:
            error(f"无法删除组件目录 {component_path}: {e}", stage=LogStage.TREE)
            raise RepositoryIOError(f"无法删除组件目录 {component_path}: {e}") from e

    def _materialize(self, source: Path, destination: Path, use_hard_links: bool) -> None:
        # 同名文件直接覆盖；先删除，避免写穿指向源文件的硬链接
        if destination.exists() or destination.is_symlink():
            destination.unlink()

        if use_hard_links:
            os.link(source, destination)
        else:
            copy_file_durably(source, destination)

    def _append_contents(
        self,
        context: BuildContext,
        component_path: Path,
        package_file: Path,
        package_name: str,
        architecture: str,
    ) -> int:
        try:
            files = context.reader.read_file_list(package_file)
        except ControlError as e:
            error(str(e), stage=LogStage.TREE)
            raise PackageError(str(e), package_file) from e

        # 以 / 结尾的是目录
        files = [path for path in files if not path.endswith('/')]

        width = context.config.index.contents_column_width
        contents_path = component_path / f"Contents-{architecture}"
        try:
            with open(contents_path, 'a', encoding='utf-8', errors='surrogateescape') as f:
                for path in files:
                    f.write(contents_row(path, package_name, width))
        except OSError as e:
            error(f"无法写入 {contents_path.name}: {e}", stage=LogStage.TREE)
            raise RepositoryIOError(f"无法写入 {contents_path}: {e}") from e

        context.build_stats['total_contents_rows'] += len(files)
        debug(f"{package_name}: {len(files)} 个文件写入 {contents_path.name}", stage=LogStage.TREE)
        return len(files)
