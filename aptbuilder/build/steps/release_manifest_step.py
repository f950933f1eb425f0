"""
Release 清单生成步骤模块

汇总所有组件的 Packages / Contents 索引，生成带多种摘要的 Release 文件。
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from ...utils.logging import info, success, error, LogStage
from ...utils.paths import list_subdirectories, relative_posix, sorted_glob
from aptbuilder.build.build_context import BuildContext, RepositoryIOError
from aptbuilder.build.compressor import CompressorFactory
from aptbuilder.build.hashing import digest_file, index_label
from .build_step import BuildStep
from .package_index_step import is_plain_index

WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

# 旧的签名文件，每次生成新的 Release 前删除
SIGNATURE_FILES = ("InRelease", "Release.gpg")


def format_release_date(moment: Optional[datetime] = None) -> str:
    """Release 中的 Date 字段（UTC），星期和月份固定为英文缩写，与 locale 无关"""
    moment = (moment or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return (
        f"{WEEKDAYS[moment.weekday()]}, {moment.day:02d} {MONTHS[moment.month - 1]} {moment.year} "
        f"{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d} UTC"
    )


class ReleaseManifestStep(BuildStep):
    """Release 清单生成步骤"""

    def __init__(self):
        super().__init__("release", "生成 Release 清单")

    def get_progress_range(self) -> tuple[int, int]:
        return (80, 95)

    def execute(self, context: BuildContext) -> None:
        start, end = self.get_progress_range()
        context.report_progress("生成 Release", start, "汇总索引文件...")
        release_path = self.generate_manifest(context)
        context.report_progress("生成 Release", end, f"已生成 {release_path.name}")

    def collect_artifacts(self, context: BuildContext, components: List[str]) -> List[Path]:
        """按 Release 中的顺序列出需要写入摘要的索引文件

        每个组件先列出各 binary-<arch> 目录下的 Packages 及其压缩变体，
        再列出各 Contents-<arch> 及其压缩变体。

        Raises:
            RepositoryIOError: 应存在的索引文件缺失
        """
        suffixes = [
            CompressorFactory.create_compressor(fmt).suffix
            for fmt in context.config.index.compression
        ]
        artifacts: List[Path] = []

        for component in components:
            component_path = context.component_path(component)
            plain_files = [
                arch_dir / "Packages"
                for arch_dir in sorted_glob(component_path, "binary-*")
                if arch_dir.is_dir()
            ]
            plain_files.extend(
                path for path in sorted_glob(component_path, "Contents-*") if is_plain_index(path)
            )

            for plain in plain_files:
                for path in [plain] + [plain.with_name(plain.name + suffix) for suffix in suffixes]:
                    if not path.is_file():
                        message = f"索引文件缺失: {relative_posix(path, context.distribution_path)}，请重新构建组件 {component}"
                        error(message, stage=LogStage.RELEASE)
                        raise RepositoryIOError(message)
                    artifacts.append(path)

        return artifacts

    def generate_manifest(self, context: BuildContext, moment: Optional[datetime] = None) -> Path:
        """生成 Release 文件

        Args:
            context: 构建上下文
            moment: 写入 Date 字段的时间，默认为当前时间

        Returns:
            Path: Release 文件路径

        Raises:
            RepositoryIOError: 索引缺失或读写失败
        """
        repository = context.config.repository
        distribution_path = context.distribution_path

        # 以磁盘上的实际目录为准，包含以前运行留下、本次未涉及的组件
        components = list_subdirectories(distribution_path)
        context.release_components = components
        artifacts = self.collect_artifacts(context, components)

        lines = [
            f"Codename: {repository.get_codename()}",
            f"Version: {repository.version}",
            f"Architectures: {' '.join(sorted(context.architectures))}",
            f"Description: {repository.get_description()}",
            f"Suite: {repository.get_suite()}",
            f"Date: {format_release_date(moment)}",
            f"Components: {' '.join(components)}",
        ]

        hashes = context.config.index.hashes
        try:
            digests = {path: digest_file(path, hashes) for path in artifacts}
            sizes = {path: path.stat().st_size for path in artifacts}
        except OSError as e:
            error(f"无法计算索引摘要: {e}", stage=LogStage.RELEASE)
            raise RepositoryIOError(f"无法计算索引摘要: {e}") from e

        for algorithm in hashes:
            lines.append(f"{index_label(algorithm)}:")
            for path in artifacts:
                lines.append(
                    f" {digests[path][algorithm.value]} {sizes[path]} {relative_posix(path, distribution_path)}"
                )

        release_path = distribution_path / "Release"
        try:
            distribution_path.mkdir(parents=True, exist_ok=True)
            for name in SIGNATURE_FILES:
                (distribution_path / name).unlink(missing_ok=True)
            release_path.write_text("\n".join(lines) + "\n", encoding='utf-8')
        except OSError as e:
            error(f"无法写入 Release 文件: {e}", stage=LogStage.RELEASE)
            raise RepositoryIOError(f"无法写入 Release 文件: {e}") from e

        context.release_path = release_path
        success(f"Release 已生成: {release_path}", stage=LogStage.RELEASE)
        info(f"  组件: {' '.join(components)}")
        info(f"  索引文件: {len(artifacts)} 个 x {len(hashes)} 种摘要")
        return release_path
