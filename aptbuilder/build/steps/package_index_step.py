"""
Packages 索引生成步骤模块

为每个组件的每个 binary-<arch> 目录重新读取其中的全部软件包，
生成 Packages 及其压缩变体，并压缩该组件的 Contents 索引。
"""

from pathlib import Path
from typing import Dict, List

from ...config.schema import CompressionFormat
from ...utils.logging import info, success, debug, error, LogStage
from ...utils.paths import sorted_glob
from aptbuilder.build.build_context import BuildContext, PackageError, RepositoryIOError
from aptbuilder.build.collector import PACKAGE_PATTERN
from aptbuilder.build.compressor import CompressionError, Compressor, CompressorFactory
from aptbuilder.build.control import ControlError
from aptbuilder.build.hashing import digest_file, index_label
from .build_step import BuildStep

COMPRESSED_SUFFIXES = tuple("." + fmt.value for fmt in CompressionFormat)


def package_entry(control_text: str, filename: str, size: int, digests: Dict[str, str]) -> str:
    """生成 Packages 中的一个条目（不含末尾空行）"""
    lines = [control_text.rstrip(), f"Filename: {filename}", f"Size: {size}"]
    lines.extend(f"{index_label(algorithm)}: {value}" for algorithm, value in digests.items())
    return "\n".join(lines) + "\n"


def is_plain_index(path: Path) -> bool:
    """是否为未压缩的索引文件"""
    return not path.name.endswith(COMPRESSED_SUFFIXES)


class PackageIndexStep(BuildStep):
    """Packages 索引生成步骤"""

    def __init__(self):
        super().__init__("index", "生成 Packages 与 Contents 索引")

    def get_progress_range(self) -> tuple[int, int]:
        return (50, 80)

    def execute(self, context: BuildContext) -> None:
        index_config = context.config.index
        try:
            compressors = CompressorFactory.create_all(index_config.compression, index_config.compression_level)
        except CompressionError as e:
            raise RepositoryIOError(str(e)) from e

        start, end = self.get_progress_range()
        total = len(context.components)

        for i, component in enumerate(context.components):
            context.report_progress("生成索引", start + int(i / max(1, total) * (end - start)), f"组件: {component}")
            component_path = context.component_path(component)

            for arch_dir in sorted_glob(component_path, "binary-*"):
                if arch_dir.is_dir():
                    self.generate_index(context, component, arch_dir, compressors)

            for contents_path in sorted_glob(component_path, "Contents-*"):
                if is_plain_index(contents_path):
                    self._compress(contents_path, compressors, context)

        context.report_progress("生成索引", end, f"已生成 {len(context.index_files)} 个索引文件")
        context.build_stats['index_files'] = len(context.index_files)
        success("索引生成完成", stage=LogStage.INDEX)

    def generate_index(
        self,
        context: BuildContext,
        component: str,
        arch_dir: Path,
        compressors: List[Compressor],
    ) -> Path:
        """生成单个架构目录的 Packages 文件

        Raises:
            PackageError: 无法读取软件包的 control 信息
            RepositoryIOError: 读写或压缩失败
        """
        architecture = arch_dir.name[len("binary-"):]
        info(f"生成 Packages: {component} / {architecture}", stage=LogStage.INDEX)

        distribution = context.config.repository.distribution
        hashes = context.config.index.hashes
        entries = []

        for package_file in sorted_glob(arch_dir, PACKAGE_PATTERN):
            try:
                control_text = context.reader.read_control(package_file)
            except ControlError as e:
                error(str(e), stage=LogStage.INDEX)
                raise PackageError(str(e), package_file) from e

            try:
                size = package_file.stat().st_size
                digests = digest_file(package_file, hashes)
            except OSError as e:
                error(f"无法计算 '{package_file.name}' 的摘要: {e}", stage=LogStage.INDEX)
                raise RepositoryIOError(f"无法计算 '{package_file.name}' 的摘要: {e}") from e

            filename = "/".join(["dists", distribution, component, arch_dir.name, package_file.name])
            entries.append(package_entry(control_text, filename, size, digests))
            debug(f"{package_file.name}: size={size}", stage=LogStage.INDEX)

        packages_path = arch_dir / "Packages"
        try:
            with open(packages_path, 'w', encoding='utf-8', errors='surrogateescape', newline='\n') as f:
                for entry in entries:
                    f.write(entry)
                    f.write("\n")
        except OSError as e:
            error(f"无法写入 {packages_path}: {e}", stage=LogStage.INDEX)
            raise RepositoryIOError(f"无法写入 {packages_path}: {e}") from e

        self._compress(packages_path, compressors, context)
        return packages_path

    def _compress(self, path: Path, compressors: List[Compressor], context: BuildContext) -> None:
        context.index_files.append(path)
        for compressor in compressors:
            try:
                output = compressor.compress_file(path)
            except CompressionError as e:
                error(str(e), stage=LogStage.COMPRESS)
                raise RepositoryIOError(str(e)) from e
            context.index_files.append(output)
            debug(f"已压缩: {output.name}", stage=LogStage.COMPRESS)
