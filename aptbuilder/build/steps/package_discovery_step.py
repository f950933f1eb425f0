"""
软件包发现步骤模块

扫描输入目录，得到按处理顺序排列的软件包列表。
"""

from ...utils import format_size
from ...utils.logging import info, success, debug, error, LogStage
from aptbuilder.build.build_context import BuildContext, InputError
from aptbuilder.build.collector import PackageCollector
from .build_step import BuildStep


class PackageDiscoveryStep(BuildStep):
    """软件包发现步骤"""

    def __init__(self):
        super().__init__("discover", "扫描输入目录中的软件包")

    def get_progress_range(self) -> tuple[int, int]:
        return (0, 10)

    def execute(self, context: BuildContext) -> None:
        input_dir = context.config.input
        info(f"扫描软件包: {input_dir}", stage=LogStage.DISCOVER)

        collector = PackageCollector(context.config.repository.default_component)
        try:
            packages = collector.collect(input_dir)
        except (FileNotFoundError, NotADirectoryError) as e:
            error(str(e), stage=LogStage.DISCOVER)
            raise InputError(str(e)) from e

        if not packages:
            message = f"在 '{input_dir}' 中没有找到 .deb 文件"
            error(message, stage=LogStage.DISCOVER)
            raise InputError(message)

        context.packages = packages
        stats = collector.get_statistics()
        context.build_stats['total_packages'] = stats['total_packages']
        context.build_stats['total_size'] = stats['total_size']

        for package in packages:
            debug(f"软件包: {package.relative_path.as_posix()} -> {package.component}", stage=LogStage.DISCOVER)

        _, end = self.get_progress_range()
        context.report_progress("扫描软件包", end, f"找到 {len(packages)} 个软件包")

        success("软件包扫描完成", stage=LogStage.DISCOVER)
        info(f"  软件包数量: {stats['total_packages']}")
        info(f"  总大小: {format_size(stats['total_size'])}")
        info(f"  组件: {', '.join(stats['components'])}")
