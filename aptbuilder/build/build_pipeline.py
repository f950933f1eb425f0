"""
构建管道模块

使用管道模式依次执行：扫描 -> 目录树 -> Packages 索引 -> Release -> 签名。
"""

import time
from typing import List, Optional

from ..config.schema import BuilderConfig
from ..utils import format_size
from ..utils.logging import info, success, error, debug, LogStage
from .build_context import BuildContext, BuildError, ProgressCallback
from .control import ControlReader, DebControlReader
from .steps.build_step import BuildStep
from .steps.package_discovery_step import PackageDiscoveryStep
from .steps.tree_building_step import TreeBuildingStep
from .steps.package_index_step import PackageIndexStep
from .steps.release_manifest_step import ReleaseManifestStep
from .steps.signing_step import SigningStep


class BuildPipeline:
    """构建管道，负责协调构建步骤的执行"""

    def __init__(self, reader: Optional[ControlReader] = None):
        """初始化构建管道

        Args:
            reader: 软件包读取实现，默认使用 python-debian
        """
        self.reader = reader or DebControlReader()
        self._steps: List[BuildStep] = []
        self._init_default_steps()

    def _init_default_steps(self):
        self._steps = [
            PackageDiscoveryStep(),
            TreeBuildingStep(),
            PackageIndexStep(),
            ReleaseManifestStep(),
            SigningStep(),
        ]

    def add_step(self, step: BuildStep, position: Optional[int] = None):
        """添加构建步骤"""
        if position is None:
            self._steps.append(step)
        else:
            self._steps.insert(position, step)

    def remove_step(self, step_name: str):
        """移除构建步骤"""
        self._steps = [step for step in self._steps if step.name != step_name]

    def replace_step(self, step: BuildStep):
        """替换同名步骤"""
        self._steps = [step if existing.name == step.name else existing for existing in self._steps]

    def get_steps(self) -> List[BuildStep]:
        """获取所有构建步骤"""
        return self._steps.copy()

    def execute(
        self,
        config: BuilderConfig,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> BuildContext:
        """执行构建管道

        Args:
            config: 配置对象（input/output 必须已设置）
            progress_callback: 进度回调函数

        Returns:
            BuildContext: 构建上下文，包含所有构建结果

        Raises:
            BuildError: 构建失败；具体类型见 build_context
        """
        context = BuildContext(
            config=config,
            reader=self.reader,
            progress_callback=progress_callback,
        )
        context.build_stats['start_time'] = time.time()

        try:
            info(f"开始构建仓库: {context.distribution_path}", stage=LogStage.INIT)
            debug(
                f"构建配置: input={config.input} hard_links={config.use_hard_links} "
                f"hashes={[h.value for h in config.index.hashes]} "
                f"compression={[c.value for c in config.index.compression]} sign={config.signing.enabled}",
                stage=LogStage.INIT,
            )

            for step in self._steps:
                info(f"执行步骤: {step.description}", stage=LogStage.INIT)
                step.execute(context)

        except BuildError as e:
            context.build_stats['end_time'] = time.time()
            error(f"构建失败: {e}", stage=LogStage.DONE)
            raise
        except Exception as e:
            context.build_stats['end_time'] = time.time()
            error(f"构建失败: {e}", stage=LogStage.DONE)
            raise BuildError(f"构建失败: {e}") from e

        context.build_stats['end_time'] = time.time()
        build_time = context.build_stats['end_time'] - context.build_stats['start_time']

        success(f"仓库构建成功: {context.distribution_path}", stage=LogStage.DONE)
        info(f"构建时间: {build_time:.1f}秒")
        info(f"软件包: {context.build_stats['total_packages']} 个, {format_size(context.build_stats['total_size'])}")
        info(f"索引文件: {context.build_stats['index_files']} 个")

        return context

    def validate_pipeline(self) -> List[str]:
        """验证构建管道的完整性

        Returns:
            List[str]: 验证错误列表，空列表表示验证通过
        """
        errors = []

        if not self._steps:
            errors.append("构建管道中没有步骤")
            return errors

        prev_end = 0
        for step in self._steps:
            start, end = step.get_progress_range()
            if start != prev_end:
                errors.append(f"步骤 '{step.name}' 的进度范围不连续: 期望起始 {prev_end}%, 实际 {start}%")
            if start >= end:
                errors.append(f"步骤 '{step.name}' 的进度范围无效: {start}% - {end}%")
            prev_end = end

        if prev_end != 100:
            errors.append(f"构建管道的总进度范围不是100%: {prev_end}%")

        return errors
