"""
构建器主类

对外提供统一的构建接口，把管道异常转换为 BuildResult。
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from ..config.schema import BuilderConfig
from .build_context import BuildContext, BuildError, InputError, ProgressCallback
from .build_pipeline import BuildPipeline
from .control import ControlReader


@dataclass
class BuildResult:
    """构建结果"""
    success: bool
    release_path: Optional[Path] = None
    components: List[str] = field(default_factory=list)
    architectures: List[str] = field(default_factory=list)
    signed_files: List[Path] = field(default_factory=list)
    build_time: Optional[float] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    context: Optional[BuildContext] = None


class Builder:
    """仓库构建器

    使用管道模式协调构建步骤，提供统一的构建接口。
    """

    def __init__(self, reader: Optional[ControlReader] = None):
        self.pipeline = BuildPipeline(reader)

    def build(
        self,
        config: BuilderConfig,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> BuildResult:
        """构建仓库

        Args:
            config: 配置对象
            progress_callback: 进度回调函数

        Returns:
            BuildResult: 构建结果；失败时 success 为 False，error_type 为异常类名
        """
        try:
            try:
                config.require_paths()
            except ValueError as e:
                raise InputError(str(e)) from e

            context = self.pipeline.execute(config, progress_callback)

        except BuildError as e:
            return BuildResult(
                success=False,
                error=str(e),
                error_type=type(e).__name__,
            )

        return BuildResult(
            success=True,
            release_path=context.release_path,
            components=list(context.release_components),
            architectures=sorted(context.architectures),
            signed_files=list(context.signed_files),
            build_time=context.build_stats['end_time'] - context.build_stats['start_time'],
            context=context,
        )

    def get_pipeline(self) -> BuildPipeline:
        """获取构建管道，用于自定义构建流程"""
        return self.pipeline

    def validate_build_pipeline(self) -> List[str]:
        return self.pipeline.validate_pipeline()
