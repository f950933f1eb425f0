"""通用工具模块"""

from .logging import (
    LogStage,
    OutputLevel,
)

from .paths import (
    expand_path,
    sorted_glob,
    list_subdirectories,
    relative_posix,
    format_size,
)

__all__ = [
    # 日志相关
    "LogStage",
    "OutputLevel",

    # 路径相关
    "expand_path",
    "sorted_glob",
    "list_subdirectories",
    "relative_posix",
    "format_size",
]
