"""
路径工具

提供仓库目录树处理相关的工具函数。
"""

import os
from pathlib import Path
from typing import List, Union


def expand_path(path: Union[str, Path]) -> Path:
    """扩展路径（处理环境变量和用户目录）

    Args:
        path: 原始路径

    Returns:
        Path: 扩展后的绝对路径
    """
    if isinstance(path, str):
        path = os.path.expandvars(path)
        path = os.path.expanduser(path)

    return Path(path).resolve()


def sorted_glob(directory: Path, pattern: str) -> List[Path]:
    """按路径排序的 glob，保证不同文件系统上的枚举顺序一致"""
    return sorted(directory.glob(pattern))


def list_subdirectories(directory: Path) -> List[str]:
    """列出目录下的所有子目录名（已排序）

    Args:
        directory: 要列出的目录，不存在时返回空列表
    """
    if not directory.is_dir():
        return []
    return sorted(entry.name for entry in directory.iterdir() if entry.is_dir())


def relative_posix(path: Path, root: Path) -> str:
    """计算相对路径，统一使用正斜杠"""
    return path.relative_to(root).as_posix()


def format_size(size_bytes: int) -> str:
    """格式化文件大小

    Args:
        size_bytes: 字节数

    Returns:
        str: 格式化的大小字符串
    """
    if size_bytes == 0:
        return "0 B"

    units = ["B", "KB", "MB", "GB", "TB"]
    unit_index = 0
    size = float(size_bytes)

    while size >= 1024.0 and unit_index < len(units) - 1:
        size /= 1024.0
        unit_index += 1

    if unit_index == 0:
        return f"{int(size)} {units[unit_index]}"
    return f"{size:.1f} {units[unit_index]}"
