"""
哈希工具

计算文件摘要，供 Packages 与 Release 索引使用。
"""

import hashlib
from pathlib import Path
from typing import Dict, Iterable, Union

from ..config.schema import HashAlgorithm

CHUNK_SIZE = 64 * 1024


class HashCalculator:
    """哈希计算器"""

    def __init__(self, algorithm: Union[str, HashAlgorithm] = "sha256"):
        """初始化哈希计算器

        Args:
            algorithm: 哈希算法名称

        Raises:
            ValueError: 不支持的算法
        """
        if isinstance(algorithm, HashAlgorithm):
            algorithm = algorithm.value
        self.algorithm = algorithm.lower()
        if self.algorithm not in hashlib.algorithms_available:
            raise ValueError(f"不支持的哈希算法: {algorithm}")

        self._hasher = hashlib.new(self.algorithm)

    def update(self, data: Union[bytes, str]) -> None:
        if isinstance(data, str):
            data = data.encode('utf-8')
        self._hasher.update(data)

    def hexdigest(self) -> str:
        """获取小写十六进制哈希值"""
        return self._hasher.hexdigest()


def digest_file(file_path: Path, algorithms: Iterable[Union[str, HashAlgorithm]]) -> Dict[str, str]:
    """一次读取文件，同时计算多个摘要

    Args:
        file_path: 文件路径
        algorithms: 算法列表

    Returns:
        Dict[str, str]: 算法名 -> 小写十六进制摘要，顺序与 algorithms 一致

    Raises:
        OSError: 文件读取失败
    """
    calculators = [HashCalculator(algorithm) for algorithm in algorithms]
    with open(file_path, 'rb') as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b''):
            for calculator in calculators:
                calculator.update(chunk)
    return {calculator.algorithm: calculator.hexdigest() for calculator in calculators}


def index_label(algorithm: Union[str, HashAlgorithm]) -> str:
    """索引文件中的摘要字段名：md5 写作 MD5Sum，其余为大写算法名"""
    if isinstance(algorithm, HashAlgorithm):
        algorithm = algorithm.value
    algorithm = algorithm.lower()
    if algorithm == HashAlgorithm.MD5.value:
        return "MD5Sum"
    return algorithm.upper()
