"""
压缩器抽象接口和实现

为 Packages / Contents 索引生成压缩变体，支持 xz、gzip 和 zstd。
"""

import gzip
import lzma
from abc import ABC, abstractmethod
from pathlib import Path
from typing import BinaryIO, List, Union

import zstandard as zstd

from ..config.schema import CompressionFormat

CHUNK_SIZE = 64 * 1024


class CompressionError(Exception):
    """压缩相关错误"""
    pass


class Compressor(ABC):
    """压缩器抽象基类"""

    def __init__(self, level: int = 6):
        self.level = level

    @abstractmethod
    def get_format(self) -> CompressionFormat:
        """获取压缩格式"""
        pass

    @abstractmethod
    def _open_writer(self, output_stream: BinaryIO) -> BinaryIO:
        """包装输出流，返回可写入未压缩数据的流"""
        pass

    @property
    def suffix(self) -> str:
        return "." + self.get_format().value

    def output_path_for(self, input_file: Path) -> Path:
        """压缩输出文件路径：原路径加格式后缀"""
        return input_file.with_name(input_file.name + self.suffix)

    def compress_file(self, input_file: Path) -> Path:
        """将文件压缩为同目录下的兄弟文件

        Args:
            input_file: 输入文件

        Returns:
            Path: 压缩后的文件路径

        Raises:
            CompressionError: 压缩失败
        """
        output_file = self.output_path_for(input_file)
        try:
            with open(input_file, 'rb') as src, open(output_file, 'wb') as dst:
                with self._open_writer(dst) as writer:
                    for chunk in iter(lambda: src.read(CHUNK_SIZE), b''):
                        writer.write(chunk)
        except (OSError, lzma.LZMAError, zstd.ZstdError) as e:
            raise CompressionError(f"{self.get_format().value} 压缩失败 {input_file}: {e}") from e

        return output_file


class XzCompressor(Compressor):
    """xz 压缩器（APT 索引默认格式）"""

    def get_format(self) -> CompressionFormat:
        return CompressionFormat.XZ

    def _open_writer(self, output_stream: BinaryIO) -> BinaryIO:
        return lzma.LZMAFile(output_stream, mode='wb', format=lzma.FORMAT_XZ, preset=self.level)


class GzipCompressor(Compressor):
    """gzip 压缩器"""

    def get_format(self) -> CompressionFormat:
        return CompressionFormat.GZIP

    def _open_writer(self, output_stream: BinaryIO) -> BinaryIO:
        # mtime 固定为 0，相同输入产生相同输出
        return gzip.GzipFile(fileobj=output_stream, mode='wb', compresslevel=self.level, mtime=0)


class ZstdCompressor(Compressor):
    """Zstd 压缩器"""

    def __init__(self, level: int = 6):
        super().__init__(level)
        self._cctx = zstd.ZstdCompressor(level=level)

    def get_format(self) -> CompressionFormat:
        return CompressionFormat.ZSTD

    def _open_writer(self, output_stream: BinaryIO) -> BinaryIO:
        return self._cctx.stream_writer(output_stream, closefd=False)


class CompressorFactory:
    """压缩器工厂"""

    _COMPRESSORS = {
        CompressionFormat.XZ: XzCompressor,
        CompressionFormat.GZIP: GzipCompressor,
        CompressionFormat.ZSTD: ZstdCompressor,
    }

    @classmethod
    def create_compressor(cls, compression_format: Union[str, CompressionFormat], level: int = 6) -> Compressor:
        """创建压缩器

        Raises:
            CompressionError: 不支持的压缩格式
        """
        try:
            compression_format = CompressionFormat(compression_format)
        except ValueError as e:
            raise CompressionError(f"不支持的压缩格式: {compression_format}") from e
        return cls._COMPRESSORS[compression_format](level)

    @classmethod
    def create_all(cls, formats: List[CompressionFormat], level: int = 6) -> List[Compressor]:
        """按配置顺序创建一组压缩器"""
        return [cls.create_compressor(fmt, level) for fmt in formats]

    @staticmethod
    def get_available_formats() -> List[CompressionFormat]:
        return list(CompressionFormat)
