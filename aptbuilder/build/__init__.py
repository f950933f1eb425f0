"""构建服务模块

提供仓库目录树、索引和 Release 生成的核心功能。
"""

from .builder import Builder, BuildResult
from .build_context import (
    BuildContext,
    BuildError,
    InputError,
    PackageError,
    PlacedPackage,
    RepositoryIOError,
    SigningError,
)
from .build_pipeline import BuildPipeline
from .collector import PackageCollector, PackageSource, collect_packages
from .compressor import (
    Compressor,
    CompressorFactory,
    CompressionError,
    GzipCompressor,
    XzCompressor,
    ZstdCompressor,
)
from .control import (
    ControlError,
    ControlReader,
    ControlRecord,
    DebControlReader,
    MissingControlFieldError,
    UnsupportedArchitectureError,
    classify,
    parse_control,
)
from .hashing import HashCalculator, digest_file, index_label
from .signer import GpgSigner, SignerError

__all__ = [
    # 主构建器
    "Builder",
    "BuildResult",
    "BuildPipeline",
    "BuildContext",
    "PlacedPackage",

    # 异常
    "BuildError",
    "InputError",
    "PackageError",
    "RepositoryIOError",
    "SigningError",

    # 软件包收集
    "PackageCollector",
    "PackageSource",
    "collect_packages",

    # 压缩相关
    "Compressor",
    "CompressorFactory",
    "CompressionError",
    "GzipCompressor",
    "XzCompressor",
    "ZstdCompressor",

    # control 信息
    "ControlError",
    "ControlReader",
    "ControlRecord",
    "DebControlReader",
    "MissingControlFieldError",
    "UnsupportedArchitectureError",
    "classify",
    "parse_control",

    # 哈希
    "HashCalculator",
    "digest_file",
    "index_label",

    # 签名
    "GpgSigner",
    "SignerError",
]
