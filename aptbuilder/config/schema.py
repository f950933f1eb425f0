"""
配置 Schema 定义

使用 Pydantic 定义仓库构建配置模型，支持 YAML 加载、验证和类型检查。
"""

from __future__ import annotations

import re
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator


DEFAULT_ARCHITECTURES = ["all", "arm", "aarch64"]

# 组件、发行版名称会直接成为目录名
_NAME_PATTERN = re.compile(r'^[A-Za-z0-9][A-Za-z0-9._+-]*$')


class HashAlgorithm(str, Enum):
    """摘要算法枚举"""
    MD5 = "md5"
    SHA1 = "sha1"
    SHA256 = "sha256"
    SHA512 = "sha512"


class CompressionFormat(str, Enum):
    """索引压缩格式枚举，值为文件后缀"""
    XZ = "xz"
    GZIP = "gz"
    ZSTD = "zst"


def _validate_name(value: str, what: str) -> str:
    if not _NAME_PATTERN.match(value):
        raise ValueError(f"{what} 只能包含字母、数字和 . _ + -，且不能以符号开头: {value!r}")
    return value


class RepositoryModel(BaseModel):
    """仓库（发行版）信息模型"""
    distribution: str = Field("termux", description="发行版目录名")
    default_component: str = Field("extras", description="根目录软件包所属的默认组件")
    codename: Optional[str] = Field(None, description="Release 中的 Codename，默认与发行版相同")
    version: str = Field("1", description="Release 中的 Version", min_length=1)
    description: Optional[str] = Field(None, description="Release 中的 Description")
    suite: Optional[str] = Field(None, description="Release 中的 Suite，默认与发行版相同")
    architectures: List[str] = Field(
        default_factory=lambda: list(DEFAULT_ARCHITECTURES),
        description="支持的架构列表",
        min_length=1,
    )

    @field_validator('distribution')
    @classmethod
    def validate_distribution(cls, v: str) -> str:
        return _validate_name(v, "发行版名称")

    @field_validator('default_component')
    @classmethod
    def validate_default_component(cls, v: str) -> str:
        return _validate_name(v, "组件名称")

    @field_validator('architectures')
    @classmethod
    def validate_architectures(cls, v: List[str]) -> List[str]:
        """去除空白和重复项，保持顺序"""
        cleaned: List[str] = []
        for arch in v:
            arch = arch.strip()
            if not arch:
                raise ValueError("架构名称不能为空")
            _validate_name(arch, "架构名称")
            if arch not in cleaned:
                cleaned.append(arch)
        return cleaned

    def get_codename(self) -> str:
        return self.codename or self.distribution

    def get_suite(self) -> str:
        return self.suite or self.distribution

    def get_description(self) -> str:
        return self.description or f"{self.distribution} repository"


class IndexModel(BaseModel):
    """索引生成配置模型"""
    hashes: List[HashAlgorithm] = Field(
        default_factory=lambda: list(HashAlgorithm),
        description="Packages/Release 中写入的摘要算法",
        min_length=1,
    )
    compression: List[CompressionFormat] = Field(
        default_factory=lambda: [CompressionFormat.XZ],
        description="索引文件的压缩变体",
    )
    compression_level: int = Field(6, description="压缩级别", ge=1, le=9)
    contents_column_width: int = Field(80, description="Contents 文件路径列宽", ge=1, le=1024)

    @field_validator('hashes', 'compression')
    @classmethod
    def validate_unique(cls, v: List[Any]) -> List[Any]:
        if len(set(v)) != len(v):
            raise ValueError("列表中不能包含重复项")
        return v


class SigningModel(BaseModel):
    """GPG 签名配置模型"""
    enabled: bool = Field(False, description="是否对 Release 进行签名")
    key_id: Optional[str] = Field(None, description="签名使用的密钥 ID，默认使用 GPG 默认密钥")
    gnupghome: Optional[Union[str, Path]] = Field(None, description="自定义 GPG 密钥环目录")
    digest_algo: str = Field("SHA256", description="签名摘要算法")
    detached: bool = Field(False, description="是否额外生成分离签名 Release.gpg")
    strict: bool = Field(False, description="签名失败时是否中止构建")


class ConfigModel(BaseModel):
    """配置元信息模型"""
    version: int = Field(1, description="配置 schema 版本", ge=1)

    @field_validator('version')
    @classmethod
    def validate_config_version(cls, v: int) -> int:
        SUPPORTED_VERSIONS = [1]
        if v not in SUPPORTED_VERSIONS:
            raise ValueError(f"不支持的配置版本 {v}，支持的版本: {SUPPORTED_VERSIONS}")
        return v


class BuilderConfig(BaseModel):
    """仓库构建主配置模型

    input/output 可以留空，由命令行参数补齐；真正开始构建前由
    ``require_paths`` 检查。
    """

    config: ConfigModel = Field(default_factory=ConfigModel, description="配置元信息")

    input: Optional[Path] = Field(None, description="存放 .deb 文件的目录")
    output: Optional[Path] = Field(None, description="仓库目录树的根目录")
    use_hard_links: bool = Field(False, description="使用硬链接代替复制")

    repository: RepositoryModel = Field(default_factory=RepositoryModel, description="仓库信息")
    index: IndexModel = Field(default_factory=IndexModel, description="索引配置")
    signing: SigningModel = Field(default_factory=SigningModel, description="签名配置")

    model_config = {
        "extra": "forbid",
        "validate_assignment": True,
        "str_strip_whitespace": True,
    }

    @model_validator(mode='after')
    def validate_default_architecture(self) -> 'BuilderConfig':
        """架构无关的软件包必须始终可用"""
        if "all" not in self.repository.architectures:
            raise ValueError("repository.architectures 必须包含 'all'")
        return self

    @property
    def distribution_path(self) -> Path:
        """dists/<distribution> 目录"""
        if self.output is None:
            raise ValueError("未设置输出目录")
        return self.output / "dists" / self.repository.distribution

    def require_paths(self) -> None:
        """检查输入/输出目录均已设置

        Raises:
            ValueError: 缺少输入或输出目录
        """
        missing = [name for name in ("input", "output") if getattr(self, name) is None]
        if missing:
            raise ValueError(f"缺少必需的参数: {', '.join(missing)}")

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典格式"""
        data = self.model_dump(exclude_none=True)

        def convert_values(obj):
            if isinstance(obj, dict):
                return {k: convert_values(v) for k, v in obj.items()}
            elif isinstance(obj, list):
                return [convert_values(item) for item in obj]
            elif isinstance(obj, Enum):
                return obj.value
            elif isinstance(obj, Path):
                return str(obj)
            return obj

        return convert_values(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BuilderConfig':
        """从字典创建配置实例"""
        return cls.model_validate(data)
