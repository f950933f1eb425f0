"""配置和 Schema 模块

提供 YAML 配置文件的加载、验证以及命令行参数合并。
"""

from .schema import (
    BuilderConfig,
    CompressionFormat,
    HashAlgorithm,
    IndexModel,
    RepositoryModel,
    SigningModel,
)
from .loader import (
    ConfigLoader,
    ConfigValidationError,
    ConfigError,
    apply_overrides,
    load_config,
    config_loader,
)

__all__ = [
    # 主要类
    "BuilderConfig",
    "ConfigLoader",
    "CompressionFormat",
    "HashAlgorithm",
    "IndexModel",
    "RepositoryModel",
    "SigningModel",

    # 异常类
    "ConfigError",
    "ConfigValidationError",

    # 便捷函数
    "apply_overrides",
    "load_config",

    # 单例
    "config_loader",
]
