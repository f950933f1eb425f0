"""
配置加载器

负责从 YAML 文件加载构建配置并进行验证，以及合并命令行参数。
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .schema import BuilderConfig


class ConfigError(Exception):
    """配置错误基类"""
    pass


class ConfigValidationError(ConfigError):
    """配置验证错误"""

    def __init__(self, message: str, errors: List[Dict[str, Any]]):
        super().__init__(message)
        self.errors = errors

    def format_errors(self) -> str:
        """格式化错误信息为人类可读的格式"""
        formatted = []
        for error in self.errors:
            loc = " -> ".join(str(item) for item in error.get('loc', []))
            msg = error.get('msg', '未知错误')
            if loc:
                formatted.append(f"字段 '{loc}': {msg}")
            else:
                formatted.append(f"根级别: {msg}")
        return "\n".join(formatted)

    def __str__(self) -> str:
        return f"{self.args[0]}\n{self.format_errors()}"


class ConfigLoader:
    """配置加载器"""

    # 相对路径按配置文件所在目录解析的字段
    PATH_FIELDS = (
        ('input',),
        ('output',),
        ('signing', 'gnupghome'),
    )

    def __init__(self):
        self.yaml = YAML(typ='safe')

    def load_from_file(self, config_path: Union[str, Path]) -> BuilderConfig:
        """从文件加载配置

        Args:
            config_path: 配置文件路径

        Returns:
            BuilderConfig: 验证后的配置实例

        Raises:
            ConfigError: 配置加载或验证错误
        """
        config_path = Path(config_path)

        if not config_path.exists():
            raise ConfigError(f"配置文件不存在: {config_path}")

        if not config_path.is_file():
            raise ConfigError(f"配置路径不是文件: {config_path}")

        if config_path.suffix.lower() not in ['.yaml', '.yml']:
            raise ConfigError(f"配置文件必须是 .yaml 或 .yml 格式: {config_path}")

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                raw_data = self.yaml.load(f)
        except YAMLError as e:
            raise ConfigError(f"YAML 解析错误: {e}") from e
        except OSError as e:
            raise ConfigError(f"文件读取错误: {e}") from e

        if raw_data is None:
            raw_data = {}

        if not isinstance(raw_data, dict):
            raise ConfigError("配置文件根级别必须是对象/字典格式")

        return self.load_from_dict(raw_data, base_path=config_path.parent)

    def load_from_dict(self, data: Dict[str, Any], base_path: Optional[Path] = None) -> BuilderConfig:
        """从字典加载配置

        Args:
            data: 配置数据字典
            base_path: 相对路径的基准路径

        Raises:
            ConfigValidationError: 配置验证错误
        """
        if base_path:
            data = json.loads(json.dumps(data))  # 深拷贝
            self._resolve_relative_paths(data, base_path)

        try:
            return BuilderConfig.from_dict(data)
        except ValidationError as e:
            raise ConfigValidationError("配置验证失败", list(e.errors())) from e

    def _resolve_relative_paths(self, data: Dict[str, Any], base_path: Path) -> None:
        for field_path in self.PATH_FIELDS:
            current = data
            for key in field_path[:-1]:
                if not isinstance(current.get(key), dict):
                    current = None
                    break
                current = current[key]
            if current is None:
                continue

            value = current.get(field_path[-1])
            if isinstance(value, str) and value and not Path(value).is_absolute():
                current[field_path[-1]] = str((base_path / value).resolve())

    def apply_overrides(self, config: BuilderConfig, overrides: Dict[str, Any]) -> BuilderConfig:
        """将命令行参数合并到配置中

        overrides 的键使用点号路径（如 ``repository.distribution``），
        值为 None 的项被忽略。

        Raises:
            ConfigValidationError: 合并后的配置无效
        """
        data = config.to_dict()
        for dotted_key, value in overrides.items():
            if value is None:
                continue
            keys = dotted_key.split('.')
            current = data
            for key in keys[:-1]:
                current = current.setdefault(key, {})
            current[keys[-1]] = str(value) if isinstance(value, Path) else value

        return self.load_from_dict(data)


# 全局加载器实例
config_loader = ConfigLoader()


def load_config(config_path: Optional[Union[str, Path]] = None) -> BuilderConfig:
    """便捷函数：加载配置文件，未指定路径时返回默认配置"""
    if config_path is None:
        return BuilderConfig()
    return config_loader.load_from_file(config_path)


def apply_overrides(config: BuilderConfig, overrides: Dict[str, Any]) -> BuilderConfig:
    """便捷函数：合并命令行参数"""
    return config_loader.apply_overrides(config, overrides)
