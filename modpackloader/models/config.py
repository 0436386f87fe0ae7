"""
配置模型

定义加载器运行所需的全部配置项，支持从字典（TOML/JSON/YAML）构建。
"""

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import toml
import yaml
from loguru import logger

from modpackloader.exceptions import ConfigError

DEFAULT_SLOTS = 8
DEFAULT_TIMEOUT = 300.0
DEFAULT_USER_AGENT = "modpackloader/0.1.0"


@dataclass
class LoaderConfig:
    """加载器配置"""

    input: str = ""
    output: str = ""
    api_key: Optional[str] = None
    include_client: bool = False
    include_server: bool = False
    skip_optional: bool = False
    slots: int = DEFAULT_SLOTS
    timeout: float = DEFAULT_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT

    def __post_init__(self):
        self.validate()

    def validate(self):
        """校验配置取值"""
        if not isinstance(self.slots, int) or isinstance(self.slots, bool):
            raise ConfigError("slots 必须为整数", context={"slots": self.slots})
        if self.slots <= 0:
            raise ConfigError("slots 必须大于 0", context={"slots": self.slots})
        try:
            self.timeout = float(self.timeout)
        except (TypeError, ValueError):
            raise ConfigError("timeout 必须为数字", context={"timeout": self.timeout})
        if self.timeout <= 0:
            raise ConfigError("timeout 必须大于 0", context={"timeout": self.timeout})

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoaderConfig":
        """从字典构建配置，忽略未知键并给出警告"""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            logger.warning(f"忽略未知的配置项: {', '.join(sorted(unknown))}")
        return cls(**{k: v for k, v in data.items() if k in known})

    def merged(self, overrides: Dict[str, Any]) -> "LoaderConfig":
        """返回用 overrides 中非 None 的值覆盖后的新配置"""
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        values.update({k: v for k, v in overrides.items() if v is not None})
        return LoaderConfig.from_dict(values)


def load_config_file(config_path: str) -> dict:
    """按扩展名加载 TOML/JSON/YAML 配置文件"""
    path = Path(config_path)

    if not path.exists():
        raise ConfigError(f"配置文件不存在: {config_path}")

    suffix = path.suffix.lower()

    try:
        if suffix == ".toml":
            data = toml.load(config_path)
        elif suffix == ".json":
            data = json.loads(path.read_text(encoding="utf-8"))
        elif suffix in (".yaml", ".yml"):
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        else:
            raise ConfigError(f"不支持的配置文件格式: {suffix}")
    except (toml.TomlDecodeError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"配置文件解析失败: {e}", context={"path": config_path})

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError("配置文件顶层必须为表/对象", context={"path": config_path})
    return data
