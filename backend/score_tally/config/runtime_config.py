"""
运行期配置 - 读取 config/runtime.yaml

职责：
- 加载并发/超时/模型/导出等运行参数
- 提供环境变量覆盖机制（TALLY_ 前缀，嵌套用 __ 分隔）
- 类型安全的配置访问
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

DEFAULT_CONFIG_PATH = Path("config/runtime.yaml")
CONFIG_SECTIONS = ("concurrency", "timeouts", "gemini", "export", "ingest", "logging")


class ConcurrencyConfig(BaseModel):
    """并发配置"""

    limit: int = Field(10, ge=1, description="每一波同时发出的识别请求数")


class TimeoutConfig(BaseModel):
    """超时配置"""

    extract_sec: float = Field(30.0, gt=0)


class GeminiConfig(BaseModel):
    """Gemini 模型配置"""

    model: str = "gemini-2.5-flash"
    api_key: str = ""

    def resolve_api_key(self) -> str:
        """配置为空时回退到环境变量"""
        return self.api_key or os.getenv("GEMINI_API_KEY", "") or os.getenv("API_KEY", "")


class ExportConfig(BaseModel):
    """CSV导出配置"""

    file_name: str = "80万目指し隊_集計結果.csv"
    with_bom: bool = True
    header: list[str] = Field(default_factory=lambda: ["アカウント", "日時", "点数", "備考"])
    note_template: str = "{count}回出た"
    datetime_format: str = "%Y/%m/%d %H:%M:%S"
    line_terminator: str = "\n"


class IngestConfig(BaseModel):
    """输入筛选配置"""

    image_exts: list[str] = Field(
        default_factory=lambda: [".jpg", ".jpeg", ".png", ".webp", ".heic", ".bmp", ".gif"]
    )


class LoggingConfig(BaseModel):
    """日志配置"""

    log_level: str = "INFO"
    log_file: Path | None = None


class RuntimeConfig(BaseSettings):
    """运行期配置（支持环境变量覆盖）"""

    concurrency: ConcurrencyConfig = Field(default_factory=ConcurrencyConfig)
    timeouts: TimeoutConfig = Field(default_factory=TimeoutConfig)
    gemini: GeminiConfig = Field(default_factory=GeminiConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    ingest: IngestConfig = Field(default_factory=IngestConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {
        "env_prefix": "TALLY_",
        "env_nested_delimiter": "__",
    }

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> RuntimeConfig:
        """从YAML文件加载配置"""
        path = Path(yaml_path)
        if not path.exists():
            return cls()

        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        runtime_opts = data.get("runtime_options", {})

        # 传字典而非模型实例，环境变量可逐键覆盖YAML值
        return cls(**{key: cls._extract(runtime_opts, key) for key in CONFIG_SECTIONS})

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        """环境变量优先于YAML"""
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    @staticmethod
    def _extract(data: dict[str, Any], key: str) -> dict[str, Any]:
        """提取并展平配置"""
        section = data.get(key) or {}
        result = {}
        for k, v in section.items():
            if isinstance(v, dict) and "default" in v:
                result[k] = v["default"]
            elif not isinstance(v, dict):
                result[k] = v
        return result


def configure_logging(config: RuntimeConfig) -> None:
    """按配置初始化根日志器"""
    level = getattr(logging, config.logging.log_level.upper(), logging.INFO)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if config.logging.log_file:
        config.logging.log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(config.logging.log_file, encoding="utf-8"))
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        handlers=handlers,
        force=True,
    )


# 全局配置实例
_config: RuntimeConfig | None = None


def get_config() -> RuntimeConfig:
    """获取全局配置（惰性加载）"""
    global _config
    if _config is None:
        _config = RuntimeConfig.from_yaml(DEFAULT_CONFIG_PATH)
    return _config


def reload_config(yaml_path: str | Path | None = None) -> RuntimeConfig:
    """重新加载配置"""
    global _config
    _config = RuntimeConfig.from_yaml(yaml_path or DEFAULT_CONFIG_PATH)
    return _config
