"""配置管理模块。

支持从环境变量、.env 以及 config.yaml 加载配置。
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_config_from_yaml() -> Dict[str, Any]:
    """从 config.yaml 加载配置（若存在）。"""
    candidates = []
    explicit = os.getenv("ASSISTANT_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.extend([
        Path.cwd() / "config.yaml",
        Path(__file__).resolve().parents[2] / "config.yaml",
        Path(__file__).resolve().parents[1] / "config.yaml",
    ])

    seen: set[Path] = set()
    for path in candidates:
        if not path or path in seen:
            continue
        seen.add(path)
        try:
            if path.exists():
                data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
                if isinstance(data, dict):
                    return data
                warnings.warn(f"Config file {path} is not a mapping, ignored")
        except (OSError, yaml.YAMLError) as exc:
            warnings.warn(f"Failed to read config file {path}: {exc}")
    return {}


class Settings(BaseSettings):
    """配置设置（使用 Pydantic）。"""

    # ---- 助手与推理服务 ----
    default_profile: str = Field(
        default="llama",
        description="默认助手配置名，例如 llama、mistral",
    )
    ollama_url: str = Field(
        default="http://localhost:11434/api/chat",
        description="本地推理服务的 chat 端点",
    )
    llama_model: Optional[str] = Field(default=None, description="覆盖 llama 配置的模型名")
    mistral_model: Optional[str] = Field(default=None, description="覆盖 mistral 配置的模型名")
    http_timeout: float = Field(default=30.0, ge=1.0, description="HTTP 超时时间（秒），配置未给出时使用")

    # ---- 重试 ----
    max_retries: Optional[int] = Field(
        default=None,
        ge=0,
        le=5,
        description="瞬时错误的最大重试次数，未设置时使用助手配置中的值（2）",
    )
    retry_backoff_base: float = Field(default=0.0, ge=0.0, description="首次重试等待秒数，0 表示立即重试")
    retry_backoff_factor: float = Field(default=2.0, gt=0.0)
    retry_backoff_cap: Optional[float] = Field(default=8.0, gt=0.0)
    retry_jitter: bool = Field(default=False, description="是否对退避时间做随机抖动（需配合 retry_backoff_base > 0）")

    # ---- 日志 ----
    log_dir: str = Field(default="logs", description="日志目录")
    log_redact_content: bool = Field(default=False, description="是否脱敏日志内容")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @staticmethod
    def _config_source() -> Dict[str, Any]:
        return _load_config_from_yaml()

    @field_validator("ollama_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("ollama_url must be an http(s) URL")
        return v

    @field_validator("default_profile")
    @classmethod
    def normalize_profile(cls, v: str) -> str:
        return v.strip().lower()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            cls._config_source,
            file_secret_settings,
        )


settings = Settings()
