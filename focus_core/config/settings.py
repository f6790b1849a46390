"""配置管理模块。

支持从 .env、config.yaml 以及环境变量加载配置。

与旧版不同，这里不再在导入时创建全局 settings 单例：
调用方通过 ``load_settings()`` 显式构造一份配置，再注入到
DeepSeekClient / AssistantService / FastAPI app 中，
这样缺少密钥时的 ConfigurationError 路径是确定且可测试的。
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_BASE_URL = "https://api.deepseek.com/v1"
DEFAULT_APP_URL = "https://focusmate-ai-8cad6.web.app"


def _load_config_from_yaml() -> Dict[str, Any]:
    """从 config.yaml 加载配置（若存在）。"""
    candidates = []
    explicit = os.getenv("FOCUS_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.extend([
        Path.cwd() / "config.yaml",
        Path(__file__).resolve().parents[2] / "config.yaml",
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
    """服务配置（使用 Pydantic）。"""

    # ---- DeepSeek ----
    deepseek_api_key: Optional[str] = Field(default=None, description="DeepSeek API 密钥")
    deepseek_base_url: str = Field(
        default=DEFAULT_BASE_URL,
        description="DeepSeek API 基础URL（OpenAI 兼容的 chat/completions 端点）",
    )
    http_timeout: float = Field(
        default=25.0,
        ge=1.0,
        description="单次上游调用的总时长上限（秒），流式调用同样受此约束",
    )
    analysis_model: str = Field(
        default="deepseek-reasoner",
        description="analyzeTask 未指定 model 时使用的角色",
    )
    chat_model: str = Field(
        default="deepseek-chat",
        description="chat / chatStream 未指定 model 时使用的角色",
    )

    # ---- 日志 ----
    log_dir: Optional[str] = Field(default="logs", description="日志目录，为空则只输出到 stderr")
    log_level: str = Field(default="INFO", description="日志级别")
    log_redact_content: bool = Field(default=False, description="是否脱敏日志内容")

    # ---- HTTP 服务 ----
    environment: str = Field(default="development", description="运行环境名称")
    app_url: str = Field(default=DEFAULT_APP_URL, description="前端站点地址")
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            DEFAULT_APP_URL,
            "https://focusmate-ai-8cad6.firebaseapp.com",
            "http://localhost:3000",
        ],
        description="允许跨域访问的前端来源",
    )
    host: str = Field(default="127.0.0.1", description="监听地址")
    port: int = Field(default=8000, ge=1, le=65535, description="监听端口")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @staticmethod
    def _config_source() -> Dict[str, Any]:
        return _load_config_from_yaml()

    @field_validator("deepseek_api_key")
    @classmethod
    def validate_api_key(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            v = v.strip() or None
        if v and len(v) < 10:
            raise ValueError("API key seems too short")
        return v

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

    @property
    def has_credentials(self) -> bool:
        return bool(self.deepseek_api_key)


def load_settings(**overrides: Any) -> Settings:
    """构造一份配置。

    overrides 优先级最高，测试中常用 ``load_settings(deepseek_api_key=None)``
    来模拟未配置密钥的场景。
    """

    return Settings(**overrides)
