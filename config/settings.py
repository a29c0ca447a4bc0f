"""
Settings Configuration
使用 Pydantic 进行配置验证和管理
"""
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class OpenAISettings(BaseSettings):
    """OpenAI API 配置"""
    api_key: Optional[str] = Field(default=None, description="OpenAI API Key")
    model: str = Field(default="gpt-4o-mini", description="Responses API 模型")
    transcribe_model: str = Field(default="whisper-1", description="语音转写模型")
    base_url: Optional[str] = Field(default=None, description="自定义 API 地址 (可选)")
    timeout: float = Field(default=60.0, description="请求超时时间(秒)")

    class Config:
        env_prefix = "OPENAI_"


class RateLimitSettings(BaseSettings):
    """限流配置"""
    window_sec: int = Field(default=60, description="滑动窗口长度(秒)")
    max_requests: int = Field(default=10, description="窗口内最大请求数")

    class Config:
        env_prefix = "RATE_LIMIT_"


class FetchSettings(BaseSettings):
    """网页抓取配置"""
    timeout_sec: float = Field(default=10.0, description="单次抓取超时(秒)")
    max_chars: int = Field(default=16000, description="页面文本最大长度")
    user_agent: str = Field(default="DiscoverAgent/1.0 (+source-summary)", description="User Agent")

    class Config:
        env_prefix = "FETCH_"


class WorkflowSettings(BaseSettings):
    """来源摘要 / 聚类工作流配置"""
    summary_ttl_sec: int = Field(default=600, description="单来源摘要缓存时间(秒)")
    workflow_ttl_sec: int = Field(default=3600, description="工作流结果缓存时间(秒)")
    cluster_max_sources: int = Field(default=40, description="聚类时最多纳入的来源数")
    cluster_summary_chars: int = Field(default=3000, description="每个来源摘要的最大字符数")
    max_clusters: int = Field(default=20, description="最多输出的主题聚类数")

    class Config:
        env_prefix = "WORKFLOW_"


class ServerSettings(BaseSettings):
    """HTTP 服务配置"""
    host: str = Field(default="127.0.0.1", description="监听地址")
    port: int = Field(default=3001, description="监听端口")
    cors_origins: str = Field(default="*", description="允许的跨域来源, 逗号分隔")

    class Config:
        env_prefix = "SERVER_"

    @property
    def cors_origin_list(self) -> List[str]:
        return [item.strip() for item in self.cors_origins.split(",") if item.strip()] or ["*"]


class Settings(BaseSettings):
    """主配置类 - 聚合所有子配置"""

    openai: OpenAISettings = Field(default_factory=OpenAISettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    fetch: FetchSettings = Field(default_factory=FetchSettings)
    workflow: WorkflowSettings = Field(default_factory=WorkflowSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @classmethod
    def load_from_env_file(cls, env_path: Optional[Path] = None) -> "Settings":
        """从指定的 .env 文件加载配置"""
        if env_path is None:
            # 默认查找 config/.env
            env_path = Path(__file__).parent / ".env"

        if env_path.exists():
            from dotenv import load_dotenv
            load_dotenv(env_path)

        return cls(
            openai=OpenAISettings(),
            rate_limit=RateLimitSettings(),
            fetch=FetchSettings(),
            workflow=WorkflowSettings(),
            server=ServerSettings(),
        )


@lru_cache()
def get_settings() -> Settings:
    """获取全局配置单例"""
    return Settings.load_from_env_file()


# 便捷访问
def get_openai_settings() -> OpenAISettings:
    return get_settings().openai


def get_rate_limit_settings() -> RateLimitSettings:
    return get_settings().rate_limit


def get_fetch_settings() -> FetchSettings:
    return get_settings().fetch


def get_workflow_settings() -> WorkflowSettings:
    return get_settings().workflow


def get_server_settings() -> ServerSettings:
    return get_settings().server
