"""
Configuration Management Module
统一配置管理，实现API配置解耦
"""
from .settings import (
    Settings,
    get_settings,
    get_openai_settings,
    get_rate_limit_settings,
    get_fetch_settings,
    get_workflow_settings,
    get_server_settings,
)

__all__ = [
    "Settings",
    "get_settings",
    "get_openai_settings",
    "get_rate_limit_settings",
    "get_fetch_settings",
    "get_workflow_settings",
    "get_server_settings",
]
