from pydantic import BaseModel, Field
from typing import Any, Dict

class ModelConfig(BaseModel):
    name: str = "claude-sonnet-4-20250514"
    api_url: str = "https://api.anthropic.com/v1"
    api_version: str = "2023-06-01"
    max_tokens: int = 4096
    timeout_sec: int = 60
    parameters: Dict[str, Any] = Field(default_factory=dict)

class GitHubConfig(BaseModel):
    api_url: str = "https://api.github.com"
    client_id: str = "Ov23livD27sKp8K0qGOL"
    scope: str = "repo"
    device_code_url: str = "https://github.com/login/device/code"
    access_token_url: str = "https://github.com/login/oauth/access_token"
    per_page: int = Field(100, ge=1, le=100, description="每页记录数，GitHub 上限为 100")
    timeout_sec: int = 30

class ReportConfig(BaseModel):
    max_commits: int = Field(500, description="单次拉取的提交上限")
    max_prs: int = Field(200, description="单次拉取的已合并 PR 上限")
    changelog_max_prs: int = Field(500, description="changelog 关联 PR 时拉取的上限")
    summary_weeks: int = 2
    contributors_weeks: int = 4
    ask_months: int = 6


class Config(BaseModel):
    model: ModelConfig = Field(default_factory=ModelConfig, description="LLM 模型相关配置")
    github: GitHubConfig = Field(default_factory=GitHubConfig, description="GitHub API 与 OAuth 相关配置")
    reports: ReportConfig = Field(default_factory=ReportConfig, description="报告取数相关配置")
