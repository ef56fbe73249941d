"""Configuration management using pydantic-settings."""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=7788, description="Server port")
    debug: bool = Field(default=False, description="Debug mode")

    # Storage Configuration
    database_path: str = Field(default="./data/deepdive.db", description="DuckDB database file")
    conversations_dir: str = Field(default="./data/conversations", description="Directory for conversation JSONL files")
    conversation_list_limit: int = Field(default=50, description="Maximum conversations returned by the list endpoint")

    # Sandbox Configuration
    sandbox_type: str = Field(default="local", description="Sandbox backend")
    sandbox_base_dir: str = Field(default="./data/volumes", description="Base directory for sandbox volumes")
    agent_command: str = Field(
        default="claude --print --output-format json --dangerously-skip-permissions",
        description="Command line used to launch the research agent"
    )
    agent_model: Optional[str] = Field(default=None, description="Model passed to the agent with --model")
    anthropic_api_key: Optional[str] = Field(default=None, description="Anthropic API key forwarded to the agent")
    agent_timeout: int = Field(default=1800, description="Agent run timeout in seconds")
    enable_file_watch: bool = Field(default=True, description="Watch sandbox volumes for transcript changes")

    # Workspace Files
    max_file_bytes: int = Field(default=2 * 1024 * 1024, description="Largest workspace file served by the files API")

    # Client Configuration
    api_base_url: str = Field(default="http://127.0.0.1:7788", description="Server URL used by the CLI client")
    poll_interval: float = Field(default=2.0, description="Seconds between conversation polls")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Log level")
    log_file: Optional[str] = Field(default="./logs/app.log", description="Log file path")


# Global settings instance
settings = Settings()
