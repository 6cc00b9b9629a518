"""
Configuration management for pulseboard
"""

import os
from pathlib import Path
from typing import Any, Literal, Optional
import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

load_dotenv()


class StoreConfig(BaseModel):
    """Aggregate store backend selection"""
    backend: Literal["sqlite", "pool"] = "sqlite"
    sqlite_path: Optional[Path] = None  # defaults to <data_dir>/db/pulseboard.db
    database_url: str = Field(default_factory=lambda: os.getenv("DATABASE_URL", ""))
    pool_size: int = 10
    max_overflow: int = 5
    pool_timeout: int = 30
    pool_recycle: int = 1800


class IngestConfig(BaseModel):
    """CSV ingestion defaults"""
    upload_dir: Optional[Path] = None  # defaults to <data_dir>/uploads
    default_text_column: str = "post"
    default_project_title: str = "New Analysis"
    chunk_size: int = Field(default=1000, ge=1)
    upload_chunk_bytes: int = Field(default=1024 * 1024, ge=1024)


class Config(BaseSettings):
    """Main configuration class"""

    model_config = SettingsConfigDict(
        env_prefix="PULSEBOARD_",
        env_nested_delimiter="__",
    )

    # Data directory
    data_dir: Path = Path("~/pulseboard_data").expanduser()
    log_level: str = "INFO"

    # Sub-configurations
    store: StoreConfig = Field(default_factory=StoreConfig)
    ingest: IngestConfig = Field(default_factory=IngestConfig)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Config":
        """Load configuration from YAML file"""
        if config_path is None:
            env_path = os.getenv("PULSEBOARD_CONFIG_FILE")
            if env_path:
                config_path = Path(env_path).expanduser()
            else:
                config_path = Path("~/pulseboard_data/config/settings.yaml").expanduser()

        if config_path.exists():
            with open(config_path) as f:
                data = yaml.safe_load(f)
                return cls(**data) if data else cls()

        return cls()

    def save(self, config_path: Optional[Path] = None):
        """Save configuration to YAML file"""
        if config_path is None:
            config_path = self.data_dir / "config" / "settings.yaml"

        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w") as f:
            yaml.safe_dump(self.model_dump(mode="json"), f, default_flow_style=False)

    @property
    def sqlite_path(self) -> Path:
        return self.store.sqlite_path or self.data_dir / "db" / "pulseboard.db"

    @property
    def upload_dir(self) -> Path:
        return self.ingest.upload_dir or self.data_dir / "uploads"

    def get(self, key: str, default: Any = None) -> Any:
        """Get nested configuration value using dot notation"""
        keys = key.split(".")
        value = self

        for k in keys:
            if hasattr(value, k):
                value = getattr(value, k)
            elif isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value


# Default configuration instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get global configuration instance"""
    global _config
    if _config is None:
        _config = Config.load()
    return _config


def reload_config():
    """Reload configuration from disk"""
    global _config
    _config = Config.load()
    return _config
