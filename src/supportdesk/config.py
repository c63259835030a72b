"""Configuration loading and validation."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml


@dataclass
class MailConfig:
    imap_host: str = "imap.gmail.com"
    imap_port: int = 993
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_ssl: bool = False  # False -> STARTTLS on smtp_port
    username: str = ""
    password: str = ""
    from_address: str = ""
    mailbox: str = "INBOX"
    fetch_limit: int = 10
    mode: str = "auto"  # 'imap' | 'demo' | 'auto'
    timeout: float = 30.0

    @property
    def has_credentials(self) -> bool:
        return bool(self.username and self.password)

    def use_demo_mailbox(self) -> bool:
        """Whether ingestion should read the built-in sample mailbox."""
        if self.mode == "demo":
            return True
        if self.mode == "imap":
            return False
        return not self.has_credentials


@dataclass
class StorageConfig:
    database_url: str = "sqlite:///supportdesk.db"


@dataclass
class AIConfig:
    provider: str = "openai"
    model: str = "gpt-4o-mini"
    openai_api_key: str = ""
    openai_base_url: str = ""
    ollama_base_url: str = "http://localhost:11434"
    ollama_api_key: str = ""
    classification_temperature: float = 0.3
    classification_max_tokens: int = 800
    response_temperature: float = 0.7
    response_max_tokens: int = 1000
    max_body_chars: int = 4000

    @property
    def model_spec(self) -> str:
        return f"{self.provider}:{self.model}"

    def to_provider_dict(self) -> dict:
        """Return a dict suitable for passing to get_provider()."""
        return {
            "openai_api_key": self.openai_api_key,
            "openai_base_url": self.openai_base_url,
            "ollama_base_url": self.ollama_base_url,
            "ollama_api_key": self.ollama_api_key,
        }


@dataclass
class WebConfig:
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = field(default_factory=lambda: ["*"])


@dataclass
class LoggingConfig:
    level: str = "INFO"


@dataclass
class Config:
    mail: MailConfig = field(default_factory=MailConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    ai: AIConfig = field(default_factory=AIConfig)
    web: WebConfig = field(default_factory=WebConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _dict_to_config(data: dict) -> Config:
    """Convert a raw dict to a Config dataclass, handling nested structures."""
    from dacite import Config as DaciteConfig
    from dacite import from_dict

    # YAML gives ints where floats are declared (timeout: 10, temperature: 1)
    return from_dict(data_class=Config, data=data, config=DaciteConfig(cast=[float]))


def _find_config_file() -> Path | None:
    """Search for config file in standard locations."""
    # 1. Environment variable
    env_path = os.environ.get("SUPPORTDESK_CONFIG")
    if env_path:
        p = Path(env_path)
        if p.exists():
            return p

    # 2. Current directory
    local = Path("config.yaml")
    if local.exists():
        return local

    # 3. XDG config dir
    xdg = Path.home() / ".config" / "supportdesk" / "config.yaml"
    if xdg.exists():
        return xdg

    return None


def _load_dotenv() -> None:
    """Load .env file from current directory if it exists."""
    env_path = Path(".env")
    if not env_path.exists():
        return
    for line in env_path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, _, value = line.partition("=")
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        # Don't overwrite already-set env vars
        if key not in os.environ:
            os.environ[key] = value


def _first_env(*names: str) -> str | None:
    for name in names:
        value = os.environ.get(name)
        if value:
            return value
    return None


def _apply_env_overrides(config: Config) -> Config:
    """Override config values from environment variables.

    Supports:
        GMAIL_USER / MAIL_USERNAME      -> config.mail.username
        GMAIL_PASSWORD / MAIL_PASSWORD  -> config.mail.password
        OPENAI_API_KEY                  -> config.ai.openai_api_key
        OPENAI_BASE_URL                 -> config.ai.openai_base_url
        ollama_host                     -> config.ai.ollama_base_url
        ollama_api_key                  -> config.ai.ollama_api_key
        model_name                      -> config.ai.model
        DATABASE_URL                    -> config.storage.database_url
        SUPPORTDESK_LOG_LEVEL           -> config.logging.level
    """
    username = _first_env("GMAIL_USER", "MAIL_USERNAME")
    if username:
        config.mail.username = username
    password = _first_env("GMAIL_PASSWORD", "MAIL_PASSWORD")
    if password:
        config.mail.password = password
    if os.environ.get("OPENAI_API_KEY"):
        config.ai.openai_api_key = os.environ["OPENAI_API_KEY"]
    if os.environ.get("OPENAI_BASE_URL"):
        config.ai.openai_base_url = os.environ["OPENAI_BASE_URL"]
    if os.environ.get("ollama_host"):
        config.ai.ollama_base_url = os.environ["ollama_host"]
    if os.environ.get("ollama_api_key"):
        config.ai.ollama_api_key = os.environ["ollama_api_key"]
    if os.environ.get("model_name"):
        config.ai.model = os.environ["model_name"]
    if os.environ.get("DATABASE_URL"):
        config.storage.database_url = os.environ["DATABASE_URL"]
    if os.environ.get("SUPPORTDESK_LOG_LEVEL"):
        config.logging.level = os.environ["SUPPORTDESK_LOG_LEVEL"]
    return config


def load_config(path: str | Path | None = None) -> Config:
    """Load configuration from YAML file, merging with defaults.

    Also loads .env file and applies environment variable overrides.
    """
    _load_dotenv()

    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        config_path = _find_config_file()

    if config_path is None:
        config = Config()
    else:
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}
        config = _dict_to_config(raw)

    return _apply_env_overrides(config)
