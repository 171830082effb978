"""Centralized configuration management for holder_sleuth."""

import os
from typing import List, Optional
from dataclasses import dataclass
from dotenv import load_dotenv

from holder_sleuth.core.exceptions import ConfigurationError

load_dotenv()


DEFAULT_START_TIMESTAMP = 1709785187
DEFAULT_WINDOW_DAYS = 25


@dataclass
class NodeSettings:
    """Node RPC settings."""
    provider_url: Optional[str] = None
    token_address: Optional[str] = None
    timeout: int = 10

    def __post_init__(self):
        # Load from environment if not provided
        if self.provider_url is None:
            self.provider_url = os.getenv("ETHEREUM_PROVIDER", "https://rpc.frax.com/")
        if self.token_address is None:
            self.token_address = os.getenv("TOKEN_ADDRESS")
        self.timeout = int(os.getenv("RPC_TIMEOUT", self.timeout))


@dataclass
class ExplorerSettings:
    """Block explorer API settings."""
    base_url: Optional[str] = None
    api_key: Optional[str] = None

    # Requests per second
    rate_limit: float = 5.0

    def __post_init__(self):
        if self.base_url is None:
            self.base_url = os.getenv("FRAX_BASE_URL", "https://api.fraxscan.com/api")
        if self.api_key is None:
            self.api_key = os.getenv("FRAX_API_KEY")


@dataclass
class DatabaseSettings:
    """Database configuration."""
    host: Optional[str] = None
    port: int = 5432
    database: Optional[str] = None
    user: Optional[str] = None
    password: Optional[str] = None
    url: Optional[str] = None

    @classmethod
    def from_env(cls, prefix: str = "") -> "DatabaseSettings":
        """Create from environment variables with optional prefix."""
        prefix = f"{prefix}_" if prefix else ""
        return cls(
            host=os.getenv(f"{prefix}POSTGRES_HOST"),
            port=int(os.getenv(f"{prefix}POSTGRES_PORT", "5432")),
            database=os.getenv(f"{prefix}POSTGRES_DB"),
            user=os.getenv(f"{prefix}POSTGRES_USER"),
            password=os.getenv(f"{prefix}POSTGRES_PASSWORD"),
            url=os.getenv(f"{prefix}DATABASE_URL"),
        )

    def get_connection_url(self) -> str:
        """Return connection URL for database clients."""
        if self.url:
            return self.url
        if not (self.host and self.database and self.user):
            raise ConfigurationError(
                "Database is not configured: set DATABASE_URL or POSTGRES_HOST, POSTGRES_DB and POSTGRES_USER"
            )
        return f"postgresql+psycopg2://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"


@dataclass
class IngestionSettings:
    """Window and schema settings for the ingestion loop."""
    start_timestamp: int = DEFAULT_START_TIMESTAMP
    window_days: int = DEFAULT_WINDOW_DAYS
    event_schema_path: str = os.path.join("data", "abi", "contractABI.json")

    @classmethod
    def from_env(cls) -> "IngestionSettings":
        return cls(
            start_timestamp=int(os.getenv("START_TIMESTAMP", DEFAULT_START_TIMESTAMP)),
            window_days=int(os.getenv("WINDOW_DAYS", DEFAULT_WINDOW_DAYS)),
            event_schema_path=os.getenv(
                "EVENT_SCHEMA_PATH", os.path.join("data", "abi", "contractABI.json")
            ),
        )

    @property
    def window_seconds(self) -> int:
        return self.window_days * 24 * 60 * 60


class Settings:
    """Main settings class."""

    def __init__(self):
        self.node = NodeSettings()
        self.explorer = ExplorerSettings()
        self.database = DatabaseSettings.from_env()
        self.ingestion = IngestionSettings.from_env()

    def missing(self) -> List[str]:
        """Return the names of required settings that are not set."""
        required = {
            "ETHEREUM_PROVIDER": self.node.provider_url,
            "TOKEN_ADDRESS": self.node.token_address,
            "FRAX_BASE_URL": self.explorer.base_url,
            "FRAX_API_KEY": self.explorer.api_key,
        }
        return [name for name, value in required.items() if not value]

    def validate(self) -> "Settings":
        """Raise ConfigurationError if a required value is missing."""
        missing = self.missing()
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}"
            )
        return self


# Global settings instance
settings = Settings()
