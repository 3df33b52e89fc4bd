"""Environment and settings (Pydantic Settings)."""

from decimal import Decimal
from pathlib import Path
from typing import Literal, Optional

from pydantic import SecretStr
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

# Default data directory: ~/.flexplan/
_data_dir = Path.home() / ".flexplan"

# Optional TOML config; environment variables take precedence over it
DEFAULT_CONFIG_PATH = _data_dir / "config.toml"


class Settings(BaseSettings):
    """Flex Plan settings loaded from environment, .env and ~/.flexplan/config.toml.

    Precedence: init kwargs > FLEXPLAN_* env vars > .env > config.toml > defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="FLEXPLAN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        toml_file=DEFAULT_CONFIG_PATH,
    )

    # Ledger (EVM JSON-RPC)
    rpc_url: str = "http://localhost:8545"
    chain_id: Optional[int] = None
    account_address: Optional[str] = None
    # Without a key, transactions are sent through the node-managed account
    private_key: Optional[SecretStr] = None
    token_address: Optional[str] = None
    billing_contract_address: Optional[str] = None
    token_abi_path: Optional[Path] = None
    billing_contract_abi_path: Optional[Path] = None

    # Billing service (HTTP)
    billing_service_url: str = "http://localhost:8010"
    billing_service_token: Optional[SecretStr] = None
    http_timeout: float = 30.0

    # Display
    token_symbol: str = "SQT"
    token_usd_price: Optional[Decimal] = None

    # Account-switch refetch debounce (seconds)
    debounce_seconds: float = 0.3

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_file: Path = _data_dir / "flexplan.log"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


def get_settings() -> Settings:
    """Return application settings (singleton-like)."""
    return Settings()


def get_example_config() -> str:
    """Return example config.toml content with documented options."""
    return """# Flex Plan - configuration
# Place this file at ~/.flexplan/config.toml
# Every key can be overridden with a FLEXPLAN_<KEY> environment variable.

rpc_url = "https://mainnet.base.org"
chain_id = 8453
account_address = "0x..."
# private_key = ""  # or FLEXPLAN_PRIVATE_KEY; omit to use the node account
token_address = "0x..."
billing_contract_address = "0x..."

billing_service_url = "https://chs.subquery.network"
# billing_service_token = ""  # or FLEXPLAN_BILLING_SERVICE_TOKEN
http_timeout = 30.0

token_symbol = "SQT"
# token_usd_price = 0.01
"""
