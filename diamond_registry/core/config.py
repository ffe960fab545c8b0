"""
Configuration management for the Diamond Registry service.
Handles environment variables and settings for the selector routing table,
the on-chain Diamond connection and the HTTP API.
"""

from typing import Annotated, Any, Dict, List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Diamond Registry"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # CORS
    ALLOWED_ORIGINS: Annotated[List[str], NoDecode] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:8000",
    ]

    # Blockchain Configuration
    TESTNET_RPC_URL: Optional[str] = None
    EVM_RPC_URL: str = "http://127.0.0.1:7545"  # Ganache default
    EVM_CHAIN_ID: int = 1337
    DIAMOND_ADDRESS: Optional[str] = None

    # Private key for signing registration transactions (from .env)
    DEPLOYER_PRIVATE_KEY: Optional[str] = None

    # Deployment artifacts
    DEPLOYMENT_DIR: str = "deployments"
    DEPLOYMENT_NETWORK: str = "ganache"
    ABI_DIR: str = "contracts/abis"

    # Access control
    REGISTRY_ADMIN_ADDRESSES: Annotated[List[str], NoDecode] = []
    REQUIRE_SIGNED_REQUESTS: bool = False
    SIGNATURE_MESSAGE_PREFIX: str = "Diamond Registry Admin"
    NONCE_EXPIRE_MINUTES: int = 10

    # Redis snapshot of the routing table
    REDIS_URI: str = "redis://localhost:6379"
    REDIS_DB: int = 0
    REGISTRY_PERSISTENCE_ENABLED: bool = False
    REGISTRY_SNAPSHOT_KEY: str = "diamond_registry:routes"

    # Logging
    LOG_LEVEL: str = "INFO"

    @property
    def ACTIVE_RPC_URL(self) -> str:
        """Get active RPC URL (TESTNET_RPC_URL takes priority over EVM_RPC_URL)."""
        return self.TESTNET_RPC_URL or self.EVM_RPC_URL

    @field_validator("ALLOWED_ORIGINS", "REGISTRY_ADMIN_ADDRESSES", mode="before")
    @classmethod
    def parse_comma_list(cls, v):
        """Parse comma separated values from string or list."""
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment setting."""
        allowed_envs = ["development", "staging", "production"]
        if v not in allowed_envs:
            raise ValueError(f"Environment must be one of {allowed_envs}")
        return v

    def get_evm_config(self) -> Dict[str, Any]:
        """Get the Diamond network configuration."""
        return {
            "rpc_url": self.ACTIVE_RPC_URL,
            "chain_id": self.EVM_CHAIN_ID,
            "diamond_address": self.DIAMOND_ADDRESS,
            "network": self.DEPLOYMENT_NETWORK,
        }

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


# Create global settings instance
settings = Settings()


def is_production() -> bool:
    """Check if running in production environment."""
    return settings.ENVIRONMENT == "production"
