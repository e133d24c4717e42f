"""
Confidential Swap Configuration

Generators and asset tables are immutable configuration, loaded once at
process start with init_config() and read everywhere through get_config().
"""

from __future__ import annotations
import json
import logging
from dataclasses import dataclass, field, asdict
from typing import List, Optional, Tuple

from cswap.constants import (
    AMOUNT_BITS,
    RATE_SCALE,
    DEFAULT_EXPIRY_SEC,
    MAX_EXPIRY_SEC,
    DEFAULT_ASSETS,
    DEFAULT_PROOF_SERVICE_URL,
    PROOF_GENERATE_ENDPOINT,
    PROOF_VERIFY_ENDPOINT,
    PROOF_SERVICE_TIMEOUT_SEC,
    GROUP_ED25519,
    GROUP_PLACEHOLDER,
)
from cswap.errors import ConfigurationError, ErrorCode

logger = logging.getLogger(__name__)

PROOF_SERVICE_MODES = ("live", "mock", "disabled")


@dataclass(frozen=True)
class AssetInfo:
    """Tradable asset."""
    name: str
    asset_id: int
    decimals: int = 18


def default_assets() -> Tuple[AssetInfo, ...]:
    return tuple(
        AssetInfo(name=name, asset_id=asset_id, decimals=decimals)
        for name, (asset_id, decimals) in DEFAULT_ASSETS.items()
    )


@dataclass(frozen=True)
class ProofServiceConfig:
    """Succinct-proof service configuration."""
    mode: str = "disabled"
    url: str = DEFAULT_PROOF_SERVICE_URL
    generate_endpoint: str = PROOF_GENERATE_ENDPOINT
    verify_endpoint: str = PROOF_VERIFY_ENDPOINT
    timeout_sec: float = PROOF_SERVICE_TIMEOUT_SEC


@dataclass(frozen=True)
class LogConfig:
    """Logging configuration."""
    level: str = "INFO"
    file: Optional[str] = None
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    max_size_mb: int = 100
    backup_count: int = 5


@dataclass(frozen=True)
class ProtocolConfig:
    """
    Complete protocol configuration.

    production=False is only meant for test harnesses running on the
    placeholder group; verifiers built from a production config reject
    placeholder bundles and mock proof artifacts.
    """
    group: str = GROUP_ED25519
    production: bool = True
    amount_bits: int = AMOUNT_BITS
    rate_scale: int = RATE_SCALE
    default_expiry_sec: int = DEFAULT_EXPIRY_SEC

    # Hex encoding of the protocol encryption key, if known at startup
    protocol_public_key: Optional[str] = None

    assets: Tuple[AssetInfo, ...] = field(default_factory=default_assets)
    proof_service: ProofServiceConfig = field(default_factory=ProofServiceConfig)
    log: LogConfig = field(default_factory=LogConfig)

    def asset_by_id(self, asset_id: int) -> Optional[AssetInfo]:
        for asset in self.assets:
            if asset.asset_id == asset_id:
                return asset
        return None

    def asset_by_name(self, name: str) -> Optional[AssetInfo]:
        for asset in self.assets:
            if asset.name == name:
                return asset
        return None

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if self.group not in (GROUP_ED25519, GROUP_PLACEHOLDER):
            errors.append(f"Unknown group: {self.group}")

        if self.production and self.group != GROUP_ED25519:
            errors.append(f"Group {self.group} cannot be used in production")

        if self.proof_service.mode not in PROOF_SERVICE_MODES:
            errors.append(f"Invalid proof service mode: {self.proof_service.mode}")

        if self.production and self.proof_service.mode == "mock":
            errors.append("Mock proof service cannot be used in production")

        if self.amount_bits < 1 or self.amount_bits > AMOUNT_BITS:
            errors.append(f"amount_bits must be in [1, {AMOUNT_BITS}]")

        if self.rate_scale < 1:
            errors.append("rate_scale must be positive")

        if self.default_expiry_sec < 1 or self.default_expiry_sec > MAX_EXPIRY_SEC:
            errors.append(f"Invalid default expiry: {self.default_expiry_sec}")

        if self.protocol_public_key is not None:
            try:
                if len(bytes.fromhex(self.protocol_public_key)) != 32:
                    errors.append("protocol_public_key must be 32 bytes")
            except ValueError:
                errors.append("protocol_public_key is not valid hex")

        ids = [asset.asset_id for asset in self.assets]
        if len(set(ids)) != len(ids):
            errors.append("Duplicate asset ids")

        names = [asset.name for asset in self.assets]
        if len(set(names)) != len(names):
            errors.append("Duplicate asset names")

        return errors

    def to_dict(self) -> dict:
        """Export configuration as dictionary."""
        return {
            "group": self.group,
            "production": self.production,
            "amount_bits": self.amount_bits,
            "rate_scale": self.rate_scale,
            "default_expiry_sec": self.default_expiry_sec,
            "protocol_public_key": self.protocol_public_key,
            "assets": [asdict(asset) for asset in self.assets],
            "proof_service": asdict(self.proof_service),
            "log": asdict(self.log),
        }

    def save(self, path: str) -> None:
        """Save configuration to file."""
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

        logger.info(f"Configuration saved to {path}")

    @classmethod
    def from_dict(cls, data: dict) -> "ProtocolConfig":
        kwargs = {
            key: data[key]
            for key in (
                "group",
                "production",
                "amount_bits",
                "rate_scale",
                "default_expiry_sec",
                "protocol_public_key",
            )
            if key in data
        }

        if "assets" in data:
            kwargs["assets"] = tuple(AssetInfo(**a) for a in data["assets"])

        if "proof_service" in data:
            kwargs["proof_service"] = ProofServiceConfig(**data["proof_service"])

        if "log" in data:
            kwargs["log"] = LogConfig(**data["log"])

        return cls(**kwargs)

    @classmethod
    def load(cls, path: str) -> "ProtocolConfig":
        """Load configuration from file."""
        with open(path, 'r') as f:
            data = json.load(f)

        try:
            config = cls.from_dict(data)
        except TypeError as e:
            raise ConfigurationError(f"Malformed configuration in {path}: {e}")

        logger.info(f"Configuration loaded from {path}")
        return config

    @classmethod
    def default_testnet(cls) -> "ProtocolConfig":
        """Non-production configuration for local test harnesses."""
        return cls(
            group=GROUP_PLACEHOLDER,
            production=False,
            proof_service=ProofServiceConfig(mode="mock"),
        )


# ==============================================================================
# PROCESS-WIDE CONFIGURATION
# ==============================================================================

_config: Optional[ProtocolConfig] = None


def init_config(config: Optional[ProtocolConfig] = None) -> ProtocolConfig:
    """
    Install the process-wide configuration.

    Calling again with an equal configuration is a no-op; installing a
    different one requires reset_config() first.

    Raises:
        ConfigurationError: If the configuration is invalid or a different
            configuration is already installed
    """
    global _config

    if config is None:
        config = ProtocolConfig()

    errors = config.validate()
    if errors:
        raise ConfigurationError("Invalid configuration", {"errors": errors})

    if _config is not None:
        if _config != config:
            raise ConfigurationError("Configuration already initialized")
        return _config

    _config = config
    logger.info(
        f"Configuration initialized: group={config.group}, "
        f"production={config.production}, assets={len(config.assets)}"
    )
    return _config


def get_config() -> ProtocolConfig:
    if _config is None:
        raise ConfigurationError(
            "Configuration not initialized",
            code=ErrorCode.CONFIG_NOT_INITIALIZED,
        )
    return _config


def reset_config() -> None:
    """Drop the installed configuration. Test harnesses only."""
    global _config
    _config = None


def setup_logging(config: LogConfig) -> None:
    """Configure logging based on config."""
    level = getattr(logging, config.level.upper(), logging.INFO)

    handlers = [logging.StreamHandler()]

    if config.file:
        from logging.handlers import RotatingFileHandler
        file_handler = RotatingFileHandler(
            config.file,
            maxBytes=config.max_size_mb * 1024 * 1024,
            backupCount=config.backup_count,
        )
        handlers.append(file_handler)

    logging.basicConfig(
        level=level,
        format=config.format,
        handlers=handlers,
    )
