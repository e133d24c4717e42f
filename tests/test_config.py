"""
Confidential Swap Configuration Tests
"""

import json
import logging

import pytest

from cswap.config import (
    AssetInfo,
    LogConfig,
    ProofServiceConfig,
    ProtocolConfig,
    get_config,
    init_config,
    reset_config,
    setup_logging,
)
from cswap.errors import ConfigurationError, ErrorCode


class TestValidate:
    """Tests for configuration validation."""

    def test_default_is_valid(self):
        assert ProtocolConfig().validate() == []

    def test_testnet_is_valid(self):
        config = ProtocolConfig.default_testnet()
        assert config.validate() == []
        assert not config.production
        assert config.proof_service.mode == "mock"

    @pytest.mark.parametrize("kwargs", [
        {"group": "secp256k1"},
        {"group": "modular-placeholder"},
        {"proof_service": ProofServiceConfig(mode="mock")},
        {"proof_service": ProofServiceConfig(mode="remote")},
        {"amount_bits": 0},
        {"amount_bits": 65},
        {"rate_scale": 0},
        {"default_expiry_sec": 0},
        {"protocol_public_key": "abcd"},
        {"protocol_public_key": "zz" * 32},
        {"assets": (AssetInfo("A", 0), AssetInfo("B", 0))},
        {"assets": (AssetInfo("A", 0), AssetInfo("A", 1))},
    ])
    def test_invalid(self, kwargs):
        assert ProtocolConfig(**kwargs).validate()

    def test_asset_lookup(self):
        config = ProtocolConfig()
        assert config.asset_by_id(1).name == "USDC"
        assert config.asset_by_name("BTC").decimals == 8
        assert config.asset_by_id(99) is None
        assert config.asset_by_name("DOGE") is None


class TestPersistence:
    """Tests for saving and loading configuration files."""

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "config.json"
        config = ProtocolConfig(
            amount_bits=32,
            protocol_public_key="11" * 32,
            proof_service=ProofServiceConfig(mode="live", url="http://prover:9000"),
        )
        config.save(str(path))
        assert ProtocolConfig.load(str(path)) == config

    def test_partial_file_uses_defaults(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"amount_bits": 32}))
        config = ProtocolConfig.load(str(path))
        assert config.amount_bits == 32
        assert config.group == "ed25519"

    def test_malformed_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"assets": [{"name": "A", "id": 0}]}))
        with pytest.raises(ConfigurationError):
            ProtocolConfig.load(str(path))


class TestProcessConfig:
    """Tests for the process-wide configuration."""

    def test_installed_by_fixture(self, config):
        assert get_config() == config

    def test_not_initialized(self):
        reset_config()
        with pytest.raises(ConfigurationError) as exc:
            get_config()
        assert exc.value.code == ErrorCode.CONFIG_NOT_INITIALIZED

    def test_reinit_same_is_noop(self, config):
        assert init_config(config) == config

    def test_reinit_different(self):
        with pytest.raises(ConfigurationError):
            init_config(ProtocolConfig(amount_bits=32))

    def test_invalid_rejected(self):
        reset_config()
        with pytest.raises(ConfigurationError) as exc:
            init_config(ProtocolConfig(group="modular-placeholder"))
        assert exc.value.details["errors"]


class TestSetupLogging:
    def test_file_handler(self, tmp_path):
        root = logging.getLogger()
        saved = list(root.handlers)
        saved_level = root.level
        for handler in saved:
            root.removeHandler(handler)
        try:
            log_file = tmp_path / "cswap.log"
            setup_logging(LogConfig(level="DEBUG", file=str(log_file)))
            logging.getLogger("cswap.test").info("configured")
            for handler in root.handlers:
                handler.flush()
            assert "configured" in log_file.read_text()
        finally:
            for handler in list(root.handlers):
                root.removeHandler(handler)
                handler.close()
            for handler in saved:
                root.addHandler(handler)
            root.setLevel(saved_level)
