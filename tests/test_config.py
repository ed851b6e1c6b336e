"""
ShieldNote Configuration Tests
"""

import logging

from shieldnote.config import LogConfig, WalletConfig, setup_logging
from shieldnote.constants import NETWORK_TESTNET


class TestWalletConfig:
    """Tests for WalletConfig."""

    def test_defaults_valid(self):
        """Test default configuration validates."""
        config = WalletConfig()
        assert config.validate() == []
        assert config.tree.depth == 32
        assert config.selection.default_strategy == "privacy_first"
        assert config.fees.base_fee == 1000
        assert config.fees.outputs_fixed_fee == 1000

    def test_testnet(self):
        """Test testnet preset."""
        config = WalletConfig.default_testnet()
        assert config.testnet
        assert config.network == NETWORK_TESTNET
        assert config.log.level == "DEBUG"
        assert not WalletConfig.default_mainnet().testnet

    def test_validation_errors(self):
        """Test invalid settings are reported."""
        config = WalletConfig(network="regtest", change_address="")
        config.tree.depth = 0
        config.selection.default_strategy = "random"
        config.fees.per_input_fee = -1
        config.consolidation.max_notes = 1

        errors = config.validate()
        assert len(errors) == 6

    def test_save_load(self, tmp_path):
        """Test configuration file round trip."""
        config = WalletConfig.default_testnet()
        config.change_address = "zs1change"
        config.fees.base_fee = 2_000
        config.consolidation.enabled = False

        path = tmp_path / "wallet.json"
        config.save(str(path))
        loaded = WalletConfig.load(str(path))

        assert loaded.to_dict() == config.to_dict()

    def test_from_partial_dict(self):
        """Test missing sections keep their defaults."""
        config = WalletConfig.from_dict({"network": "testnet", "tree": {"depth": 16}})
        assert config.tree.depth == 16
        assert config.fees.per_input_fee == 500
        assert config.change_address is None


class TestLogging:
    """Tests for logging setup."""

    def test_setup_logging_file(self, tmp_path):
        """Test a rotating file handler is attached when a file is configured."""
        root = logging.getLogger()
        saved = list(root.handlers)
        saved_level = root.level
        root.handlers.clear()
        try:
            log_file = tmp_path / "wallet.log"
            setup_logging(LogConfig(level="DEBUG", file=str(log_file)))

            logging.getLogger("shieldnote.test").debug("hello")
            for handler in root.handlers:
                handler.flush()

            assert root.level == logging.DEBUG
            assert "hello" in log_file.read_text()
        finally:
            for handler in root.handlers:
                handler.close()
            root.handlers[:] = saved
            root.setLevel(saved_level)
