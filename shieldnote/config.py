"""
ShieldNote Wallet Configuration
"""

from __future__ import annotations
import json
import logging
from dataclasses import dataclass, field, asdict
from typing import List, Optional

from shieldnote.constants import (
    TREE_DEPTH_DEFAULT,
    TREE_DEPTH_MAX,
    FEE_BASE,
    FEE_PER_INPUT,
    FEE_PER_OUTPUT,
    FEE_FIXED_OUTPUTS,
    CONSOLIDATION_MIN_VALUE,
    CONSOLIDATION_MAX_NOTES,
    NETWORK_MAINNET,
    NETWORK_TESTNET,
)

logger = logging.getLogger(__name__)

STRATEGY_NAMES = (
    "privacy_first",
    "efficiency_first",
    "value_based",
    "age_based",
    "balanced",
)


@dataclass
class TreeConfig:
    """Commitment tree configuration."""
    depth: int = TREE_DEPTH_DEFAULT


@dataclass
class SelectionConfig:
    """Note selection configuration."""
    default_strategy: str = "privacy_first"


@dataclass
class FeeConfig:
    """Fee estimation configuration (zatoshi)."""
    base_fee: int = FEE_BASE
    per_input_fee: int = FEE_PER_INPUT
    per_output_fee: int = FEE_PER_OUTPUT
    fixed_outputs: int = FEE_FIXED_OUTPUTS

    @property
    def outputs_fixed_fee(self) -> int:
        return self.per_output_fee * self.fixed_outputs


@dataclass
class ConsolidationConfig:
    """Small-note consolidation configuration."""
    enabled: bool = True
    min_value: int = CONSOLIDATION_MIN_VALUE
    max_notes: int = CONSOLIDATION_MAX_NOTES


@dataclass
class LogConfig:
    """Logging configuration."""
    level: str = "INFO"
    file: Optional[str] = None
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    max_size_mb: int = 100
    backup_count: int = 5


@dataclass
class WalletConfig:
    """
    Complete wallet ledger configuration.

    All settings for the note ledger, selector and signer.
    """
    # Identity
    name: str = "shieldnote-wallet"
    network: str = NETWORK_MAINNET

    # Default change destination (opaque address string)
    change_address: Optional[str] = None

    # Sub-configurations
    tree: TreeConfig = field(default_factory=TreeConfig)
    selection: SelectionConfig = field(default_factory=SelectionConfig)
    fees: FeeConfig = field(default_factory=FeeConfig)
    consolidation: ConsolidationConfig = field(default_factory=ConsolidationConfig)
    log: LogConfig = field(default_factory=LogConfig)

    @property
    def testnet(self) -> bool:
        return self.network == NETWORK_TESTNET

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if self.network not in (NETWORK_MAINNET, NETWORK_TESTNET):
            errors.append(f"Unknown network: {self.network}")

        if self.tree.depth < 1 or self.tree.depth > TREE_DEPTH_MAX:
            errors.append(f"Invalid tree depth: {self.tree.depth}")

        if self.selection.default_strategy not in STRATEGY_NAMES:
            errors.append(f"Unknown selection strategy: {self.selection.default_strategy}")

        for name in ("base_fee", "per_input_fee", "per_output_fee", "fixed_outputs"):
            if getattr(self.fees, name) < 0:
                errors.append(f"{name} cannot be negative")

        if self.consolidation.max_notes < 2:
            errors.append("consolidation max_notes must be at least 2")

        if self.change_address is not None and not self.change_address:
            errors.append("change_address cannot be empty")

        return errors

    def save(self, path: str) -> None:
        """Save configuration to file."""
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

        logger.info(f"Configuration saved to {path}")

    @classmethod
    def load(cls, path: str) -> "WalletConfig":
        """Load configuration from file."""
        with open(path, 'r') as f:
            data = json.load(f)

        config = cls.from_dict(data)
        logger.info(f"Configuration loaded from {path}")
        return config

    @classmethod
    def from_dict(cls, data: dict) -> "WalletConfig":
        config = cls(
            name=data.get("name", "shieldnote-wallet"),
            network=data.get("network", NETWORK_MAINNET),
            change_address=data.get("change_address"),
        )

        if "tree" in data:
            config.tree = TreeConfig(**data["tree"])

        if "selection" in data:
            config.selection = SelectionConfig(**data["selection"])

        if "fees" in data:
            config.fees = FeeConfig(**data["fees"])

        if "consolidation" in data:
            config.consolidation = ConsolidationConfig(**data["consolidation"])

        if "log" in data:
            config.log = LogConfig(**data["log"])

        return config

    @classmethod
    def default_testnet(cls) -> "WalletConfig":
        """Create default testnet configuration."""
        config = cls(
            name="shieldnote-testnet-wallet",
            network=NETWORK_TESTNET,
        )
        config.log.level = "DEBUG"
        return config

    @classmethod
    def default_mainnet(cls) -> "WalletConfig":
        """Create default mainnet configuration."""
        return cls(
            name="shieldnote-mainnet-wallet",
            network=NETWORK_MAINNET,
        )

    def to_dict(self) -> dict:
        """Export configuration as dictionary."""
        return {
            "name": self.name,
            "network": self.network,
            "change_address": self.change_address,
            "tree": asdict(self.tree),
            "selection": asdict(self.selection),
            "fees": asdict(self.fees),
            "consolidation": asdict(self.consolidation),
            "log": asdict(self.log),
        }


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
