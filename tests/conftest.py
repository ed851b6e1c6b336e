"""
ShieldNote Test Fixtures
"""

import pytest

from shieldnote.config import WalletConfig
from shieldnote.core.note import NoteFamily
from shieldnote.crypto.merkle import CommitmentTree
from shieldnote.protocol.keys import SeedKeyProvider
from shieldnote.protocol.signer import TransactionSigner
from shieldnote.state.ledger import NoteLedger
from shieldnote.state.selection import NoteSelector


RECIPIENT = "zs1testrecipient"
CHANGE_ADDRESS = "zs1testchange"


@pytest.fixture
def wallet_config() -> WalletConfig:
    """Create a testnet config with a change address."""
    config = WalletConfig.default_testnet()
    config.change_address = CHANGE_ADDRESS
    return config


@pytest.fixture
def empty_ledger(wallet_config) -> NoteLedger:
    """Create an empty ledger."""
    return NoteLedger(wallet_config)


@pytest.fixture
def funded_ledger(wallet_config) -> NoteLedger:
    """Create a ledger holding notes of 100, 300 and 250 (in that order)."""
    ledger = NoteLedger(wallet_config)
    ledger.create_and_insert(100, RECIPIENT, height=10)
    ledger.create_and_insert(300, RECIPIENT, height=20)
    ledger.create_and_insert(250, RECIPIENT, height=30)
    return ledger


@pytest.fixture
def mixed_ledger(wallet_config) -> NoteLedger:
    """Create a ledger with Sapling notes inserted before Orchard notes."""
    ledger = NoteLedger(wallet_config)
    ledger.create_and_insert(5_000, RECIPIENT, family=NoteFamily.SAPLING, height=5)
    ledger.create_and_insert(7_000, RECIPIENT, family=NoteFamily.SAPLING, height=1)
    ledger.create_and_insert(3_000, RECIPIENT, family=NoteFamily.ORCHARD, height=8)
    ledger.create_and_insert(9_000, RECIPIENT, family=NoteFamily.ORCHARD, height=3)
    return ledger


@pytest.fixture
def rich_ledger(wallet_config) -> NoteLedger:
    """Create a ledger with enough value for transfers plus fees."""
    ledger = NoteLedger(wallet_config)
    ledger.create_and_insert(50_000, RECIPIENT, height=100)
    ledger.create_and_insert(20_000, RECIPIENT, family=NoteFamily.SAPLING, height=101)
    return ledger


@pytest.fixture
def small_tree() -> CommitmentTree:
    """Create a tree that holds four leaves."""
    return CommitmentTree(depth=2)


@pytest.fixture
def selector(funded_ledger) -> NoteSelector:
    return NoteSelector(funded_ledger)


@pytest.fixture
def key_provider() -> SeedKeyProvider:
    """Create an unlocked key provider with a deterministic seed."""
    return SeedKeyProvider(bytes(range(32)))


@pytest.fixture
def signer(rich_ledger) -> TransactionSigner:
    return TransactionSigner(rich_ledger)
