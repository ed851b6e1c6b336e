"""
ShieldNote Wallet
Note ledger, commitment tree, note selection and transfer signing
for a shielded-note wallet.
"""

__version__ = "1.0.0"
__author__ = "ShieldNote"

from shieldnote.constants import FAMILY_ORCHARD, FAMILY_SAPLING, NETWORK_MAINNET, NETWORK_TESTNET

__all__ = [
    "FAMILY_ORCHARD",
    "FAMILY_SAPLING",
    "NETWORK_MAINNET",
    "NETWORK_TESTNET",
    "__version__",
]
