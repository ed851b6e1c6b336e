"""
ShieldNote Constants

All ledger, selection and fee constants defined here for single source of truth.
"""

from typing import Final, Dict

# ==============================================================================
# SERIALIZATION CONSTANTS
# ==============================================================================

HASH_SIZE: Final[int] = 32
RANDOMNESS_SIZE: Final[int] = 32
NOTE_ID_SIZE: Final[int] = 8                    # Truncated SHA-256, hex-encoded
MEMO_MAX_SIZE: Final[int] = 512                 # Zcash memo field
U64_MAX: Final[int] = 2**64 - 1

# Byte order
LITTLE_ENDIAN: Final[str] = "little"

# ==============================================================================
# COMMITMENT TREE CONSTANTS
# ==============================================================================

TREE_DEPTH_DEFAULT: Final[int] = 32             # 2^32 leaves
TREE_DEPTH_MAX: Final[int] = 64

# ==============================================================================
# NOTE FAMILY CONSTANTS
# ==============================================================================

# Family identifiers (shielded pool). "A" is the Orchard-like pool,
# "B" the Sapling-like pool.
FAMILY_ORCHARD: Final[str] = "orchard"
FAMILY_SAPLING: Final[str] = "sapling"

# Domain separation tags mixed into commitments
COMMITMENT_TAGS: Final[Dict[str, bytes]] = {
    FAMILY_ORCHARD: b"orchard",
    FAMILY_SAPLING: b"sapling",
}

# Domain separation tags mixed into nullifiers
NULLIFIER_TAGS: Final[Dict[str, bytes]] = {
    FAMILY_ORCHARD: b"orchard_nullifier",
    FAMILY_SAPLING: b"sapling_nullifier",
}

# Privacy rank: lower is spent first under PRIVACY_FIRST,
# last under EFFICIENCY_FIRST
PRIVACY_RANK: Final[Dict[str, int]] = {
    FAMILY_ORCHARD: 0,
    FAMILY_SAPLING: 1,
}

# BIP-44 style account branch per family
DERIVATION_BRANCH: Final[Dict[str, int]] = {
    FAMILY_ORCHARD: 0,
    FAMILY_SAPLING: 1,
}

DERIVATION_PATH_PREFIX: Final[str] = "m/44'/133'/0'"   # coin type 133 (Zcash)

# ==============================================================================
# FEE CONSTANTS (zatoshi)
# ==============================================================================

FEE_BASE: Final[int] = 1000                     # 0.00001 ZEC
FEE_PER_INPUT: Final[int] = 500                 # 0.000005 ZEC
FEE_PER_OUTPUT: Final[int] = 500
FEE_FIXED_OUTPUTS: Final[int] = 2               # Recipient + change

# ==============================================================================
# CONSOLIDATION CONSTANTS
# ==============================================================================

CONSOLIDATION_MIN_VALUE: Final[int] = 10_000    # 0.0001 ZEC
CONSOLIDATION_MAX_NOTES: Final[int] = 10

# ==============================================================================
# TRANSFER CONSTANTS
# ==============================================================================

TRANSFER_VERSION: Final[int] = 5                # Zcash v5 transaction format

# Rough size model used for size estimation
TX_BASE_OVERHEAD_BYTES: Final[int] = 100
TX_INPUT_POSITION_BYTES: Final[int] = 8
TX_OUTPUT_VALUE_BYTES: Final[int] = 8

# Ed25519
ED25519_SEED_SIZE: Final[int] = 32
ED25519_PUBLIC_KEY_SIZE: Final[int] = 32
ED25519_SIGNATURE_SIZE: Final[int] = 64
ALGORITHM_EDDSA: Final[str] = "eddsa"

# ==============================================================================
# NETWORK CONSTANTS
# ==============================================================================

NETWORK_MAINNET: Final[str] = "mainnet"
NETWORK_TESTNET: Final[str] = "testnet"
