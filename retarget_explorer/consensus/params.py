"""Consensus constants that drive the retarget views."""

from enum import Enum
from typing import Optional

# Per-block (Digishield) retargeting activates here on mainnet
MAINNET_ACTIVATION_HEIGHT = 115000
MAINNET_NAMES = ("mainnet", "main")

BLOCK_SECONDS_TARGET = 60
TESTNET_MAX_BLOCK_SECONDS = 1200

# Legacy view: the chain already retargets every block
LEGACY_EPOCH_BLOCK_LENGTH = 1
LEGACY_LAST_BLOCK_INDEX = 2015
LEGACY_QUARTER_WINDOW = 503
LEGACY_QUARTER_DIVISOR = 504

LEGACY_MAX_UP = 300.0
LEGACY_MAX_DOWN = -75.0

# Derived from the per-block timespan clamp [0.75T .. 1.5T]
DIGI_MAX_UP = 33.34
DIGI_MAX_DOWN = -33.34


class Era(str, Enum):
    LEGACY = "legacy"
    PER_BLOCK = "per-block"


def normalize_network(network: Optional[str]) -> str:
    return (network or "").lower()


def activation_height(network: Optional[str]) -> int:
    """Height at which the per-block era starts. Test networks start at genesis."""
    if normalize_network(network) in MAINNET_NAMES:
        return MAINNET_ACTIVATION_HEIGHT
    return 0


def era_for(height: int, network: Optional[str]) -> Era:
    if height < activation_height(network):
        return Era.LEGACY
    return Era.PER_BLOCK


def is_testnet(network: Optional[str]) -> bool:
    return normalize_network(network) == "testnet"
