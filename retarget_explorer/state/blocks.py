"""In-memory cache of recent blocks read by the difficulty views"""

from collections import deque
from dataclasses import dataclass
from typing import Optional, Tuple
import logging
import threading

from ..consensus.retarget import bits_difference
from ..consensus.targets import compact_to_target

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BlockRecord:
    height: int
    hash: str
    bits: int
    timestamp: int


class InMemoryBlockCache:
    """Tracks the most recent blocks of the chain, oldest first"""

    def __init__(self, max_blocks: int = 100, network: str = "mainnet"):
        """
        Initialize the block cache.

        Args:
            max_blocks: Maximum number of blocks to keep
            network: Network name, used to clamp the recorded retarget change
        """
        self.max_blocks = max_blocks
        self.network = network
        self.blocks: deque = deque(maxlen=max_blocks)
        self.lock = threading.Lock()
        self._last_adjustment_time: Optional[int] = None
        self._previous_retarget: Optional[float] = None
        self._quarter_epoch_time: Optional[int] = None
        self._adjustment_height: Optional[int] = None
        self._seeded_adjustment: Optional[Tuple[int, float]] = None

    def add_block(self, block: BlockRecord) -> None:
        """
        Append a block at the tip.

        A block at or below the current tip replaces that part of the chain.
        A block whose bits differ from its parent is recorded as the latest
        difficulty adjustment. Raises InvalidBitsError before touching the
        cache if the block's bits cannot be decoded.
        """
        compact_to_target(block.bits)
        with self.lock:
            dropped_adjustment = False
            while self.blocks and self.blocks[-1].height >= block.height:
                dropped = self.blocks.pop()
                if dropped.height == self._adjustment_height:
                    dropped_adjustment = True
                logger.info(
                    "Reorg: dropping block %d (%s)", dropped.height, dropped.hash
                )
            if dropped_adjustment:
                self._rederive_adjustment()

            parent = self.blocks[-1] if self.blocks else None
            self.blocks.append(block)

            if parent is not None and parent.bits != block.bits:
                self._record_adjustment(parent, block)

    def _record_adjustment(self, parent: BlockRecord, block: BlockRecord) -> None:
        self._adjustment_height = block.height
        self._last_adjustment_time = block.timestamp
        self._previous_retarget = bits_difference(
            parent.bits, block.bits, height=block.height, network=self.network
        )
        logger.debug(
            "Difficulty adjusted at %d: %.2f%%", block.height, self._previous_retarget
        )

    def _rederive_adjustment(self) -> None:
        """Rebuild the baseline from the newest bits change still cached"""
        cached = list(self.blocks)
        for parent, child in zip(reversed(cached[:-1]), reversed(cached[1:])):
            if parent.bits != child.bits:
                self._record_adjustment(parent, child)
                return
        self._adjustment_height = None
        if self._seeded_adjustment is not None:
            self._last_adjustment_time, self._previous_retarget = self._seeded_adjustment
        else:
            self._last_adjustment_time = None
            self._previous_retarget = None
        logger.debug("Adjustment block orphaned, baseline reset to %s", self._seeded_adjustment)

    def set_difficulty_adjustment(self, timestamp: int, previous_retarget: float) -> None:
        """Seed the last adjustment baseline (e.g. from an indexer)"""
        with self.lock:
            self._seeded_adjustment = (timestamp, previous_retarget)
            self._adjustment_height = None
            self._last_adjustment_time = timestamp
            self._previous_retarget = previous_retarget

    def set_quarter_epoch_time(self, timestamp: Optional[int]) -> None:
        """
        Set the legacy-era smoothing reference time.

        The node feeder does not derive this; an external indexer that knows
        the prior epoch's block times sets it. Left as None, the legacy
        projection uses the unsmoothed timespan.
        """
        with self.lock:
            self._quarter_epoch_time = timestamp

    def current_height(self) -> int:
        with self.lock:
            return self.blocks[-1].height if self.blocks else 0

    def recent_blocks(self) -> Tuple[BlockRecord, ...]:
        """Snapshot of the cached blocks, oldest to newest"""
        with self.lock:
            return tuple(self.blocks)

    def last_difficulty_adjustment_time(self) -> Optional[int]:
        with self.lock:
            return self._last_adjustment_time

    def previous_difficulty_retarget_percent(self) -> Optional[float]:
        with self.lock:
            return self._previous_retarget

    def quarter_epoch_reference_time(self) -> Optional[int]:
        with self.lock:
            return self._quarter_epoch_time

    def clear(self) -> None:
        """Clear all cached blocks and the adjustment baseline"""
        with self.lock:
            self.blocks.clear()
            self._last_adjustment_time = None
            self._previous_retarget = None
            self._quarter_epoch_time = None
            self._adjustment_height = None
            self._seeded_adjustment = None


# Global instance
_block_cache: InMemoryBlockCache | None = None


def get_block_cache(max_blocks: int = 100, network: str = "mainnet") -> InMemoryBlockCache:
    """Get or create the global block cache instance"""
    global _block_cache
    if _block_cache is None:
        _block_cache = InMemoryBlockCache(max_blocks=max_blocks, network=network)
    return _block_cache
