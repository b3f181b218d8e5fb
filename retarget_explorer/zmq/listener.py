import asyncio
import zmq
import zmq.asyncio
from typing import Awaitable, Callable
import logging

BlockCallback = Callable[[str], Awaitable[None]]


class BlockNotifier:
    """
    Subscribes to a node's ``hashblock`` ZMQ topic.

    Each announced block hash is handed to ``on_block`` so the block cache
    can be refreshed without waiting for the next poll.
    """

    MAX_CONSECUTIVE_ERRORS = 5

    def __init__(self, endpoint: str, on_block: BlockCallback):
        self.endpoint = endpoint
        self.on_block = on_block
        self.context = None
        self.socket = None
        self.logger = logging.getLogger(__name__)
        self._running = False
        self._last_sequence = None

    async def start(self):
        if self._running:
            self.logger.warning("Block notifier already running")
            return

        try:
            self.context = zmq.asyncio.Context()
            self.socket = self.context.socket(zmq.SUB)
            self.socket.setsockopt(zmq.SUBSCRIBE, b"hashblock")
            self.socket.setsockopt(zmq.RCVTIMEO, 5000)
            self.socket.setsockopt(zmq.LINGER, 1000)
            self.socket.setsockopt(zmq.RECONNECT_IVL, 1000)
            self.socket.setsockopt(zmq.RECONNECT_IVL_MAX, 10000)
            self.socket.connect(self.endpoint)
            self.logger.info("Subscribed to hashblock at %s", self.endpoint)
            self._running = True
            await self._listen_loop()
        except Exception as e:
            self.logger.error("Failed to start block notifier: %s", e)
            raise
        finally:
            await self.stop()

    async def handle_message(self, parts):
        """Dispatch one multipart message: [topic, hash, sequence]"""
        if len(parts) < 2:
            self.logger.warning("Received malformed ZMQ message")
            return
        topic, block_hash = parts[0], parts[1]
        if topic != b"hashblock":
            self.logger.debug("Ignoring ZMQ message with topic: %s", topic)
            return

        sequence = int.from_bytes(parts[2], "little") if len(parts) > 2 else None
        if (
            sequence is not None
            and self._last_sequence is not None
            and sequence != self._last_sequence + 1
        ):
            self.logger.warning(
                "Missed block notifications (seq %d -> %d)", self._last_sequence, sequence
            )
        self._last_sequence = sequence

        block_hash_hex = block_hash.hex()
        self.logger.info("New block announced: %s", block_hash_hex)
        try:
            await self.on_block(block_hash_hex)
        except Exception as e:
            self.logger.error("Error refreshing after block %s: %s", block_hash_hex, e)

    async def _listen_loop(self):
        consecutive_errors = 0
        while self._running and self.socket:
            try:
                parts = await self.socket.recv_multipart()
                consecutive_errors = 0
                await self.handle_message(parts)
            except zmq.Again:
                continue
            except zmq.ZMQError as e:
                consecutive_errors += 1
                if consecutive_errors >= self.MAX_CONSECUTIVE_ERRORS:
                    self.logger.error(
                        "Too many consecutive ZMQ errors (%d), stopping", consecutive_errors
                    )
                    break
                self.logger.warning(
                    "ZMQ error (attempt %d/%d): %s",
                    consecutive_errors,
                    self.MAX_CONSECUTIVE_ERRORS,
                    e,
                )
                await asyncio.sleep(min(consecutive_errors * 0.5, 5.0))

        self.logger.info("Block notifier loop ended")

    async def stop(self):
        self._running = False
        if self.socket:
            self.socket.close()
            self.socket = None
        if self.context:
            self.context.term()
            self.context = None

    @property
    def is_running(self) -> bool:
        return self._running

    def __repr__(self):
        return f"BlockNotifier(endpoint='{self.endpoint}', running={self._running})"
