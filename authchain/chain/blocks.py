"""Timestamp to block number resolution.

Maps a wall-clock instant to the block that brackets it so that a contract
call can be evaluated against historical state. Block spacing is not
uniform, so the search interpolates from an average block time and refines
the estimate from the last two probes.

Termination: every probe either brackets the target or lands strictly
inside the interval of block numbers still known to contain the answer, so
the interval shrinks on each iteration.
"""

import logging
import math
import time
from typing import Dict, Optional, Set, Union

from authchain.core.config import SAVE_BLOCKS
from .models import BlockResponse, SavedBlock
from .rpc import LATEST, BlockIdentifier, RpcProvider

log = logging.getLogger(__name__)


class BlockResolver:
    """Resolves instants to block numbers against one RpcProvider.

    Fetched blocks are memoized for the lifetime of the instance and never
    evicted. Concurrent validations may share an instance: entries are only
    ever inserted, and two writers for the same key store the same block.

    Attributes:
        saved_blocks: Memoized blocks keyed by number or "latest".
        requests: Number of get_block round trips issued.
        block_time: Average seconds per block from the bootstrap.
        first_timestamp: Timestamp of block 1.
    """

    def __init__(self, provider: RpcProvider, save: bool = SAVE_BLOCKS):
        self.provider = provider
        self.save_blocks = save
        self.saved_blocks: Dict[Union[int, str], SavedBlock] = {}
        self.requests = 0
        self.block_time: Optional[float] = None
        self.first_timestamp: Optional[int] = None
        self._first: Optional[SavedBlock] = None
        self._head: Optional[SavedBlock] = None

    async def fill_block_time(self) -> None:
        """Fetch block 1 and the head and derive the average block time."""
        latest = await self.get_block(LATEST)
        first = await self.get_block(1)

        average = (latest.timestamp - first.timestamp) / max(latest.number, 1)
        block_time = average - 1
        if block_time <= 0:
            block_time = average if average > 0 else 1.0

        self.block_time = block_time
        self.first_timestamp = first.timestamp
        self._first = first
        self._head = latest
        log.debug(f"block_time_filled: head={latest.number} block_time={block_time:.3f}")

    async def get_date(self, date_ms: float, after: bool = True) -> BlockResponse:
        """Find the block bracketing ``date_ms``.

        Args:
            date_ms: Instant in epoch milliseconds.
            after: True for the first block at or after the instant, False for
                the last block before it.

        Returns:
            BlockResponse with the block number and the queried instant in
            seconds.
        """
        date = date_ms / 1000
        now = time.time()

        if self.first_timestamp is None or self.block_time is None:
            await self.fill_block_time()

        if date < self.first_timestamp:
            return BlockResponse(block=1, timestamp=date)

        if date >= now or date > self._head.timestamp:
            # Bypasses the memo: the cached head can be older than the target
            head = await self.provider.get_block(LATEST)
            self.requests += 1
            return BlockResponse(block=head.number, timestamp=date)

        return BlockResponse(block=await self._find_block(date, after), timestamp=date)

    async def _find_block(self, date: float, after: bool) -> int:
        # Answer for "after" lies in (lo, hi]; for "before" it is that minus one.
        lo = 0
        hi = self._head.number
        probed: Set[int] = set()

        def observe(block: SavedBlock) -> None:
            nonlocal lo, hi
            probed.add(block.number)
            if block.timestamp < date:
                lo = max(lo, block.number)
            else:
                hi = min(hi, block.number)

        def answer() -> int:
            return hi if after else max(lo, 1)

        observe(self._first)
        observe(self._head)
        if hi - lo <= 1:
            return answer()

        predicted = math.ceil((date - self.first_timestamp) / self.block_time) + 1
        current = await self.get_block(min(max(predicted, lo + 1), hi - 1))
        observe(current)
        block_time = self.block_time

        while True:
            if await self._is_better_block(date, current, after, observe):
                return current.number
            if hi - lo <= 1:
                return answer()

            difference = date - current.timestamp
            skip = math.ceil(difference / block_time)
            if skip == 0:
                skip = -1 if difference < 0 else 1

            candidate = self._next_block(current.number, skip, probed)
            candidate = min(max(candidate, lo + 1), hi - 1)

            next_block = await self.get_block(candidate)
            observe(next_block)

            if next_block.number != current.number:
                estimate = abs(
                    (current.timestamp - next_block.timestamp) / (current.number - next_block.number)
                )
                if estimate > 0:
                    block_time = estimate

            current = next_block

    async def _is_better_block(self, date: float, block: SavedBlock, after: bool, observe) -> bool:
        if after:
            if block.timestamp < date:
                return False
            if block.number <= 1:
                return True
            previous = await self.get_block(block.number - 1)
            observe(previous)
            return previous.timestamp < date

        if block.timestamp >= date:
            return False
        following = await self.get_block(block.number + 1)
        observe(following)
        return following.timestamp >= date

    @staticmethod
    def _next_block(current: int, skip: int, probed: Set[int]) -> int:
        """current + skip, nudging skip toward zero past already probed numbers."""
        candidate = current + skip
        while candidate in probed and skip != 0:
            skip += 1 if skip < 0 else -1
            candidate = current + skip
        return candidate

    async def get_block(self, identifier: BlockIdentifier) -> SavedBlock:
        """Fetch a block, memoized by number or "latest"."""
        if not self.save_blocks:
            self.requests += 1
            return await self.provider.get_block(identifier)

        cached = self.saved_blocks.get(identifier)
        if cached is not None:
            return cached

        head = self.saved_blocks.get(LATEST)
        if isinstance(identifier, int) and head is not None and head.number <= identifier:
            return head

        block = await self.provider.get_block(identifier)
        self.requests += 1

        self.saved_blocks[identifier] = block
        if identifier == LATEST:
            self.saved_blocks[block.number] = block
        return block
