"""Synthesized block locations.

The backend stripes files over objects and picks servers itself, so there
is no real topology to report. Locations are laid out on the native block
grid with empty host lists; schedulers can still use them to split work.
"""

from __future__ import annotations

import logging

from .base import BlockLocation
from .errors import InvalidArgumentError

logger = logging.getLogger(__name__)


def synthesize_block_locations(start: int, length: int, block_size: int) -> list[BlockLocation]:
    """Lay out ``ceil(length / block_size)`` block descriptors.

    Descriptor ``i`` starts at ``start + i * block_size - start % block_size``,
    so the first one is aligned to the block containing ``start`` rather than
    to ``start`` itself. Every descriptor spans a full ``block_size``.

    Args:
        start: Offset of the first byte of interest.
        length: Number of bytes of interest.
        block_size: Native block size, must be > 0.

    Returns:
        The descriptors, empty when ``length`` is 0.
    """
    if block_size <= 0:
        raise InvalidArgumentError(f"Block size must be positive, got {block_size}")
    if start < 0 or length < 0:
        raise InvalidArgumentError(f"Invalid range: start={start} length={length}")

    count = -(-length // block_size)
    aligned = start - (start % block_size)
    locations = []
    for i in range(count):
        location = BlockLocation(offset=aligned + i * block_size, length=block_size)
        logger.debug("block location[%d]: %s", i, location)
        locations.append(location)
    return locations
