"""Block metadata shared by the heap allocator."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Optional

ALIGNMENT = 8
METADATA_SIZE = 32


def align(size: int) -> int:
    """Round ``size`` up to the next multiple of the alignment."""
    return (size + ALIGNMENT - 1) & ~(ALIGNMENT - 1)


class Status(enum.IntEnum):
    """State of a memory block."""

    FREE = 0
    ALLOC = 1
    MAPPED = 2


@dataclass(eq=False)
class Block:
    """Header of one block; ``address`` is where the header starts."""

    address: int
    size: int
    status: Status
    prev: Optional["Block"] = field(default=None, repr=False)
    next: Optional["Block"] = field(default=None, repr=False)

    @property
    def payload(self) -> int:
        """Address handed out to the caller."""
        return self.address + METADATA_SIZE

    @property
    def end(self) -> int:
        """First address past the block's payload."""
        return self.payload + self.size