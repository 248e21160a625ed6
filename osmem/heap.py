"""A simulated heap with a break area and mapped regions."""

from __future__ import annotations

from typing import Dict, Iterator, Optional

from .blocks import METADATA_SIZE, Block, Status, align

KB = 1024
MMAP_THRESHOLD = 128 * KB
PREALLOC_SIZE = 128 * KB
SIZE_MAX = 2**64 - 1
MAX_REQUEST = 1 << 40

BRK_START = 0x1000_0000
MMAP_START = 0x7F00_0000_0000


class OutOfMemoryError(MemoryError):
    """The simulated system could not provide more memory."""


class Heap:
    """Best-fit allocator over a growing break area and anonymous mappings."""

    def __init__(self, page_size: int = 4096) -> None:
        self.page_size = page_size
        self._head: Optional[Block] = None
        self._brk = bytearray()
        self._maps: Dict[int, bytearray] = {}
        self._next_map = MMAP_START
        self._headers: Dict[int, Block] = {}

    # -- simulated system calls -------------------------------------------

    def _sbrk(self, increment: int) -> int:
        if increment < 0 or increment > MAX_REQUEST:
            raise OutOfMemoryError("sbrk failed to allocate memory")
        address = BRK_START + len(self._brk)
        try:
            self._brk.extend(bytes(increment))
        except (MemoryError, OverflowError) as exc:
            raise OutOfMemoryError("sbrk failed to allocate memory") from exc
        return address

    def _mmap(self, length: int) -> int:
        if length > MAX_REQUEST:
            raise OutOfMemoryError("mmap failed to allocate memory")
        try:
            region = bytearray(length)
        except (MemoryError, OverflowError) as exc:
            raise OutOfMemoryError("mmap failed to allocate memory") from exc
        address = self._next_map
        self._maps[address] = region
        pages = -(-length // self.page_size) + 1
        self._next_map += pages * self.page_size
        return address

    def _region(self, address: int, length: int):
        if BRK_START <= address and address + length <= BRK_START + len(self._brk):
            return self._brk, address - BRK_START
        for start, region in self._maps.items():
            if start <= address and address + length <= start + len(region):
                return region, address - start
        raise ValueError(f"address {address:#x} is outside allocated memory")

    # -- block list management --------------------------------------------

    def _request_space(self, previous: Optional[Block], size: int, threshold: int) -> Block:
        size = align(size)
        if METADATA_SIZE + size < threshold:
            if self._head is None:
                address = self._sbrk(PREALLOC_SIZE)
                allocated = PREALLOC_SIZE - METADATA_SIZE
            else:
                address = self._sbrk(size + METADATA_SIZE)
                allocated = size
            status = Status.ALLOC
        else:
            address = self._mmap(size + METADATA_SIZE)
            allocated = size
            status = Status.MAPPED
        block = Block(address, allocated, status, prev=previous)
        if previous is not None:
            previous.next = block
        self._headers[address] = block
        return block

    def _coalesce(self) -> None:
        block = self._head
        while block is not None and block.next is not None:
            nxt = block.next
            if block.status == Status.FREE and nxt.status == Status.FREE:
                block.size += align(nxt.size + METADATA_SIZE)
                block.next = nxt.next
                if block.next is not None:
                    block.next.prev = block
                self._headers.pop(nxt.address, None)
                continue
            block = nxt

    def _find_best(self, size: int, threshold: int):
        self._coalesce()
        best = None
        previous = self._head
        for block in self.blocks():
            if block.status == Status.FREE and block.size >= size and size < threshold:
                if best is None or block.size < best.size:
                    best = block
            previous = block
        return best, previous

    def _split(self, block: Block, size: int) -> None:
        size = align(size)
        if block.size >= size + METADATA_SIZE + 1:
            new = Block(
                block.address + METADATA_SIZE + size,
                align(block.size - size - METADATA_SIZE),
                Status.FREE,
                prev=block,
                next=block.next,
            )
            if new.next is not None:
                new.next.prev = new
            block.size = size
            block.next = new
            self._headers[new.address] = new

    def _expand(self, block: Block, size: int, merge_next: bool) -> Optional[Block]:
        nxt = block.next
        size = align(size)
        if merge_next and nxt is not None and nxt.status == Status.FREE:
            if block.size + nxt.size + METADATA_SIZE >= size:
                block.size += nxt.size + METADATA_SIZE
                block.next = nxt.next
                if nxt.next is not None:
                    nxt.next.prev = block
                self._headers.pop(nxt.address, None)
                return block
        cursor = nxt
        while cursor is not None:
            if cursor.status != Status.MAPPED:
                return None
            cursor = cursor.next
        increment = align(size - block.size)
        self._sbrk(increment)
        block.size += increment
        return block

    def _allocate(self, size: int, threshold: int) -> Block:
        if self._head is None:
            block = self._request_space(None, size, threshold)
            self._head = block
            if block.size > size:
                self._split(block, size)
            return block
        block, previous = self._find_best(size, threshold)
        if block is not None:
            if block.size > size:
                self._split(block, size)
            block.status = Status.ALLOC
            return block
        last = self._head
        for candidate in self.blocks():
            if candidate.status != Status.MAPPED:
                last = candidate
        if last.status == Status.FREE and size < threshold:
            self._expand(last, size, merge_next=False)
            last.status = Status.ALLOC
            return last
        return self._request_space(previous, size, threshold)

    # -- public interface -------------------------------------------------

    def malloc(self, size: int) -> Optional[int]:
        """Allocate ``size`` bytes; ``None`` for a non-positive size."""
        if size <= 0:
            return None
        return self._allocate(align(size), MMAP_THRESHOLD).payload

    def calloc(self, nmemb: int, size: int) -> Optional[int]:
        """Allocate a zeroed array of ``nmemb`` items of ``size`` bytes."""
        if not nmemb or not size:
            return None
        if nmemb > SIZE_MAX // size:
            return None
        total = nmemb * size
        if total <= 0:
            return None
        block = self._allocate(align(total), self.page_size)
        region, offset = self._region(block.payload, block.size)
        region[offset:offset + block.size] = bytes(block.size)
        return block.payload

    def free(self, address: Optional[int]) -> None:
        """Release a block; mapped blocks are unmapped at once."""
        if address is None:
            return
        block = self.block_at(address)
        if block.status == Status.MAPPED:
            if block.next is None and block.prev is None:
                self._head = None
            if block.next is not None:
                block.next.prev = block.prev
            if block.prev is not None:
                block.prev.next = block.next
            if self._head is block:
                self._head = block.next
            del self._maps[block.address]
            del self._headers[block.address]
        else:
            block.status = Status.FREE

    def _move(self, block: Block, address: int, size: int, movable: int) -> Optional[int]:
        if block.next is None and block.prev is None:
            self._head = None
        data = self.read(address, movable)
        new = self.malloc(size)
        if new is None:
            return None
        self.write(new, data)
        self.free(address)
        return new

    def realloc(self, address: Optional[int], size: int) -> Optional[int]:
        """Resize a block, moving it if needed; ``None`` for free blocks."""
        if address is None:
            return self.malloc(size)
        if size == 0:
            self.free(address)
            return None
        block = self.block_at(address)
        if block.status == Status.FREE:
            return None
        size = align(size)
        if block.size == size:
            return address
        movable = min(block.size, size)
        if block.status == Status.MAPPED:
            return self._move(block, address, size, movable)
        if block.size > size:
            self._split(block, size)
            return address
        if self._expand(block, size, merge_next=True) is not None:
            block.status = Status.ALLOC
            return address
        return self._move(block, address, size, movable)

    def read(self, address: int, size: int) -> bytes:
        """Return ``size`` bytes starting at ``address``."""
        region, offset = self._region(address, size)
        return bytes(region[offset:offset + size])

    def write(self, address: int, data: bytes) -> None:
        """Store ``data`` starting at ``address``."""
        region, offset = self._region(address, len(data))
        region[offset:offset + len(data)] = data

    def block_at(self, address: int) -> Block:
        """Return the block whose payload starts at ``address``."""
        try:
            return self._headers[address - METADATA_SIZE]
        except KeyError:
            raise ValueError(f"no block at address {address:#x}") from None

    def blocks(self) -> Iterator[Block]:
        """Iterate over the block list in order."""
        block = self._head
        while block is not None:
            yield block
            block = block.next