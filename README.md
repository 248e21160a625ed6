# osmem

`osmem` simulates a small memory allocator in pure Python. A `Heap` manages a
virtual address space with the familiar calls `malloc`, `calloc`, `realloc`
and `free`, and keeps the block list you would expect from a classic
implementation:

- small requests come from a program break that is preallocated in one
  128 KiB chunk and grown on demand;
- requests at or above the threshold (128 KiB for `malloc` and `realloc`,
  one page for `calloc`) get their own mapped block;
- free neighbours are coalesced, the best-fitting free block is reused and
  split when the remainder can hold another block, and the last block on the
  break is extended in place where it can be;
- every size is rounded up to a multiple of 8.

Because addresses are plain integers and the heap's bytes live in Python
objects, you can look at every block, read and write payloads, and check how
the allocator placed things.

## Installation

```
pip install osmem
```

Python 3.10 or later is required. The package has no dependencies.

## Using the heap

```python
from osmem.heap import Heap

heap = Heap(page_size=4096)

a = heap.malloc(100)              # address of a 104-byte payload
heap.write(a, b"hello")
assert heap.read(a, 5) == b"hello"

b = heap.calloc(10, 10)           # zero-filled
a = heap.realloc(a, 2000)         # contents up to the old size are kept

for block in heap.blocks():
    print(block.status, block.size)

heap.free(a)
heap.free(b)
```

`malloc(0)` and `calloc` with a zero count or size return `None`, as does
`realloc` on a block that is already free. `realloc(None, n)` behaves like
`malloc(n)`, and `realloc(address, 0)` frees the block and returns `None`.
`free(None)` does nothing. When the simulated break or mapping cannot be
satisfied the heap raises `OutOfMemoryError`.

`block_at(address)` returns the metadata `Block` for a payload address, with
its `size`, `status` (`Status.FREE`, `Status.ALLOC` or `Status.MAPPED`),
`payload` and `end`; it raises `ValueError` when no block starts there.
`read` and `write` raise `ValueError` for addresses outside the memory the
heap currently holds. The helper `align(size)` from `osmem.blocks` rounds a
size up to the 8-byte alignment that the heap uses.

## Number formatting

`osmem.numfmt` turns numbers into text the way printf-style conversions do,
driven by the `Flags` options (`ZEROPAD`, `LEFT`, `PLUS`, `SPACE`, `HASH`,
`UPPERCASE`, `PRECISION`, `ADAPT_EXP` and the length flags):

```python
from osmem.numfmt import Flags, format_exponent, format_fixed, format_integer

format_integer(255, False, 16, 0, 0, Flags.HASH)                 # '0xff'
format_integer(42, True, 10, 0, 0, 0)                            # '-42'
format_fixed(3.14159, 3, 8, Flags.ZEROPAD | Flags.PRECISION)     # '0003.142'
format_exponent(12345.678, 2, 0, Flags.PRECISION)                # '1.23e+04'
```

`format_integer` takes a non-negative magnitude and a separate `negative`
flag, and a base from 2 to 36. `format_fixed` switches to exponential
notation for values beyond ±1e9, and `format_exponent` with `ADAPT_EXP`
behaves like `%g`. Digit buffers are capped at 32 characters, so very wide
zero padding or precision is cut short.

## What it does not do

The heap is a simulation: it does not hand out real process memory and
cannot back Python objects. There is no format-string parser or `printf`
front end; `osmem.numfmt` covers the conversion of single numbers only, and
the caller chooses the flags, width and precision for each value.