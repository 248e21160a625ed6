"""A simulated heap allocator with malloc, calloc, realloc and free, and printf-style number formatting."""

__version__ = "0.1.0"
__all__ = ["blocks", "heap", "numfmt"]