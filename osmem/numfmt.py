"""Number to text conversions used by the formatted output routines."""

from __future__ import annotations

import enum
import math
import struct

BUFFER_SIZE = 32
DEFAULT_FLOAT_PRECISION = 6
MAX_FLOAT = 1e9
_POW10 = (1.0, 10.0, 100.0, 1000.0, 10000.0, 100000.0, 1000000.0,
          10000000.0, 100000000.0, 1000000000.0)
_UINT64 = (1 << 64) - 1


class Flags(enum.IntFlag):
    """Conversion flags gathered from a format specifier."""

    ZEROPAD = 1 << 0
    LEFT = 1 << 1
    PLUS = 1 << 2
    SPACE = 1 << 3
    HASH = 1 << 4
    UPPERCASE = 1 << 5
    CHAR = 1 << 6
    SHORT = 1 << 7
    LONG = 1 << 8
    LONG_LONG = 1 << 9
    PRECISION = 1 << 10
    ADAPT_EXP = 1 << 11


def _emit_reversed(buf: list[str], width: int, flags: int) -> str:
    """Turn characters collected last-first into padded text."""
    text = "".join(reversed(buf))
    if not flags & Flags.LEFT and not flags & Flags.ZEROPAD:
        text = " " * max(width - len(buf), 0) + text
    if flags & Flags.LEFT:
        text = text.ljust(width)
    return text


def _sign(buf: list[str], negative: bool, flags: int) -> None:
    if len(buf) < BUFFER_SIZE:
        if negative:
            buf.append("-")
        elif flags & Flags.PLUS:
            buf.append("+")
        elif flags & Flags.SPACE:
            buf.append(" ")


def _finish_integer(buf: list[str], negative: bool, base: int, prec: int,
                    width: int, flags: int) -> str:
    if not flags & Flags.LEFT:
        if width and flags & Flags.ZEROPAD and (
                negative or flags & (Flags.PLUS | Flags.SPACE)):
            width -= 1
        while len(buf) < prec and len(buf) < BUFFER_SIZE:
            buf.append("0")
        while flags & Flags.ZEROPAD and len(buf) < width and len(buf) < BUFFER_SIZE:
            buf.append("0")

    if flags & Flags.HASH:
        if not flags & Flags.PRECISION and buf and (len(buf) == prec or len(buf) == width):
            buf.pop()
            if buf and base == 16:
                buf.pop()
        if base == 16 and not flags & Flags.UPPERCASE and len(buf) < BUFFER_SIZE:
            buf.append("x")
        elif base == 16 and flags & Flags.UPPERCASE and len(buf) < BUFFER_SIZE:
            buf.append("X")
        elif base == 2 and len(buf) < BUFFER_SIZE:
            buf.append("b")
        if len(buf) < BUFFER_SIZE:
            buf.append("0")

    _sign(buf, negative, flags)
    return _emit_reversed(buf, width, flags)


def format_integer(value: int, negative: bool, base: int, precision: int,
                   width: int, flags: int) -> str:
    """Format the magnitude ``value`` in ``base``, with sign taken from ``negative``."""
    if value < 0:
        raise ValueError("value must be a non-negative magnitude")
    if base < 2 or base > 36:
        raise ValueError("base must be between 2 and 36")
    flags = int(flags)
    if not value:
        flags &= ~int(Flags.HASH)

    letter = ord("A") if flags & Flags.UPPERCASE else ord("a")
    buf: list[str] = []
    if not flags & Flags.PRECISION or value:
        while True:
            digit = value % base
            buf.append(chr(ord("0") + digit) if digit < 10 else chr(letter + digit - 10))
            value //= base
            if not value or len(buf) >= BUFFER_SIZE:
                break

    return _finish_integer(buf, negative, base, precision, width, flags)


def format_fixed(value: float, precision: int, width: int, flags: int) -> str:
    """Format ``value`` in fixed decimal notation."""
    flags = int(flags)
    if math.isnan(value):
        return _emit_reversed(list("nan"), width, flags)
    if value == -math.inf:
        return _emit_reversed(list("fni-"), width, flags)
    if value == math.inf:
        return _emit_reversed(list("fni+" if flags & Flags.PLUS else "fni"), width, flags)

    if value > MAX_FLOAT or value < -MAX_FLOAT:
        return format_exponent(value, precision, width, flags)

    negative = value < 0
    if negative:
        value = 0 - value

    prec = precision if flags & Flags.PRECISION else DEFAULT_FLOAT_PRECISION
    buf: list[str] = []
    while len(buf) < BUFFER_SIZE and prec > 9:
        buf.append("0")
        prec -= 1

    whole = int(value)
    tmp = (value - whole) * _POW10[prec]
    frac = int(tmp)
    diff = tmp - frac

    if diff > 0.5:
        frac += 1
        if frac >= _POW10[prec]:
            frac = 0
            whole += 1
    elif diff < 0.5:
        pass
    elif frac == 0 or frac & 1:
        frac += 1

    if prec == 0:
        diff = value - float(whole)
        if (not diff < 0.5 or diff > 0.5) and whole & 1:
            whole += 1
    else:
        count = prec
        while len(buf) < BUFFER_SIZE:
            count -= 1
            buf.append(chr(48 + frac % 10))
            frac //= 10
            if not frac:
                break
        if count < 0:
            # the counter is unsigned: once it wraps, padding runs to the buffer end
            count = BUFFER_SIZE
        while len(buf) < BUFFER_SIZE and count > 0:
            count -= 1
            buf.append("0")
        if len(buf) < BUFFER_SIZE:
            buf.append(".")

    while len(buf) < BUFFER_SIZE:
        buf.append(chr(48 + whole % 10))
        whole //= 10
        if not whole:
            break

    if not flags & Flags.LEFT and flags & Flags.ZEROPAD:
        if width and (negative or flags & (Flags.PLUS | Flags.SPACE)):
            width -= 1
        while len(buf) < width and len(buf) < BUFFER_SIZE:
            buf.append("0")

    _sign(buf, negative, flags)
    return _emit_reversed(buf, width, flags)


def _bits(value: float) -> int:
    return int.from_bytes(struct.pack("<d", value), "little")


def _from_bits(bits: int) -> float:
    return struct.unpack("<d", (bits & _UINT64).to_bytes(8, "little"))[0]


def format_exponent(value: float, precision: int, width: int, flags: int) -> str:
    """Format ``value`` in exponential notation, or adaptively with ADAPT_EXP."""
    flags = int(flags)
    if math.isnan(value) or math.isinf(value):
        return format_fixed(value, precision, width, flags)

    negative = value < 0
    if negative:
        value = -value

    prec = precision if flags & Flags.PRECISION else DEFAULT_FLOAT_PRECISION

    bits = _bits(value)
    exp2 = ((bits >> 52) & 0x7FF) - 1023
    mantissa = _from_bits((bits & ((1 << 52) - 1)) | (1023 << 52))
    expval = int(0.1760912590558 + exp2 * 0.301029995663981
                 + (mantissa - 1.5) * 0.289529654602168)
    exp2 = int(expval * 3.321928094887362 + 0.5)
    z = expval * 2.302585092994046 - exp2 * 0.6931471805599453
    z2 = z * z
    scale = _from_bits((exp2 + 1023) << 52)
    scale *= 1 + 2 * z / (2 - z + (z2 / (6 + (z2 / (10 + z2 / 14)))))
    if value < scale:
        expval -= 1
        scale /= 10

    minwidth = 4 if -100 < expval < 100 else 5

    if flags & Flags.ADAPT_EXP:
        if 1e-4 <= value < 1e6:
            prec = prec - expval - 1 if prec > expval else 0
            flags |= int(Flags.PRECISION)
            minwidth = 0
            expval = 0
        elif prec > 0 and flags & Flags.PRECISION:
            prec -= 1

    fwidth = width - minwidth if width > minwidth else 0
    if flags & Flags.LEFT and minwidth:
        fwidth = 0

    if expval:
        value /= scale

    text = format_fixed(-value if negative else value, prec, fwidth,
                        flags & ~int(Flags.ADAPT_EXP))

    if minwidth:
        text += "E" if flags & Flags.UPPERCASE else "e"
        text += format_integer(abs(expval), expval < 0, 10, 0, minwidth - 1,
                               Flags.ZEROPAD | Flags.PLUS)
        if flags & Flags.LEFT:
            text = text.ljust(width)
    return text