import pytest

from osmem.blocks import METADATA_SIZE, Block, Status, align


@pytest.mark.parametrize("size", [1, 7, 8, 9, 1986, 4000, 131072])
def test_align_is_smallest_multiple_of_eight(size):
    result = align(size)
    assert result % 8 == 0
    assert size <= result < size + 8


def test_align_pins():
    assert align(0) == 0
    assert align(1) == 8
    assert align(8) == 8


@pytest.mark.parametrize(
    "value,expected",
    [(0, Status.FREE), (1, Status.ALLOC), (2, Status.MAPPED)],
)
def test_status_values_match_header(value, expected):
    assert Status(value) is expected
    block = Block(address=0, size=8, status=Status(value))
    assert block.status == value


def test_block_payload_follows_header():
    block = Block(address=4096, size=64, status=Status.ALLOC)
    assert block.payload == 4096 + METADATA_SIZE
    assert block.end == block.payload + 64


def test_block_repr_does_not_recurse():
    a = Block(address=0, size=8, status=Status.FREE)
    b = Block(address=40, size=8, status=Status.ALLOC, prev=a)
    a.next = b
    assert "address=40" in repr(b)