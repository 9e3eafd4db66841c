import random
import re

import pytest

from ferox.fuzzyhash import compare, fuzzy_hash

DIGEST = re.compile(r"^(\d+):([A-Za-z0-9+/]*):([A-Za-z0-9+/]*)$")


def _data(size, seed=1):
    return random.Random(seed).randbytes(size)


def test_empty_input_has_minimal_digest():
    assert fuzzy_hash(b"") == "3::"


def test_str_and_bytes_hash_the_same():
    text = "some data to hash for the purposes of running a test"
    assert fuzzy_hash(text) == fuzzy_hash(text.encode("utf-8"))


@pytest.mark.parametrize("size", [10, 500, 5000, 40000])
def test_digest_shape(size):
    match = DIGEST.match(fuzzy_hash(_data(size)))
    assert match is not None
    block_size = int(match.group(1))
    assert block_size % 3 == 0
    quotient = block_size // 3
    assert quotient & (quotient - 1) == 0
    assert len(match.group(2)) <= 64
    assert len(match.group(3)) <= 32


def test_hash_is_deterministic():
    data = _data(3000, seed=7)
    assert fuzzy_hash(data) == fuzzy_hash(bytes(data))


def test_identical_hashes_score_100():
    digest = fuzzy_hash(_data(4000, seed=3))
    assert compare(digest, digest) == 100


def test_small_change_scores_high():
    data = bytearray(_data(5000, seed=11))
    changed = bytearray(data)
    changed[2500] ^= 0xFF
    score = compare(fuzzy_hash(bytes(data)), fuzzy_hash(bytes(changed)))
    assert 50 <= score <= 100


def test_compare_is_symmetric_for_same_block_size():
    data = bytearray(_data(5000, seed=5))
    changed = bytearray(data)
    changed[100:110] = b"x" * 10
    a, b = fuzzy_hash(bytes(data)), fuzzy_hash(bytes(changed))
    assert compare(a, b) == compare(b, a)


def test_incompatible_block_sizes_score_zero():
    assert compare("3:ABCDEFGHIJ:KLMN", "48:ABCDEFGHIJ:KLMN") == 0


def test_no_common_substring_scores_zero():
    assert compare("3:ABCDEFGH:IJ", "3:abcdefgh:ij") == 0


def test_long_runs_are_collapsed_before_comparison():
    assert compare("3:AAAAAAAAAB:", "3:AAAB:") == 100


@pytest.mark.parametrize("bad", ["", "nonsense", "3:only-one-part", "x:abc:def"])
def test_malformed_hash_raises(bad):
    with pytest.raises(ValueError):
        compare(bad, "3:ABCDEFGH:IJ")