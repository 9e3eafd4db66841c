"""Context-triggered piecewise hashing (spamsum style) and digest comparison."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

ROLLING_WINDOW = 7
MIN_BLOCKSIZE = 3
HASH_PRIME = 0x01000193
HASH_INIT = 0x28021967
NUM_BLOCKHASHES = 31
SPAMSUM_LENGTH = 64

_MASK = 0xFFFFFFFF
_B64 = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"


def _block_size(index: int) -> int:
    return MIN_BLOCKSIZE << index


def _sum_hash(c: int, h: int) -> int:
    return ((h * HASH_PRIME) & _MASK) ^ c


class _RollingHash:
    """Rolling hash over the last ``ROLLING_WINDOW`` bytes."""

    def __init__(self) -> None:
        self.window = [0] * ROLLING_WINDOW
        self.h1 = 0
        self.h2 = 0
        self.h3 = 0
        self.n = 0

    def update(self, c: int) -> None:
        slot = self.n % ROLLING_WINDOW
        self.h2 = (self.h2 - self.h1 + ROLLING_WINDOW * c) & _MASK
        self.h1 = (self.h1 + c - self.window[slot]) & _MASK
        self.window[slot] = c
        self.n += 1
        self.h3 = ((self.h3 << 5) ^ c) & _MASK

    @property
    def value(self) -> int:
        return (self.h1 + self.h2 + self.h3) & _MASK


@dataclass
class _BlockHash:
    h: int = HASH_INIT
    halfh: int = HASH_INIT
    digest: list[str] = field(default_factory=list)
    tail: str = ""
    halfdigest: str = ""


class _FuzzyState:
    """Hashing state for all candidate block sizes at once."""

    def __init__(self, total_size: int) -> None:
        self.total_size = total_size
        self.bhstart = 0
        self.blocks = [_BlockHash()]
        self.roll = _RollingHash()

    def _fork(self) -> None:
        if len(self.blocks) >= NUM_BLOCKHASHES:
            return
        last = self.blocks[-1]
        self.blocks.append(_BlockHash(h=last.h, halfh=last.halfh))

    def _reduce(self) -> None:
        if len(self.blocks) - self.bhstart < 2:
            return
        if _block_size(self.bhstart) * SPAMSUM_LENGTH >= self.total_size:
            return
        if len(self.blocks[self.bhstart + 1].digest) < SPAMSUM_LENGTH // 2:
            return
        self.bhstart += 1

    def step(self, c: int) -> None:
        self.roll.update(c)
        h = self.roll.value
        for block in self.blocks[self.bhstart:]:
            block.h = _sum_hash(c, block.h)
            block.halfh = _sum_hash(c, block.halfh)

        i = self.bhstart
        while i < len(self.blocks):
            size = _block_size(i)
            if h % size != size - 1:
                break
            block = self.blocks[i]
            if not block.digest:
                self._fork()
            char = _B64[block.h % 64]
            block.halfdigest = _B64[block.halfh % 64]
            if len(block.digest) < SPAMSUM_LENGTH - 1:
                block.digest.append(char)
                block.tail = ""
                block.h = HASH_INIT
                if len(block.digest) < SPAMSUM_LENGTH // 2:
                    block.halfh = HASH_INIT
                    block.halfdigest = ""
            else:
                block.tail = char
                self._reduce()
            i += 1

    def digest(self) -> str:
        bi = self.bhstart
        h = self.roll.value
        while _block_size(bi) * SPAMSUM_LENGTH < self.total_size:
            bi += 1
            if bi >= NUM_BLOCKHASHES:
                raise ValueError("input is too large to hash")
        while bi >= len(self.blocks):
            bi -= 1
        while bi > self.bhstart and len(self.blocks[bi].digest) < SPAMSUM_LENGTH // 2:
            bi -= 1

        block = self.blocks[bi]
        first = "".join(block.digest)
        if h != 0:
            first += _B64[block.h % 64]
        elif block.tail:
            first += block.tail

        if bi < len(self.blocks) - 1:
            following = self.blocks[bi + 1]
            second = "".join(following.digest[: SPAMSUM_LENGTH // 2 - 1])
            if h != 0:
                second += _B64[following.halfh % 64]
            elif following.halfdigest:
                second += following.halfdigest
        elif h != 0:
            second = _B64[block.h % 64]
        else:
            second = ""

        return f"{_block_size(bi)}:{first}:{second}"


def fuzzy_hash(data: Union[str, bytes]) -> str:
    """Return the ``blocksize:digest:digest`` fuzzy hash of ``data``."""
    raw = data.encode("utf-8") if isinstance(data, str) else bytes(data)
    state = _FuzzyState(len(raw))
    for byte in raw:
        state.step(byte)
    return state.digest()


def _eliminate_sequences(text: str) -> str:
    """Shorten runs of one character to at most three."""
    kept = list(text[:3])
    for i in range(3, len(text)):
        char = text[i]
        if char != text[i - 1] or char != text[i - 2] or char != text[i - 3]:
            kept.append(char)
    return "".join(kept)


def _has_common_substring(first: str, second: str) -> bool:
    if len(first) < ROLLING_WINDOW or len(second) < ROLLING_WINDOW:
        return False
    windows = {
        first[i : i + ROLLING_WINDOW] for i in range(len(first) - ROLLING_WINDOW + 1)
    }
    return any(
        second[i : i + ROLLING_WINDOW] in windows
        for i in range(len(second) - ROLLING_WINDOW + 1)
    )


def _edit_distance(first: str, second: str) -> int:
    """Edit distance with insert/remove costing 1 and replace costing 2."""
    previous = list(range(len(second) + 1))
    for i, a in enumerate(first, start=1):
        current = [i]
        for j, b in enumerate(second, start=1):
            replace = previous[j - 1] + (0 if a == b else 2)
            current.append(min(previous[j] + 1, current[j - 1] + 1, replace))
        previous = current
    return previous[-1]


def _score_strings(first: str, second: str, block_size: int) -> int:
    if len(first) > SPAMSUM_LENGTH or len(second) > SPAMSUM_LENGTH:
        return 0
    if not _has_common_substring(first, second):
        return 0
    score = _edit_distance(first, second)
    score = (score * SPAMSUM_LENGTH) // (len(first) + len(second))
    score = (100 * score) // SPAMSUM_LENGTH
    if score >= 100:
        return 0
    score = 100 - score
    if block_size >= (99 + ROLLING_WINDOW) // ROLLING_WINDOW * MIN_BLOCKSIZE:
        return score
    cap = block_size // MIN_BLOCKSIZE * min(len(first), len(second))
    return min(score, cap)


def _block_size_of(signature: str) -> int:
    prefix, sep, _ = signature.partition(":")
    if not sep or not prefix.isdigit():
        raise ValueError(f"malformed fuzzy hash: {signature!r}")
    return int(prefix)


def _digests_of(signature: str) -> tuple[str, str]:
    _, sep, rest = signature.partition(":")
    first, sep2, second = rest.partition(":")
    if not sep or not sep2:
        raise ValueError(f"malformed fuzzy hash: {signature!r}")
    second = second.split(",", 1)[0]
    if len(first) > SPAMSUM_LENGTH or len(second) > SPAMSUM_LENGTH:
        raise ValueError(f"malformed fuzzy hash: {signature!r}")
    return _eliminate_sequences(first), _eliminate_sequences(second)


def compare(first: str, second: str) -> int:
    """Similarity of two fuzzy hashes from 0 to 100; ``ValueError`` if either is malformed."""
    size1 = _block_size_of(first)
    size2 = _block_size_of(second)
    if size1 != size2 and size1 * 2 != size2 and (size1 % 2 == 1 or size1 // 2 != size2):
        return 0

    s1b1, s1b2 = _digests_of(first)
    s2b1, s2b2 = _digests_of(second)

    if size1 == size2 and s1b1 == s2b1 and s1b2 == s2b2:
        return 100

    if size1 == size2:
        return max(
            _score_strings(s1b1, s2b1, size1),
            _score_strings(s1b2, s2b2, size1 * 2),
        )
    if size1 * 2 == size2:
        return _score_strings(s2b1, s1b2, size2)
    return _score_strings(s1b1, s2b2, size1)