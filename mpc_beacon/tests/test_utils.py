import hashlib

import pytest

from mpc_beacon.utils.bytes import chunks, ensure_len, from_hex
from mpc_beacon.utils.hash import Blake2bTranscript, blake2b_512, sha256_iter


def test_from_hex_strict():
    assert from_hex("") == b""
    assert from_hex("00ffAB") == b"\x00\xff\xab"
    for bad in ("0x00", "0", "00 ", "gg", "0 0"):
        with pytest.raises(ValueError):
            from_hex(bad)
    with pytest.raises(TypeError):
        from_hex(b"00")


def test_ensure_len_and_chunks():
    assert ensure_len(bytearray(4), 4) == bytes(4)
    with pytest.raises(ValueError, match="seed"):
        ensure_len(b"\x00", 4, name="seed")
    assert list(chunks(bytes(range(10)), 4)) == [bytes([0, 1, 2, 3]), bytes([4, 5, 6, 7]), bytes([8, 9])]
    with pytest.raises(ValueError):
        list(chunks(b"x", 0))


def test_sha256_iter():
    assert sha256_iter(b"abc", 0) == b"abc"
    assert sha256_iter(b"abc", 2) == hashlib.sha256(hashlib.sha256(b"abc").digest()).digest()
    with pytest.raises(ValueError):
        sha256_iter(b"", -1)


def test_blake2b_transcript():
    tx = Blake2bTranscript(b"cs").absorb(b"a")
    first = tx.digest()
    assert first == tx.digest()
    assert first == blake2b_512(b"csa")
    tx.absorb(b"b")
    assert tx.digest() == blake2b_512(b"csab")
    assert len(first) == 64
