import string

from yarb.crypto import compute_sha256


def test_empty_input():
    assert compute_sha256(b"") == "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"


def test_known_value():
    assert compute_sha256(b"abc") == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"


def test_lowercase_hex_of_fixed_length():
    digest = compute_sha256(b"some package content")
    assert len(digest) == 64
    assert set(digest) <= set(string.hexdigits.lower())


def test_deterministic_and_accepts_buffers():
    data = b"\x00\x01\x02payload"
    assert compute_sha256(data) == compute_sha256(bytearray(data))
    assert compute_sha256(data) == compute_sha256(memoryview(data))


def test_different_inputs_differ():
    assert compute_sha256(b"a") != compute_sha256(b"b")
    assert compute_sha256(b"a") == compute_sha256(b"a")