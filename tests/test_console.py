import random

from fountainstore.console import blob_hash, green, red, yellow


def test_green_tag():
    assert green("data_server") == "[\033[1m\033[32mdata_server\033[0m]"


def test_red_tag():
    assert red("data_server") == "[\033[1m\033[31mdata_server\033[0m]"


def test_yellow_tag():
    assert yellow("client") == "[\033[1m\033[33mclient\033[0m]"


def test_empty_blob_hashes_to_zero():
    assert blob_hash(b"") == 0


def test_single_zero_byte():
    assert blob_hash(b"\x00") == 0x9E3779B9


def test_hash_is_deterministic_and_64_bit():
    data = random.Random(1).randbytes(10240)
    first = blob_hash(data)
    assert first == blob_hash(bytearray(data))
    assert 0 <= first < 2**64


def test_hash_depends_on_content():
    data = bytearray(random.Random(2).randbytes(1024))
    before = blob_hash(data)
    data[500] ^= 0xFF
    assert blob_hash(data) != before
    assert blob_hash(b"\x01\x02") != blob_hash(b"\x02\x01")