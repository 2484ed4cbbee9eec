import random

import pytest

from fountainstore.decoder import Decoder
from fountainstore.encoder import Encoder, EncodingState
from fountainstore.protocol import BLOB_ID_SIZE, PULL_BLOB_SIZE
from fountainstore.rng import MT19937
from fountainstore.symbol import SYMBOL_SIZE, Symbol
from fountainstore.utils import number_of_fragments, size_of_last_fragment

BLOB_ID = bytes(BLOB_ID_SIZE)


def _blob(size: int, seed: int = 1) -> bytes:
    return random.Random(seed).randbytes(size)


def _encoder(seed: int = 7) -> Encoder:
    return Encoder(generator=MT19937(seed), seeder=MT19937(seed + 1))


def test_init_state_fragments_match_utils():
    encoder = _encoder()
    state = encoder.init_state(BLOB_ID, 2500, _blob(2500))
    assert isinstance(state, EncodingState)
    assert state.number_of_fragments == number_of_fragments(2500, SYMBOL_SIZE)
    assert state.size_of_last_fragment == size_of_last_fragment(2500, SYMBOL_SIZE)
    assert state.blob_size == 2500


def test_init_state_shares_distribution_per_fragment_count():
    encoder = _encoder()
    first = encoder.init_state(BLOB_ID, PULL_BLOB_SIZE, _blob(PULL_BLOB_SIZE))
    second = encoder.init_state(BLOB_ID, PULL_BLOB_SIZE, _blob(PULL_BLOB_SIZE, seed=2))
    other = encoder.init_state(BLOB_ID, 2048, _blob(2048))
    assert first.degree_calculator is second.degree_calculator
    assert other.degree_calculator is not first.degree_calculator


def test_init_state_rejects_short_blob():
    with pytest.raises(ValueError):
        _encoder().init_state(BLOB_ID, 2048, bytes(100))


def test_fragment_out_of_range():
    state = _encoder().init_state(BLOB_ID, 2048, _blob(2048))
    with pytest.raises(IndexError):
        state.fragment(state.number_of_fragments + 1)


def test_single_fragment_symbol_is_padded_blob():
    blob = _blob(100)
    encoder = _encoder()
    state = encoder.init_state(BLOB_ID, 100, blob)
    for _ in range(5):
        symbol = encoder.encode_next(state)
        assert symbol.degree == 1
        assert bytes(symbol.data) == blob + bytes(SYMBOL_SIZE - 100)


def test_same_seeds_give_same_symbols():
    blob = _blob(4096)
    first, second = _encoder(3), _encoder(3)
    state_a = first.init_state(BLOB_ID, 4096, blob)
    state_b = second.init_state(BLOB_ID, 4096, blob)
    for _ in range(10):
        a = first.encode_next(state_a)
        b = second.encode_next(state_b)
        assert (a.seed, a.degree, bytes(a.data)) == (b.seed, b.degree, bytes(b.data))


def test_degrees_within_range():
    encoder = _encoder()
    state = encoder.init_state(BLOB_ID, 4096, _blob(4096))
    for _ in range(50):
        symbol = encoder.encode_next(state)
        assert 1 <= symbol.degree <= state.number_of_fragments
        assert len(symbol.data) == SYMBOL_SIZE


def test_decoder_recomputes_degree_from_seed():
    blob = _blob(4096)
    encoder = _encoder()
    state = encoder.init_state(BLOB_ID, 4096, blob)
    decoder = Decoder(MT19937(99))
    for _ in range(5):
        symbol = encoder.encode_next(state)
        dec_state = decoder.init_state(BLOB_ID, 4096)
        copy = Symbol(seed=symbol.seed, data=bytes(symbol.data))
        decoder.decode_next(dec_state, copy)
        assert copy.degree == symbol.degree


def test_round_trip_through_decoder():
    blob = _blob(PULL_BLOB_SIZE, seed=5)
    encoder = _encoder(11)
    state = encoder.init_state(BLOB_ID, PULL_BLOB_SIZE, blob)
    decoder = Decoder(MT19937(12))
    dec_state = decoder.init_state(BLOB_ID, PULL_BLOB_SIZE)
    done = False
    for _ in range(1000):
        symbol = encoder.encode_next(state)
        if decoder.decode_next(dec_state, Symbol(seed=symbol.seed, data=bytes(symbol.data))):
            done = True
            break
    assert done
    assert bytes(dec_state.blob) == blob