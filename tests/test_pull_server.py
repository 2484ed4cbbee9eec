import socket

import pytest

from fountainstore.decoder import Decoder
from fountainstore.encoder import Encoder
from fountainstore.protocol import (
    PULL_BLOB_SIZE,
    MessageType,
    decode_push_packet,
    encode_hash_message,
    encode_symbol_packet,
)
from fountainstore.pull_server import USAGE, PullDataServer, main
from fountainstore.rng import MT19937
from fountainstore.symbol import Symbol

HASH = 4242


@pytest.fixture
def server():
    srv = PullDataServer(
        "127.0.0.1", 0, "127.0.0.1", 9,
        encoder=Encoder(MT19937(11), MT19937(12)),
        decoder=Decoder(MT19937(13)),
        timeout=1,
    )
    srv.request_delay = 60.0
    srv.request_interval = 60.0
    yield srv
    srv.close()


@pytest.fixture
def client():
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("127.0.0.1", 0))
    sock.settimeout(2.0)
    yield sock
    sock.close()


def _address(sock):
    return sock.getsockname()[:2]


def _control(msg_type, hash_code=HASH):
    return decode_push_packet(encode_hash_message(msg_type, hash_code))


def _receive(sock):
    data, _ = sock.recvfrom(4096)
    return data, decode_push_packet(data)


def _blob():
    return bytes(range(256)) * (PULL_BLOB_SIZE // 256)


def test_start_storage_answers_ok_and_marks_pending(server, client):
    server.handle_request(_control(MessageType.START_STORAGE), _address(client))
    data, reply = _receive(client)
    assert reply.msg_type == MessageType.START_STORAGE_OK
    assert reply.hash_code == HASH
    assert reply.payload_length == 4
    assert data[4] == 0x06
    assert server.pending_storage[HASH] == _address(client)
    assert HASH in server.decodings


def test_send_data_request_sends_send_next_while_pending(server, client):
    server.handle_request(_control(MessageType.START_STORAGE), _address(client))
    _receive(client)
    assert server.send_data_request(HASH) is True
    _, request = _receive(client)
    assert request.msg_type == MessageType.SEND_NEXT
    assert request.hash_code == HASH


def test_send_data_request_stops_when_not_pending(server, client):
    assert server.send_data_request(HASH) is False
    client.settimeout(0.2)
    with pytest.raises(socket.timeout):
        client.recvfrom(4096)


def test_storage_round_trip(server, client):
    blob = _blob()
    sender = _address(client)
    server.handle_request(_control(MessageType.START_STORAGE), sender)
    _receive(client)

    encoder = Encoder(MT19937(1), MT19937(2))
    state = encoder.init_state(b"", len(blob), blob)
    for _ in range(3000):
        symbol = encoder.encode_next(state)
        packet = decode_push_packet(
            encode_symbol_packet(HASH, len(blob), symbol.seed, symbol.data)
        )
        server.handle_request(packet, sender)
        if HASH in server.storage:
            break

    assert server.storage[HASH] == blob
    assert HASH not in server.pending_storage
    _, reply = _receive(client)
    assert reply.msg_type == MessageType.STOP_STORAGE
    assert reply.hash_code == HASH

    server.handle_request(_control(MessageType.STOP_STORAGE_OK), sender)
    assert HASH not in server.decodings
    assert server.send_data_request(HASH) is False


def test_fetch_round_trip(server, client):
    blob = _blob()
    sender = _address(client)
    server.storage[HASH] = blob

    server.handle_request(_control(MessageType.START_FETCH), sender)
    _, reply = _receive(client)
    assert reply.msg_type == MessageType.START_FETCH_OK
    assert HASH in server.encodings

    decoder = Decoder(MT19937(3))
    state = decoder.init_state(b"", len(blob))
    decoded = False
    for _ in range(3000):
        server.handle_request(_control(MessageType.SEND_NEXT), sender)
        _, packet = _receive(client)
        assert packet.msg_type == MessageType.SYMBOL_DATA
        assert packet.blob_size == PULL_BLOB_SIZE
        symbol = Symbol(seed=packet.seed, data=bytearray(packet.symbol_data))
        if decoder.decode_next(state, symbol):
            decoded = True
            break
    assert decoded
    assert bytes(state.blob) == blob

    server.handle_request(_control(MessageType.STOP_FETCH), sender)
    _, reply = _receive(client)
    assert reply.msg_type == MessageType.STOP_FETCH_OK
    assert HASH not in server.encodings


def test_send_next_without_encoding_sends_nothing(server, client):
    server.handle_request(_control(MessageType.SEND_NEXT), _address(client))
    client.settimeout(0.2)
    with pytest.raises(socket.timeout):
        client.recvfrom(4096)


def test_start_fetch_of_unknown_blob_creates_no_encoding(server, client):
    server.handle_request(_control(MessageType.START_FETCH), _address(client))
    _, reply = _receive(client)
    assert reply.msg_type == MessageType.START_FETCH_OK
    assert HASH not in server.encodings


def test_main_rejects_wrong_argument_count(capsys):
    assert main(["127.0.0.1", "1"]) == 1
    assert USAGE in capsys.readouterr().out


def test_main_rejects_bad_port(capsys):
    assert main(["127.0.0.1", "70000", "127.0.0.1", "1", "1"]) == 1
    assert "port out of range" in capsys.readouterr().out