"""Wire format of the registration and push/pull datagram protocol."""

from __future__ import annotations

import ipaddress
import struct
from dataclasses import dataclass
from enum import IntEnum

from fountainstore.symbol import SYMBOL_SIZE


class MessageType(IntEnum):
    REGISTRATION_REQ = 0x00
    REGISTRATION_RESP = 0x01
    START_STORAGE = 0x05
    START_STORAGE_OK = 0x06
    START_FETCH = 0x07
    START_FETCH_OK = 0x08
    SYMBOL_DATA = 0x09
    STOP_STORAGE = 0x10
    STOP_STORAGE_OK = 0x11
    STOP_FETCH = 0x12
    STOP_FETCH_OK = 0x13
    SEND_NEXT = 0x15


OK = 0x20
BLOB_ID_SIZE = 32
PULL_BLOB_SIZE = 1024 * 10
PUSH_BLOB_SIZE = 1024 * 100
PADDING = 8

_HEADER = struct.Struct("<IB")
_REGISTRATION_REQUEST = struct.Struct("<IH")
_HASH = struct.Struct("<I")
_SYMBOL_FIELDS = struct.Struct("<III")

HEADER_SIZE = _HEADER.size
HASH_PAYLOAD_SIZE = _HASH.size
SYMBOL_FIELDS_SIZE = _SYMBOL_FIELDS.size


def _message_type(value: int) -> MessageType | int:
    try:
        return MessageType(value)
    except ValueError:
        return value


@dataclass(frozen=True)
class PushPacket:
    """A received datagram laid out as header, symbol fields and symbol data."""

    msg_type: MessageType | int
    payload_length: int
    hash_code: int
    blob_size: int = 0
    seed: int = 0
    symbol_data: bytes = bytes(SYMBOL_SIZE)


def encode_header(msg_type: int, payload_length: int) -> bytes:
    """Pack a 5-byte header."""
    return _HEADER.pack(payload_length, int(msg_type))


def decode_header(data: bytes) -> tuple[MessageType | int, int]:
    """Unpack a header into ``(type, payload_length)``; unknown types stay ints."""
    if len(data) < HEADER_SIZE:
        raise ValueError(f"header needs {HEADER_SIZE} bytes, got {len(data)}")
    payload_length, msg_type = _HEADER.unpack_from(data)
    return _message_type(msg_type), payload_length


def encode_registration_request(address: str, port: int) -> bytes:
    """Build the registration request announcing this server's address."""
    addr = int(ipaddress.IPv4Address(address))
    payload = _REGISTRATION_REQUEST.pack(addr, port)
    return encode_header(MessageType.REGISTRATION_REQ, len(payload)) + payload


def decode_registration_response(data: bytes) -> int:
    """Return the response code carried by a registration response."""
    msg_type, _ = decode_header(data)
    if msg_type != MessageType.REGISTRATION_RESP:
        raise ValueError(f"unexpected message type {int(msg_type)}")
    if len(data) < HEADER_SIZE + 1:
        raise ValueError("registration response has no payload")
    return data[HEADER_SIZE]


def encode_hash_message(
    msg_type: int,
    hash_code: int,
    payload_length: int | None = None,
    padding: int = 0,
) -> bytes:
    """Build a control message carrying a hash code, followed by zero padding."""
    if padding < 0:
        raise ValueError("padding must not be negative")
    if payload_length is None:
        payload_length = HASH_PAYLOAD_SIZE
    return encode_header(msg_type, payload_length) + _HASH.pack(hash_code) + bytes(padding)


def encode_symbol_packet(hash_code: int, blob_size: int, seed: int, symbol_data: bytes) -> bytes:
    """Build a SYMBOL_DATA datagram carrying one encoded symbol."""
    if len(symbol_data) > SYMBOL_SIZE:
        raise ValueError(f"symbol data longer than {SYMBOL_SIZE} bytes")
    body = bytes(symbol_data) + bytes(SYMBOL_SIZE - len(symbol_data))
    header = encode_header(MessageType.SYMBOL_DATA, SYMBOL_FIELDS_SIZE + SYMBOL_SIZE)
    return header + _SYMBOL_FIELDS.pack(hash_code, blob_size, seed) + body


def decode_push_packet(data: bytes) -> PushPacket:
    """Decode a datagram; fields beyond the received bytes read as zero."""
    minimum = HEADER_SIZE + HASH_PAYLOAD_SIZE
    if len(data) < minimum:
        raise ValueError(f"datagram needs at least {minimum} bytes, got {len(data)}")
    msg_type, payload_length = decode_header(data)
    fields_end = HEADER_SIZE + SYMBOL_FIELDS_SIZE
    fields = bytes(data[HEADER_SIZE:fields_end]).ljust(SYMBOL_FIELDS_SIZE, b"\x00")
    hash_code, blob_size, seed = _SYMBOL_FIELDS.unpack(fields)
    symbol_data = bytes(data[fields_end:fields_end + SYMBOL_SIZE]).ljust(SYMBOL_SIZE, b"\x00")
    return PushPacket(msg_type, payload_length, hash_code, blob_size, seed, symbol_data)