"""UDP data server that stores blobs and serves them as fountain-coded symbols."""

from __future__ import annotations

import logging
import socket
import threading

from fountainstore.client_session import ClientSession, RegistrationError
from fountainstore.console import blob_hash, green, red, yellow
from fountainstore.decoder import Decoder, DecodingState
from fountainstore.encoder import Encoder
from fountainstore.protocol import (
    BLOB_ID_SIZE,
    HASH_PAYLOAD_SIZE,
    HEADER_SIZE,
    PADDING,
    PUSH_BLOB_SIZE,
    SYMBOL_FIELDS_SIZE,
    MessageType,
    PushPacket,
    decode_push_packet,
    encode_hash_message,
)
from fountainstore.symbol import SYMBOL_SIZE, Symbol

log = logging.getLogger(__name__)

DATAGRAM_SIZE = HEADER_SIZE + SYMBOL_FIELDS_SIZE + SYMBOL_SIZE
"""Largest datagram the server reads: header, symbol fields and symbol data."""

RESPONSE_PADDING = SYMBOL_SIZE + PADDING
"""Zero bytes appended to every control response."""

_POLL_INTERVAL = 0.2


class DataServer:
    """Stores blobs received as symbols and serves stored blobs as symbols.

    The base server answers fetch requests; subclasses add the storage side
    and decide whether symbols are pushed or pulled.
    """

    blob_size = PUSH_BLOB_SIZE

    def __init__(
        self,
        bind_address: str,
        bind_port: int,
        mds_address: str,
        mds_port: int,
        pool_size: int = 1,
        *,
        encoder: Encoder | None = None,
        decoder: Decoder | None = None,
        timeout: float | None = None,
    ) -> None:
        if pool_size < 0:
            raise ValueError("pool size must not be negative")
        self.pool_size = pool_size
        self.mds_address = (mds_address, mds_port)
        self.timeout = timeout
        self.encoder = encoder if encoder is not None else Encoder()
        self.decoder = decoder if decoder is not None else Decoder()
        self.blob_id = bytes(BLOB_ID_SIZE)
        self.storage: dict[int, bytes] = {}
        self.encodings: dict = {}
        self.decodings: dict[int, DecodingState] = {}
        self.lock = threading.RLock()
        self._stopped = threading.Event()
        self._threads: list[threading.Thread] = []
        self._socket = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            self._socket.bind((bind_address, bind_port))
        except OSError:
            self._socket.close()
            raise
        self._socket.settimeout(_POLL_INTERVAL)
        host, port = self.local_address
        log.info("%s: IP|PORT: %s:%d", green("data_server"), host, port)

    def __enter__(self) -> DataServer:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def local_address(self) -> tuple[str, int]:
        """Address the UDP socket is bound to."""
        return self._socket.getsockname()[:2]

    @property
    def stopped(self) -> bool:
        """True once the server has been asked to stop."""
        return self._stopped.is_set()

    def register(self) -> int | None:
        """Register with the metadata server and return its response code.

        Raises RegistrationError when the metadata server cannot be reached;
        a failed exchange after connecting is logged and gives None.
        """
        with ClientSession(self.timeout) as session:
            session.connect(self.mds_address)
            try:
                code = session.register(self.local_address)
            except RegistrationError as exc:
                log.warning("%s: registration failed: %s", red("data_server"), exc)
                return None
            remote = session.remote_address
            log.info("%s: registered with metadata server (remote endpoint %s:%d)",
                     green("data_server"), remote[0], remote[1])
            return code

    def send(self, data: bytes, address: tuple[str, int]) -> int:
        """Send one datagram to ``address`` and return the bytes sent."""
        return self._socket.sendto(data, address)

    def handle_datagram(self, data: bytes, sender: tuple[str, int]) -> None:
        """Decode a received datagram and act on it."""
        try:
            packet = decode_push_packet(data)
        except ValueError as exc:
            log.warning("%s: handle_request: %s", red("data_server"), exc)
            return
        self.handle_request(packet, sender)

    def handle_request(self, packet: PushPacket, sender: tuple[str, int]) -> None:
        """Act on one decoded request from ``sender``."""
        if packet.msg_type == MessageType.START_FETCH:
            self._start_fetch(packet, sender)
        elif packet.msg_type == MessageType.STOP_FETCH:
            self._stop_fetch(packet, sender)
        else:
            log.warning("%s: fatal - unknown request %d", red("data_server"), int(packet.msg_type))

    def _log_request(self, packet: PushPacket, sender: tuple[str, int], what: str) -> None:
        log.info("%s: sender info: %s:%d, request size: %d, request type: %d",
                 yellow("data_server"), sender[0], sender[1], packet.payload_length,
                 int(packet.msg_type))
        log.info("%s: %s for %d", green("data_server"), what, packet.hash_code)

    def _send_hash(
        self,
        msg_type: MessageType,
        hash_code: int,
        address: tuple[str, int],
        payload_length: int | None = None,
    ) -> int:
        message = encode_hash_message(msg_type, hash_code, payload_length, RESPONSE_PADDING)
        return self.send(message, address)

    def _start_fetch(self, packet: PushPacket, sender: tuple[str, int]) -> None:
        self._log_request(packet, sender, "START FETCH")
        hash_code = packet.hash_code
        with self.lock:
            if hash_code in self.encodings:
                log.info("%s Already encoding file: %d", yellow("data_server"), hash_code)
            else:
                blob = self.storage.get(hash_code)
                if blob is None:
                    log.warning("%s Could not find file %d", red("data_server"), hash_code)
                else:
                    self.encodings[hash_code] = self.encoder.init_state(
                        self.blob_id, len(blob), blob
                    )
        self._send_hash(MessageType.START_FETCH_OK, hash_code, sender)

    def _stop_fetch(self, packet: PushPacket, sender: tuple[str, int]) -> None:
        self._log_request(packet, sender, "STOP FETCH")
        hash_code = packet.hash_code
        with self.lock:
            state = self.encodings.pop(hash_code, None)
        if state is not None:
            log.info("%s Successfully sent to %s:%d %d bytes for %d, hash of data = %d",
                     green("data_server"), sender[0], sender[1], state.blob_size, hash_code,
                     blob_hash(state.blob[:state.blob_size]))
        self._send_hash(
            MessageType.STOP_FETCH_OK,
            hash_code,
            sender,
            HASH_PAYLOAD_SIZE + PADDING + SYMBOL_SIZE,
        )

    def _begin_decoding(self, hash_code: int) -> bool:
        """Create a decoding state for ``hash_code``; False if one exists already."""
        with self.lock:
            if hash_code in self.decodings:
                log.info("%s Already decoding file: %d", yellow("data_server"), hash_code)
                return False
            self.decodings[hash_code] = self.decoder.init_state(
                self.blob_id, self.blob_size, bytearray(self.blob_size)
            )
            return True

    def _decode_symbol(self, packet: PushPacket) -> DecodingState | None:
        """Feed a SYMBOL_DATA packet; return the state once its blob is decoded."""
        symbol = Symbol(seed=packet.seed, data=bytearray(packet.symbol_data))
        with self.lock:
            state = self.decodings.get(packet.hash_code)
            if state is None:
                log.warning("%s: no decoding state for %d", red("data_server"), packet.hash_code)
                return None
            if self.decoder.decode_next(state, symbol):
                log.info("%s%s", green("data_server"), green("BLOB DECODED!"))
                return state
        return None

    def _store(self, hash_code: int, data: bytes) -> int:
        """Store ``data`` under ``hash_code`` and return its checksum."""
        blob = bytes(data)
        with self.lock:
            self.storage.setdefault(hash_code, blob)
            stored = self.storage[hash_code]
        checksum = blob_hash(stored)
        log.info("%s Successfully stored %d bytes in storage for %d, hash of data = %d",
                 green("data_server"), len(stored), hash_code, checksum)
        return checksum

    def serve_forever(self) -> None:
        """Receive and handle datagrams until the server is stopped."""
        while not self._stopped.is_set():
            try:
                data, sender = self._socket.recvfrom(DATAGRAM_SIZE)
            except socket.timeout:
                continue
            except OSError as exc:
                if self._stopped.is_set():
                    break
                log.warning("%s: handle_request: %s", red("data_server"), exc)
                continue
            self.handle_datagram(data, sender)

    def start(self) -> None:
        """Register with the metadata server and start the serving threads."""
        self._stopped.clear()
        self.register()
        for number in range(self.pool_size):
            thread = threading.Thread(
                target=self.serve_forever, name=f"data-server-{number}", daemon=True
            )
            thread.start()
            self._threads.append(thread)

    def stop(self) -> None:
        """Ask the serving threads to finish."""
        log.info("data_server: handle_stop()")
        self._stopped.set()

    def join(self) -> None:
        """Wait for the serving threads to finish."""
        for thread in self._threads:
            thread.join()
        self._threads.clear()

    def close(self) -> None:
        """Stop serving and release the socket."""
        self.stop()
        self.join()
        self._socket.close()