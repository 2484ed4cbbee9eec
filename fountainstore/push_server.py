"""Data server that pushes a fixed burst of symbols as soon as a fetch starts."""

from __future__ import annotations

import logging
import sys

from fountainstore.client_session import RegistrationError
from fountainstore.console import blob_hash, green, red, yellow
from fountainstore.protocol import MessageType, PushPacket, encode_symbol_packet
from fountainstore.server import DataServer

log = logging.getLogger(__name__)

USAGE = "args: bind_address, bind_port, mds_address, mds_port, pool_size"


class PushDataServer(DataServer):
    """Stores blobs pushed to it and pushes symbols of stored blobs to fetchers.

    On START_FETCH the server answers START_FETCH_OK and then sends
    ``number_of_symbols_to_encode`` symbols without waiting to be asked,
    stopping early once the fetcher has sent STOP_FETCH.
    """

    number_of_symbols_to_encode = 2000

    def handle_request(self, packet: PushPacket, sender: tuple[str, int]) -> None:
        """Act on one decoded request from ``sender``."""
        msg_type = packet.msg_type
        if msg_type == MessageType.START_STORAGE:
            self._start_storage(packet, sender)
        elif msg_type == MessageType.START_FETCH:
            self._start_fetch(packet, sender)
            self.push_symbols(packet.hash_code, sender)
        elif msg_type == MessageType.SYMBOL_DATA:
            self._symbol_data(packet, sender)
        elif msg_type == MessageType.STOP_STORAGE_OK:
            self._stop_storage_ok(packet, sender)
        else:
            super().handle_request(packet, sender)

    def _start_storage(self, packet: PushPacket, sender: tuple[str, int]) -> None:
        self._log_request(packet, sender, "START STORAGE")
        self._begin_decoding(packet.hash_code)
        self._send_hash(MessageType.START_STORAGE_OK, packet.hash_code, sender)

    def _symbol_data(self, packet: PushPacket, sender: tuple[str, int]) -> None:
        state = self._decode_symbol(packet)
        if state is None:
            return
        log.info("---------------------->%d", blob_hash(state.blob[:state.blob_size]))
        self._send_hash(MessageType.STOP_STORAGE, packet.hash_code, sender)

    def _stop_storage_ok(self, packet: PushPacket, sender: tuple[str, int]) -> None:
        self._log_request(packet, sender, "STOP_STORAGE_OK")
        hash_code = packet.hash_code
        with self.lock:
            state = self.decodings.pop(hash_code, None)
            if state is None:
                log.warning("%s:Decoding state did not found!", red("data_server"))
                return
            self._store(hash_code, state.blob[:state.blob_size])

    def push_symbols(self, hash_code: int, sender: tuple[str, int]) -> int:
        """Send symbols of blob ``hash_code`` to ``sender``; return how many were sent."""
        with self.lock:
            found = hash_code in self.encodings
        if not found:
            log.warning("%s: no encoding state for %d", red("data_server"), hash_code)
            return 0
        log.info("%s: %s", yellow("data_server"), green("Encoding State Found"))
        log.info("%s Starting the encoding of %d symbols for %d",
                 yellow("data_server"), self.number_of_symbols_to_encode, hash_code)
        sent = 0
        for _ in range(self.number_of_symbols_to_encode):
            with self.lock:
                state = self.encodings.get(hash_code)
                if state is None:
                    break
                symbol = self.encoder.encode_next(state)
                blob_size = self.blob_size
            datagram = encode_symbol_packet(hash_code, blob_size, symbol.seed, symbol.data)
            try:
                self.send(datagram, sender)
            except OSError as exc:
                log.warning("%s: symbol_request_written: %s", red("client"), exc)
                continue
            sent += 1
        else:
            return sent
        blob = self.storage.get(hash_code, b"")
        log.info("%s Data of blob %d was successfully sent, hash of data = %d",
                 green("data_server"), hash_code, blob_hash(blob))
        return sent


def _parse_port(text: str) -> int:
    port = int(text)
    if not 0 <= port <= 0xFFFF:
        raise ValueError(f"port out of range: {port}")
    return port


def main(argv: list[str] | None = None) -> int:
    """Run a push data server until interrupted."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) != 5:
        print(USAGE)
        return 1
    try:
        bind_address = args[0]
        bind_port = _parse_port(args[1])
        mds_address = args[2]
        mds_port = _parse_port(args[3])
        pool_size = int(args[4])
        if pool_size < 0:
            raise ValueError("pool size must not be negative")
    except ValueError as exc:
        print(f"{USAGE}: {exc}")
        return 1

    logging.basicConfig(level=logging.INFO, format="%(message)s")
    try:
        server = PushDataServer(bind_address, bind_port, mds_address, mds_port, pool_size)
    except OSError as exc:
        print(f"data-server: {exc}")
        return 1
    with server:
        try:
            server.start()
        except RegistrationError as exc:
            print(f"data-server: {exc}")
            return 1
        try:
            server.join()
        except KeyboardInterrupt:
            server.stop()
    return 0