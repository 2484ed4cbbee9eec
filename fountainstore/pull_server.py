"""Data server that pulls symbols from the sender one request at a time."""

from __future__ import annotations

import logging
import sys
import threading
import time

from fountainstore.client_session import RegistrationError
from fountainstore.console import blob_hash, green, red, yellow
from fountainstore.protocol import (
    PULL_BLOB_SIZE,
    MessageType,
    PushPacket,
    encode_symbol_packet,
)
from fountainstore.server import DataServer

log = logging.getLogger(__name__)

USAGE = "args: bind_address, bind_port, mds_address, mds_port, pool_size"


class PullDataServer(DataServer):
    """Stores blobs by asking for symbols and answers symbol requests of fetchers.

    After START_STORAGE the server waits ``request_delay`` seconds and then
    sends SEND_NEXT to the storing client every ``request_interval`` seconds
    until the blob has been decoded. A fetcher asks for each symbol of a
    stored blob with SEND_NEXT.
    """

    blob_size = PULL_BLOB_SIZE
    request_delay = 3.0
    request_interval = 0.3

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.pending_storage: dict[int, tuple[str, int]] = {}
        self.decoding_started: dict[int, float] = {}
        self._timers: dict[int, threading.Timer] = {}

    def handle_request(self, packet: PushPacket, sender: tuple[str, int]) -> None:
        """Act on one decoded request from ``sender``."""
        msg_type = packet.msg_type
        if msg_type == MessageType.START_STORAGE:
            self._start_storage(packet, sender)
        elif msg_type == MessageType.SYMBOL_DATA:
            self._symbol_data(packet, sender)
        elif msg_type == MessageType.STOP_STORAGE_OK:
            self._stop_storage_ok(packet, sender)
        elif msg_type == MessageType.SEND_NEXT:
            self._send_next(packet, sender)
        else:
            super().handle_request(packet, sender)

    def _start_storage(self, packet: PushPacket, sender: tuple[str, int]) -> None:
        self._log_request(packet, sender, "START STORAGE")
        hash_code = packet.hash_code
        with self.lock:
            if self._begin_decoding(hash_code):
                self.pending_storage[hash_code] = sender
            self.decoding_started[hash_code] = time.monotonic()
        self._send_hash(MessageType.START_STORAGE_OK, hash_code, sender)
        log.info("%s start_storage_ok_request_written()", green("data_server"))
        self._schedule(hash_code, self.request_delay)

    def _schedule(self, hash_code: int, delay: float) -> None:
        with self.lock:
            if self.stopped:
                return
            timer = threading.Timer(delay, self.send_data_request, args=(hash_code,))
            timer.daemon = True
            previous = self._timers.get(hash_code)
            if previous is not None:
                previous.cancel()
            self._timers[hash_code] = timer
            timer.start()

    def send_data_request(self, hash_code: int) -> bool:
        """Ask the storing client for the next symbol of ``hash_code``.

        Returns False, and stops asking, once the blob is no longer pending.
        """
        with self.lock:
            address = self.pending_storage.get(hash_code)
            if address is None:
                self._timers.pop(hash_code, None)
                log.info("%s Timer Stopped!", red("data_server"))
                return False
        try:
            self._send_hash(MessageType.SEND_NEXT, hash_code, address)
        except OSError as exc:
            log.warning("%s: send_data_request_written: %s", red("data_server"), exc)
        self._schedule(hash_code, self.request_interval)
        return True

    def _symbol_data(self, packet: PushPacket, sender: tuple[str, int]) -> None:
        log.debug("%s: SYMBOL for %d", green("data_server"), packet.hash_code)
        state = self._decode_symbol(packet)
        if state is None:
            return
        hash_code = packet.hash_code
        with self.lock:
            self.pending_storage.pop(hash_code, None)
            timer = self._timers.pop(hash_code, None)
            started = self.decoding_started.get(hash_code)
        if timer is not None:
            timer.cancel()
        blob = bytes(state.blob[:state.blob_size])
        log.info("---------------------->%d", blob_hash(blob))
        if started is not None:
            elapsed_ms = int((time.monotonic() - started) * 1000)
            log.info("%s Decoded %s KBs in %d ms", green("data_server"),
                     state.blob_size / 1024, elapsed_ms)
        log.info("%s Required %d symbols", green("data_server"), state.symbol_counter)
        if state.symbol_counter:
            log.info("%s Average degree: %d", green("data_server"),
                     state.average_degree // state.symbol_counter)
        self._store(hash_code, blob)
        self._send_hash(MessageType.STOP_STORAGE, hash_code, sender)
        log.info("%s stop_storage_request_written()", green("data_server"))

    def _stop_storage_ok(self, packet: PushPacket, sender: tuple[str, int]) -> None:
        self._log_request(packet, sender, "STOP_STORAGE_OK")
        hash_code = packet.hash_code
        with self.lock:
            state = self.decodings.pop(hash_code, None)
            if state is None:
                return
            self.decoding_started.pop(hash_code, None)
            state.release()
        log.info("%s Decoding State deleted!", green("data_server"))

    def _send_next(self, packet: PushPacket, sender: tuple[str, int]) -> None:
        hash_code = packet.hash_code
        log.debug("%s: SEND NEXT for %d", green("data_server"), hash_code)
        with self.lock:
            state = self.encodings.get(hash_code)
            if state is None:
                log.warning("%s Encoding State did not found!", red("client"))
                return
            symbol = self.encoder.encode_next(state)
        datagram = encode_symbol_packet(hash_code, self.blob_size, symbol.seed, symbol.data)
        try:
            self.send(datagram, sender)
        except OSError as exc:
            log.warning("%s: symbol_request_written: %s", red("client"), exc)

    def close(self) -> None:
        """Stop the request timers, then stop serving and release the socket."""
        self.stop()
        with self.lock:
            timers = list(self._timers.values())
            self._timers.clear()
        for timer in timers:
            timer.cancel()
        super().close()


def _parse_port(text: str) -> int:
    port = int(text)
    if not 0 <= port <= 0xFFFF:
        raise ValueError(f"port out of range: {port}")
    return port


def main(argv: list[str] | None = None) -> int:
    """Run a pull data server until interrupted."""
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
        server = PullDataServer(bind_address, bind_port, mds_address, mds_port, pool_size)
    except OSError as exc:
        print(f"data-server: {exc}")
        return 1
    with server:
        try:
            server.start()
        except RegistrationError as exc:
            print(f"data-server: {exc}")
            return 1
        log.info("%s: join()", yellow("data_server"))
        try:
            server.join()
        except KeyboardInterrupt:
            server.stop()
    return 0