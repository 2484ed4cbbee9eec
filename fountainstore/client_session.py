"""TCP session that registers a data server with the metadata server."""

from __future__ import annotations

import logging
import socket

from fountainstore.protocol import (
    HEADER_SIZE,
    MessageType,
    decode_header,
    encode_registration_request,
)

log = logging.getLogger(__name__)


class RegistrationError(ConnectionError):
    """Registration with the metadata server failed."""


class ClientSession:
    """A short-lived connection to the metadata server."""

    def __init__(self, timeout: float | None = None) -> None:
        self.timeout = timeout
        self._socket: socket.socket | None = None

    def __enter__(self) -> ClientSession:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def remote_address(self) -> tuple[str, int] | None:
        """Address of the metadata server, or None when not connected."""
        if self._socket is None:
            return None
        return self._socket.getpeername()[:2]

    def connect(self, address: tuple[str, int]) -> None:
        """Open the connection to the metadata server at ``address``."""
        try:
            self._socket = socket.create_connection(address, timeout=self.timeout)
        except OSError as exc:
            raise RegistrationError(f"cannot connect to {address[0]}:{address[1]}: {exc}") from exc

    def _recv_exact(self, size: int) -> bytes:
        chunks = bytearray()
        while len(chunks) < size:
            chunk = self._socket.recv(size - len(chunks))
            if not chunk:
                raise RegistrationError("connection closed by metadata server")
            chunks.extend(chunk)
        return bytes(chunks)

    def register(self, local_address: tuple[str, int]) -> int:
        """Announce ``local_address`` and return the response code received."""
        if self._socket is None:
            raise RegistrationError("not connected")
        host, port = local_address
        request = encode_registration_request(host, port)
        try:
            self._socket.sendall(request)
            log.debug("written registration request (%d bytes)", len(request))
            msg_type, payload_length = decode_header(self._recv_exact(HEADER_SIZE))
            log.debug("response type %d, payload length %d", int(msg_type), payload_length)
            if msg_type != MessageType.REGISTRATION_RESP:
                raise RegistrationError(f"unknown response type {int(msg_type)}")
            return self._recv_exact(1)[0]
        except RegistrationError:
            raise
        except OSError as exc:
            raise RegistrationError(f"registration failed: {exc}") from exc

    def close(self) -> None:
        """Close the connection; closing twice is harmless."""
        if self._socket is not None:
            self._socket.close()
            self._socket = None