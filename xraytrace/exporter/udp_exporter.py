"""UDP exporter sending documents to the X-Ray daemon."""

from __future__ import annotations

import json
import logging
import socket
from typing import Any, Optional

from xraytrace.errors import TransportError

logger = logging.getLogger(__name__)

PROTOCOL_HEADER = b'{"format": "json", "version": 1}\n'


def encode_packet(data: Any) -> bytes:
    """
    Frame a document for the daemon: protocol header line, then compact JSON.

    Args:
        data: A segment/subsegment (anything with ``to_json()``) or a plain
            JSON-serializable value
    """
    if hasattr(data, "to_json"):
        body = data.to_json()
    else:
        body = json.dumps(data, separators=(",", ":"), default=str, allow_nan=False)
    return PROTOCOL_HEADER + body.encode("utf-8")


class UDPExporter:
    """
    Fire-and-forget datagram transport.

    One document per datagram. Send failures are logged and the document is
    dropped; nothing is retried and nothing is raised to the caller.
    """

    def __init__(self, host: str = "127.0.0.1", port: int = 2000) -> None:
        """
        Bind a local socket and connect it to the daemon.

        Args:
            host: Daemon host name or address
            port: Daemon UDP port

        Raises:
            TransportError: if the socket cannot be created or connected
        """
        self.host = host
        self.port = port
        self._socket: Optional[socket.socket] = None
        try:
            family = socket.getaddrinfo(host, port, type=socket.SOCK_DGRAM)[0][0]
            self._socket = socket.socket(family, socket.SOCK_DGRAM)
            self._socket.bind(("0.0.0.0", 0) if family == socket.AF_INET else ("::", 0))
            self._socket.setblocking(False)
            self._socket.connect((host, port))
        except OSError as e:
            if self._socket is not None:
                self._socket.close()
                self._socket = None
            raise TransportError(
                "failed to connect to xray daemon",
                details={"host": host, "port": port, "error": e},
            ) from e
        logger.debug("connecting to xray daemon %s:%s", host, port)

    def send(self, document: Any) -> bool:
        """
        Send one document.

        Returns:
            True if the datagram was handed to the OS, False if it was dropped
        """
        if self._socket is None:
            logger.debug("exporter is shut down, dropping document")
            return False

        try:
            packet = encode_packet(document)
        except (TypeError, ValueError) as e:
            logger.debug("error serializing trace data: %s", e)
            return False

        try:
            sent = self._socket.send(packet)
        except OSError as e:
            logger.debug("error emitting trace data: %s", e)
            return False

        logger.debug("sent %d bytes of trace data", sent)
        return True

    def shutdown(self) -> None:
        if self._socket is not None:
            self._socket.close()
            self._socket = None
