"""Antivirus scanning against a clamd daemon over TCP.

Uses the INSTREAM command: the payload is sent as chunks, each prefixed with
its length as a 4-byte big-endian integer, followed by a zero-length chunk.
clamd answers `stream: OK` or `stream: <signature> FOUND`.
"""

import logging
import socket
import struct

from aidtrack.core.config import settings

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
INSTREAM_COMMAND = b"zINSTREAM\0"
END_OF_STREAM = struct.pack("!L", 0)


class ScannerUnavailableError(Exception):
    """clamd could not be reached or gave an unusable answer."""


class InfectedFileError(ValueError):
    """The scanner found a signature in the payload."""

    def __init__(self, signature: str):
        super().__init__(f"File rejected by antivirus scan ({signature})")
        self.signature = signature


def _recv_reply(sock: socket.socket) -> str:
    chunks = []
    while True:
        data = sock.recv(4096)
        if not data:
            break
        chunks.append(data)
        if data.endswith(b"\0"):
            break
    return b"".join(chunks).rstrip(b"\0").decode("utf-8", errors="replace").strip()


def instream_scan(content: bytes, host: str, port: int, timeout: float) -> str:
    """
    Send `content` to clamd and return its raw reply.

    Raises:
        ScannerUnavailableError: connection, timeout or socket failure
    """
    try:
        with socket.create_connection((host, port), timeout=timeout) as sock:
            sock.settimeout(timeout)
            sock.sendall(INSTREAM_COMMAND)
            for offset in range(0, len(content), CHUNK_SIZE):
                chunk = content[offset:offset + CHUNK_SIZE]
                sock.sendall(struct.pack("!L", len(chunk)) + chunk)
            sock.sendall(END_OF_STREAM)
            return _recv_reply(sock)
    except OSError as e:
        raise ScannerUnavailableError(f"clamd unreachable at {host}:{port}: {e}") from e


def parse_reply(reply: str) -> str | None:
    """
    Interpret a clamd INSTREAM reply.

    Returns:
        The signature name if infected, None if clean

    Raises:
        ScannerUnavailableError: error or unrecognized reply
    """
    body = reply.split(":", 1)[1].strip() if ":" in reply else reply.strip()
    if body == "OK":
        return None
    if body.endswith(" FOUND"):
        return body[: -len(" FOUND")].strip() or "unknown"
    raise ScannerUnavailableError(f"Unexpected clamd reply: {reply!r}")


def scan_bytes(content: bytes) -> None:
    """
    Scan an upload if scanning is enabled.

    Scanner outages fail closed unless settings.antivirus_fail_open is set,
    in which case a warning is logged and the upload proceeds.

    Raises:
        InfectedFileError: signature found
        ScannerUnavailableError: scanner down and failing closed
    """
    if not settings.ANTIVIRUS_SCAN_ENABLED:
        return

    try:
        reply = instream_scan(
            content,
            host=settings.CLAMAV_HOST,
            port=settings.CLAMAV_PORT,
            timeout=settings.CLAMAV_TIMEOUT_SECONDS,
        )
        signature = parse_reply(reply)
    except ScannerUnavailableError as e:
        if settings.antivirus_fail_open:
            logger.warning("Antivirus scan skipped (fail-open): %s", e)
            return
        logger.error("Antivirus scan failed, rejecting upload: %s", e)
        raise

    if signature:
        logger.warning("Antivirus rejected upload: %s", signature)
        raise InfectedFileError(signature)
