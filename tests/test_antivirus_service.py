"""Tests for clamd INSTREAM scanning."""

import socket
import struct
import threading

import pytest

from aidtrack.core.config import settings
from aidtrack.services import antivirus_service
from aidtrack.services.antivirus_service import (
    InfectedFileError,
    ScannerUnavailableError,
    parse_reply,
    scan_bytes,
)


class FakeClamd:
    """Single-connection clamd stand-in that records the streamed payload."""

    def __init__(self, reply: bytes):
        self.reply = reply
        self.command = b""
        self.received = b""
        self.chunk_sizes: list[int] = []
        self._server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._server.bind(("127.0.0.1", 0))
        self._server.listen(1)
        self.port = self._server.getsockname()[1]
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def _read_exact(self, conn, size: int) -> bytes:
        data = b""
        while len(data) < size:
            chunk = conn.recv(size - len(data))
            if not chunk:
                raise ConnectionError("client closed early")
            data += chunk
        return data

    def _serve(self):
        conn, _ = self._server.accept()
        with conn:
            self.command = self._read_exact(conn, len(antivirus_service.INSTREAM_COMMAND))
            while True:
                (size,) = struct.unpack("!L", self._read_exact(conn, 4))
                if size == 0:
                    break
                self.chunk_sizes.append(size)
                self.received += self._read_exact(conn, size)
            conn.sendall(self.reply)

    def close(self):
        self._thread.join(timeout=5)
        self._server.close()


@pytest.fixture
def scanning_enabled(monkeypatch):
    monkeypatch.setattr(settings, "ANTIVIRUS_SCAN_ENABLED", True)
    monkeypatch.setattr(settings, "CLAMAV_HOST", "127.0.0.1")
    monkeypatch.setattr(settings, "CLAMAV_TIMEOUT_SECONDS", 5.0)


def test_instream_protocol_framing():
    clamd = FakeClamd(b"stream: OK\0")
    payload = b"x" * (antivirus_service.CHUNK_SIZE + 10)
    try:
        reply = antivirus_service.instream_scan(payload, "127.0.0.1", clamd.port, timeout=5)
    finally:
        clamd.close()

    assert reply == "stream: OK"
    assert clamd.command == b"zINSTREAM\0"
    assert clamd.received == payload
    assert clamd.chunk_sizes == [antivirus_service.CHUNK_SIZE, 10]


def test_scan_clean_file(scanning_enabled, monkeypatch):
    clamd = FakeClamd(b"stream: OK\0")
    monkeypatch.setattr(settings, "CLAMAV_PORT", clamd.port)
    try:
        scan_bytes(b"%PDF-1.7 clean")
    finally:
        clamd.close()


def test_scan_infected_file(scanning_enabled, monkeypatch):
    clamd = FakeClamd(b"stream: Eicar-Test-Signature FOUND\0")
    monkeypatch.setattr(settings, "CLAMAV_PORT", clamd.port)
    try:
        with pytest.raises(InfectedFileError) as exc_info:
            scan_bytes(b"X5O!P%@AP")
    finally:
        clamd.close()

    assert exc_info.value.signature == "Eicar-Test-Signature"


def _unavailable(*_args, **_kwargs):
    raise ScannerUnavailableError("clamd unreachable")


def test_scanner_down_fails_closed(scanning_enabled, monkeypatch):
    monkeypatch.setattr(settings, "ANTIVIRUS_FAIL_OPEN", False)
    monkeypatch.setattr(antivirus_service, "instream_scan", _unavailable)

    with pytest.raises(ScannerUnavailableError):
        scan_bytes(b"data")


def test_scanner_down_fails_open_when_configured(scanning_enabled, monkeypatch):
    monkeypatch.setattr(settings, "ANTIVIRUS_FAIL_OPEN", True)
    monkeypatch.setattr(antivirus_service, "instream_scan", _unavailable)

    scan_bytes(b"data")


def test_unreachable_port_raises_scanner_unavailable():
    spare = socket.socket()
    spare.bind(("127.0.0.1", 0))
    port = spare.getsockname()[1]
    spare.close()

    with pytest.raises(ScannerUnavailableError):
        antivirus_service.instream_scan(b"data", "127.0.0.1", port, timeout=1)


def test_scanning_disabled_skips_scanner(monkeypatch):
    monkeypatch.setattr(settings, "ANTIVIRUS_SCAN_ENABLED", False)
    monkeypatch.setattr(antivirus_service, "instream_scan", _unavailable)

    scan_bytes(b"data")


@pytest.mark.parametrize(
    "reply,expected",
    [
        ("stream: OK", None),
        ("OK", None),
        ("stream: Win.Test.EICAR_HDB-1 FOUND", "Win.Test.EICAR_HDB-1"),
    ],
)
def test_parse_reply(reply, expected):
    assert parse_reply(reply) == expected


def test_parse_reply_error():
    with pytest.raises(ScannerUnavailableError):
        parse_reply("INSTREAM size limit exceeded. ERROR")
