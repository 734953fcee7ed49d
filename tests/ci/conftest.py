"""Shared fixtures: a recording transport and an in-process fake IGV."""

import socket
import sys
import threading
from pathlib import Path

import pytest
from fake_igv import FakeIGVServer

from igv_remote.exceptions import NotConnected
from igv_remote.session import IGV

FAKE_IGV_SCRIPT = Path(__file__).parent / 'fake_igv.py'


class RecordingTransport:
	"""Transport double that records every line and answers like IGV would."""

	def __init__(self) -> None:
		self.sent: list[str] = []
		self.connects: list[tuple[str, int, float | None]] = []
		self.open = False
		self.fail_with: Exception | None = None

	def connect(self, host: str, port: int, timeout: float | None = None) -> None:
		self.connects.append((host, port, timeout))
		self.open = True

	def send_and_receive(self, line: str) -> str | None:
		if not self.open:
			raise NotConnected('not connected')
		if self.fail_with is not None:
			raise self.fail_with
		self.sent.append(line)
		name, _, rest = line.partition(' ')
		if name == 'echo':
			return rest or 'echo'
		return 'OK'

	def close(self) -> None:
		self.open = False

	def is_closed(self) -> bool:
		return not self.open


def free_port() -> int:
	with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
		sock.bind(('127.0.0.1', 0))
		return sock.getsockname()[1]


def fake_igv_command() -> list[str]:
	return [sys.executable, str(FAKE_IGV_SCRIPT)]


@pytest.fixture
def transport() -> RecordingTransport:
	return RecordingTransport()


@pytest.fixture
def igv(transport: RecordingTransport, tmp_path: Path) -> IGV:
	"""Connected session on a recording transport, with the connect-time commands cleared."""
	session = IGV(host='127.0.0.1', port=60151, snapshot_dir=tmp_path, transport=transport)  # type: ignore[arg-type]
	session.connect()
	transport.sent.clear()
	return session


@pytest.fixture
def igv_server():
	"""Fake IGV answering on an ephemeral localhost port."""
	server = FakeIGVServer()
	thread = threading.Thread(target=server.serve_forever, daemon=True)
	thread.start()
	yield server
	server.shutdown()
	server.server_close()
