"""Line-oriented TCP transport to a running IGV instance."""

import logging
import socket
from typing import BinaryIO

from igv_remote.exceptions import IGVConnectionError, NotConnected
from igv_remote.protocol import ENCODING

logger = logging.getLogger(__name__)


class Transport:
	"""Owns at most one socket and exchanges one request line for one response line.

	Strictly synchronous: a request is written, then the caller blocks until
	IGV answers with a full line or closes the connection.
	"""

	def __init__(self) -> None:
		self._sock: socket.socket | None = None
		self._reader: BinaryIO | None = None
		self.address: tuple[str, int] | None = None

	def connect(self, host: str, port: int, timeout: float | None = None) -> None:
		"""Open a new connection, closing any existing one first."""
		self.close()
		try:
			sock = socket.create_connection((host, port), timeout=timeout)
		except socket.gaierror as e:
			raise IGVConnectionError(f'Cannot resolve IGV host {host!r}: {e}') from e
		except TimeoutError as e:
			raise IGVConnectionError(f'Timed out connecting to IGV at {host}:{port}') from e
		except OSError as e:
			raise IGVConnectionError(f'Cannot connect to IGV at {host}:{port}: {e}') from e

		# The timeout only bounds the connect; responses are awaited indefinitely.
		sock.settimeout(None)
		self._sock = sock
		self._reader = sock.makefile('rb')
		self.address = (host, port)
		logger.info(f'Connected to IGV at {host}:{port}')

	def send_and_receive(self, line: str) -> str | None:
		"""Write one line and return IGV's one-line answer.

		Returns None if the connection ends before a complete line arrives.
		"""
		if self._sock is None or self._reader is None or self.is_closed():
			raise NotConnected('Not connected to IGV. Call connect() first.')

		logger.debug(f'>> {line}')
		try:
			self._sock.sendall((line + '\n').encode(ENCODING))
		except OSError as e:
			raise IGVConnectionError(f'Lost connection to IGV while sending {line!r}: {e}') from e

		try:
			data = self._reader.readline()
		except OSError as e:
			logger.debug(f'Connection error while awaiting response: {e}')
			return None

		if not data.endswith(b'\n'):
			logger.debug('Connection closed by IGV before a full response line')
			return None

		response = data.decode(ENCODING, errors='replace').rstrip('\n')
		if response.endswith('\r'):
			response = response[:-1]
		logger.debug(f'<< {response}')
		return response

	def close(self) -> None:
		"""Close the connection. Safe to call any number of times."""
		reader, sock = self._reader, self._sock
		self._reader = None
		self._sock = None
		for resource in (reader, sock):
			if resource is None:
				continue
			try:
				resource.close()
			except OSError:
				pass
		if sock is not None and self.address is not None:
			logger.info(f'Closed connection to IGV at {self.address[0]}:{self.address[1]}')

	def is_closed(self) -> bool:
		return self._sock is None or self._sock.fileno() == -1
