"""Tests for the line-oriented TCP transport."""

import socket
from unittest.mock import MagicMock

import pytest
from conftest import free_port

from igv_remote.exceptions import IGVConnectionError, NotConnected
from igv_remote.transport import Transport


class TestLifecycle:
	def test_new_transport_is_closed(self):
		assert Transport().is_closed() is True

	def test_close_is_idempotent(self, igv_server):
		transport = Transport()
		transport.close()  # never opened
		transport.connect('127.0.0.1', igv_server.port)
		transport.close()
		transport.close()
		assert transport.is_closed() is True

	def test_connect_opens(self, igv_server):
		transport = Transport()
		transport.connect('127.0.0.1', igv_server.port, timeout=5)
		try:
			assert transport.is_closed() is False
			assert transport.address == ('127.0.0.1', igv_server.port)
		finally:
			transport.close()

	def test_reconnect_closes_previous_socket(self, igv_server):
		transport = Transport()
		transport.connect('127.0.0.1', igv_server.port)
		first = transport._sock
		transport.connect('127.0.0.1', igv_server.port)
		try:
			assert first is not None and first.fileno() == -1
			assert transport.is_closed() is False
			assert transport.send_and_receive('echo again') == 'again'
		finally:
			transport.close()


class TestConnectErrors:
	def test_connection_refused(self):
		with pytest.raises(IGVConnectionError):
			Transport().connect('127.0.0.1', free_port(), timeout=5)

	def test_connection_error_is_builtin_connection_error(self):
		with pytest.raises(ConnectionError):
			Transport().connect('127.0.0.1', free_port(), timeout=5)

	def test_dns_failure(self, monkeypatch):
		def fail(*args, **kwargs):
			raise socket.gaierror(-2, 'Name or service not known')

		monkeypatch.setattr(socket, 'create_connection', fail)
		with pytest.raises(IGVConnectionError, match='resolve'):
			Transport().connect('no-such-host.invalid', 60151)

	def test_timeout(self, monkeypatch):
		def time_out(*args, **kwargs):
			raise TimeoutError('timed out')

		monkeypatch.setattr(socket, 'create_connection', time_out)
		with pytest.raises(IGVConnectionError, match='Timed out'):
			Transport().connect('10.255.255.1', 60151, timeout=0.1)


class TestSendAndReceive:
	@pytest.fixture
	def transport(self, igv_server):
		transport = Transport()
		transport.connect('127.0.0.1', igv_server.port)
		yield transport
		transport.close()

	def test_round_trip(self, transport, igv_server):
		assert transport.send_and_receive('echo') == 'echo'
		assert transport.send_and_receive('echo Hello!') == 'Hello!'
		assert transport.send_and_receive('goto chr1') == 'OK'
		assert igv_server.received == ['echo', 'echo Hello!', 'goto chr1']

	def test_utf8_round_trip(self, transport):
		assert transport.send_and_receive('echo héllo') == 'héllo'

	def test_server_hangs_up_without_answer(self, transport):
		assert transport.send_and_receive('hangup') is None

	def test_partial_line_is_no_response(self, transport):
		assert transport.send_and_receive('partial') is None

	def test_send_without_connection(self):
		with pytest.raises(NotConnected):
			Transport().send_and_receive('echo')

	def test_send_after_close(self, transport):
		transport.close()
		with pytest.raises(NotConnected):
			transport.send_and_receive('echo')

	def test_severed_socket_on_write(self, transport):
		broken = MagicMock()
		broken.fileno.return_value = 99
		broken.sendall.side_effect = BrokenPipeError(32, 'Broken pipe')
		transport._sock.close()
		transport._sock = broken
		with pytest.raises(IGVConnectionError):
			transport.send_and_receive('echo')
