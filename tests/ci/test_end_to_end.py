"""End-to-end sessions against the fake IGV, over real sockets."""

import sys

import pytest
from conftest import fake_igv_command, free_port

from igv_remote import IGV, NotConnected


class TestAttachedSession:
	def test_echo_liveness(self, igv_server, tmp_path):
		with IGV.open(port=igv_server.port, snapshot_dir=tmp_path) as igv:
			assert igv.echo() == 'echo'
			assert igv.echo('Hello!') == 'Hello!'

	def test_typical_workflow(self, igv_server, tmp_path, monkeypatch):
		monkeypatch.chdir(tmp_path)
		(tmp_path / 'reads.bam').write_bytes(b'')
		with IGV.open(port=igv_server.port, snapshot_dir=tmp_path) as igv:
			assert igv.genome('hg19') == 'OK'
			assert igv.load('reads.bam') == 'OK'
			assert igv.goto('chr1') == 'OK'
			assert igv.snapshot() == 'OK'
			assert igv.snapshot('figures/chr1.png') == 'OK'

		assert igv_server.received == [
			f'snapshotDirectory {tmp_path}',
			'genome hg19',
			f'load {tmp_path / "reads.bam"}',
			'goto chr1',
			'snapshot',
			f'snapshotDirectory {tmp_path / "figures"}',
			'snapshot chr1.png',
			f'snapshotDirectory {tmp_path}',
		]
		assert igv.history == igv_server.received

	def test_exit_then_not_connected(self, igv_server, tmp_path):
		igv = IGV.open(port=igv_server.port, snapshot_dir=tmp_path)
		assert igv.exit() is None
		assert igv.is_closed() is True
		with pytest.raises(NotConnected):
			igv.echo()

	def test_reconnect(self, igv_server, tmp_path):
		igv = IGV.open(port=igv_server.port, snapshot_dir=tmp_path)
		igv.close()
		igv.connect()
		try:
			assert igv.echo('back') == 'back'
		finally:
			igv.close()

	def test_independent_sessions(self, igv_server, tmp_path):
		first = IGV.open(port=igv_server.port, snapshot_dir=tmp_path / 'a')
		second = IGV.open(port=igv_server.port, snapshot_dir=tmp_path / 'b')
		try:
			assert first.echo('one') == 'one'
			assert second.echo('two') == 'two'
			first.close()
			assert second.echo('still here') == 'still here'
			assert first.history == [f'snapshotDirectory {tmp_path / "a"}', 'echo one']
		finally:
			first.close()
			second.close()


@pytest.mark.skipif(sys.platform == 'win32', reason='process groups are POSIX')
class TestLaunchedSession:
	def test_start_echo_kill(self, tmp_path):
		igv = IGV.start(port=free_port(), command=fake_igv_command(), snapshot_dir=tmp_path, check_port=False, echo=False)
		try:
			assert igv.process is not None
			assert igv.process_group_id == igv.process.pgid
			assert igv.echo() == 'echo'
			assert igv.echo('Hello!') == 'Hello!'
		finally:
			assert igv.kill() is True
			igv.close()
		igv.process.popen.wait(timeout=10)
		assert igv.process_group_id is None

	def test_exit_stops_fake_server(self, tmp_path):
		igv = IGV.start(port=free_port(), command=fake_igv_command(), snapshot_dir=tmp_path, check_port=False, echo=False)
		igv.exit()
		assert igv.process.popen.wait(timeout=10) == 0
		assert igv.is_closed() is True
