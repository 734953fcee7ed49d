"""Tests against a real IGV.

Skipped unless IGV_TEST_MODE is set:
- ``external``: attach to an IGV already listening on IGV_PORT (default 60151)
- ``start``: launch IGV_COMMAND (default ``igv``) and kill it afterwards
"""

import os

import pytest

from igv_remote import IGV

MODE = os.environ.get('IGV_TEST_MODE', '')

pytestmark = pytest.mark.skipif(MODE not in ('external', 'start'), reason='set IGV_TEST_MODE=external or start')


@pytest.fixture
def igv(tmp_path):
	if MODE == 'start':
		session = IGV.start(snapshot_dir=tmp_path)
	else:
		session = IGV.open(snapshot_dir=tmp_path, timeout=30)
	yield session
	if session.process_group_id is not None:
		session.kill()
	session.close()


def test_echo(igv):
	assert igv.echo() == 'echo'
	assert igv.echo('Hello!') == 'Hello!'


def test_snapshot_writes_image(igv, tmp_path):
	assert igv.genome('hg19') == 'OK'
	assert igv.goto('chr1') == 'OK'
	assert igv.snapshot(tmp_path / 'chr1.png') == 'OK'
	assert (tmp_path / 'chr1.png').exists()
