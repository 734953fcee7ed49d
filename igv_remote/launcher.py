"""Launch a fresh IGV instance as a detached child process.

IGV is started in its own process group with its combined stdout/stderr
written to a log file. The launcher follows that file until IGV reports
``Listening on port <port>`` and then returns, leaving the child running.
The wait has no timeout: if IGV never gets ready the caller blocks, unless
the child exits first, in which case LaunchError is raised.
"""

import logging
import os
import shlex
import shutil
import signal
import subprocess
import sys
import tempfile
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from igv_remote.exceptions import LaunchError, PortInUse
from igv_remote.protocol import DEFAULT_PORT

logger = logging.getLogger(__name__)

READY_MESSAGE = 'Listening on port {port}'
POLL_INTERVAL = 0.05


@dataclass
class ServerProcess:
	"""A launched IGV process and the group used to signal it."""

	pid: int
	pgid: int
	port: int
	argv: list[str]
	log_path: Path
	popen: subprocess.Popen | None = field(default=None, repr=False, compare=False)


def get_log_path(port: int) -> Path:
	"""Get the output log path for an IGV launched on port."""
	return Path(tempfile.gettempdir()) / f'igv-remote-{port}.log'


def port_in_use(port: int) -> bool | None:
	"""Check whether something is bound to port, using lsof.

	Returns None when the check cannot be made (lsof missing or failing to run).
	"""
	lsof = shutil.which('lsof')
	if lsof is None:
		return None
	try:
		result = subprocess.run([lsof, f'-i:{port}'], capture_output=True, text=True)
	except OSError as e:
		logger.debug(f'lsof failed: {e}')
		return None
	return result.returncode == 0 and bool(result.stdout.strip())


def ensure_port_available(port: int) -> None:
	in_use = port_in_use(port)
	if in_use is None:
		logger.warning(f'Cannot tell if port {port} is in use; starting IGV anyway')
	elif in_use:
		raise PortInUse(port)
	else:
		logger.info(f'Port {port} is available')


def build_argv(command: str | Sequence[str], port: int) -> list[str]:
	"""IGV command line: the binary (plus any wrapper words) and ``-p <port>``."""
	if isinstance(command, str):
		words = shlex.split(command)
	else:
		words = [os.fspath(word) for word in command]
	if not words:
		raise LaunchError('No IGV command given')
	return [*words, '-p', str(port)]


def launch_server(
	port: int = DEFAULT_PORT,
	command: str | Sequence[str] = 'igv',
	*,
	cwd: str | Path | None = None,
	log_path: str | Path | None = None,
	check_port: bool = True,
	echo: bool = True,
) -> ServerProcess:
	"""Start IGV listening on port and block until it is ready for connections."""
	if check_port:
		ensure_port_available(port)

	argv = build_argv(command, port)
	log_path = Path(log_path) if log_path else get_log_path(port)
	log_path.parent.mkdir(parents=True, exist_ok=True)

	logger.info(f'Starting IGV: {shlex.join(argv)}')
	with open(log_path, 'wb') as log_file:
		try:
			if sys.platform == 'win32':
				popen = subprocess.Popen(
					argv,
					cwd=cwd,
					stdin=subprocess.DEVNULL,
					stdout=log_file,
					stderr=subprocess.STDOUT,
					creationflags=subprocess.CREATE_NEW_PROCESS_GROUP,
				)
			else:
				popen = subprocess.Popen(
					argv,
					cwd=cwd,
					stdin=subprocess.DEVNULL,
					stdout=log_file,
					stderr=subprocess.STDOUT,
					start_new_session=True,
				)
		except OSError as e:
			raise LaunchError(f'Cannot run {argv[0]!r}: {e}') from e

	pgid = popen.pid if sys.platform == 'win32' else os.getpgid(popen.pid)
	logger.info(f'IGV PID: {popen.pid} PGID: {pgid}, output in {log_path}')

	try:
		wait_until_ready(popen, log_path, port, echo=echo)
	except LaunchError:
		raise
	except BaseException:
		# Interrupted while waiting; don't leave an orphan behind.
		terminate_process_group(pgid)
		raise

	return ServerProcess(pid=popen.pid, pgid=pgid, port=port, argv=argv, log_path=log_path, popen=popen)


def wait_until_ready(popen: subprocess.Popen, log_path: Path, port: int, echo: bool = True) -> None:
	"""Follow the child's output until the readiness line appears."""
	ready = READY_MESSAGE.format(port=port)

	def handle(line: str) -> bool:
		if echo:
			print(line, end='' if line.endswith('\n') else '\n', flush=True)
		return ready in line

	with open(log_path, encoding='utf-8', errors='replace') as stream:
		pending = ''
		while True:
			chunk = stream.readline()
			if chunk:
				pending += chunk
				if not pending.endswith('\n'):
					continue
				line, pending = pending, ''
				if handle(line):
					logger.info(f'IGV is listening on port {port}')
					return
				continue

			if popen.poll() is not None:
				# Exited: whatever is left in the file is all there will ever be.
				for line in (pending + stream.read()).splitlines():
					if handle(line):
						logger.info(f'IGV is listening on port {port}')
						return
				raise LaunchError(f'IGV exited with code {popen.returncode} before listening on port {port}. See {log_path}')

			time.sleep(POLL_INTERVAL)


def terminate_process_group(pgid: int) -> bool:
	"""Send SIGTERM to every process in the group. Returns False if the group is gone."""
	try:
		if sys.platform == 'win32':
			os.kill(pgid, signal.CTRL_BREAK_EVENT)
		else:
			os.killpg(pgid, signal.SIGTERM)
	except ProcessLookupError:
		logger.warning(f'IGV process group {pgid} is not running')
		return False
	logger.info(f'Sent SIGTERM to IGV process group {pgid}')
	return True
