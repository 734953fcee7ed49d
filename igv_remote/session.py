"""Client session for controlling IGV through its batch command port."""

import logging
import os
from collections.abc import Iterable
from pathlib import Path
from types import TracebackType
from typing import Any, Self

from igv_remote.config import load_config
from igv_remote.exceptions import InvalidArgument, NotConnected
from igv_remote.launcher import ServerProcess, launch_server, terminate_process_group
from igv_remote.protocol import (
	DEFAULT_HOST,
	SORT_OPTIONS,
	STRAND_OPTIONS,
	check_option,
	color_argument,
	encode,
	expand_path,
	genome_argument,
	index_argument,
	range_argument,
	to_token,
)
from igv_remote.transport import Transport

logger = logging.getLogger(__name__)


def _absolute(path: Any) -> str:
	text = to_token(path)
	if not text:
		raise InvalidArgument(f'A path is required, got {path!r}')
	return os.path.abspath(os.path.expanduser(text))


class IGV:
	"""One logical controller of one IGV instance.

	Each command method encodes a batch command, sends it and returns IGV's
	one-line answer as text (usually ``OK``), or None if IGV closed the
	connection without answering. Answers are never interpreted.

	```python
	# Attach to an IGV that is already running
	with IGV.open() as igv:
	    igv.genome('hg19')
	    igv.load('reads.bam')
	    igv.goto('chr1:10,000-20,000')
	    igv.snapshot('figures/region.png')

	# Or start one and stop it when done
	igv = IGV.start(port=60152)
	igv.echo()  # 'echo'
	igv.kill()
	igv.close()
	```
	"""

	def __init__(
		self,
		host: str | None = None,
		port: int | None = None,
		snapshot_dir: str | Path | None = None,
		*,
		connect_timeout: float | None = None,
		transport: Transport | None = None,
	) -> None:
		config = load_config(host=host, port=port, snapshot_dir=snapshot_dir, connect_timeout=connect_timeout)
		self.host = config.host
		self.port = config.port
		self.connect_timeout = config.connect_timeout
		self._initial_snapshot_dir = str(config.snapshot_dir)
		self._snapshot_dir: str | None = None
		self._history: list[str] = []
		self._transport = transport if transport is not None else Transport()
		# Only set when this client launched the server.
		self.process: ServerProcess | None = None
		self.process_group_id: int | None = None

	def __repr__(self) -> str:
		state = 'closed' if self.is_closed() else 'connected'
		return f'IGV(host={self.host!r}, port={self.port}, {state})'

	# --- Lifecycle ---

	@classmethod
	def open(
		cls,
		host: str | None = None,
		port: int | None = None,
		snapshot_dir: str | Path | None = None,
		timeout: float | None = None,
	) -> Self:
		"""Attach to a running IGV. Also usable as ``with IGV.open() as igv:``."""
		igv = cls(host=host, port=port, snapshot_dir=snapshot_dir, connect_timeout=timeout)
		try:
			igv.connect()
		except BaseException:
			igv.close()
			raise
		return igv

	@classmethod
	def start(
		cls,
		port: int | None = None,
		command: str | list[str] | None = None,
		snapshot_dir: str | Path | None = None,
		timeout: float | None = None,
		*,
		check_port: bool = True,
		echo: bool = True,
	) -> Self:
		"""Launch a new IGV on port, wait until it listens, then connect to it.

		Blocks until IGV prints its readiness line. Fails with PortInUse if the
		port is already taken.
		"""
		config = load_config(port=port)
		process = launch_server(config.port, command or config.command, check_port=check_port, echo=echo)
		try:
			igv = cls.open(host=DEFAULT_HOST, port=config.port, snapshot_dir=snapshot_dir, timeout=timeout)
		except BaseException:
			terminate_process_group(process.pgid)
			raise
		igv.process = process
		igv.process_group_id = process.pgid
		return igv

	def connect(self, timeout: float | None = None) -> Self:
		"""(Re)connect and push the snapshot directory to IGV."""
		self._transport.connect(self.host, self.port, timeout if timeout is not None else self.connect_timeout)
		# The server may be a new instance, so always resend.
		self.set_snapshot_dir(self._snapshot_dir or self._initial_snapshot_dir, force=True)
		return self

	def close(self) -> None:
		self._transport.close()

	def is_closed(self) -> bool:
		return self._transport.is_closed()

	@property
	def closed(self) -> bool:
		return self.is_closed()

	def kill(self) -> bool:
		"""Terminate the IGV process group this client launched.

		Refuses (returns False) when attached to an IGV started elsewhere.
		"""
		if self.process_group_id is None:
			logger.warning('This IGV was not started by this client, so it cannot be killed')
			return False
		killed = terminate_process_group(self.process_group_id)
		self.process_group_id = None
		return killed

	def __enter__(self) -> Self:
		return self

	def __exit__(
		self,
		exc_type: type[BaseException] | None,
		exc_value: BaseException | None,
		traceback: TracebackType | None,
	) -> None:
		self.close()

	# --- State ---

	@property
	def history(self) -> list[str]:
		"""Every line sent so far, oldest first."""
		return list(self._history)

	@property
	def snapshot_dir(self) -> str | None:
		"""Last snapshot directory this client set on IGV.

		IGV's own UI can change the real value without the client noticing.
		"""
		return self._snapshot_dir

	@snapshot_dir.setter
	def snapshot_dir(self, path: str | Path) -> None:
		self.set_snapshot_dir(path)

	def set_snapshot_dir(self, path: str | Path, force: bool = False) -> str | None:
		"""Create path locally and make it IGV's snapshot directory.

		Skipped when path is already the cached directory, unless force is set.
		"""
		directory = _absolute(path)
		if directory == self._snapshot_dir and not force:
			return None
		if self.is_closed():
			raise NotConnected('Not connected to IGV. Call connect() first.')
		os.makedirs(directory, exist_ok=True)
		response = self._send('snapshotDirectory', directory)
		self._snapshot_dir = directory
		return response

	# --- Sending ---

	def send(self, *words: Any) -> str | None:
		"""Send any batch command, e.g. ``send('goto', 'chr1')`` or ``send('goto chr1')``."""
		if not words:
			raise InvalidArgument('send() needs at least a command name')
		return self._send(*words)

	def set(self, name: str, *params: Any) -> str | None:
		"""Send ``set<name>`` for set-commands without a dedicated method."""
		suffix = to_token(name)
		if not suffix:
			raise InvalidArgument(f'set() needs a command name, got {name!r}')
		return self._send(f'set{suffix}', *params)

	def _send(self, name: Any, *args: Any) -> str | None:
		line = encode(name, *args)
		if self.is_closed():
			raise NotConnected(f'Not connected to IGV, cannot send {line!r}. Call connect() first.')
		self._history.append(line)
		return self._transport.send_and_receive(line)

	def run_batch(self, script: str | Path | Iterable[str]) -> list[str | None]:
		"""Send every command of an IGV batch script, skipping blanks and ``#`` comments.

		script is a file path or an iterable of lines.
		"""
		if isinstance(script, (str, os.PathLike)):
			lines: Iterable[str] = Path(script).read_text(encoding='utf-8').splitlines()
		else:
			lines = script

		responses = []
		for raw in lines:
			line = raw.strip()
			if not line or line.startswith('#'):
				continue
			responses.append(self._send(line))
		return responses

	# --- Batch commands ---

	def echo(self, text: Any = None) -> str | None:
		"""IGV answers with text, or with ``echo`` when no text is given."""
		return self._send('echo', text)

	def goto(self, *loci: Any) -> str | None:
		if not loci:
			raise InvalidArgument('goto needs at least one locus')
		return self._send('goto', *loci)

	go = goto

	def genome(self, name_or_path: Any) -> str | None:
		return self._send('genome', genome_argument(name_or_path))

	def load(self, path_or_url: Any, index: Any = None) -> str | None:
		"""Load a local file or URL. index: explicit index file or URL."""
		return self._send('load', expand_path(path_or_url), index_argument(index))

	def region(self, chrom: Any, start: Any, end: Any, description: Any = None) -> str | None:
		return self._send('region', chrom, start, end, description)

	def sort(self, option: str = 'base', locus: Any = None) -> str | None:
		return self._send('sort', check_option(option, SORT_OPTIONS), locus)

	def expand(self, track: Any = None) -> str | None:
		return self._send('expand', track)

	def collapse(self, track: Any = None) -> str | None:
		return self._send('collapse', track)

	def squish(self, track: Any = None) -> str | None:
		return self._send('squish', track)

	def view_as_pairs(self, track: Any = None, enable: bool | None = None) -> str | None:
		return self._send('viewaspairs', track, enable)

	def clear(self) -> str | None:
		return self._send('clear')

	def new(self) -> str | None:
		return self._send('new')

	def exit(self) -> str | None:
		"""Ask IGV to quit, then close the connection."""
		try:
			return self._send('exit')
		finally:
			self.close()

	quit = exit

	def snapshot(self, path: str | Path | None = None) -> str | None:
		"""Save an image of the current view.

		Without path IGV picks the filename. A bare filename is saved in the
		current snapshot directory. IGV only accepts a bare filename, so a path
		in another directory is saved by switching the snapshot directory there
		for one command and switching it back afterwards.
		"""
		if path is None:
			return self._send('snapshot')

		text = to_token(path)
		if text and not os.path.dirname(text) and text not in (os.curdir, os.pardir):
			return self._send('snapshot', text)

		target = _absolute(path)
		directory, filename = os.path.split(target)
		if not filename or str(path).endswith(('/', os.sep)):
			raise InvalidArgument(f'Snapshot path must name a file, got {path!r}')
		if directory == self._snapshot_dir:
			return self._send('snapshot', filename)

		previous = self._snapshot_dir
		self.set_snapshot_dir(directory)
		response = self._send('snapshot', filename)
		if previous is not None:
			self.set_snapshot_dir(previous)
		return response

	save = snapshot

	def preferences(self, key: Any, value: Any) -> str | None:
		return self._send('preference', key, value)

	def save_session(self, path: str | Path) -> str | None:
		return self._send('saveSession', expand_path(path))

	def set_alt_color(self, color: Any, track: Any = None) -> str | None:
		return self._send('setAltColor', color_argument(color), track)

	def set_color(self, color: Any, track: Any = None) -> str | None:
		return self._send('setColor', color_argument(color), track)

	def set_data_range(self, data_range: Any, track: Any = None) -> str | None:
		"""data_range is ``'min,max'`` / ``'min,baseline,max'`` or a tuple of numbers."""
		return self._send('setDataRange', range_argument(data_range), track)

	def set_log_scale(self, enabled: bool = True, track: Any = None) -> str | None:
		return self._send('setLogScale', bool(enabled), track)

	def set_sequence_strand(self, strand: str) -> str | None:
		return self._send('setSequenceStrand', check_option(strand, STRAND_OPTIONS))

	def set_sequence_show_translation(self, enabled: bool = True) -> str | None:
		return self._send('setSequenceShowTranslation', bool(enabled))

	def set_sleep_interval(self, ms: int) -> str | None:
		return self._send('setSleepInterval', ms)

	def set_track_height(self, height: int, track: Any = None) -> str | None:
		return self._send('setTrackHeight', height, track)

	def max_panel_height(self, height: int) -> str | None:
		return self._send('maxPanelHeight', height)

	def color_by(self, option: Any, tag: Any = None) -> str | None:
		return self._send('colorBy', option, tag)

	def group(self, option: Any = None, tag: Any = None) -> str | None:
		return self._send('group', option, tag)

	def overlay(self, *tracks: Any) -> str | None:
		return self._send('overlay', *tracks)

	def scroll_to_top(self) -> str | None:
		return self._send('scrollToTop')

	def separate(self, track: Any) -> str | None:
		return self._send('separate', track)

	def set_access_token(self, token: Any, host: Any = None) -> str | None:
		return self._send('setAccessToken', token, host)

	def clear_access_tokens(self) -> str | None:
		return self._send('clearAccessTokens')
