"""Wire format for IGV batch commands.

IGV listens on a TCP port and reads one command per line: the command name
followed by its arguments, separated by spaces and terminated by a line feed.
Every line is answered by exactly one line of free-form text.
"""

import decimal
import numbers
import os
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlparse

from igv_remote.exceptions import InvalidArgument, InvalidOption

DEFAULT_HOST = '127.0.0.1'
DEFAULT_PORT = 60151
ENCODING = 'utf-8'

SORT_OPTIONS = ('base', 'position', 'strand', 'quality', 'sample', 'readGroup')
STRAND_OPTIONS = ('+', '-')


def to_token(value: Any) -> str | None:
	"""Render one argument as protocol text.

	None means "argument absent" and is dropped by the caller. Booleans become
	``true``/``false``; numbers and path-like objects become their text form.
	"""
	if value is None:
		return None
	if isinstance(value, bool):
		return 'true' if value else 'false'
	if isinstance(value, (numbers.Real, decimal.Decimal)):
		return str(value)
	if isinstance(value, os.PathLike):
		value = os.fsdecode(value)
	if not isinstance(value, str):
		raise InvalidArgument(f'Cannot send {type(value).__name__} {value!r} as a command argument')
	if '\n' in value or '\r' in value:
		raise InvalidArgument(f'Command argument must be a single line: {value!r}')
	return value


@dataclass(frozen=True)
class Command:
	"""One batch command: a case-sensitive name and its text arguments."""

	name: str
	args: tuple[str, ...] = ()

	def to_line(self) -> str:
		return ' '.join((self.name, *self.args)).strip()


def build_command(name: str, *args: Any) -> Command:
	"""Build a command, dropping absent arguments and rejecting unsendable ones."""
	command_name = to_token(name)
	if not command_name or not command_name.strip():
		raise InvalidArgument(f'Command name must be non-empty text, got {name!r}')
	tokens = tuple(token for token in (to_token(arg) for arg in args) if token is not None)
	return Command(name=command_name.strip(), args=tokens)


def encode(name: str, *args: Any) -> str:
	return build_command(name, *args).to_line()


def has_scheme(value: str) -> bool:
	"""True if value looks like a URL (``http://``, ``s3://``, ``gs://``...).

	Single-letter schemes are Windows drive letters, not URLs. A string that
	fails to parse is treated as a plain path.
	"""
	try:
		scheme = urlparse(value).scheme
	except ValueError:
		return False
	return len(scheme) > 1


def expand_path(path_or_url: Any) -> str:
	"""Make a local path absolute; leave URLs untouched."""
	text = to_token(path_or_url)
	if text is None:
		raise InvalidArgument('A path or URL is required')
	if has_scheme(text):
		return text
	return os.path.abspath(os.path.expanduser(text))


def genome_argument(name_or_path: Any) -> str:
	"""Absolute path if the genome exists on disk, otherwise the genome id (e.g. ``hg19``)."""
	text = to_token(name_or_path)
	if text is None:
		raise InvalidArgument('A genome id or path is required')
	path = os.path.abspath(os.path.expanduser(text))
	if os.path.exists(path):
		return path
	return text


def index_argument(index: Any) -> str | None:
	if index is None:
		return None
	return f'index={expand_path(index)}'


def check_option(option: Any, valid: tuple[str, ...]) -> str:
	if option not in valid:
		raise InvalidOption(option, valid)
	return option


def _join_values(values: tuple | list, sizes: tuple[int, ...], what: str) -> str:
	components = [to_token(value) for value in values]
	if len(components) not in sizes or None in components:
		raise InvalidArgument(f'{what} needs {" or ".join(map(str, sizes))} values, got {values!r}')
	return ','.join(component for component in components if component is not None)


def color_argument(color: Any) -> str | None:
	"""Colors are either IGV text (``255,0,0`` or a name) or an ``(r, g, b)`` triple."""
	if isinstance(color, (tuple, list)):
		return _join_values(color, (3,), 'Color')
	return to_token(color)


def range_argument(data_range: Any) -> str | None:
	"""Data ranges are ``min,max`` or ``min,baseline,max``, as text or a tuple."""
	if isinstance(data_range, (tuple, list)):
		return _join_values(data_range, (2, 3), 'Data range')
	return to_token(data_range)
