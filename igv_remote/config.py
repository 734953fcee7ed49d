"""Client configuration from the environment (and a .env file, if present)."""

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from igv_remote.protocol import DEFAULT_HOST, DEFAULT_PORT

load_dotenv()

ENV_VARS = {
	'host': 'IGV_HOST',
	'port': 'IGV_PORT',
	'command': 'IGV_COMMAND',
	'snapshot_dir': 'IGV_SNAPSHOT_DIR',
	'connect_timeout': 'IGV_CONNECT_TIMEOUT',
	'logging_level': 'IGV_LOGGING_LEVEL',
}


class IGVConfig(BaseModel):
	"""Where IGV runs and how to start it."""

	host: str = DEFAULT_HOST
	port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
	command: str = 'igv'
	snapshot_dir: Path = Field(default_factory=Path.cwd)
	connect_timeout: float | None = Field(default=None, gt=0)
	logging_level: str = 'info'

	@field_validator('snapshot_dir', mode='after')
	@classmethod
	def _absolute_snapshot_dir(cls, value: Path) -> Path:
		return Path(os.path.abspath(os.path.expanduser(value)))

	@field_validator('logging_level', mode='after')
	@classmethod
	def _known_level(cls, value: str) -> str:
		level = value.lower()
		if level not in ('debug', 'info', 'warning', 'error', 'critical'):
			raise ValueError(f'Unknown logging level: {value}')
		return level


def load_config(**overrides: Any) -> IGVConfig:
	"""Build config from IGV_* environment variables, then explicit non-None overrides."""
	values: dict[str, Any] = {}
	for name, env_var in ENV_VARS.items():
		raw = os.environ.get(env_var)
		if raw is not None and raw.strip():
			values[name] = raw.strip()
	values.update({name: value for name, value in overrides.items() if value is not None})
	return IGVConfig(**values)
