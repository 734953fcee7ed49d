"""Exceptions raised by the IGV client."""


class IGVError(Exception):
	"""Base class for all client-side IGV errors."""

	pass


class InvalidArgument(IGVError, TypeError):
	"""Raised when a command argument cannot be rendered as a protocol token."""

	pass


class InvalidOption(IGVError, ValueError):
	"""Raised when a value falls outside the fixed set a command accepts."""

	def __init__(self, option: object, valid: tuple[str, ...]) -> None:
		self.option = option
		self.valid = valid
		super().__init__(f'Invalid option {option!r}. Valid options are: {", ".join(valid)}')


class IGVConnectionError(IGVError, ConnectionError):
	"""Raised when the TCP connection to IGV cannot be opened or written to."""

	pass


class NotConnected(IGVConnectionError):
	"""Raised when a command is sent without a live connection."""

	pass


class PortInUse(IGVError):
	"""Raised when the port chosen for a new IGV instance is already bound."""

	def __init__(self, port: int) -> None:
		self.port = port
		super().__init__(f'Port {port} is already in use')


class LaunchError(IGVError):
	"""Raised when a spawned IGV process dies or cannot be executed before it is ready."""

	pass
