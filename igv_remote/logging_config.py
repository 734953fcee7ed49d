import logging
import os

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'


def setup_logging(level: str | None = None) -> logging.Logger:
	"""Send igv_remote logs to stderr.

	Level comes from the argument, then IGV_LOGGING_LEVEL, then 'info'.
	Calling it again only changes the level.
	"""
	level_name = (level or os.environ.get('IGV_LOGGING_LEVEL') or 'info').upper()
	logger = logging.getLogger('igv_remote')
	logger.setLevel(getattr(logging, level_name, logging.INFO))

	if not any(getattr(handler, '_igv_remote', False) for handler in logger.handlers):
		handler = logging.StreamHandler()
		handler.setFormatter(logging.Formatter(LOG_FORMAT))
		handler._igv_remote = True  # type: ignore[attr-defined]
		logger.addHandler(handler)
	return logger
