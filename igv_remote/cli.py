#!/usr/bin/env python3
"""Command line access to a running IGV.

Examples:
    igv-remote echo
    igv-remote goto chr1:10000-20000
    igv-remote load reads.bam --index reads.bam.bai
    igv-remote snapshot figures/chr1.png
    igv-remote batch session.igv
    igv-remote start --command "xvfb-run -a igv"
"""

import argparse
import json
import logging
import sys
import time

from igv_remote.config import load_config
from igv_remote.exceptions import IGVError
from igv_remote.logging_config import setup_logging
from igv_remote.session import IGV

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
	"""Build argument parser with all commands."""
	parser = argparse.ArgumentParser(
		prog='igv-remote',
		description='Send batch commands to IGV over its command port',
		formatter_class=argparse.RawDescriptionHelpFormatter,
		epilog=__doc__.split('Examples:', 1)[1] if __doc__ else None,
	)

	# Global flags
	parser.add_argument('--host', help='IGV host (default: IGV_HOST or 127.0.0.1)')
	parser.add_argument('--port', '-p', type=int, help='IGV batch port (default: IGV_PORT or 60151)')
	parser.add_argument('--snapshot-dir', help='Snapshot directory (default: IGV_SNAPSHOT_DIR or current directory)')
	parser.add_argument('--timeout', type=float, help='Connect timeout in seconds')
	parser.add_argument('--log-level', choices=['debug', 'info', 'warning', 'error', 'critical'], help='Logging level')
	parser.add_argument('--json', action='store_true', help='Output as JSON')

	subparsers = parser.add_subparsers(dest='command', help='Command to execute')

	# echo [text]
	p = subparsers.add_parser('echo', help='Check that IGV answers')
	p.add_argument('text', nargs='?', help='Text IGV should echo back')

	# send <word>...
	p = subparsers.add_parser('send', help='Send any batch command')
	p.add_argument('words', nargs='+', help='Command name and arguments')

	# goto <locus>...
	p = subparsers.add_parser('goto', help='Go to one or more loci')
	p.add_argument('loci', nargs='+', help='Locus, gene name or feature')

	# load <path> [--index]
	p = subparsers.add_parser('load', help='Load a file or URL')
	p.add_argument('path', help='Local path or URL')
	p.add_argument('--index', help='Index file or URL')

	# snapshot [path]
	p = subparsers.add_parser('snapshot', help='Save an image of the current view')
	p.add_argument('path', nargs='?', help='Image path (IGV picks a name if not provided)')

	# batch <file>
	p = subparsers.add_parser('batch', help='Run an IGV batch script')
	p.add_argument('file', help='Batch script, one command per line')

	# start
	p = subparsers.add_parser('start', help='Launch IGV and keep it running until Ctrl-C')
	p.add_argument('--command', dest='igv_command', help='IGV executable (default: IGV_COMMAND or igv)')
	p.add_argument('--no-check-port', action='store_true', help='Skip the port-in-use check')

	return parser


def _print_result(args: argparse.Namespace, command: str | list[str], response: object) -> None:
	if args.json:
		print(json.dumps({'command': command, 'response': response}))
	elif response is None:
		print('No response from IGV', file=sys.stderr)
	elif isinstance(response, list):
		for line in response:
			if line is None:
				print('No response from IGV', file=sys.stderr)
			else:
				print(line)
	else:
		print(response)


def _answered_line(sent: list[str], name: str) -> str:
	"""The line whose answer is reported; snapshot into another directory also retargets around it."""
	for line in sent:
		if line.split(' ', 1)[0] == name:
			return line
	return sent[-1] if sent else name


def run_start(args: argparse.Namespace) -> int:
	igv = IGV.start(
		port=args.port,
		command=args.igv_command,
		snapshot_dir=args.snapshot_dir,
		timeout=args.timeout,
		check_port=not args.no_check_port,
	)
	print(f'IGV is running on port {igv.port} (PGID {igv.process_group_id}). Press Ctrl-C to stop it.')
	try:
		while igv.process is not None and igv.process.popen is not None and igv.process.popen.poll() is None:
			time.sleep(0.5)
		print('IGV exited')
	except KeyboardInterrupt:
		igv.kill()
	finally:
		igv.close()
	return 0


def run_command(args: argparse.Namespace) -> int:
	with IGV.open(host=args.host, port=args.port, snapshot_dir=args.snapshot_dir, timeout=args.timeout) as igv:
		start = len(igv.history)
		if args.command == 'echo':
			response = igv.echo(args.text)
		elif args.command == 'send':
			response = igv.send(*args.words)
		elif args.command == 'goto':
			response = igv.goto(*args.loci)
		elif args.command == 'load':
			response = igv.load(args.path, index=args.index)
		elif args.command == 'snapshot':
			response = igv.snapshot(args.path)
		elif args.command == 'batch':
			response = igv.run_batch(args.file)
		else:
			raise ValueError(f'Unknown command: {args.command}')
		sent = igv.history[start:]

	if isinstance(response, list):
		_print_result(args, sent, response)
		return 0 if None not in response else 1

	name = args.words[0].split()[0] if args.command == 'send' else args.command
	_print_result(args, _answered_line(sent, name), response)
	return 0 if response is not None else 1


def main(argv: list[str] | None = None) -> int:
	"""Main entry point."""
	parser = build_parser()
	args = parser.parse_args(argv)

	if not args.command:
		parser.print_help()
		return 0

	setup_logging(args.log_level or load_config().logging_level)

	logger.debug(f'Running {args.command}')
	try:
		if args.command == 'start':
			return run_start(args)
		return run_command(args)
	except (IGVError, OSError) as e:
		print(f'Error: {e}', file=sys.stderr)
		return 1
	except KeyboardInterrupt:
		return 130


if __name__ == '__main__':
	sys.exit(main())
