"""Control the Integrative Genomics Viewer (IGV) through its batch command port.

Usage:
    from igv_remote import IGV

    igv = IGV.start()          # launch IGV and wait until it listens
    igv.genome('hg19')
    igv.load('reads.bam')
    igv.goto('chr1')
    igv.snapshot('chr1.png')
    igv.kill()

    with IGV.open(port=60151) as igv:   # attach to a running IGV
        igv.echo('Hello!')
"""

from igv_remote.exceptions import (
	IGVConnectionError,
	IGVError,
	InvalidArgument,
	InvalidOption,
	LaunchError,
	NotConnected,
	PortInUse,
)
from igv_remote.session import IGV

__version__ = '0.1.0'

__all__ = [
	'IGV',
	'IGVError',
	'IGVConnectionError',
	'InvalidArgument',
	'InvalidOption',
	'LaunchError',
	'NotConnected',
	'PortInUse',
]
