"""Numeric process exit codes for the ``sightline`` command line.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~sightline_api.exceptions.SightlineError` subclass.
Shell wrappers can inspect the exit code to determine the failure class
without parsing stderr.

Example::

    $ sightline find managed_objects
    $ echo $?
    6   # EXIT_TRANSPORT_ERROR -- the leader could not be reached
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_CONFIG_ERROR = 3
"""The configuration file or environment is missing required settings."""

EXIT_API_ERROR = 4
"""The API returned an error status or an embedded error document."""

EXIT_NO_DATA = 5
"""The API returned an empty body."""

EXIT_TRANSPORT_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, SOAP fault)."""

EXIT_DOCUMENT_ERROR = 7
"""A request document could not be built."""

EXIT_PAGING_ERROR = 8
"""The number of result pages could not be determined."""
