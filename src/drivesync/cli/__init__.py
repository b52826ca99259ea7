"""drivesync CLI: browse a drive and copy files between it and the local disk."""

from ._helpers import main  # noqa: F401 (entry point)

# Import command modules to register Click commands with the main group.
from . import _basic, _transfer  # noqa: F401
