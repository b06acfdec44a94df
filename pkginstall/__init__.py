"""pkginstall - local installation engine for packaged software.

Unpacks package archives, builds their native extensions and publishes
their executables as shared commands.
"""

__version__ = "0.1.0"
