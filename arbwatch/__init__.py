"""arbwatch: CI push and build monitor over flat key/value push records.

Pushes, nested sub-pushes, builds and processed logs travel and persist as
an unordered map with hierarchical ``s:<kind>:<path>`` keys.  arbwatch
encodes synthetic pushes into that form and reconstructs push trees from
it for display and live feeds.
"""

__version__ = "0.2.0"
__description__ = "CI push and build monitor over flat key/value push records"

from arbwatch.core.encoder import FlatRecordEncoder
from arbwatch.core.reconstructor import TreeReconstructor
from arbwatch.cli.app import app as cli

__all__ = ["FlatRecordEncoder", "TreeReconstructor", "cli", "__version__"]
