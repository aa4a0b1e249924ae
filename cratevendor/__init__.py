"""cratevendor: pinned crate coordinates to verified, offline vendor trees.

Parses the CRATES list of a source-based package build, synthesizes
deterministic download descriptors for the distribution's fetch phase,
verifies the archives that phase retrieved, and assembles a vendor tree
plus cargo source-replacement config for network-free builds.
"""

__version__ = "0.1.0"

from cratevendor.core.resolver import VendorResolver
from cratevendor.core.uri_synthesizer import RegistryTemplate
from cratevendor.cli.app import app as cli

__all__ = ["VendorResolver", "RegistryTemplate", "cli", "__version__"]
