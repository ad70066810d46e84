"""Title Catalog - groups discovered titles with their updates and DLC."""

from .version import load_version

__version__ = load_version()
