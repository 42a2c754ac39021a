"""wblocks - bootstrap and runtime shim for hosted user scripts."""

__app_name__ = "wblocks"
__version__ = "0.2.0"
