"""Bridge between an editor workspace and the TFVC command-line tool."""

__version__ = "0.1.0"
