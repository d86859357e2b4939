"""Tools for updating Kratix Promises on disk and running Promise pipeline stages."""

__version__ = "0.1.0"