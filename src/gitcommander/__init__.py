"""GitCommander — drive git from the command line and read back repository state."""

__version__ = "0.1.0"
