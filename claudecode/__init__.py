"""claudecode: concurrent Claude chat sessions rendered into display buffers."""

__version__ = "0.1.0"
