"""lmcode - context assembly and output cleanup for local code models."""

__version__ = "0.1.0"
