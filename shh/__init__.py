"""shh — pick a remembered SSH host and connect."""

__version__ = "0.1.0"
