"""shift: track time spent on named tasks from an append-only event log."""

__version__ = "0.1.0"
