"""GPS lap timing: line-crossing detection, timing states, text display pages and command handling."""

__version__ = "0.1.0"