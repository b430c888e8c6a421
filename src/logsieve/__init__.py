"""logsieve - grouped include/exclude filters for log files."""

__version__ = "0.1.0"
