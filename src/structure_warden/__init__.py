"""structure-warden: structure compliance scanning and remediation for multi-module projects."""

__version__ = "1.0.0"
