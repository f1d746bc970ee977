"""Zeroing byte buffers, SSH client configuration parsing and proxy-command streams."""

__version__ = "0.1.0"
__all__ = ["config", "cryptovec", "proxy"]