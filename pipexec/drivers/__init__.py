"""Drivers for the ports pipexec consumes."""

from pipexec.drivers.local_process import LocalProcess

__all__ = ["LocalProcess"]
