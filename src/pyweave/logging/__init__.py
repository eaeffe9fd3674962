"""PyWeave Logging — hexagonal logging port and adapters."""

from pyweave.logging.port import LoggingPort
from pyweave.logging.structlog_adapter import StructlogAdapter

__all__ = ["LoggingPort", "StructlogAdapter"]
