#!/usr/bin/env python3
"""
Errors raised while deriving the bonded topology.

Every failure in topology construction is unrecoverable for the given input:
the caller must supply a different atom list or bonding topology. All such
failures are reported with a single exception type carrying a kind.

Classes:
    TopologyErrorKind: Category of a construction failure
    TopologyError: Exception raised by the topology builders
"""

from enum import Enum
from typing import Any, Dict, Optional


MY_NAME = "mm4-topology"


class TopologyErrorKind(Enum):
    """Category of a topology construction failure."""
    MALFORMED_INPUT = "MALFORMED_INPUT"
    UNSUPPORTED_TOPOLOGY = "UNSUPPORTED_TOPOLOGY"
    INTERNAL_INCONSISTENCY = "INTERNAL_INCONSISTENCY"


class TopologyError(Exception):
    """Exception for topology construction errors with JSON-formatted error message."""

    def __init__(self, message: str,
                 kind: TopologyErrorKind = TopologyErrorKind.MALFORMED_INPUT,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.json_error = {
            "STATUS": "ERROR",
            "ERROR_CODE": kind.value,
            "ERROR_MESSAGE": f"#{MY_NAME}: {message}",
            "ERROR_DETAILS": details if details else {}
        }

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"
