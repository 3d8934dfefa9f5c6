# Server Registry - Data Model
#
# A ServerRecord is one network endpoint the application may talk to.
# Identity is the address (case-sensitive exact match); no two records in
# the registry share an address.

import sqlite3
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from ..core.exceptions import TransactionFailure


@dataclass(frozen=True)
class ServerRecord:
    """An endpoint in the server registry."""
    address: str
    protocol_type: str        # "http" / "https"
    port: str
    is_default: bool = False  # Installed from the bundled default resource

    @property
    def url(self) -> str:
        return f"{self.protocol_type}://{self.address}:{self.port}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "protocol_type": self.protocol_type,
            "port": self.port,
            "is_default": self.is_default,
        }

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "ServerRecord":
        return cls(
            address=row["address"],
            protocol_type=row["protocol_type"],
            port=row["port"],
            is_default=bool(row["is_default"]),
        )


class TransactionStatus(str, Enum):
    """Outcome of a record store transaction."""
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class TransactionResult:
    """Binary outcome reported once per transaction.

    ``error`` is set only for failures and carries the original cause.
    """
    status: TransactionStatus
    error: Optional[TransactionFailure] = None

    @property
    def succeeded(self) -> bool:
        return self.status == TransactionStatus.SUCCESS

    @classmethod
    def success(cls) -> "TransactionResult":
        return cls(status=TransactionStatus.SUCCESS)

    @classmethod
    def failure(cls, error: TransactionFailure) -> "TransactionResult":
        return cls(status=TransactionStatus.FAILURE, error=error)
