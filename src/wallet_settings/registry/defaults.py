# Server Registry - Bundled Default Servers
#
# Read-only JSON resources shipped with the package, one per network:
#   resources/default_servers.json          main network
#   resources/testnet_default_servers.json  test network
#
# Each value is a [protocolType, address, port] triple. Entries are returned
# in file order; that order decides which default becomes active first.

import json
import logging
from importlib import resources
from pathlib import Path
from typing import List, NamedTuple, Optional, Union

from ..core.config import NETWORK_MAIN, NETWORK_TEST
from ..core.exceptions import InvalidDefaultResource
from .models import ServerRecord

logger = logging.getLogger(__name__)

RESOURCE_FILES = {
    NETWORK_MAIN: "default_servers.json",
    NETWORK_TEST: "testnet_default_servers.json",
}


class DefaultServer(NamedTuple):
    """One entry of the default server resource."""
    protocol_type: str
    address: str
    port: str

    def to_record(self) -> ServerRecord:
        return ServerRecord(
            address=self.address,
            protocol_type=self.protocol_type,
            port=self.port,
            is_default=True,
        )


class DefaultServerLoader:
    """Loads the default server list for a network.

    Args:
        network: "mainnet" or "testnet"; selects the bundled resource.
        path: Optional file to read instead of the bundled resource.
    """

    def __init__(self, network: str = NETWORK_MAIN, path: Optional[Union[str, Path]] = None):
        if network not in RESOURCE_FILES:
            raise ValueError(f"Unsupported network: {network!r}")
        self.network = network
        self.path = Path(path) if path else None

    def _read_text(self) -> str:
        if self.path is not None:
            return self.path.read_text(encoding="utf-8")
        resource = resources.files("wallet_settings") / "resources" / RESOURCE_FILES[self.network]
        return resource.read_text(encoding="utf-8")

    def load(self) -> List[DefaultServer]:
        """Parse the resource.

        Raises:
            InvalidDefaultResource: If the resource cannot be read or an
                entry is not a [protocolType, address, port] triple.
        """
        try:
            data = json.loads(self._read_text())
        except (OSError, ValueError) as exc:
            raise InvalidDefaultResource(f"Cannot read default servers: {exc}") from exc

        if not isinstance(data, dict):
            raise InvalidDefaultResource("Default server resource must be an object")

        servers = []
        for name, entry in data.items():
            if (
                not isinstance(entry, list)
                or len(entry) != 3
                or not all(isinstance(v, str) and v for v in entry)
            ):
                raise InvalidDefaultResource(
                    f"Default server '{name}' must be [protocolType, address, port]"
                )
            servers.append(DefaultServer(*entry))

        if not servers:
            raise InvalidDefaultResource("Default server resource lists no servers")

        logger.debug("Loaded %d default server(s) for %s", len(servers), self.network)
        return servers
