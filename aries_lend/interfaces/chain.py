"""Chain client protocol: Aptos REST abstraction."""
from typing import Any, Protocol


class ChainClient(Protocol):
    """Abstract interface for reading Aptos on-chain state."""

    async def get_account_resource(
        self, address: str, resource_type: str
    ) -> dict[str, Any]: ...

    async def view(
        self, function: str, type_arguments: list[str], arguments: list[Any]
    ) -> list[Any]: ...

    async def get_table_item(
        self, handle: str, key_type: str, value_type: str, key: Any
    ) -> dict[str, Any]: ...
