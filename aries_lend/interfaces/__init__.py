"""Protocol interfaces for the Aries account engine."""
from .chain import ChainClient
from .lending_source import LendingDataSource
from .price_oracle import PriceOracle
from .protocol_adapter import ProtocolAdapter

__all__ = ["ChainClient", "LendingDataSource", "PriceOracle", "ProtocolAdapter"]
