from .adapter import AriesAdapter
from .aggregator import ProfilePositionAggregator

__all__ = ["AriesAdapter", "ProfilePositionAggregator"]
