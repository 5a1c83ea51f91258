# Model package init
from .partition_state import PartitionState  # noqa: F401 re-export

__all__ = ["PartitionState"]
