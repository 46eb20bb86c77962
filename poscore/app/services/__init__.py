"""Service layer for the POS core."""

from .kitchen import KitchenDispatch
from .settlement import SettlementCoordinator

__all__ = ["KitchenDispatch", "SettlementCoordinator"]
