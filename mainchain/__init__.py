from .state import MainChainOracle, MainState

__all__ = ["MainChainOracle", "MainState"]
