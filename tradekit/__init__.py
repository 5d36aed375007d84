"""Trading strategy building blocks: market data types, strategy bases, configuration, logging, and simulated futures and spot exchanges for backtesting."""

__version__ = "0.1.0"

__all__ = [
    "conv",
    "depthbook",
    "generatesim",
    "ids",
    "logfacade",
    "mathutil",
    "models",
    "rotlog",
    "serve",
    "spot",
    "spotsim",
    "stats",
    "strategy",
]