"""Linux performance monitors, GPU tool parsers, samplers, adaptive compression and SQLite storage."""

__version__ = "0.1.0"
__all__ = [
    "adaptive",
    "cpu",
    "disk",
    "exporter",
    "gpu",
    "memory",
    "network",
    "process",
    "sampler",
    "storage",
    "threaded",
]