"""Exception types raised by the behavior embedding engine."""


class BehaviorEngineError(Exception):
    """Base class for all engine errors."""


class StoreError(BehaviorEngineError):
    """A store query, save or transaction failed."""


class CodecError(BehaviorEngineError, ValueError):
    """A stored vector string could not be decoded."""


class ConfigError(BehaviorEngineError, ValueError):
    """Configuration values are invalid or could not be read."""


class RecomputeInProgressError(BehaviorEngineError):
    """Another recompute run is already in flight."""
