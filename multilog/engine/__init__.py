from multilog.engine.engine import Engine, EngineState
from multilog.engine.recoverer import IndexRecoverer, RecoveryStats

__all__ = ["Engine", "EngineState", "IndexRecoverer", "RecoveryStats"]
