from .config import ACOParameters, load_config
from .metrics import ConvergenceMetrics

__all__ = ["ACOParameters", "load_config", "ConvergenceMetrics"]
