"""patchregen - regenerate destination patch artifacts after a code migration."""

from .exceptions import RegenError, ValidationError
from .file_glob import Glob
from .models import AutoPatchConfig, RegenerationRequest, RegenerationResult, StrategyKind
from .regenerate import Regenerator, regenerate

__version__ = "0.1.0"

__all__ = [
    "AutoPatchConfig",
    "Glob",
    "RegenerationRequest",
    "RegenerationResult",
    "Regenerator",
    "RegenError",
    "StrategyKind",
    "ValidationError",
    "regenerate",
]
