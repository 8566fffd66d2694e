"""yamljq: run jq filters over YAML documents."""

from .errors import (
    DecodeError,
    EncodeError,
    PipeError,
    ProcessStartError,
    SourceNotFoundError,
    YamlJqError,
)
from .models import JqOptions, RunConfig
from .orchestrator import RunResult, run

__all__ = [
    "DecodeError",
    "EncodeError",
    "JqOptions",
    "PipeError",
    "ProcessStartError",
    "RunConfig",
    "RunResult",
    "SourceNotFoundError",
    "YamlJqError",
    "__version__",
    "run",
]

__version__ = "0.1.0"
