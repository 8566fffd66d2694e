"""Environment lookups: the jq executable and named input sources."""

import os
import shutil
from pathlib import Path
from typing import Iterable, Optional

from .errors import ProcessStartError, SourceNotFoundError

JQ_ENV_VAR = "YAMLJQ_JQ"


def _is_executable(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)


def resolve_jq_path(jq_option: Optional[str] = None) -> str:
    """Locate the jq executable.

    Resolution order:
    1. --jq CLI option (explicit override)
    2. $YAMLJQ_JQ environment variable
    3. jq in PATH

    Reads fresh from the environment each time.

    Args:
        jq_option: Value of --jq if provided

    Returns:
        Path to the jq executable

    Raises:
        ProcessStartError: If no usable jq was found
    """
    # 1. and 2. Explicit overrides must point at something runnable
    for origin, candidate in (
        ("--jq", jq_option),
        (f"${JQ_ENV_VAR}", os.environ.get(JQ_ENV_VAR)),
    ):
        if not candidate:
            continue
        found = shutil.which(candidate)
        if found and _is_executable(Path(found)):
            return found
        raise ProcessStartError(
            f"jq executable from {origin} not found: {candidate}"
        )

    # 3. PATH
    path_jq = shutil.which("jq")
    if path_jq:
        return path_jq

    raise ProcessStartError(
        "jq not found in PATH. Install it from https://jqlang.github.io/jq/ "
        f"or point ${JQ_ENV_VAR} at the executable."
    )


def check_sources(files: Iterable[str]) -> None:
    """Fail on the first named source that is not a readable file.

    Raises:
        SourceNotFoundError: For a missing path or a directory
    """
    for name in files:
        if not Path(name).is_file():
            raise SourceNotFoundError(name)
