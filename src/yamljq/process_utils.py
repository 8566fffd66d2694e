"""Subprocess handle for the jq filter engine.

Wraps ``subprocess.Popen`` with argv validation and exposes only what the
transcoders need: the write end of jq's stdin and, when captured, the read
end of its stdout.
"""

from __future__ import annotations

import os
import subprocess
from collections.abc import Sequence
from typing import IO, Any

from .errors import ProcessStartError

CommandArg = str | os.PathLike[str]


def _normalize_command(cmd: Sequence[CommandArg]) -> list[str]:
    """Validate and normalize subprocess command arguments."""
    if not cmd:
        msg = "Command must include at least one argument"
        raise ValueError(msg)

    normalized: list[str] = []
    for i, arg in enumerate(cmd):
        if isinstance(arg, os.PathLike):
            value = os.fspath(arg)
        elif isinstance(arg, str):
            value = arg
        else:
            msg = "Command arguments must be strings or os.PathLike"
            raise TypeError(msg)

        # Filter expressions and --arg values may legitimately be blank;
        # only the executable itself must name something.
        if i == 0 and not value.strip():
            msg = "Executable path cannot be empty or whitespace"
            raise ValueError(msg)

        normalized.append(value)

    return normalized


def popen_with_validation(
    cmd: Sequence[CommandArg], **kwargs: Any
) -> subprocess.Popen[Any]:
    """Run subprocess.Popen with validation to satisfy security lint checks."""
    normalized_cmd = _normalize_command(cmd)
    return subprocess.Popen(normalized_cmd, **kwargs)  # noqa: S603


class EngineProcess:
    """Owns the jq process and its pipes.

    Usage:
        engine = EngineProcess(argv)
        engine.start()
        engine.input_sink.write(b'{"a":1}')
        engine.close_input()
        for chunk in engine.output_source: ...
        status = engine.wait()
    """

    def __init__(self, argv: Sequence[CommandArg]):
        self.argv = _normalize_command(argv)
        self._proc: subprocess.Popen[bytes] | None = None

    @property
    def started(self) -> bool:
        return self._proc is not None

    def start(self, stdout: IO[bytes] | int = subprocess.PIPE) -> None:
        """Launch jq with a stdin pipe.

        Args:
            stdout: ``subprocess.PIPE`` to capture jq's output, or a file
                object with a real descriptor for jq to write to directly.

        Raises:
            ProcessStartError: jq could not be executed
        """
        if self._proc is not None:
            raise RuntimeError("engine already started")
        try:
            self._proc = popen_with_validation(
                self.argv,
                stdin=subprocess.PIPE,
                stdout=stdout,
                stderr=None,
            )
        except OSError as e:
            reason = e.strerror or str(e)
            raise ProcessStartError(f"{self.argv[0]}: {reason}") from e

    def _require(self) -> subprocess.Popen[bytes]:
        if self._proc is None:
            raise RuntimeError("engine not started")
        return self._proc

    @property
    def input_sink(self) -> IO[bytes]:
        stdin = self._require().stdin
        assert stdin is not None
        return stdin

    @property
    def output_source(self) -> IO[bytes] | None:
        """jq's stdout, or None when jq writes straight to the final sink."""
        return self._require().stdout

    def close_input(self) -> None:
        """Close jq's stdin. Safe to call more than once."""
        stdin = self._require().stdin
        if stdin is None or stdin.closed:
            return
        try:
            stdin.close()
        except BrokenPipeError:
            # jq already stopped reading; the write that hit this was
            # reported when it happened.
            pass

    def close_output(self) -> None:
        stdout = self._require().stdout
        if stdout is not None and not stdout.closed:
            stdout.close()

    def poll(self) -> int | None:
        return self._require().poll()

    def wait(self) -> int:
        return self._require().wait()


__all__ = ["EngineProcess", "popen_with_validation"]
