"""Run a jq filter over YAML input.

Pipeline:

    YAML source(s) -> yaml_to_json -> jq stdin
    jq stdout -> json_to_yaml (with --yaml-output) or unchanged -> sink

The main thread feeds jq's stdin while a drainer thread reads jq's stdout.
Both pipes are small kernel buffers, and jq may start writing before it has
read all of its input, so reading and writing from a single thread could
block forever once both buffers fill.
"""

from __future__ import annotations

import enum
import io
import subprocess
import threading
from dataclasses import dataclass
from typing import BinaryIO, Optional

from .context import check_sources
from .errors import PipeError, YamlJqError
from .models import RunConfig
from .process_utils import EngineProcess
from .transcode import RECORD_SEPARATOR, copy_stream, json_to_yaml, yaml_to_json


class State(enum.Enum):
    CREATED = "created"
    STARTED = "started"
    INPUT_CLOSED = "input_closed"
    OUTPUT_DRAINED = "output_drained"
    EXITED = "exited"


_NEXT_STATE = {
    State.CREATED: State.STARTED,
    State.STARTED: State.INPUT_CLOSED,
    State.INPUT_CLOSED: State.OUTPUT_DRAINED,
    State.OUTPUT_DRAINED: State.EXITED,
}


@dataclass(frozen=True)
class RunResult:
    """Outcome of a run that hit no transcoding or pipe error.

    ``returncode`` is jq's own exit status and is not interpreted here.
    """

    returncode: int


def _has_fileno(stream: BinaryIO) -> bool:
    try:
        stream.fileno()
    except (AttributeError, OSError, ValueError, io.UnsupportedOperation):
        return False
    return True


class _Drainer(threading.Thread):
    """Reads jq's stdout until EOF, transcoding it or copying it through."""

    def __init__(self, source: BinaryIO, sink: BinaryIO, yaml_output: bool):
        super().__init__(name="yamljq-drain", daemon=True)
        self.source = source
        self.sink = sink
        self.yaml_output = yaml_output
        self.error: Optional[Exception] = None

    def run(self) -> None:
        try:
            if self.yaml_output:
                json_to_yaml(self.source, self.sink)
            else:
                copy_stream(self.source, self.sink)
        except Exception as e:
            # Recorded for the main thread, which raises it after the feed.
            self.error = e
            # Nobody reads jq's output any more; closing the pipe makes jq
            # fail its next write instead of blocking on a full buffer.
            self.source.close()


class Orchestrator:
    """Owns one jq run from start to exit.

    Args:
        config: Engine invocation, flags and named sources
        stdin: Binary stream read when no named sources are given
        stdout: Binary stream receiving the final output
    """

    def __init__(self, config: RunConfig, stdin: BinaryIO, stdout: BinaryIO):
        self.config = config
        self.stdin = stdin
        self.stdout = stdout
        self.state = State.CREATED
        self.engine = EngineProcess(config.argv)
        self._drainer: Optional[_Drainer] = None

    def _advance(self, target: State) -> None:
        if _NEXT_STATE.get(self.state) is not target:
            raise RuntimeError(
                f"invalid transition {self.state.value} -> {target.value}"
            )
        self.state = target

    def start(self) -> None:
        """Validate sources, launch jq and start draining its output."""
        check_sources(self.config.files)

        # Without back-conversion jq can write straight to a real sink.
        capture = self.config.yaml_output or not _has_fileno(self.stdout)
        self.stdout.flush()
        self.engine.start(subprocess.PIPE if capture else self.stdout)
        self._advance(State.STARTED)

        if capture:
            source = self.engine.output_source
            assert source is not None
            self._drainer = _Drainer(source, self.stdout, self.config.yaml_output)
            self._drainer.start()

    def feed(self) -> None:
        """Transcode every source into jq's stdin, then close it.

        The input pipe is closed exactly once, on success and on failure.
        """
        sink = self.engine.input_sink
        try:
            if not self.config.files:
                yaml_to_json(self.stdin, sink, "<stdin>")
            else:
                for i, name in enumerate(self.config.files):
                    try:
                        source = open(name, "rb")
                    except OSError as e:
                        raise YamlJqError(f"{name}: {e.strerror or e}") from e
                    with source:
                        if i:
                            sink.write(RECORD_SEPARATOR)
                        yaml_to_json(source, sink, name)
        except BrokenPipeError as e:
            raise PipeError(f"jq stdin: write failed: {e}") from e
        finally:
            self.engine.close_input()
            self._advance(State.INPUT_CLOSED)

    def finish(self) -> int:
        """Wait for the drainer and for jq; return jq's exit status."""
        if self._drainer is not None:
            self._drainer.join()
        self._advance(State.OUTPUT_DRAINED)
        returncode = self.engine.wait()
        self._advance(State.EXITED)
        return returncode

    def _abort(self) -> None:
        """Drain and reap jq after a failed transcode of the input."""
        if self.state is State.INPUT_CLOSED:
            self.finish()

    def run(self) -> RunResult:
        """Run the whole pipeline.

        A failed write to jq's stdin is raised as soon as the input pipe is
        closed, without waiting for jq; ``PipeError.returncode`` is set only
        if jq has already exited. ``finish()`` may still be called afterwards
        to reap it.

        Raises:
            YamlJqError: The first transcoding, pipe or startup failure. Output
                produced before the failure has already been written.
        """
        self.start()
        try:
            self.feed()
        except PipeError as e:
            # The drainer records its error before closing jq's stdout, so a
            # broken input pipe caused by that close already sees it here.
            drain_error = self._drainer.error if self._drainer else None
            if drain_error is not None:
                self._abort()
                raise drain_error from e
            e.returncode = self.engine.poll()
            raise
        except BaseException:
            self._abort()
            raise

        returncode = self.finish()
        if self._drainer is not None and self._drainer.error is not None:
            raise self._drainer.error
        return RunResult(returncode)


def run(config: RunConfig, stdin: BinaryIO, stdout: BinaryIO) -> RunResult:
    """Run ``config`` reading YAML from ``stdin`` and writing to ``stdout``."""
    return Orchestrator(config, stdin, stdout).run()


__all__ = ["Orchestrator", "RunResult", "State", "run"]
