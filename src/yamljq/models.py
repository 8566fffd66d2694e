"""Immutable run configuration for yamljq."""

from __future__ import annotations

from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

# (flag attribute, jq switch) in the order they are rendered.
_SWITCHES: Tuple[Tuple[str, str], ...] = (
    ("compact", "-c"),
    ("null_input", "-n"),
    ("exit_status", "-e"),
    ("slurp", "-s"),
    ("raw_output", "-r"),
    ("join_output", "-j"),
    ("ascii_output", "-a"),
    ("raw_input", "-R"),
    ("color", "-C"),
    ("monochrome", "-M"),
    ("sort_keys", "-S"),
    ("tab", "--tab"),
)

NamedValue = Tuple[str, str]


class JqOptions(BaseModel):
    """jq flags passed through to the engine."""

    model_config = ConfigDict(frozen=True)

    compact: bool = False
    null_input: bool = False
    exit_status: bool = False
    slurp: bool = False
    raw_output: bool = False
    join_output: bool = False
    ascii_output: bool = False
    raw_input: bool = False
    color: bool = False
    monochrome: bool = False
    sort_keys: bool = False
    tab: bool = False
    indent: Optional[int] = Field(default=None, ge=0, le=7)
    args: Tuple[NamedValue, ...] = ()
    argjson: Tuple[NamedValue, ...] = ()
    slurpfile: Tuple[NamedValue, ...] = ()
    rawfile: Tuple[NamedValue, ...] = ()
    positional_mode: Optional[Literal["args", "jsonargs"]] = None

    def to_argv(self) -> List[str]:
        """Render the flags as jq arguments (filter and positionals excluded)."""
        argv = [switch for attr, switch in _SWITCHES if getattr(self, attr)]
        if self.indent is not None:
            argv.extend(["--indent", str(self.indent)])
        for flag, pairs in (
            ("--arg", self.args),
            ("--argjson", self.argjson),
            ("--slurpfile", self.slurpfile),
            ("--rawfile", self.rawfile),
        ):
            for name, value in pairs:
                argv.extend([flag, name, value])
        return argv


class RunConfig(BaseModel):
    """Everything needed to run one filter: engine, flags and sources."""

    model_config = ConfigDict(frozen=True)

    jq_path: str
    filter: str
    options: JqOptions = Field(default_factory=JqOptions)
    files: Tuple[str, ...] = ()
    positional: Tuple[str, ...] = ()
    yaml_output: bool = False

    @property
    def argv(self) -> List[str]:
        """Engine invocation: path, flags, filter, then positional values.

        Named sources are not part of the invocation; yamljq transcodes them
        and feeds jq through stdin.
        """
        argv = [self.jq_path, *self.options.to_argv(), self.filter]
        if self.options.positional_mode is not None:
            argv.append(f"--{self.options.positional_mode}")
            argv.extend(self.positional)
        return argv


__all__ = ["JqOptions", "RunConfig"]
