"""Errors raised while transcoding and piping documents through jq."""

from __future__ import annotations


class YamlJqError(Exception):
    """Base class for every failure yamljq reports to the user."""

    pass


class DecodeError(YamlJqError):
    """Malformed YAML on the way in or malformed JSON on the way out."""

    def __init__(self, stream: str, reason: object):
        self.stream = stream
        self.reason = reason
        super().__init__(f"{stream}: {reason}")


class EncodeError(YamlJqError):
    """A document cannot be represented in the target format."""

    def __init__(self, stream: str, reason: object):
        self.stream = stream
        self.reason = reason
        super().__init__(f"{stream}: cannot encode document: {reason}")


class PipeError(YamlJqError):
    """Reading from or writing to a jq pipe failed.

    ``returncode`` is jq's exit status when it was already known at the time
    the error was raised, otherwise ``None``.
    """

    def __init__(self, message: str, returncode: int | None = None):
        self.returncode = returncode
        super().__init__(message)


class SourceNotFoundError(YamlJqError):
    """A named input file does not exist."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"{path}: no such file")


class ProcessStartError(YamlJqError):
    """jq could not be located or launched."""

    pass


__all__ = [
    "DecodeError",
    "EncodeError",
    "PipeError",
    "ProcessStartError",
    "SourceNotFoundError",
    "YamlJqError",
]
