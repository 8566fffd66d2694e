"""Streaming YAML <-> JSON transcoders.

Ingress: YAML document stream -> JSON records (one per non-empty document).
Egress: concatenated JSON texts (as jq prints them) -> YAML document stream.

Both directions work one document at a time, so memory use is bounded by
the largest single document rather than by the length of the stream.
"""

from __future__ import annotations

import base64
import codecs
import datetime
import io
import json
import re
from typing import Any, BinaryIO, Iterator

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .errors import DecodeError, EncodeError, PipeError

# Written between JSON records, and by the orchestrator between sources.
RECORD_SEPARATOR = b"\n"
DOCUMENT_SEPARATOR = b"---\n"
CHUNK_SIZE = 65536

_DOCUMENT_END = "\n...\n"
_WHITESPACE = re.compile(r"[ \t\n\r]*")
_STRUCTURAL = re.compile(r'[\[\]{}"]')
_STRING_SPECIAL = re.compile(r'["\\]')
_CONTAINER_START = "[{\""


def _json_default(value: Any) -> Any:
    # YAML timestamps and !!binary have no JSON counterpart; use their
    # conventional string forms.
    if isinstance(value, (datetime.datetime, datetime.date)):
        return value.isoformat()
    if isinstance(value, bytes):
        return base64.b64encode(value).decode("ascii")
    raise TypeError(f"{type(value).__name__} is not JSON serializable")


def _read_chunk(source: BinaryIO) -> bytes:
    """Return whatever is available, without waiting for a full chunk."""
    read1 = getattr(source, "read1", None)
    if read1 is not None:
        return read1(CHUNK_SIZE)
    return source.read(CHUNK_SIZE)


def _write(sink: BinaryIO, data: bytes, target: str) -> None:
    try:
        sink.write(data)
        sink.flush()
    except OSError as e:
        raise PipeError(f"{target}: write failed: {e}") from e


def iter_yaml_documents(
    source: BinaryIO, name: str = "<stdin>"
) -> Iterator[Any]:
    """Lazily decode a YAML document stream.

    Empty documents (``---`` followed directly by another ``---`` or by the
    end of the stream) are yielded as ``None`` so callers see every document
    boundary.

    Raises:
        DecodeError: On malformed YAML, including duplicate mapping keys.
    """
    yaml = YAML(typ="safe", pure=True)
    documents = yaml.load_all(source)
    while True:
        try:
            document = next(documents)
        except StopIteration:
            return
        except YAMLError as e:
            raise DecodeError(name, e) from e
        except RecursionError as e:
            raise DecodeError(name, "document nested too deeply") from e
        yield document


def encode_json(document: Any, name: str = "<stdin>") -> bytes:
    """Serialize one document as a compact JSON record.

    Raises:
        EncodeError: If the document has no JSON representation (non-finite
            floats, non-scalar mapping keys, unknown types).
    """
    try:
        text = json.dumps(
            document,
            ensure_ascii=False,
            allow_nan=False,
            separators=(",", ":"),
            default=_json_default,
        )
        return text.encode("utf-8")
    except (TypeError, ValueError) as e:
        raise EncodeError(name, e) from e
    except RecursionError as e:
        raise EncodeError(name, "document nested too deeply") from e


def yaml_to_json(
    source: BinaryIO, sink: BinaryIO, name: str = "<stdin>"
) -> int:
    """Transcode a YAML document stream into JSON records.

    Each document is decoded, encoded and written before the next one is
    read. Null documents are consumed but never written. Records are
    separated by RECORD_SEPARATOR; nothing is written after the last one, so
    callers concatenating several sources must insert a separator themselves.

    Args:
        source: Binary stream of YAML
        sink: Binary stream receiving JSON records (usually jq's stdin)
        name: Stream name used in error messages

    Returns:
        Number of records written

    Raises:
        DecodeError: Malformed YAML; records for earlier documents stay written
        EncodeError: A document with no JSON representation
        PipeError: Writing to ``sink`` failed
    """
    written = 0
    for document in iter_yaml_documents(source, name):
        if document is None:
            continue
        record = encode_json(document, name)
        if written:
            record = RECORD_SEPARATOR + record
        _write(sink, record, "jq stdin")
        written += 1
    return written


def _try_decode(
    decoder: json.JSONDecoder, buffer: str, start: int
) -> tuple[Any, int] | None:
    try:
        return decoder.raw_decode(buffer, start)
    except json.JSONDecodeError:
        return None


class _ValueScanner:
    """Finds the end of an object, array or string without decoding it.

    Scanning resumes where the previous call stopped, so a value spread over
    many chunks is looked at once rather than once per chunk.
    """

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        self.pos: int | None = None
        self.depth = 0
        self.in_string = False
        self.escape = False

    def shift(self, offset: int) -> None:
        if self.pos is not None:
            self.pos -= offset

    def scan(self, buffer: str, start: int) -> int | None:
        """Return the index just past the value at ``start``, or None."""
        i = start if self.pos is None else self.pos
        n = len(buffer)
        while i < n:
            if self.in_string:
                if self.escape:
                    self.escape = False
                    i += 1
                    continue
                m = _STRING_SPECIAL.search(buffer, i)
                if m is None:
                    i = n
                    break
                i = m.end()
                if m.group() == "\\":
                    self.escape = True
                    continue
                self.in_string = False
                if self.depth == 0:
                    self.pos = i
                    return i
                continue

            m = _STRUCTURAL.search(buffer, i)
            if m is None:
                i = n
                break
            i = m.end()
            ch = m.group()
            if ch == '"':
                self.in_string = True
            elif ch in "[{":
                self.depth += 1
            else:
                self.depth -= 1
                if self.depth <= 0:
                    self.pos = i
                    return i
        self.pos = i
        return None


def iter_json_values(
    source: BinaryIO, name: str = "jq output"
) -> Iterator[Any]:
    """Stream JSON values from a whitespace-separated concatenation.

    Handles both compact and pretty-printed jq output. A top-level array is a
    single value; it is never split into its elements. Each value is decoded
    once, when it is complete.

    Raises:
        DecodeError: On malformed or truncated JSON
    """
    decoder = json.JSONDecoder()
    utf8 = codecs.getincrementaldecoder("utf-8")()
    scanner = _ValueScanner()
    buffer = ""
    start = 0
    eof = False

    while True:
        if scanner.pos is None:
            start = _WHITESPACE.match(buffer, start).end()

        if start < len(buffer):
            if buffer[start] in _CONTAINER_START:
                complete = scanner.scan(buffer, start) is not None
            else:
                # A number or literal running up to the end of the buffer
                # may continue in the next chunk.
                decoded = _try_decode(decoder, buffer, start)
                complete = decoded is not None and decoded[1] < len(buffer)

            if complete or eof:
                scanner.reset()
                try:
                    value, start = decoder.raw_decode(buffer, start)
                except json.JSONDecodeError as e:
                    raise DecodeError(name, e) from e
                except RecursionError as e:
                    raise DecodeError(name, "value nested too deeply") from e
                yield value
                continue
        elif eof:
            return

        try:
            chunk = _read_chunk(source)
        except OSError as e:
            raise PipeError(f"{name}: read failed: {e}") from e
        try:
            if chunk:
                text = utf8.decode(chunk)
            else:
                text = utf8.decode(b"", final=True)
                eof = True
        except UnicodeDecodeError as e:
            raise DecodeError(name, e) from e
        buffer = buffer[start:] + text
        scanner.shift(start)
        start = 0


def encode_yaml(document: Any) -> bytes:
    """Serialize one document as a block-style YAML document."""
    yaml = YAML()
    yaml.indent(mapping=2, sequence=2, offset=0)
    yaml.default_flow_style = False
    yaml.allow_unicode = True
    out = io.StringIO()
    yaml.dump(document, out)
    text = out.getvalue()
    # Root plain scalars get an explicit document end marker; the following
    # separator (or end of stream) already terminates them.
    if text.endswith(_DOCUMENT_END):
        text = text[: -len(_DOCUMENT_END) + 1]
    return text.encode("utf-8")


def json_to_yaml(
    source: BinaryIO, sink: BinaryIO, name: str = "jq output"
) -> int:
    """Transcode concatenated JSON values into a YAML document stream.

    Documents are written in source order with ``---`` between them (none
    before the first).

    Returns:
        Number of documents written

    Raises:
        DecodeError: Malformed JSON; documents already written stay written
        EncodeError: A value ruamel.yaml cannot represent
        PipeError: Reading ``source`` or writing ``sink`` failed
    """
    written = 0
    for value in iter_json_values(source, name):
        try:
            document = encode_yaml(value)
        except YAMLError as e:
            raise EncodeError(name, e) from e
        except RecursionError as e:
            raise EncodeError(name, "value nested too deeply") from e
        if written:
            document = DOCUMENT_SEPARATOR + document
        _write(sink, document, "output")
        written += 1
    return written


def copy_stream(source: BinaryIO, sink: BinaryIO) -> int:
    """Copy ``source`` to ``sink`` unchanged, flushing as data arrives."""
    total = 0
    while True:
        try:
            chunk = _read_chunk(source)
        except OSError as e:
            raise PipeError(f"jq output: read failed: {e}") from e
        if not chunk:
            return total
        _write(sink, chunk, "output")
        total += len(chunk)


__all__ = [
    "CHUNK_SIZE",
    "DOCUMENT_SEPARATOR",
    "RECORD_SEPARATOR",
    "copy_stream",
    "encode_json",
    "encode_yaml",
    "iter_json_values",
    "iter_yaml_documents",
    "json_to_yaml",
    "yaml_to_json",
]
