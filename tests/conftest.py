"""Pytest configuration and shared fixtures."""

import shutil
import stat
import sys
import textwrap

import pytest
from click.testing import CliRunner

from yamljq.cli import cli
from yamljq.context import JQ_ENV_VAR

# Stand-in for jq. Understands just enough to exercise the pipes:
#   .        echo every input value (pretty unless -c), streaming line by line
#   -s       collect all inputs into one array
#   -n       print null without reading stdin
#   error    read all input, complain on stderr and exit 3
#   abort    complain on stderr and exit 3 without reading stdin
#   deep     print an array nested 600 levels deep, then echo inputs
#   garbage  print something that is not JSON
#   empty    read everything, print nothing, exit 0
FAKE_JQ = textwrap.dedent(
    """\
    import json
    import sys

    args = sys.argv[1:]
    flags = [a for a in args if a.startswith("-")]
    query = next((a for a in args if not a.startswith("-")), ".")
    indent = None if "-c" in flags else 2
    separators = (",", ":") if indent is None else None

    def write(text):
        try:
            sys.stdout.write(text)
            sys.stdout.flush()
        except BrokenPipeError:
            sys.exit(1)

    def emit(value):
        write(json.dumps(value, indent=indent, separators=separators) + "\\n")

    if query == "error":
        sys.stdin.read()
        sys.stderr.write("jq: error: compile error\\n")
        sys.exit(3)
    if query == "abort":
        sys.stderr.write("jq: error: compile error\\n")
        sys.exit(3)
    if "-n" in flags:
        emit(None)
        sys.exit(0)
    if query == "garbage":
        write("{not json\\n")
        sys.exit(0)

    if query == "deep":
        write("[" * 600 + "]" * 600 + "\\n")

    values = []
    for line in sys.stdin:
        if not line.strip():
            continue
        value = json.loads(line)
        if "-s" in flags or query == "empty":
            values.append(value)
        else:
            emit(value)
    if "-s" in flags:
        emit(values)
    """
)


@pytest.fixture
def fake_jq(tmp_path):
    """Path to an executable jq stand-in written in Python."""
    path = tmp_path / "fake-jq"
    path.write_text(f"#!{sys.executable}\n{FAKE_JQ}")
    path.chmod(path.stat().st_mode | stat.S_IXUSR)
    return str(path)


@pytest.fixture(autouse=True)
def clear_jq_env(monkeypatch):
    """Keep a developer's $YAMLJQ_JQ from leaking into tests."""
    monkeypatch.delenv(JQ_ENV_VAR, raising=False)


@pytest.fixture
def cli_runner():
    """Provide Click CLI test runner."""
    try:
        return CliRunner(mix_stderr=False)
    except TypeError:
        # Click >= 8.2 always keeps stderr separate
        return CliRunner()


@pytest.fixture
def invoke(cli_runner):
    """Helper to invoke the CLI with args and optional input.

    Usage:
        result = invoke(["-y", ".", "file.yaml"])
        result = invoke([".", "--jq", fake_jq], input_data="foo: bar\\n")
    """

    def _invoke(args, input_data=None):
        return cli_runner.invoke(cli, args, input=input_data)

    return _invoke


@pytest.fixture
def sample_yaml():
    """Two YAML documents with an empty one in between."""
    return "---\nfoo: bar\n---\n---\nbar: baz\n---\n"


@pytest.fixture
def real_jq():
    """Path to a real jq, or skip."""
    path = shutil.which("jq")
    if path is None:
        pytest.skip("jq not installed")
    return path

