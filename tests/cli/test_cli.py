"""Outside-in tests for the yamljq command."""

import importlib
import json
import signal

import pytest

from yamljq import __version__
from yamljq.context import JQ_ENV_VAR
from yamljq.errors import PipeError
from yamljq.orchestrator import RunResult

cli_main = importlib.import_module("yamljq.cli.main")


def test_no_arguments_prints_usage(invoke):
    res = invoke([])
    assert res.exit_code == 2
    assert "Usage" in res.stderr


def test_version(invoke):
    res = invoke(["--version"])
    assert res.exit_code == 0
    assert __version__ in res.output


def test_json_output(invoke, fake_jq, sample_yaml):
    res = invoke(["--jq", fake_jq, "-c", "."], input_data=sample_yaml)
    assert res.exit_code == 0, res.stderr
    assert [json.loads(line) for line in res.stdout.splitlines()] == [
        {"foo": "bar"},
        {"bar": "baz"},
    ]


def test_yaml_output(invoke, fake_jq):
    res = invoke(
        ["--jq", fake_jq, "-y", "."], input_data="foo: bar\n---\nbar: baz\n"
    )
    assert res.exit_code == 0, res.stderr
    assert res.stdout == "foo: bar\n---\nbar: baz\n"


def test_jq_from_environment(invoke, fake_jq, monkeypatch):
    monkeypatch.setenv(JQ_ENV_VAR, fake_jq)
    res = invoke(["-c", "."], input_data="a: 1\n")
    assert res.exit_code == 0, res.stderr
    assert res.stdout == '{"a":1}\n'


def test_files(invoke, fake_jq, tmp_path):
    first = tmp_path / "one.yaml"
    first.write_text("a: 1\n")
    second = tmp_path / "two.yaml"
    second.write_text("b: 2\n")
    res = invoke(["--jq", fake_jq, "-c", ".", str(first), str(second)])
    assert res.exit_code == 0, res.stderr
    assert res.stdout == '{"a":1}\n{"b":2}\n'


def test_missing_file(invoke, fake_jq, tmp_path):
    missing = tmp_path / "missing.yaml"
    res = invoke(["--jq", fake_jq, ".", str(missing)])
    assert res.exit_code == 1
    assert f"Error: {missing}: no such file" in res.stderr


def test_positional_args_are_not_files(invoke, fake_jq):
    res = invoke(["--jq", fake_jq, "-n", "$ARGS", "--args", "not-a-file"])
    assert res.exit_code == 0, res.stderr
    assert res.stdout == "null\n"


def test_args_and_jsonargs_conflict(invoke, fake_jq):
    res = invoke(["--jq", fake_jq, ".", "--args", "--jsonargs"])
    assert res.exit_code == 2


def test_missing_jq(invoke, monkeypatch, tmp_path):
    monkeypatch.setenv("PATH", str(tmp_path))
    res = invoke(["."], input_data="a: 1\n")
    assert res.exit_code == 1
    assert "jq not found" in res.stderr


def test_invalid_yaml(invoke, fake_jq):
    res = invoke(["--jq", fake_jq, "."], input_data="foo: bar\nfoo: boo\n")
    assert res.exit_code == 1
    assert res.stderr.startswith("Error: <stdin>:")


def test_engine_exit_status_passed_through(invoke, fake_jq):
    res = invoke(["--jq", fake_jq, "error"], input_data="a: 1\n")
    assert res.exit_code == 3


@pytest.mark.parametrize(
    "returncode, expected",
    [(0, 0), (3, 3), (None, 1), (-signal.SIGPIPE, 141), (-signal.SIGKILL, 137)],
)
def test_to_exit_code(returncode, expected):
    assert cli_main.to_exit_code(returncode) == expected


def test_engine_killed_by_signal(invoke, fake_jq, monkeypatch):
    monkeypatch.setattr(cli_main, "run", lambda *args: RunResult(-signal.SIGKILL))
    res = invoke(["--jq", fake_jq, "."], input_data="a: 1\n")
    assert res.exit_code == 137


def test_closed_output_is_quiet(invoke, fake_jq, monkeypatch):
    def run(*args):
        raise PipeError("jq stdin: write failed", returncode=-signal.SIGPIPE)

    monkeypatch.setattr(cli_main, "run", run)
    res = invoke(["--jq", fake_jq, "."], input_data="a: 1\n")
    assert res.exit_code == 141
    assert "Error" not in res.stderr


@pytest.mark.parametrize("returncode, expected", [(None, 1), (0, 1), (5, 5)])
def test_pipe_error_reported(invoke, fake_jq, monkeypatch, returncode, expected):
    def run(*args):
        raise PipeError("jq stdin: write failed", returncode=returncode)

    monkeypatch.setattr(cli_main, "run", run)
    res = invoke(["--jq", fake_jq, "."], input_data="a: 1\n")
    assert res.exit_code == expected
    assert res.stderr.startswith("Error: jq stdin: write failed")


def test_unread_input_is_reported(invoke, fake_jq):
    text = "\n".join(f"---\nn: {i}\npad: {'x' * 200}" for i in range(2000))
    res = invoke(["--jq", fake_jq, "-n", "."], input_data=text)
    assert res.exit_code == 1
    assert "Error: jq stdin" in res.stderr



def test_malformed_engine_output(invoke, fake_jq):
    res = invoke(["--jq", fake_jq, "-y", "garbage"], input_data="a: 1\n")
    assert res.exit_code == 1
    assert "Error: jq output:" in res.stderr


class TestRealJq:
    """Runs against an installed jq."""

    def test_select(self, invoke, real_jq):
        yaml_in = "name: a\nage: 30\n---\nname: b\nage: 20\n"
        res = invoke(
            ["--jq", real_jq, "-c", "select(.age > 25) | .name"],
            input_data=yaml_in,
        )
        assert res.exit_code == 0, res.stderr
        assert res.stdout == '"a"\n'

    def test_yaml_round_trip(self, invoke, real_jq):
        res = invoke(
            ["--jq", real_jq, "-y", ".items"],
            input_data="items:\n- foo: bar\n- bar: baz\n",
        )
        assert res.exit_code == 0, res.stderr
        assert res.stdout == "- foo: bar\n- bar: baz\n"

    def test_arg(self, invoke, real_jq):
        res = invoke(
            ["--jq", real_jq, "-c", "--arg", "who", "world", "{hello: $who}"],
            input_data="x: 1\n",
        )
        assert res.exit_code == 0, res.stderr
        assert res.stdout == '{"hello":"world"}\n'

    def test_exit_status(self, invoke, real_jq):
        res = invoke(["--jq", real_jq, "-e", ".missing"], input_data="a: 1\n")
        assert res.exit_code == 1
        assert res.stdout == "null\n"

    @pytest.mark.parametrize("mode,expected", [("--args", '["1"]'), ("--jsonargs", "[1]")])
    def test_positional(self, invoke, real_jq, mode, expected):
        res = invoke(
            ["--jq", real_jq, "-n", "-c", "$ARGS.positional", mode, "1"],
            input_data="",
        )
        assert res.exit_code == 0, res.stderr
        assert res.stdout == expected + "\n"
