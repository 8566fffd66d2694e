"""yamljq CLI entry point."""

import signal
import sys

import click

from .. import __version__
from ..context import resolve_jq_path
from ..errors import PipeError, YamlJqError
from ..models import JqOptions, RunConfig
from ..orchestrator import run


def to_exit_code(returncode):
    """Map jq's status to ours; a signal death -N becomes 128 + N."""
    if returncode is None:
        return 1
    if returncode < 0:
        return 128 - returncode
    return returncode


def _jq_flag(short, long, help):
    return click.option(short, long, is_flag=True, default=False, help=f"jq: {help}")


def _jq_pair(name, metavar, help):
    return click.option(
        name,
        nargs=2,
        multiple=True,
        metavar=metavar,
        help=f"jq: {help}",
    )


@click.command(context_settings=dict(help_option_names=["-h", "--help"]))
@click.argument("filter")
@click.argument("files", nargs=-1)
@click.option(
    "-y",
    "--yaml-output",
    is_flag=True,
    default=False,
    help="Transcode jq's JSON output back into YAML.",
)
@_jq_flag("-c", "--compact-output", "compact instead of pretty-printed output")
@_jq_flag("-n", "--null-input", "use `null` as the single input value")
@_jq_flag("-e", "--exit-status", "set the exit status based on the output")
@_jq_flag("-s", "--slurp", "read all inputs into an array; apply filter to it")
@_jq_flag("-r", "--raw-output", "output raw strings, not JSON texts")
@_jq_flag("-j", "--join-output", "like -r but without newlines after outputs")
@_jq_flag("-a", "--ascii-output", "escape non-ASCII characters in output")
@_jq_flag("-R", "--raw-input", "read raw strings, not JSON texts")
@_jq_flag("-C", "--color-output", "colorize JSON")
@_jq_flag("-M", "--monochrome-output", "monochrome (don't colorize JSON)")
@_jq_flag("-S", "--sort-keys", "sort keys of objects on output")
@click.option("--tab", is_flag=True, default=False, help="jq: use tabs for indentation")
@click.option(
    "--indent",
    type=click.IntRange(0, 7),
    default=None,
    help="jq: use N spaces for indentation (max 7)",
)
@_jq_pair("--arg", "NAME VALUE", "set variable $NAME to string VALUE")
@_jq_pair("--argjson", "NAME JSON", "set variable $NAME to JSON value")
@_jq_pair("--slurpfile", "NAME FILE", "set $NAME to an array of JSON texts read from FILE")
@_jq_pair("--rawfile", "NAME FILE", "set $NAME to the contents of FILE")
@click.option(
    "--args",
    "string_args",
    is_flag=True,
    default=False,
    help="Remaining arguments are jq string arguments, not files.",
)
@click.option(
    "--jsonargs",
    "json_args",
    is_flag=True,
    default=False,
    help="Remaining arguments are jq JSON arguments, not files.",
)
@click.option(
    "--jq",
    "jq_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="jq executable (overrides $YAMLJQ_JQ and PATH).",
)
@click.version_option(__version__, prog_name="yamljq")
def cli(
    filter,
    files,
    yaml_output,
    compact_output,
    null_input,
    exit_status,
    slurp,
    raw_output,
    join_output,
    ascii_output,
    raw_input,
    color_output,
    monochrome_output,
    sort_keys,
    tab,
    indent,
    arg,
    argjson,
    slurpfile,
    rawfile,
    string_args,
    json_args,
    jq_path,
):
    """Run a jq FILTER over YAML documents.

    YAML is read from FILES, or from stdin when none are given. Every YAML
    document becomes one JSON input for jq; empty documents are skipped.

    Examples:
        # Extract a field
        yamljq .metadata.name deployment.yaml

        # Keep the output as YAML
        cat values.yaml | yamljq -y '.image'

        # Several files, several documents each
        yamljq -y 'select(.kind == "Service")' k8s/*.yaml

        # Positional arguments instead of files
        yamljq -n '$ARGS.positional' --args a b c
    """
    if string_args and json_args:
        raise click.UsageError("--args and --jsonargs are mutually exclusive")

    positional_mode = "args" if string_args else "jsonargs" if json_args else None
    options = JqOptions(
        compact=compact_output,
        null_input=null_input,
        exit_status=exit_status,
        slurp=slurp,
        raw_output=raw_output,
        join_output=join_output,
        ascii_output=ascii_output,
        raw_input=raw_input,
        color=color_output,
        monochrome=monochrome_output,
        sort_keys=sort_keys,
        tab=tab,
        indent=indent,
        args=arg,
        argjson=argjson,
        slurpfile=slurpfile,
        rawfile=rawfile,
        positional_mode=positional_mode,
    )

    try:
        config = RunConfig(
            jq_path=resolve_jq_path(jq_path),
            filter=filter,
            options=options,
            files=() if positional_mode else files,
            positional=files if positional_mode else (),
            yaml_output=yaml_output,
        )
        result = run(
            config,
            click.get_binary_stream("stdin"),
            click.get_binary_stream("stdout"),
        )
    except PipeError as e:
        # jq killed by SIGPIPE: whatever reads our output went away, which
        # is not worth an error message (e.g. `yamljq . big.yaml | head`).
        if e.returncode != -signal.SIGPIPE:
            click.echo(f"Error: {e}", err=True)
        sys.exit(to_exit_code(e.returncode) if e.returncode else 1)
    except YamlJqError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    sys.exit(to_exit_code(result.returncode))


def main():
    """Entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
