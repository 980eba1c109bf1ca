from pathlib import Path
import json
import logging
import sys

import typer

from procrun.adapters.request_file import load_request_file
from procrun.application.invoke import default_runner, invoke
from procrun.application.result_serialization import exit_status, serialize_invocation
from procrun.application.settings import InvokerSettings, load_settings, parse_timeout
from procrun.domain.errors import InvocationError, ProcrunError
from procrun.domain.request import Request, parse_env_assignments

USAGE_ERROR = 2
INVOCATION_ERROR = 3

app = typer.Typer(add_completion=False)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _settings(config: Path | None) -> InvokerSettings:
    try:
        return load_settings(config_path=config)
    except ProcrunError as e:
        typer.echo(f"procrun: {e}", err=True)
        raise typer.Exit(USAGE_ERROR)


def _execute(
    command: str,
    argv: list[str],
    request: Request,
    settings: InvokerSettings,
    timeout: float | None,
    as_json: bool,
) -> None:
    try:
        response = invoke(
            request,
            timeout=timeout if timeout is not None else settings.timeout,
            runner=default_runner(settings),
        )
    except InvocationError as e:
        if as_json:
            typer.echo(json.dumps(serialize_invocation(command, argv, INVOCATION_ERROR, error=e)))
        else:
            typer.echo(f"procrun: {e}", err=True)
        raise typer.Exit(INVOCATION_ERROR)

    status = exit_status(response)
    if as_json:
        typer.echo(json.dumps(serialize_invocation(command, argv, status, response=response)))
    else:
        typer.echo(response.stdout, nl=False)
        typer.echo(response.stderr, nl=False, err=True)
        if response.err is not None:
            typer.echo(f"procrun: {response.err}", err=True)
    raise typer.Exit(status)


@app.command(context_settings={"allow_interspersed_args": False})
def run(
    path: str = typer.Argument(..., help="Executable to run."),
    args: list[str] = typer.Argument(None, help="Arguments passed to the executable."),
    env: list[str] = typer.Option(None, "--env", "-e", help="KEY=VALUE assignment."),
    inherit_env: bool = typer.Option(False, "--inherit-env", help="Extend instead of replace the environment."),
    dir: Path | None = typer.Option(None, "--dir", "-C"),
    stdin_file: Path | None = typer.Option(None, "--stdin-file", help="Feed this file to the child's stdin; '-' reads our stdin."),
    timeout: float | None = typer.Option(None, "--timeout", help="Kill the child after this many seconds."),
    json: bool = typer.Option(False, "--json"),
    config: Path | None = typer.Option(None, "--config"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """Run PATH with ARGS and relay its output and exit status."""
    _configure_logging(verbose)
    settings = _settings(config)
    argv = [path, *(args or [])]
    try:
        timeout = parse_timeout(timeout)
        assignments = parse_env_assignments(env) if env else None
    except (ProcrunError, ValueError) as e:
        typer.echo(f"procrun: {e}", err=True)
        raise typer.Exit(USAGE_ERROR)

    stdin: bytes | None = None
    if stdin_file is not None:
        try:
            stdin = sys.stdin.buffer.read() if str(stdin_file) == "-" else stdin_file.read_bytes()
        except OSError as e:
            typer.echo(f"procrun: cannot read {stdin_file}: {e}", err=True)
            raise typer.Exit(USAGE_ERROR)

    request = Request(
        path=path,
        args=tuple(args or ()),
        env=assignments,
        inherit_env=inherit_env,
        dir=str(dir) if dir is not None else None,
        stdin=stdin,
    )
    _execute("run", argv, request, settings, timeout, json)


@app.command()
def exec_file(
    file: Path = typer.Argument(..., help="YAML request descriptor."),
    json: bool = typer.Option(False, "--json"),
    config: Path | None = typer.Option(None, "--config"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """Run the request described by FILE."""
    _configure_logging(verbose)
    settings = _settings(config)
    try:
        loaded = load_request_file(file)
    except ProcrunError as e:
        typer.echo(f"procrun: {e}", err=True)
        raise typer.Exit(USAGE_ERROR)
    _execute("exec-file", [str(file)], loaded.request, settings, loaded.timeout, json)
