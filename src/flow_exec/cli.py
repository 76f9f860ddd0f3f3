"""Click entry point — all commands."""

import sys

import click
import yaml

from flow_exec import __version__, config, log
from flow_exec.command import Command
from flow_exec.errors import ConfigurationError, NonZeroExitError, ProcessIOError


@click.group()
@click.version_option(version=__version__, prog_name="flow-exec")
def main():
    """Run external commands with captured output and checked exit codes."""


def _sink(verbose: bool) -> log.ConsoleSink:
    return log.ConsoleSink(level=log.DEBUG if verbose else log.OFF)


def _run_one(cmd: Command) -> tuple[int, bool]:
    """Execute *cmd*, echo its captured output. Returns (exit code, succeeded)."""
    try:
        result = cmd.execute_unsafe()
    except NonZeroExitError as e:
        click.echo(e.stdout, nl=False)
        click.echo(e.stderr, nl=False, err=True)
        log.error(str(e))
        return e.returncode, False
    except (ProcessIOError, ConfigurationError) as e:
        log.error(str(e))
        return 1, False
    click.echo(result.stdout, nl=False)
    click.echo(result.stderr, nl=False, err=True)
    return result.returncode, True


@main.command(context_settings={"ignore_unknown_options": True})
@click.option("--no-check", is_flag=True, help="Don't treat a non-zero exit code as failure")
@click.option("--merge", is_flag=True, help="Merge stderr into stdout")
@click.option("--cwd", default=None, type=click.Path(file_okay=False), help="Working directory")
@click.option("--env", "env_pairs", multiple=True, help="Set an env variable (KEY=VALUE)")
@click.option("--stdin", "stdin_file", default=None, type=click.File("rb"), help="Feed FILE (- for stdin)")
@click.option("--stdout-file", default=None, type=click.Path(dir_okay=False), help="Write stdout to file")
@click.option("--stderr-file", default=None, type=click.Path(dir_okay=False), help="Write stderr to file")
@click.option("--verbose", "-v", is_flag=True, help="Log the command line and its output")
@click.argument("command", nargs=-1, type=click.UNPROCESSED)
def run(no_check, merge, cwd, env_pairs, stdin_file, stdout_file, stderr_file, verbose, command):
    """Run a single command."""
    if not command:
        click.echo("Error: No command specified", err=True)
        sys.exit(1)

    try:
        cmd = Command.of(*command).with_check(not no_check).with_merge(merge)
        cmd = cmd.with_sink(_sink(verbose))
        if cwd:
            cmd = cmd.with_cwd(cwd)
        for pair in env_pairs:
            name, sep, value = pair.partition("=")
            if not sep:
                raise ConfigurationError(f"Expected KEY=VALUE, got '{pair}'")
            cmd = cmd.with_env(name, value)
        if stdin_file is not None:
            cmd = cmd.with_stdin(stdin_file)
        if stdout_file:
            cmd = cmd.with_stdout(stdout_file)
        if stderr_file:
            cmd = cmd.with_stderr(stderr_file)
    except ConfigurationError as e:
        log.error(str(e))
        sys.exit(2)

    code, _ = _run_one(cmd)
    sys.exit(code)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--job", "only", multiple=True, help="Run only specific job(s)")
@click.option("--dry-run", is_flag=True, help="Show what would run without executing")
@click.option("--verbose", "-v", is_flag=True, help="Log command lines and their output")
def jobs(file, only, dry_run, verbose):
    """Run the jobs in a YAML job file, in order, stopping at the first failure."""
    try:
        commands = config.load_jobs(file)
    except (ConfigurationError, yaml.YAMLError) as e:
        log.error(f"Invalid job file {file}: {e}")
        sys.exit(1)

    if only:
        unknown = [name for name in only if name not in commands]
        if unknown:
            log.error(f"Unknown job(s): {', '.join(unknown)}")
            sys.exit(1)
        commands = {name: cmd for name, cmd in commands.items() if name in only}

    sink = _sink(verbose)
    for name, cmd in commands.items():
        log.info(f"▸ {name}: {cmd.line}")
        if dry_run:
            continue
        code, ok = _run_one(cmd.with_sink(sink))
        if not ok:
            log.error(f"Job '{name}' failed")
            sys.exit(code or 1)


if __name__ == "__main__":
    main()
