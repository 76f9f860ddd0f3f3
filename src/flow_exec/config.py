"""Parse job files (YAML) into named Command objects."""

import os

import yaml

from flow_exec.command import Command
from flow_exec.errors import ConfigurationError
from flow_exec.redirect import Redirect

DEFAULTS_KEY = "x-defaults"


def _parse_redirect(job: str, stream: str, value, base_dir: str | None = None) -> Redirect:
    """Parse 'pipe' / 'inherit' / 'discard' or {file: path, append: bool}."""
    if isinstance(value, str):
        if value not in ("pipe", "inherit", "discard"):
            raise ConfigurationError(f"Job '{job}': unknown {stream} target '{value}'")
        return Redirect(value)
    if isinstance(value, dict) and "file" in value:
        path = os.path.join(base_dir or os.getcwd(), str(value["file"]))
        if value.get("append"):
            return Redirect.append_to(path)
        return Redirect.to(path)
    raise ConfigurationError(
        f"Job '{job}': {stream} must be pipe, inherit, discard or {{file: ...}}"
    )


def _mapping(job: str, key: str, value) -> dict:
    """Return *value* as a dict; None means empty."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigurationError(f"Job '{job}': '{key}' must be a mapping, got {value!r}")
    return value


def _flag(job: str, key: str, value) -> bool:
    if not isinstance(value, bool):
        raise ConfigurationError(f"Job '{job}': '{key}' must be true or false, got {value!r}")
    return value


def _merge(name: str, defaults: dict, job: dict) -> dict:
    """Per-job keys win over x-defaults; env maps are merged."""
    merged = {**defaults, **job}
    merged["env"] = {
        **_mapping(DEFAULTS_KEY, "env", defaults.get("env")),
        **_mapping(name, "env", job.get("env")),
    }
    return merged


def parse_job(name: str, job: dict, base_dir: str | None = None) -> Command:
    """Build a Command from one job mapping.

    Relative cwd values are resolved against *base_dir* (the job file's
    directory), falling back to the current directory.
    """
    job = _mapping(name, "job", job)
    argv = job.get("command")
    if not isinstance(argv, list) or not argv:
        raise ConfigurationError(f"Job '{name}': 'command' must be a non-empty list")

    cmd = Command().extend(None if a is None else str(a) for a in argv)

    cwd = job.get("cwd")
    if cwd is not None:
        cmd = cmd.with_cwd(os.path.join(base_dir or os.getcwd(), str(cwd)))
    elif base_dir is not None:
        cmd = cmd.with_cwd(base_dir)

    for key, value in _mapping(name, "env", job.get("env")).items():
        if value is None:
            raise ConfigurationError(f"Job '{name}': env variable '{key}' has no value")
        cmd = cmd.with_env(str(key), str(value))

    cmd = cmd.with_check(_flag(name, "check", job.get("check", True)))
    cmd = cmd.with_merge(_flag(name, "merge", job.get("merge", False)))

    if "stdin" in job:
        cmd = cmd.with_stdin(str(job["stdin"]))
    if "stdout" in job:
        cmd = cmd.with_stdout(_parse_redirect(name, "stdout", job["stdout"], base_dir))
    if "stderr" in job:
        cmd = cmd.with_stderr(_parse_redirect(name, "stderr", job["stderr"], base_dir))
    return cmd


def parse_jobs(data: dict, base_dir: str | None = None) -> dict[str, Command]:
    """Parse a job-file dict into {name: Command}, keeping file order."""
    if not isinstance(data, dict) or not isinstance(data.get("jobs"), dict):
        raise ConfigurationError("Job file must contain a 'jobs' mapping")
    defaults = data.get(DEFAULTS_KEY) or {}
    if not isinstance(defaults, dict):
        raise ConfigurationError(f"'{DEFAULTS_KEY}' must be a mapping, got {defaults!r}")
    jobs = {}
    for name, job in data["jobs"].items():
        name = str(name)
        job = _mapping(name, "job", job)
        jobs[name] = parse_job(name, _merge(name, defaults, job), base_dir)
    return jobs


def load_jobs(path: str) -> dict[str, Command]:
    """Read a YAML job file from *path*."""
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return parse_jobs(data, base_dir=os.path.dirname(os.path.abspath(path)))
