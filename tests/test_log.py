"""Tests for log.py — console sink + GA formatting."""

import re

from flow_exec import log


def test_info(capsys):
    log.info("test message")
    out = capsys.readouterr().out
    assert re.match(r"\[\d{2}:\d{2}:\d{2}\] test message\n", out)


def test_error(capsys):
    log.error("something broke")
    err = capsys.readouterr().err
    assert "ERROR: something broke" in err


def test_github_actions_error(capsys, monkeypatch):
    monkeypatch.setenv("GITHUB_ACTIONS", "true")
    log.error("deploy failed")
    out = capsys.readouterr().out
    assert "::error::deploy failed" in out


def test_console_sink_format(capsys):
    sink = log.ConsoleSink(level=log.DEBUG)
    sink.log("cat[42]", log.WARNING, "oops")
    err = capsys.readouterr().err
    assert re.match(r"\[\d{2}:\d{2}:\d{2}\] WARNING cat\[42\]: oops\n", err)


def test_console_sink_threshold(capsys):
    sink = log.ConsoleSink(level=log.WARNING)
    sink.log("src", log.DEBUG, "hidden")
    sink.log("src", log.ERROR, "shown")
    err = capsys.readouterr().err
    assert "hidden" not in err
    assert "ERROR src: shown" in err


def test_console_sink_off(capsys):
    sink = log.ConsoleSink(level=log.OFF)
    sink.log("src", log.ERROR, "nothing")
    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err == ""


def test_console_sink_default_follows_env(capsys, monkeypatch):
    sink = log.ConsoleSink()
    monkeypatch.delenv("FLOW_EXEC_DEBUG", raising=False)
    assert sink.level == log.WARNING
    monkeypatch.setenv("FLOW_EXEC_DEBUG", "1")
    assert sink.level == log.DEBUG
    sink.log("src", log.DEBUG, "+echo hi")
    assert "DEBUG src: +echo hi" in capsys.readouterr().err


def test_console_sink_github_actions(capsys, monkeypatch):
    monkeypatch.setenv("GITHUB_ACTIONS", "true")
    sink = log.ConsoleSink(level=log.DEBUG)
    sink.log("src", log.WARNING, "careful")
    sink.log("src", log.ERROR, "broken")
    sink.log("src", log.DEBUG, "quiet")
    out = capsys.readouterr().out
    assert "::warning::careful" in out
    assert "::error::broken" in out
    assert "quiet" not in out
