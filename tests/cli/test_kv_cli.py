from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

import kvtable.cli.kv as kv_cli

Run = Callable[..., int]


@pytest.fixture
def run(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Run:
    # Keep handler setup (and the logs/ directory) out of CLI tests
    monkeypatch.setattr(kv_cli, "get_logger", lambda **_: None)
    db = tmp_path / "nested" / "kv.sqlite3"

    def _run(*argv: str) -> int:
        return kv_cli.main(["--db", str(db), "--collection", "user_emails", *argv])

    return _run


def test_scenario(run: Run, capsys: pytest.CaptureFixture[str]) -> None:
    assert run("init") == 0
    assert "Initialized collection: user_emails" in capsys.readouterr().out

    assert run("set", "jimmy", "abc@abc.com") == 0
    capsys.readouterr()
    assert run("get", "jimmy") == 0
    assert capsys.readouterr().out.strip() == "abc@abc.com"

    assert run("remove", "jimmy") == 0
    assert "Rows affected: 1" in capsys.readouterr().out

    assert run("get", "jimmy") == 1
    assert "error [404]" in capsys.readouterr().err


def test_init_is_idempotent(run: Run) -> None:
    assert run("init") == 0
    assert run("set", "a", "1") == 0
    assert run("init") == 0
    assert run("get", "a") == 0


def test_commands_before_init_fail(run: Run, capsys: pytest.CaptureFixture[str]) -> None:
    assert run("set", "a", "1") == 1
    err = capsys.readouterr().err
    assert "error [404]" in err
    assert "does not exist" in err


def test_duplicate_set_and_replace(run: Run, capsys: pytest.CaptureFixture[str]) -> None:
    run("init")
    assert run("set", "k", "v1") == 0
    assert run("set", "k", "v2") == 1
    assert "error [400]" in capsys.readouterr().err
    assert run("set", "k", "v2", "--replace") == 0
    capsys.readouterr()
    run("get", "k")
    assert capsys.readouterr().out.strip() == "v2"


def test_typed_values(run: Run, capsys: pytest.CaptureFixture[str]) -> None:
    run("init")
    assert run("set", "n", "123", "--type", "integer") == 0
    assert run("set", "flag", "yes", "--type", "boolean") == 0
    capsys.readouterr()

    run("get", "n", "--type", "integer")
    assert capsys.readouterr().out.strip() == "123"
    run("get", "flag", "--type", "boolean")
    assert capsys.readouterr().out.strip() == "true"
    run("get", "flag", "--type", "integer")
    assert capsys.readouterr().out.strip() == "1"


def test_bad_typed_value(run: Run, capsys: pytest.CaptureFixture[str]) -> None:
    run("init")
    assert run("set", "flag", "abc", "--type", "boolean") == 1
    assert "error [400]" in capsys.readouterr().err


def test_remove_absent(run: Run, capsys: pytest.CaptureFixture[str]) -> None:
    run("init")
    capsys.readouterr()
    assert run("remove", "nobody") == 0
    assert "Rows affected: 0" in capsys.readouterr().out


def test_invalid_collection(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr(kv_cli, "get_logger", lambda **_: None)
    rc = kv_cli.main(["--db", str(tmp_path / "kv.db"), "--collection", "bad name", "init"])
    assert rc == 1
    assert "error [400]" in capsys.readouterr().err


def test_parser_requires_command() -> None:
    with pytest.raises(SystemExit):
        kv_cli.build_parser().parse_args([])
