import pytest

from runner_game.__main__ import main


def test_sync_with_empty_store(tmp_path, capsys) -> None:
    db_file = str(tmp_path / "local.db")

    assert main(["sync", "--db", db_file, "--port", "9"]) == 0
    assert "Synced 0 local scores" in capsys.readouterr().out


def test_command_is_required() -> None:
    with pytest.raises(SystemExit):
        main([])
