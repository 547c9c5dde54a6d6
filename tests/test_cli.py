import io

from aetherfiles.cli import main


def test_privileged_single_command(tmp_path, capsys):
    target = tmp_path / "made"
    assert main(["--privileged", "mkdir", str(target)]) == 0
    assert target.is_dir()
    assert capsys.readouterr().out == "OK\n"


def test_privileged_missing_operation(capsys):
    assert main(["--privileged"]) == 1
    assert "Missing operation" in capsys.readouterr().err


def test_privileged_missing_path(capsys):
    assert main(["--privileged", "touch"]) == 1
    assert capsys.readouterr().out == "ERR:touch: missing path\n"


def test_daemon_mode(tmp_path, monkeypatch, capsys):
    target = tmp_path / "file.txt"
    monkeypatch.setattr("sys.stdin", io.StringIO(f"touch\t{target}\nquit\n"))
    assert main(["--privileged-daemon"]) == 0
    assert capsys.readouterr().out.splitlines() == ["READY", "OK"]
    assert target.exists()


def test_no_mode_prints_usage(capsys):
    assert main([]) == 2
    assert "--privileged-daemon" in capsys.readouterr().err