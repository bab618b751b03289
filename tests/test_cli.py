import logging

import pytest

from gpgpipe.gpg import executor as executor_module
from gpgpipe.gpg.keys import parse_key_line
from gpgpipe.scripts import gpgpipe as cli


@pytest.fixture(autouse=True)
def _cli_workdir(tmp_path, monkeypatch):
    # setup_logging writes gpgpipe_data/gpgpipe.log relative to cwd and replaces root handlers
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("COLUMNS", "200")
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    yield
    for h in list(root.handlers):
        if h not in saved_handlers:
            root.removeHandler(h)
            h.close()
    root.setLevel(saved_level)


def test_no_command_prints_help(capsys):
    assert cli.main([]) == 1
    assert "usage: gpgpipe" in capsys.readouterr().out


def test_parser_defaults():
    args = cli.build_parser().parse_args(["sign", "a", "b", "--detached"])
    assert args.detached is True
    assert args.cleartext is False
    assert args.timeout is None
    assert args.func is cli.cmd_sign


def test_verify_exit_codes(fake_gpg, tmp_path, capsys):
    good = tmp_path / "good.asc"
    good.write_bytes(b"ok")
    bad = tmp_path / "bad.asc"
    bad.write_bytes(b"tampered")
    assert cli.main(["verify", str(good), "--gpg", str(fake_gpg)]) == 0
    assert cli.main(["verify", str(bad), "--gpg", str(fake_gpg)]) == 1
    out = capsys.readouterr().out
    assert "Good signature" in out and "BAD signature" in out
    assert (tmp_path / "gpgpipe_data" / "gpgpipe.log").exists()


def test_decrypt_uses_passphrase_env(fake_gpg, tmp_path, monkeypatch):
    enc = tmp_path / "x.gpg"
    enc.write_bytes(b"ENC:payload")
    monkeypatch.setenv(cli.PASSPHRASE_ENV, "secret")
    assert cli.main(["decrypt", str(enc), str(tmp_path / "x.txt"), "--gpg", str(fake_gpg)]) == 0
    assert (tmp_path / "x.txt").read_bytes() == b"payload"


def test_missing_passphrase_exits(fake_gpg, tmp_path, monkeypatch):
    monkeypatch.delenv(cli.PASSPHRASE_ENV, raising=False)
    with pytest.raises(SystemExit):
        cli.main(["decrypt", "in", "out", "--gpg", str(fake_gpg)])


def test_gpg_failure_returns_2(fake_gpg, tmp_path, capsys):
    f = tmp_path / "nokey.asc"
    f.write_bytes(b"nokey")
    assert cli.main(["verify", str(f), "--gpg", str(fake_gpg)]) == 2
    assert "No public key" in capsys.readouterr().err


def test_missing_gpg_returns_2(monkeypatch, capsys):
    monkeypatch.setattr(executor_module, "find_gpg_path", lambda: None)
    assert cli.main(["keys"]) == 2
    assert "gpg executable" in capsys.readouterr().err


def test_invalid_config_returns_2(tmp_path, capsys):
    cfg = tmp_path / "bad.yaml"
    cfg.write_text("timeout: -5\n")
    assert cli.main(["keys", "--config", str(cfg)]) == 2


def test_keys_table(fake_gpg, capsys):
    assert cli.main(["keys", "--gpg", str(fake_gpg)]) == 0
    out = capsys.readouterr().out
    assert "alice@example.org" in out
    assert "0123456789ABCDEF" in out


def test_render_keys_filters_records():
    keys = [
        parse_key_line("pub:u:4096:1:0123456789ABCDEF:1700000000:::u:::scESC:::::::"),
        parse_key_line("fpr:::::::::AAAABBBBCCCC:"),
    ]
    assert cli.render_keys(keys).row_count == 1
    assert cli.render_keys(keys, all_records=True).row_count == 2
