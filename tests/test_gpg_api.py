import io
import threading

import pytest

from gpgpipe.core.errors import MismatchedHandleError, SubprocessFailure
from gpgpipe.gpg import executor as executor_module
from gpgpipe.gpg.api import Gpg
from gpgpipe.gpg.command import GpgCommand
from gpgpipe.gpg.configuration import GpgSettings
from gpgpipe.gpg.enums import RecordType, TrustModel
from gpgpipe.gpg.executor import GpgCommandExecutor


@pytest.fixture
def gpg(fake_gpg):
    settings = GpgSettings(timeout=30, homedir="/tmp/keyring")
    return Gpg(GpgCommandExecutor(str(fake_gpg), settings))


def test_executor_requires_a_gpg_path(monkeypatch):
    monkeypatch.setattr(executor_module, "find_gpg_path", lambda: None)
    with pytest.raises(FileNotFoundError):
        GpgCommandExecutor(settings=GpgSettings())


def test_executor_prefers_settings_path(monkeypatch):
    monkeypatch.setattr(executor_module, "find_gpg_path", lambda: "/discovered/gpg")
    assert GpgCommandExecutor(settings=GpgSettings(gpg_path="/configured/gpg")).gpg_path == "/configured/gpg"
    assert GpgCommandExecutor(settings=GpgSettings()).gpg_path == "/discovered/gpg"
    assert GpgCommandExecutor("/explicit/gpg", GpgSettings(gpg_path="/configured/gpg")).gpg_path == "/explicit/gpg"


def test_execute_captures_output(fake_gpg):
    ex = GpgCommandExecutor(str(fake_gpg))
    out = io.BytesIO()
    ex.execute(GpgCommand.command("--version"), output=out, timeout=30)
    assert out.getvalue().startswith(b"gpg (GnuPG)")


def test_begin_execute_returns_output_stream(fake_gpg):
    ex = GpgCommandExecutor(str(fake_gpg))
    out = io.BytesIO()
    handle = ex.begin_execute(GpgCommand.command("--version"), output=out, state="v", timeout=30)
    assert handle.state == "v"
    assert ex.end_execute(handle) is out
    assert b"GnuPG" in out.getvalue()


def test_encrypt_decrypt(gpg, gpg_calls, tmp_path):
    plain = tmp_path / "plain.txt"
    plain.write_bytes(b"attack at dawn")
    enc = tmp_path / "plain.txt.gpg"
    dec = tmp_path / "roundtrip.txt"

    gpg.encrypt(plain, enc, "alice@example.org")
    gpg.decrypt(enc, dec, "secret")

    assert enc.read_bytes() == b"ENC:attack at dawn"
    assert dec.read_bytes() == b"attack at dawn"
    encrypt_args = gpg_calls()[0]
    assert encrypt_args[-2:] == ["--encrypt", str(plain)]
    for expected in ("--batch", "--quiet", "--no-tty", "--recipient"):
        assert expected in encrypt_args
    assert encrypt_args[encrypt_args.index("--trust-model") + 1] == "always"
    assert encrypt_args[encrypt_args.index("--homedir") + 1] == "/tmp/keyring"


def test_decrypt_with_wrong_passphrase(gpg, tmp_path):
    enc = tmp_path / "x.gpg"
    enc.write_bytes(b"ENC:data")
    with pytest.raises(SubprocessFailure) as exc:
        gpg.decrypt(enc, tmp_path / "x.txt", "wrong")
    assert "Bad passphrase" in exc.value.stderr


@pytest.mark.parametrize(
    "detached, cleartext, expected",
    [
        (True, True, ["--detach-sign", "--armor"]),
        (True, False, ["--detach-sign", "--no-armor"]),
        (False, True, ["--clearsign"]),
        (False, False, ["--sign"]),
    ],
)
def test_sign_variants_share_base_options(gpg, gpg_calls, tmp_path, detached, cleartext, expected):
    doc = tmp_path / "doc.txt"
    doc.write_bytes(b"text")
    gpg.sign(doc, tmp_path / "doc.sig", detached, cleartext, "secret")
    args = gpg_calls()[-1]
    for option in expected + ["--batch", "--trust-model", "--passphrase"]:
        assert option in args
    assert (tmp_path / "doc.sig").read_bytes() == b"SIG:text"


def test_verify_good_and_bad(gpg, tmp_path):
    good = tmp_path / "good.asc"
    good.write_bytes(b"signed data")
    bad = tmp_path / "bad.asc"
    bad.write_bytes(b"tampered data")
    assert gpg.verify(good) is True
    assert gpg.verify(bad) is False


def test_verify_other_failures_propagate(gpg, tmp_path):
    f = tmp_path / "unknown.asc"
    f.write_bytes(b"nokey data")
    with pytest.raises(SubprocessFailure, match="No public key"):
        gpg.verify(f)


def test_list_keys(gpg, gpg_calls):
    keys = gpg.get_public_keys()
    assert [k.record_type for k in keys] == [
        RecordType.TRUST_RECORD,
        RecordType.PUBLIC_KEY,
        RecordType.FINGERPRINT,
        RecordType.USER_ID,
        RecordType.PUBLIC_SUB_KEY,
    ]
    assert keys[3].user_id == "Alice Example <alice@example.org>"
    args = gpg_calls()[-1]
    assert "--with-colons" in args and "--fixed-list-mode" in args
    assert args[-1] == "--list-public-keys"
    assert len(gpg.get_private_keys()) == 5
    assert gpg_calls()[-1][-1] == "--list-secret-keys"


def test_async_operations(gpg, tmp_path):
    doc = tmp_path / "doc.txt"
    doc.write_bytes(b"text")
    done = threading.Event()
    seen = []

    def cb(handle):
        seen.append(handle.state)
        done.set()

    h_keys = gpg.begin_get_public_keys(callback=cb, state="keys")
    h_verify = gpg.begin_verify(doc)
    h_encrypt = gpg.begin_encrypt(doc, tmp_path / "doc.gpg", "alice@example.org")

    assert len(gpg.end_get_public_keys(h_keys)) == 5
    assert gpg.end_verify(h_verify) is True
    assert gpg.end_encrypt(h_encrypt) is None
    assert done.wait(5)
    assert seen == ["keys"]
    assert (tmp_path / "doc.gpg").read_bytes() == b"ENC:text"


def test_async_failure_reraised(gpg, tmp_path):
    enc = tmp_path / "x.gpg"
    enc.write_bytes(b"ENC:data")
    handle = gpg.begin_decrypt(enc, tmp_path / "x.txt", "wrong")
    with pytest.raises(SubprocessFailure):
        gpg.end_decrypt(handle)
    with pytest.raises(SubprocessFailure):
        gpg.end_decrypt(handle)


def test_end_with_foreign_handle(gpg):
    handle = gpg.begin_get_public_keys()
    with pytest.raises(MismatchedHandleError):
        gpg.end_verify(handle)
    assert len(gpg.end_get_public_keys(handle)) == 5


def test_trust_model_from_settings(fake_gpg, gpg_calls):
    g = Gpg(GpgCommandExecutor(str(fake_gpg), GpgSettings(trust_model=TrustModel.PGP, batch=False)))
    g.get_public_keys()
    args = gpg_calls()[-1]
    assert args[args.index("--trust-model") + 1] == "pgp"
    assert "--no-batch" in args
