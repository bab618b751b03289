import json
import os
import shlex
import stat
import sys
from pathlib import Path

import pytest

from gpgpipe.core.process import CommandLineProcess
from gpgpipe.gpg import path_finder


FAKE_KEYS = "\n".join([
    "tru::1:1700000000:0:3:1:5",
    "pub:u:4096:1:0123456789ABCDEF:1700000000:1900000000::u:::scESC:::::::",
    "fpr:::::::::AAAABBBBCCCCDDDDEEEEFFFF0123456789ABCDEF:",
    "uid:u::::1700000000::HASH::Alice Example <alice@example.org>::::::::::0:",
    "sub:u:4096:1:FEDCBA9876543210:1700000000::::::e:::::::",
    "",
])

# Minimal stand-in for the gpg executable. Records its argv, then mimics
# the stdout/stderr/exit-code behavior of the commands gpgpipe issues.
FAKE_GPG = r'''
import json
import os
import sys

args = sys.argv[1:]
here = os.path.dirname(os.path.abspath(__file__))
with open(os.path.join(here, "calls.jsonl"), "a") as fh:
    fh.write(json.dumps(args) + "\n")

def opt(name):
    return args[args.index(name) + 1] if name in args else None

def read_src():
    with open(args[-1], "rb") as fh:
        return fh.read()

def write_out(data):
    with open(opt("--output"), "wb") as fh:
        fh.write(data)

if "--version" in args:
    sys.stdout.write("gpg (GnuPG) 2.4.0\n")
elif "--list-public-keys" in args or "--list-secret-keys" in args:
    sys.stdout.write(KEYS)
elif "--verify" in args:
    data = read_src()
    if b"tampered" in data:
        sys.stderr.write('gpg: BAD signature from "Alice Example <alice@example.org>"\n')
        sys.exit(1)
    if b"nokey" in data:
        sys.stderr.write("gpg: Can't check signature: No public key\n")
        sys.exit(2)
    sys.stderr.write('gpg: Good signature from "Alice Example <alice@example.org>"\n')
elif "--decrypt" in args:
    if opt("--passphrase") != "secret":
        sys.stderr.write("gpg: public key decryption failed: Bad passphrase\n")
        sys.exit(2)
    write_out(read_src()[len(b"ENC:"):])
elif "--encrypt" in args:
    write_out(b"ENC:" + read_src())
elif "--sign" in args or "--clearsign" in args or "--detach-sign" in args:
    write_out(b"SIG:" + read_src())
'''


@pytest.fixture
def py_process():
    """Factory building a CommandLineProcess that runs ``python -c <code>``."""
    def make(code: str) -> CommandLineProcess:
        return CommandLineProcess(sys.executable, f"-c {shlex.quote(code)}")
    return make


@pytest.fixture
def fake_gpg(tmp_path: Path) -> Path:
    """Executable wrapper script behaving like a tiny subset of gpg."""
    if os.name == "nt":
        pytest.skip("fake gpg wrapper is a POSIX shell script")
    bindir = tmp_path / "bin"
    bindir.mkdir()
    impl = bindir / "fake_gpg.py"
    impl.write_text(f"KEYS = {FAKE_KEYS!r}\n" + FAKE_GPG)
    wrapper = bindir / "gpg"
    wrapper.write_text(f'#!/bin/sh\nexec {shlex.quote(sys.executable)} {shlex.quote(str(impl))} "$@"\n')
    wrapper.chmod(wrapper.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return wrapper


def recorded_calls(fake_gpg: Path):
    calls = fake_gpg.parent / "calls.jsonl"
    if not calls.exists():
        return []
    return [json.loads(line) for line in calls.read_text().splitlines() if line.strip()]


@pytest.fixture
def gpg_calls(fake_gpg):
    return lambda: recorded_calls(fake_gpg)


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch):
    monkeypatch.delenv("GPGPIPE_CONFIG", raising=False)
    monkeypatch.delenv("GPGPIPE_GPG_PATH", raising=False)
    path_finder.reset_cache()
    yield
    path_finder.reset_cache()
