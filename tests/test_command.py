import os

import pytest

from gpgpipe.gpg.command import GpgCommand
from gpgpipe.gpg.enums import TrustModel

pytestmark = pytest.mark.skipif(os.name == "nt", reason="POSIX quoting")


def test_options_then_command_then_input_file():
    cmd = GpgCommand.encrypt().batch().quiet().recipient("alice@example.org").input_file("a.txt")
    assert str(cmd) == "--batch --no-verbose --quiet --no-tty --recipient alice@example.org --encrypt a.txt"


def test_values_with_spaces_are_quoted():
    cmd = GpgCommand.decrypt().passphrase("two words").output_file("out dir/x.gpg").input_file("in file.gpg")
    assert str(cmd) == "--passphrase 'two words' --output 'out dir/x.gpg' --decrypt 'in file.gpg'"


def test_input_file_is_always_last():
    cmd = GpgCommand.verify().input_file("sig.asc").batch()
    assert str(cmd).endswith("--verify sig.asc")


@pytest.mark.parametrize(
    "factory, rendered",
    [
        (GpgCommand.sign, "--sign"),
        (GpgCommand.sign_detached, "--detach-sign"),
        (GpgCommand.clear_sign, "--clearsign"),
        (GpgCommand.encrypt_sign, "--encrypt --sign"),
        (GpgCommand.list_public_keys, "--list-public-keys"),
        (GpgCommand.list_secret_keys, "--list-secret-keys"),
    ],
)
def test_command_factories(factory, rendered):
    assert str(factory()) == rendered


def test_misc_options():
    cmd = (
        GpgCommand.command("--import")
        .batch(False)
        .trust_model(TrustModel.DIRECT)
        .trust_model("always")
        .compression_level(9)
        .home_directory("/tmp/gnupg home")
        .local_user("bob")
        .armored_output()
        .non_armored_input()
        .pinentry_mode()
        .with_colons()
        .fixed_list_mode()
        .yes()
        .option("--status-fd 2")
    )
    assert str(cmd) == (
        "--no-batch --trust-model direct --trust-model always -z 9 --homedir '/tmp/gnupg home' "
        "--local-user bob --armor --no-armor --pinentry-mode loopback --with-colons --fixed-list-mode "
        "--yes --status-fd 2 --import"
    )


def test_unknown_trust_model_rejected():
    with pytest.raises(ValueError):
        GpgCommand.verify().trust_model("nonsense")
