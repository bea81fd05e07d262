"""Tests for the `cluster-keygen` command."""

from __future__ import annotations

import stat
from pathlib import Path

import pytest

from cluster_genesis.cli import keygen
from cluster_genesis.errors import KeyMaterialError
from cluster_genesis.keys import KeypairGenerator, load
from tests.cluster_genesis.helpers import counting_entropy


@pytest.fixture
def generator() -> KeypairGenerator:
    return KeypairGenerator(counting_entropy(), scrypt_n=2**4)


class TestNew:
    def test_silent_unencrypted(
        self, generator: KeypairGenerator, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        path = tmp_path / "identity.json"

        assert keygen.main(["new", "--no-passphrase", "-so", str(path)], generator) == 0

        assert capsys.readouterr().out == ""
        assert stat.S_IMODE(path.stat().st_mode) == 0o600
        assert not load(path).is_encrypted

    def test_prints_pubkey(
        self, generator: KeypairGenerator, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        path = tmp_path / "identity.json"

        assert keygen.main(["new", "--no-passphrase", "-o", str(path)], generator) == 0

        out = capsys.readouterr().out
        assert f"pubkey: {load(path).pubkey_hex}" in out

    def test_passphrase_from_environment(
        self,
        generator: KeypairGenerator,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv(keygen.PASSPHRASE_ENV_VAR, "hunter2")
        path = tmp_path / "faucet.json"

        assert keygen.main(["new", "-so", str(path)], generator) == 0

        assert load(path, "hunter2").is_encrypted

    def test_existing_file_not_overwritten(
        self, generator: KeypairGenerator, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        path = tmp_path / "identity.json"
        keygen.main(["new", "--no-passphrase", "-so", str(path)], generator)
        original = path.read_bytes()

        assert keygen.main(["new", "--no-passphrase", "-so", str(path)], generator) == 1

        assert path.read_bytes() == original
        assert capsys.readouterr().err.startswith("error: refusing to overwrite")

    def test_force(self, generator: KeypairGenerator, tmp_path: Path) -> None:
        path = tmp_path / "identity.json"
        keygen.main(["new", "--no-passphrase", "-so", str(path)], generator)
        original = path.read_bytes()

        assert keygen.main(["new", "--no-passphrase", "-fso", str(path)], generator) == 0
        assert path.read_bytes() != original


class TestPubkey:
    def test_prints_hex(
        self, generator: KeypairGenerator, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        path = tmp_path / "identity.json"
        keygen.main(["new", "--no-passphrase", "-so", str(path)], generator)

        assert keygen.main(["pubkey", str(path)]) == 0
        assert capsys.readouterr().out.strip() == load(path).pubkey_hex

    def test_missing_file(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert keygen.main(["pubkey", str(tmp_path / "missing.json")]) == 1
        assert capsys.readouterr().err.startswith("error:")


class TestReadPassphrase:
    def test_from_environment(self) -> None:
        assert keygen.read_passphrase({keygen.PASSPHRASE_ENV_VAR: "hunter2"}) == "hunter2"

    def test_empty_rejected(self) -> None:
        with pytest.raises(KeyMaterialError):
            keygen.read_passphrase({keygen.PASSPHRASE_ENV_VAR: ""})

    def test_prompted_twice(self, monkeypatch: pytest.MonkeyPatch) -> None:
        answers = iter(["hunter2", "hunter3"])
        monkeypatch.setattr(keygen.getpass, "getpass", lambda prompt: next(answers))
        with pytest.raises(KeyMaterialError, match="do not match"):
            keygen.read_passphrase({})
