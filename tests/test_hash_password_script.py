import io
import json

import bcrypt

from sales_api.scripts.hash_password import main


def test_prints_verifiable_hash(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("s3cret-pass\n"))

    assert main(["--rounds", "4"]) == 0

    hashed = capsys.readouterr().out.strip()
    assert bcrypt.checkpw(b"s3cret-pass", hashed.encode())


def test_username_emits_users_file_entry(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("s3cret-pass\n"))

    assert main(["--rounds", "4", "--username", "admin"]) == 0

    entry = json.loads(capsys.readouterr().out)
    assert entry["username"] == "admin"
    assert entry["password"].startswith("$2b$04$")


def test_rejects_empty_password(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("\n"))

    assert main([]) == 1
    assert "empty password" in capsys.readouterr().err


def test_rejects_password_longer_than_72_bytes(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("x" * 73 + "\n"))

    assert main([]) == 1
    assert "72 bytes" in capsys.readouterr().err
