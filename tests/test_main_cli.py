import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import main
from main import _parse_args
from userhub.database import Database


def test_default_command_invokes_serve() -> None:
    args = _parse_args([])
    assert args.command == "serve"


def test_default_command_accepts_options_without_subcommand() -> None:
    args = _parse_args(["--host", "127.0.0.1", "--port", "8080"])
    assert args.command == "serve"
    assert args.host == "127.0.0.1"
    assert args.port == 8080


def test_create_admin_subcommand() -> None:
    args = _parse_args(["create-admin", "Root", "root@example.com"])
    assert args.command == "create-admin"
    assert args.name == "Root"
    assert args.email == "root@example.com"


def test_main_refuses_to_start_without_secret(monkeypatch, tmp_path) -> None:
    monkeypatch.delenv("USERHUB_JWT_SECRET", raising=False)
    monkeypatch.setenv("USERHUB_DB_PATH", str(tmp_path / "userhub.sqlite3"))

    def _fail_serve(**_kwargs) -> None:
        raise AssertionError("server must not start without a signing secret")

    monkeypatch.setattr(main, "_serve", _fail_serve)

    assert main.main([]) == 1


def test_init_db_creates_database(monkeypatch, tmp_path) -> None:
    db_path = tmp_path / "nested" / "userhub.sqlite3"
    monkeypatch.setenv("USERHUB_JWT_SECRET", "cli-secret")
    monkeypatch.setenv("USERHUB_DB_PATH", str(db_path))

    assert main.main(["init-db"]) == 0
    assert db_path.exists()


def test_create_admin_command(monkeypatch, tmp_path) -> None:
    db_path = tmp_path / "userhub.sqlite3"
    monkeypatch.setenv("USERHUB_JWT_SECRET", "cli-secret")
    monkeypatch.setenv("USERHUB_DB_PATH", str(db_path))
    monkeypatch.setenv("USERHUB_BCRYPT_ROUNDS", "4")
    monkeypatch.setattr(main, "getpass", lambda _prompt="": "secret1")

    assert main.main(["create-admin", "Root", "Root@Example.com"]) == 0

    admin = Database(db_path, bcrypt_rounds=4).authenticate_admin("root@example.com", "secret1")
    assert admin is not None
    assert admin.name == "Root"


def test_create_admin_command_rejects_duplicates(monkeypatch, tmp_path) -> None:
    db_path = tmp_path / "userhub.sqlite3"
    monkeypatch.setenv("USERHUB_JWT_SECRET", "cli-secret")
    monkeypatch.setenv("USERHUB_DB_PATH", str(db_path))
    monkeypatch.setenv("USERHUB_BCRYPT_ROUNDS", "4")
    monkeypatch.setattr(main, "getpass", lambda _prompt="": "secret1")

    assert main.main(["create-admin", "Root", "root@example.com"]) == 0
    assert main.main(["create-admin", "Again", "root@example.com"]) == 1


def test_help_flag_shows_top_level_usage(capsys) -> None:
    try:
        _parse_args(["--help"])
    except SystemExit as exc:
        assert exc.code == 0
    else:
        raise AssertionError("--help should exit")

    assert "create-admin" in capsys.readouterr().out


def test_create_admin_gives_up_after_three_short_passwords(monkeypatch, tmp_path) -> None:
    db_path = tmp_path / "userhub.sqlite3"
    monkeypatch.setenv("USERHUB_JWT_SECRET", "cli-secret")
    monkeypatch.setenv("USERHUB_DB_PATH", str(db_path))
    monkeypatch.setenv("USERHUB_BCRYPT_ROUNDS", "4")
    prompts = []

    def _short_password(prompt: str = "") -> str:
        prompts.append(prompt)
        return "12345"

    monkeypatch.setattr(main, "getpass", _short_password)

    assert main.main(["create-admin", "Root", "root@example.com"]) == 1
    assert len(prompts) == 6
    assert Database(db_path, bcrypt_rounds=4).get_admin_by_email("root@example.com") is None


def test_create_admin_rejects_mismatched_confirmation(monkeypatch, tmp_path) -> None:
    db_path = tmp_path / "userhub.sqlite3"
    monkeypatch.setenv("USERHUB_JWT_SECRET", "cli-secret")
    monkeypatch.setenv("USERHUB_DB_PATH", str(db_path))
    monkeypatch.setenv("USERHUB_BCRYPT_ROUNDS", "4")
    answers = iter(["secret1", "secret2", "secret1", "secret1"])
    monkeypatch.setattr(main, "getpass", lambda _prompt="": next(answers))

    assert main.main(["create-admin", "Root", "root@example.com"]) == 0
    assert Database(db_path, bcrypt_rounds=4).authenticate_admin("root@example.com", "secret1") is not None
