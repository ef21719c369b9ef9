"""Unit tests for basic-auth user handling and password hashing."""

import base64

import pytest

from owoxgcp import auth
from owoxgcp.auth import (
    BasicAuthUser,
    collect_users,
    generate_password,
    hash_users,
    make_user,
    parse_user_spec,
    render_htpasswd,
    uses_basic_auth,
    validate_username,
)
from owoxgcp.redact import redact_secrets


# ── Validation ───────────────────────────────────────────────────


def test_generate_password_shape():
    password = generate_password()
    assert len(password) == 16
    assert len(base64.b64decode(password)) == 12
    assert generate_password() != password


@pytest.mark.parametrize("name", ["admin", "user_1", "ABC"])
def test_validate_username_ok(name):
    assert validate_username(name) == name


@pytest.mark.parametrize("name", ["", "bad name", "a-b", "x:y", "ü"])
def test_validate_username_rejected(name):
    with pytest.raises(ValueError, match="Invalid username"):
        validate_username(name)


def test_make_user_short_password():
    with pytest.raises(ValueError, match="at least 6 characters"):
        make_user("admin", "12345")


def test_make_user_generates_password(monkeypatch):
    monkeypatch.delenv("OWOX_BASIC_AUTH_PASSWORD", raising=False)
    user = make_user("admin")
    assert user.generated
    assert len(user.password) == 16


def test_make_user_password_from_env(monkeypatch):
    monkeypatch.setenv("OWOX_BASIC_AUTH_PASSWORD", "from-the-env")
    user = make_user("admin")
    assert not user.generated
    assert user.password == "from-the-env"


def test_supplied_password_is_redacted():
    make_user("admin", "hunter2-secret")
    assert redact_secrets("password hunter2-secret") == "password ***"


def test_parse_user_spec():
    user = parse_user_spec("alice:wonderland")
    assert user.username == "alice"
    assert user.password == "wonderland"
    assert not user.generated


def test_parse_user_spec_password_with_colon():
    assert parse_user_spec("bob:pa:ss:word").password == "pa:ss:word"


# ── collect_users ────────────────────────────────────────────────


def test_collect_users_default_admin(monkeypatch):
    monkeypatch.delenv("OWOX_BASIC_AUTH_PASSWORD", raising=False)
    users = collect_users()
    assert [u.username for u in users] == ["admin"]
    assert users[0].generated


def test_collect_users_cli_and_config():
    users = collect_users(
        ["alice:secret1"],
        [{"name": "bob", "password": "secret2"}, "carol:secret3"],
    )
    assert [u.username for u in users] == ["alice", "bob", "carol"]
    assert [u.password for u in users] == ["secret1", "secret2", "secret3"]


def test_collect_users_duplicate():
    with pytest.raises(ValueError, match="Duplicate user 'alice'"):
        collect_users(["alice:secret1", "alice:secret2"])


# ── Hashing ──────────────────────────────────────────────────────


def test_hash_users_uses_stdin(recorded_cmds):
    calls, responses = recorded_cmds
    responses[("openssl", "passwd")] = (0, "$apr1$abc$hash\n", "")

    users = [BasicAuthUser("alice", "secret1"), BasicAuthUser("bob", "secret2")]
    assert hash_users(users)
    assert calls == [["openssl", "passwd", "-apr1", "-stdin"]] * 2
    assert all("secret" not in arg for call in calls for arg in call)
    assert render_htpasswd(users) == "alice:$apr1$abc$hash\nbob:$apr1$abc$hash\n"


def test_hash_password_passes_input(monkeypatch):
    seen = {}

    def fake_run(command, dry_run=False, timeout=600, input_text=None):
        seen["input"] = input_text
        return 0, "$apr1$x$y\n", ""

    monkeypatch.setattr(auth, "run_shell_cmd", fake_run)
    assert auth.hash_password("secret1") == "$apr1$x$y"
    assert seen["input"] == "secret1\n"


def test_hash_users_failure(recorded_cmds):
    _, responses = recorded_cmds
    responses[("openssl",)] = (1, "", "openssl: command not found")
    assert not hash_users([BasicAuthUser("alice", "secret1")])


def test_hash_users_dry_run(recorded_cmds):
    users = [BasicAuthUser("alice", "secret1")]
    assert hash_users(users, dry_run=True)
    assert users[0].password_hash == "$apr1$dryrun$"


def test_uses_basic_auth():
    assert uses_basic_auth("basic")
    assert uses_basic_auth("both")
    assert not uses_basic_auth("iap")
    assert not uses_basic_auth("none")


def test_collect_users_numeric_config_password():
    users = collect_users(None, [{"name": "bob", "password": 123456}])
    assert users[0].password == "123456"
    assert not users[0].generated


def test_collect_users_numeric_config_password_too_short():
    with pytest.raises(ValueError, match="at least 6 characters"):
        collect_users(None, [{"name": "bob", "password": 123}])


def test_collect_users_invalid_config_entry():
    with pytest.raises(ValueError, match="Invalid user entry of type int"):
        collect_users(None, [42])


def test_short_supplied_password_is_redacted():
    make_user("admin", "pw1234")
    assert redact_secrets("Username: admin | Password: pw1234") == "Username: admin | Password: ***"
