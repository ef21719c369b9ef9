"""Unit tests for Cloud Shell SSH key preparation."""

from owoxgcp.provisioning import ssh_keys


def test_is_cloud_shell():
    assert ssh_keys.is_cloud_shell({"CLOUD_SHELL": "true"})
    assert ssh_keys.is_cloud_shell({"HOME": "/home/me", "DEVSHELL_PROJECT_ID": "p"})
    assert not ssh_keys.is_cloud_shell({"HOME": "/home/me"})
    assert not ssh_keys.is_cloud_shell({})


def test_setup_outside_cloud_shell_does_nothing(recorded_cmds):
    calls, _ = recorded_cmds
    assert ssh_keys.setup_ssh_keys(environ={})
    assert calls == []


def test_setup_creates_missing_key(recorded_cmds, tmp_path):
    calls, _ = recorded_cmds
    key_path = str(tmp_path / ".ssh" / "google_compute_engine")

    assert ssh_keys.setup_ssh_keys(key_path=key_path, environ={"CLOUD_SHELL": "true"})
    assert calls[0][0] == "ssh-keygen"
    assert calls[0][calls[0].index("-N") + 1] == ""
    assert calls[1] == ["gcloud", "compute", "config-ssh", "--quiet"]


def test_setup_keeps_passphrase_key_without_regenerate(recorded_cmds, tmp_path):
    calls, responses = recorded_cmds
    key = tmp_path / "google_compute_engine"
    key.write_text("KEY")
    responses[("ssh-keygen", "-y")] = (1, "", "incorrect passphrase")

    assert ssh_keys.setup_ssh_keys(key_path=str(key), environ={"CLOUD_SHELL": "true"})
    assert len(calls) == 1
    assert key.exists()


def test_setup_regenerates_passphrase_key(recorded_cmds, tmp_path):
    calls, responses = recorded_cmds
    key = tmp_path / "google_compute_engine"
    key.write_text("KEY")
    (tmp_path / "google_compute_engine.pub").write_text("PUB")
    responses[("ssh-keygen", "-y")] = (1, "", "incorrect passphrase")

    assert ssh_keys.setup_ssh_keys(regenerate=True, key_path=str(key), environ={"CLOUD_SHELL": "true"})
    assert not key.exists()
    assert calls[1][:3] == ["ssh-keygen", "-t", "rsa"]


def test_setup_key_creation_failure(recorded_cmds, tmp_path):
    _, responses = recorded_cmds
    responses[("ssh-keygen", "-t")] = (1, "", "disk full")
    key_path = str(tmp_path / "google_compute_engine")
    assert not ssh_keys.setup_ssh_keys(key_path=key_path, environ={"CLOUD_SHELL": "true"})
