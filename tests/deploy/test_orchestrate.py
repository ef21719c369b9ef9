"""Unit tests for deployment orchestration and auth application."""

import logging

import pytest

from owoxgcp.auth import BasicAuthUser
from owoxgcp.config import Settings
from owoxgcp.deploy import orchestrate
from owoxgcp.deploy.params import DeployParams
from owoxgcp.provisioning import gcp


@pytest.fixture
def fake_gcp(monkeypatch):
    """Stub every gcloud touchpoint; returns the list of actions taken."""
    actions = []
    state = {"vm_exists": False}

    monkeypatch.setattr(gcp, "ensure_firewall_rules", lambda dry_run=False: actions.append("firewall") or True)
    monkeypatch.setattr(gcp, "resource_exists", lambda kind, name, zone=None, dry_run=False: state["vm_exists"])
    monkeypatch.setattr(gcp, "describe_instance_table", lambda name, zone: "")
    monkeypatch.setattr(
        gcp,
        "create_instance",
        lambda *args, dry_run=False: actions.append(("create",) + args[:5]) or True,
    )
    monkeypatch.setattr(gcp, "delete_instance", lambda name, zone, dry_run=False: actions.append("delete") or True)
    monkeypatch.setattr(gcp, "get_external_ip", lambda name, zone, dry_run=False: "203.0.113.10")
    monkeypatch.setattr(orchestrate, "wait_for_vm_ready", lambda vm, policy, dry_run=False: True)
    monkeypatch.setattr(
        orchestrate,
        "configure_basic_auth",
        lambda vm, users, dry_run=False: actions.append(("auth", [u.username for u in users])) or True,
    )
    return actions, state


def _params(**kwargs):
    settings = Settings(project="my-proj")
    return DeployParams(settings=settings, **kwargs)


def test_deploy_instance_basic(fake_gcp):
    actions, _ = fake_gcp
    users = [BasicAuthUser("admin", "generated-pw", generated=True)]

    vm = orchestrate.deploy_instance(_params(users=users))
    assert vm.name == "owox-data-marts"
    assert vm.url == "http://203.0.113.10"
    assert actions == [
        "firewall",
        ("create", "owox-data-marts", "us-central1-a", "e2-small", "my-proj", 20),
        ("auth", ["admin"]),
    ]


def test_deploy_instance_public(fake_gcp, caplog):
    caplog.set_level(logging.INFO)
    actions, _ = fake_gcp

    assert orchestrate.deploy_instance(_params(auth_method="none")) is not None
    assert not any(a[0] == "auth" for a in actions if isinstance(a, tuple))
    assert "No authentication required" in caplog.text


def test_deploy_keeps_existing_vm(fake_gcp):
    actions, state = fake_gcp
    state["vm_exists"] = True

    assert orchestrate.deploy_instance(_params(auth_method="none")) is not None
    assert actions == ["firewall"]


def test_deploy_recreates_existing_vm(fake_gcp):
    actions, state = fake_gcp
    state["vm_exists"] = True

    assert orchestrate.deploy_instance(_params(auth_method="none", recreate=True)) is not None
    assert actions[:2] == ["firewall", "delete"]
    assert actions[2][0] == "create"


def test_deploy_not_ready(fake_gcp, monkeypatch):
    actions, _ = fake_gcp
    monkeypatch.setattr(orchestrate, "wait_for_vm_ready", lambda vm, policy, dry_run=False: False)

    assert orchestrate.deploy_instance(_params()) is None
    assert not any(isinstance(a, tuple) and a[0] == "auth" for a in actions)


def test_deploy_firewall_failure(fake_gcp, monkeypatch):
    monkeypatch.setattr(gcp, "ensure_firewall_rules", lambda dry_run=False: False)
    assert orchestrate.deploy_instance(_params()) is None


def test_apply_auth_iap_only_warns(fake_gcp, vm, caplog):
    actions, _ = fake_gcp
    assert orchestrate.apply_auth_configuration(vm, _params(auth_method="iap"))
    assert actions == []
    assert "Identity-Aware Proxy is not configured" in caplog.text


def test_apply_auth_both_configures_basic(fake_gcp, vm):
    actions, _ = fake_gcp
    users = [BasicAuthUser("admin", "pw1234")]
    assert orchestrate.apply_auth_configuration(vm, _params(auth_method="both", users=users))
    assert actions == [("auth", ["admin"])]


def test_display_access_info(vm, caplog):
    caplog.set_level(logging.INFO)
    orchestrate.display_access_info(vm, "basic", [BasicAuthUser("admin", "pw1234")])
    assert "OWOX Access: http://203.0.113.10/ (Basic Authentication required)" in caplog.text
    assert "Public API: http://203.0.113.10/api/external/* (always public)" in caplog.text
    assert "Username: admin | Password: pw1234" in caplog.text
