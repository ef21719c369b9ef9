"""Unit tests for the generated startup script, nginx site and remote scripts."""

from owoxgcp.templates import (
    HTPASSWD_PATH,
    SITE_PATH,
    generate_configure_auth_script,
    generate_nginx_site,
    generate_remove_auth_script,
    generate_service_unit,
    generate_startup_script,
    generate_update_script,
)


def _location_block(site, path):
    start = site.index(f"location {path} {{")
    return site[start : site.index("}", start)]


# ── nginx site ───────────────────────────────────────────────────


def test_nginx_site_public():
    site = generate_nginx_site()
    assert "listen 80;" in site
    assert "auth_basic" not in site
    assert "proxy_pass http://localhost:3000;" in site
    assert "proxy_pass http://localhost:3000/api/external/;" in site


def test_nginx_site_basic_auth_only_on_root():
    site = generate_nginx_site(basic_auth=True)
    root = _location_block(site, "/")
    api = _location_block(site, "/api/external/")
    assert 'auth_basic "OWOX Access Required";' in root
    assert f"auth_basic_user_file {HTPASSWD_PATH};" in root
    assert "auth_basic" not in api


def test_nginx_site_api_before_root():
    site = generate_nginx_site(basic_auth=True)
    assert site.index("location /api/external/") < site.index("location / {")


# ── Startup script ───────────────────────────────────────────────


def test_service_unit():
    unit = generate_service_unit()
    assert "User=owox" in unit
    assert "ExecStart=/usr/bin/owox serve --port 3000" in unit
    assert "Restart=always" in unit


def test_startup_script_installs_package():
    script = generate_startup_script("owox@next")
    assert script.startswith("#!/bin/bash\n")
    assert "setup_22.x" in script
    assert "npm install -g owox@next" in script
    assert "systemctl enable owox" in script
    assert "rm -f /etc/nginx/sites-enabled/default" in script
    assert "auth_basic" not in script


def test_startup_script_quotes_package():
    script = generate_startup_script("owox; rm -rf /")
    assert "npm install -g 'owox; rm -rf /'" in script


def test_startup_script_heredocs_are_quoted():
    script = generate_startup_script("owox")
    assert "<< 'SERVICE_EOF'" in script
    assert "<< 'NGINX_EOF'" in script
    assert "\nSERVICE_EOF\n" in script
    assert "\nNGINX_EOF\n" in script


# ── Remote maintenance scripts ───────────────────────────────────


def test_configure_auth_script():
    script = generate_configure_auth_script("admin:$apr1$abc$hash\n")
    assert f"cp {SITE_PATH} {SITE_PATH}.backup" in script
    assert "admin:$apr1$abc$hash\nHTPASSWD_EOF" in script
    assert "<< 'HTPASSWD_EOF'" in script
    assert f"chmod 640 {HTPASSWD_PATH}" in script
    assert "auth_basic_user_file" in script
    assert "if nginx -t; then" in script
    assert "systemctl reload nginx" in script
    assert f"cp {SITE_PATH}.backup {SITE_PATH}" in script


def test_remove_auth_script():
    script = generate_remove_auth_script()
    assert f"rm -f {HTPASSWD_PATH}" in script
    assert "auth_basic" not in script
    assert "systemctl reload nginx" in script


def test_update_script():
    script = generate_update_script("owox@latest")
    assert "systemctl stop owox" in script
    assert "npm install -g owox@latest\nINSTALL_RC=$?" in script
    assert script.index("systemctl start owox") > script.index("npm install -g")
    assert script.rstrip().endswith("exit $INSTALL_RC")
    assert "%{http_code}" in script


def test_package_spec_stays_outside_double_quotes():
    spec = 'owox"$(touch /tmp/x)'
    startup = generate_startup_script(spec)
    update = generate_update_script(spec)
    assert "echo \"Installed OWOX package:\" 'owox\"$(touch /tmp/x)' >> /var/log/owox-install.log" in startup
    assert "echo \"Updating OWOX package to:\" 'owox\"$(touch /tmp/x)'" in update
