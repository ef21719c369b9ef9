"""Startup script, systemd unit, nginx site and remote maintenance scripts."""

import shlex

SERVICE_NAME = "owox"
SERVICE_PORT = 3000
SERVICE_USER = "owox"
SITE_PATH = "/etc/nginx/sites-available/owox"
HTPASSWD_PATH = "/etc/nginx/.htpasswd"
INSTALL_LOG = "/var/log/owox-install.log"
PUBLIC_API_PATH = "/api/external/"
AUTH_REALM = "OWOX Access Required"

_PROXY_HEADERS = """        proxy_http_version 1.1;
        proxy_set_header Upgrade $http_upgrade;
        proxy_set_header Connection 'upgrade';
        proxy_set_header Host $host;
        proxy_set_header X-Real-IP $remote_addr;
        proxy_set_header X-Forwarded-For $proxy_add_x_forwarded_for;
        proxy_set_header X-Forwarded-Proto $scheme;
        proxy_cache_bypass $http_upgrade;"""


def generate_service_unit():
    """systemd unit that runs `owox serve` on SERVICE_PORT."""
    return f"""[Unit]
Description=OWOX Data Marts Service
After=network.target

[Service]
Type=simple
User={SERVICE_USER}
WorkingDirectory=/home/{SERVICE_USER}
ExecStart=/usr/bin/owox serve --port {SERVICE_PORT}
Restart=always
RestartSec=10
Environment=NODE_ENV=production

[Install]
WantedBy=multi-user.target
"""


def generate_nginx_site(basic_auth=False):
    """nginx server block proxying to the app.

    The public API location never requires auth; basic auth, when enabled,
    applies to `location /` only.
    """
    auth_lines = ""
    if basic_auth:
        auth_lines = f"""        auth_basic "{AUTH_REALM}";
        auth_basic_user_file {HTPASSWD_PATH};
"""

    return f"""server {{
    listen 80;
    server_name _;

    # External API access for all users (always public)
    location {PUBLIC_API_PATH} {{
        proxy_pass http://localhost:{SERVICE_PORT}{PUBLIC_API_PATH};
{_PROXY_HEADERS}
    }}

    location / {{
{auth_lines}        proxy_pass http://localhost:{SERVICE_PORT};
{_PROXY_HEADERS}
    }}
}}
"""


def generate_startup_script(package):
    """VM startup script: install nginx, Node.js 22 and the OWOX package."""
    pkg = shlex.quote(package)
    return f"""#!/bin/bash

# Update system
apt-get update -y
apt-get install -y curl wget gnupg software-properties-common nginx

# Install Node.js 22.x
curl -fsSL https://deb.nodesource.com/setup_22.x | bash -
apt-get install -y nodejs

node --version
npm --version

# Install OWOX globally
npm install -g {pkg}
echo "Installed OWOX package:" {pkg} >> {INSTALL_LOG}

# Create service user
useradd -m -s /bin/bash {SERVICE_USER}
mkdir -p /home/{SERVICE_USER}/.owox

cat > /etc/systemd/system/{SERVICE_NAME}.service << 'SERVICE_EOF'
{generate_service_unit()}SERVICE_EOF

cat > {SITE_PATH} << 'NGINX_EOF'
{generate_nginx_site(basic_auth=False)}NGINX_EOF

ln -sf {SITE_PATH} /etc/nginx/sites-enabled/
rm -f /etc/nginx/sites-enabled/default

systemctl daemon-reload
systemctl enable {SERVICE_NAME}
systemctl enable nginx
systemctl start {SERVICE_NAME}
systemctl restart nginx

if command -v ufw &> /dev/null; then
    ufw --force enable
    ufw allow 22/tcp
    ufw allow 80/tcp
    ufw allow 443/tcp
fi

echo "OWOX installation completed at $(date)" >> {INSTALL_LOG}
echo "OWOX running on port {SERVICE_PORT}, proxied through nginx on port 80" >> {INSTALL_LOG}
"""


def _apply_site_block(success_message):
    """Test the new nginx config; reload on success, restore the backup otherwise."""
    return f"""if nginx -t; then
    systemctl reload nginx
    echo "SUCCESS: {success_message}"
else
    echo "ERROR: Nginx configuration test failed"
    cp {SITE_PATH}.backup {SITE_PATH}
    echo "Restored backup configuration"
    exit 1
fi
"""


def generate_configure_auth_script(htpasswd):
    """Remote script that installs the htpasswd file and enables basic auth."""
    return f"""#!/bin/bash

cp {SITE_PATH} {SITE_PATH}.backup

cat > {HTPASSWD_PATH} << 'HTPASSWD_EOF'
{htpasswd}HTPASSWD_EOF
chown root:www-data {HTPASSWD_PATH}
chmod 640 {HTPASSWD_PATH}

cat > {SITE_PATH} << 'NGINX_EOF'
{generate_nginx_site(basic_auth=True)}NGINX_EOF

{_apply_site_block("Basic authentication configured and nginx reloaded")}"""


def generate_remove_auth_script():
    """Remote script that restores the public site and deletes the htpasswd file."""
    return f"""#!/bin/bash

cp {SITE_PATH} {SITE_PATH}.backup

cat > {SITE_PATH} << 'NGINX_EOF'
{generate_nginx_site(basic_auth=False)}NGINX_EOF

rm -f {HTPASSWD_PATH}

{_apply_site_block("Authentication removed and nginx reloaded")}"""


def generate_update_script(package):
    """Remote script that reinstalls the package and restarts the service."""
    pkg = shlex.quote(package)
    return f"""#!/bin/bash

echo "=== OWOX Update Process Started at $(date) ==="

echo "Current OWOX version:"
owox --version 2>/dev/null || echo "Could not get current version"

echo "Current npm package info:"
npm list -g owox 2>/dev/null || echo "Package not found in global npm"

echo "Stopping OWOX service..."
systemctl stop {SERVICE_NAME} || echo "Failed to stop {SERVICE_NAME} service"

echo "Updating OWOX package to:" {pkg}
npm install -g {pkg}
INSTALL_RC=$?

echo "Verifying new installation..."
owox --version || echo "Version check failed after update"

echo "Starting OWOX service..."
systemctl start {SERVICE_NAME}

echo "OWOX service status:"
systemctl status {SERVICE_NAME} --no-pager -l

sleep 5

echo "Testing OWOX response..."
curl -s -o /dev/null -w "HTTP Status: %{{http_code}}\\n" http://localhost:{SERVICE_PORT} 2>/dev/null || echo "OWOX test failed"

echo "=== OWOX Update Process Completed at $(date) ==="
exit $INSTALL_RC
"""
