"""
Project constants definitions
"""

# ============================================================
# Workspace
# ============================================================

GUARDIAN_HOME_ENV = "GUARDIAN_HOME"
DEFAULT_GUARDIAN_HOME = "~/.guardian"

CONFIG_FILE_NAME = "config.json"
SETTINGS_FILE_NAME = "guardian.toml"
TARGET_FILE_NAME = ".target"
HOST_DATA_DIR_NAME = "host_data"
SSH_KEYS_DIR_NAME = "ssh-keys"

PRIVATE_KEY_FILE_NAME = "id_rsa"
PUBLIC_KEY_FILE_NAME = "id_rsa.pub"
KNOWN_HOSTS_FILE_NAME = "known_hosts"

# ============================================================
# Key Material
# ============================================================

DEFAULT_KEY_BITS = 4096
MIN_KEY_BITS = 4096
KEY_COMMENT = "guardian@guardian-cli"
PRIVATE_KEY_MODE = 0o600
PUBLIC_KEY_MODE = 0o644

# ============================================================
# Environment Overrides
# ============================================================

ENV_PREFIX = "GUARDIAN_"
HOST_PASSWORD_ENV = "NEWHOST_PASSWORD"
SUDO_PASSWORD_ENV = "GUARDIAN_SUDO_PASSWORD"
AUTO_ACCEPT_HOSTKEY_ENV = "GUARDIAN_AUTO_ACCEPT_HOSTKEY"
KEY_PASSPHRASE_ENV = "GUARDIAN_KEY_PASSPHRASE"

# ============================================================
# Default Values
# ============================================================

DEFAULT_SSH_PORT = 22
DEFAULT_SSH_TIMEOUT = 10
DEFAULT_COMMAND_TIMEOUT = 1800
DEFAULT_USER = "root"

# ============================================================
# Interactive Relay
# ============================================================

PTY_TERM = "xterm"
PTY_WIDTH = 80
PTY_HEIGHT = 40
SUDO_PROMPT_PREFIX = "[sudo] password for "
SUDO_PROMPT_SUFFIX = ": "
RECV_CHUNK_SIZE = 4096
POLL_INTERVAL = 0.01
SCANNER_RECV_TIMEOUT = 0.5

# ============================================================
# Deployment
# ============================================================

REMOTE_CHART_DIR = ".guardian/charts"
DEFAULT_RELEASE_NAME = "guardian"
DEFAULT_NAMESPACE = "guardian"
