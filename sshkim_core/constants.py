# sshkim_core/constants.py

APP_DIR_NAME = ".ssh-kim"
KEYS_FILE_NAME = "keys.enc"

BLOCK_SIZE = 16   # AES block / iv length in bytes
KEY_SIZE = 32     # AES-256

MACHINE_KEY_SEPARATOR = b"ssh-kim-machine-key-v1"
PASSWORD_KEY_SEPARATOR = b"ssh-kim-password-key-v1"
UNKNOWN_MACHINE = "unknown-machine"

MODE_MACHINE = "machine"
MODE_PASSWORD = "password"

ENV_KEYS_FILE = "SSHKIM_KEYS_FILE"
ENV_STORAGE_PROVIDER = "SSHKIM_STORAGE_PROVIDER"
ENV_LOG_LEVEL = "SSHKIM_LOG_LEVEL"
