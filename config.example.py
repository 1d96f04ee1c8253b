# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets; keep them in .env (local, gitignored).

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "AUTOPOST_APP_NAME": "App display name (default: autopost).",
    "AUTOPOST_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Connectors
    "AUTOPOST_CONSOLE_ENABLED": "Enable the local console command surface (true/false, default: true).",
    "AUTOPOST_MATRIX_ENABLED": "Send through Matrix and listen to Matrix rooms (true/false, default: false).",
    # Commands
    "AUTOPOST_COMMAND_PREFIX": "Command prefix (default: '.').",
    "AUTOPOST_OWNER_IDS": "Comma/space separated user ids allowed to run commands (the bot account always is).",
    # Matrix
    "AUTOPOST_MATRIX_HOMESERVER": "Matrix homeserver URL.",
    "AUTOPOST_MATRIX_USER_ID": "Matrix user ID (bot).",
    "AUTOPOST_MATRIX_PASSWORD": "Password for first login (session stored locally).",
    "AUTOPOST_MATRIX_ROOMS": "Optional allowlist of room IDs (empty => all joined rooms).",
    # Paths (gitignored)
    "AUTOPOST_DATA_DIR": "Local data directory (default: .local/autopost).",
    "AUTOPOST_MATRIX_STORE_PATH": "Matrix session/E2EE store path (default: <data_dir>/matrix_store).",
    "AUTOPOST_DB_PATH": "SQLite database for tasks and responders (default: <data_dir>/autopost.sqlite3).",
    # Shutdown
    "AUTOPOST_SHUTDOWN_TIMEOUT": "Seconds to wait for in-flight sends on shutdown (default: 10).",
}
