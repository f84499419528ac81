"""Pre-flight check for the console's Firebase configuration.

Loads every settings group from an env file and prints one line per group,
so a missing ``FIREBASE_SERVER_KEY`` or web SDK value is caught before
``uvicorn`` is started rather than on the first request. Secret values are
reported as set/unset, never echoed.

    python -m scripts.check_env --env-file /opt/fcm-console/.env
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from app.core.config import AppSettings, ConfigurationError, load_settings

EXIT_OK = 0
EXIT_INVALID = 2
EXIT_NO_FILE = 5


def _flag(value: str | None) -> str:
    return "set" if value else "not set"


def describe_settings(settings: AppSettings) -> list[str]:
    """Human-readable summary of each settings group."""
    firebase = settings.firebase
    messaging = settings.messaging
    credentials = settings.credentials
    return [
        f"firebase: project {firebase.project_id}, app {firebase.app_id}, "
        f"VAPID key {_flag(firebase.vapid_key)}",
        f"messaging: Instance-ID at {messaging.instance_id_base_url}, "
        f"server key {_flag(messaging.server_key)}",
        f"credentials: key file {credentials.service_account_path}, "
        f"encrypted at rest: {'yes' if credentials.encryption_secret else 'no'}",
    ]


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Validate the Firebase settings the console needs at startup."
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        type=Path,
        help="Path to the environment file (default: .env in the working directory).",
    )
    args = parser.parse_args(argv)
    env_file: Path = args.env_file

    if not env_file.is_file():
        print(f"Environment file {env_file} does not exist.", file=sys.stderr)
        return EXIT_NO_FILE

    try:
        settings = load_settings(env_file)
    except ConfigurationError as exc:
        print("Missing or invalid settings:", file=sys.stderr)
        for name in exc.missing:
            print(f"  {name}", file=sys.stderr)
        return EXIT_INVALID

    for line in describe_settings(settings):
        print(line)
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
