"""Create (or reset) an admin account.

Usage: python scripts/create_admin.py EMAIL PASSWORD [FULL NAME]
"""
from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
for path in (REPO_ROOT, REPO_ROOT / "src"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from config import get_settings_module

from taskpulse.database.bootstrap import ensure_admin_user


def main(argv: list[str]) -> int:
    if len(argv) < 2:
        print(__doc__.strip())
        return 2

    email, password = argv[0].strip().lower(), argv[1]
    full_name = " ".join(argv[2:]) or "Admin"

    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)
    ensure_admin_user(db_config, email=email, password=password, full_name=full_name)

    print(f"OK: admin {email} ready in {db_config.get('database')}")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
