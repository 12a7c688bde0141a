#!/usr/bin/env python3
"""
Print a password hash for ATLAS_ADMIN_PASSWORD_HASH.
Run from project root: python3 scripts/hash_password.py
"""
from __future__ import annotations

import getpass
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from atlas.auth import hash_password


def main() -> None:
    password = getpass.getpass("Admin password: ")
    if not password:
        raise SystemExit("Password must not be empty.")
    if getpass.getpass("Repeat: ") != password:
        raise SystemExit("Passwords do not match.")
    print(hash_password(password))


if __name__ == "__main__":
    main()
