"""Test environment bootstrap.

``devconnect.config.settings`` is built at import time, so the environment has
to be complete before any test module imports the package. Values from
``.env.test`` win over the fallbacks below; real environment variables win over both.
"""
from __future__ import annotations

import os
from pathlib import Path

_FALLBACKS = {
    "POSTGRES_USER": "devconnect",
    "POSTGRES_PASSWORD": "devconnect",
    "POSTGRES_DB": "devconnect_test",
    "JWT_SECRET": "devconnect-test-secret-0123456789abcdef",
}


def _read_env_file(path: Path) -> dict[str, str]:
    values: dict[str, str] = {}
    if not path.exists():
        return values
    for line in path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        key, _, value = line.partition("=")
        values[key.strip()] = value.strip()
    return values


for _key, _value in {**_FALLBACKS, **_read_env_file(Path(__file__).resolve().parent / ".env.test")}.items():
    os.environ.setdefault(_key, _value)
