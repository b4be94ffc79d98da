import os
from typing import Any

try:  # pragma: no cover
    from google.cloud import firestore  # type: ignore
except Exception:  # pragma: no cover
    firestore = None  # type: ignore[assignment]


def get_project_id() -> str:
    # Prefer explicit env var, then the emulator project used for local dev.
    return os.getenv("FIRESTORE_PROJECT_ID") or "demo-finance"


def get_collection_name() -> str:
    return os.getenv("FINANCE_COLLECTION") or "finance"


def get_db() -> Any:
    # If local and FIRESTORE_EMULATOR_HOST is set, Client connects to emulator.
    if firestore is None:  # pragma: no cover
        raise RuntimeError("google-cloud-firestore is required to use get_db()")
    if os.getenv("FIRESTORE_EMULATOR_HOST"):
        return firestore.Client(project=get_project_id())

    return firestore.Client()
