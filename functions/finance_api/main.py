import json
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Type

import functions_framework
from flask import Response, make_response
from loguru import logger
from pydantic import BaseModel, ValidationError


def _is_truthy(v: str | None) -> bool:
    return (v or "").strip().lower() in ("1", "true", "yes", "on")


def _init_sentry() -> None:
    dsn = (os.getenv("SENTRY_DSN") or "").strip()
    if not dsn or _is_truthy(os.getenv("DISABLE_SENTRY")):
        return
    try:
        import sentry_sdk
        from sentry_sdk.integrations.gcp import GcpIntegration

        sentry_sdk.init(
            dsn=dsn,
            integrations=[GcpIntegration()],
            send_default_pii=False,
            traces_sample_rate=0.0,
        )
    except Exception as e:
        # Never fail the function due to Sentry init issues.
        logger.warning(f"Sentry init skipped: {e}")


_init_sentry()

# Support both "run as a package" (relative imports) and "run from this folder" (local imports).
try:  # pragma: no cover
    from . import store as records
    from .auth import AuthenticationError, PinGate
    from .firestore_client import get_db
    from .models import (
        BillCreate,
        CashflowCreate,
        CreditCardCreate,
        CreditCardUpdate,
        ExpenseCreate,
        GoalCreate,
        GoalUpdate,
        NULLABLE_UPDATE_FIELDS,
        PinChange,
        PinVerify,
        UserProfile,
    )
    from .serialization import profile_to_dict
    from .statement_parser import decode_upload, parse_statement
    from .store import RecordNotFound, RecordStore, StorageUnavailableError
except Exception:  # pragma: no cover
    import store as records
    from auth import AuthenticationError, PinGate
    from firestore_client import get_db
    from models import (
        BillCreate,
        CashflowCreate,
        CreditCardCreate,
        CreditCardUpdate,
        ExpenseCreate,
        GoalCreate,
        GoalUpdate,
        NULLABLE_UPDATE_FIELDS,
        PinChange,
        PinVerify,
        UserProfile,
    )
    from serialization import profile_to_dict
    from statement_parser import decode_upload, parse_statement
    from store import RecordNotFound, RecordStore, StorageUnavailableError


@dataclass(frozen=True)
class Category:
    key: str
    create_model: Type[BaseModel]
    update_model: Optional[Type[BaseModel]] = None
    stamp_created_at: bool = True


CATEGORIES: Dict[str, Category] = {
    "cashflow": Category(records.CASHFLOW, CashflowCreate),
    "credit-cards": Category(records.CREDIT_CARDS, CreditCardCreate, CreditCardUpdate, stamp_created_at=False),
    "expenses": Category(records.EXPENSES, ExpenseCreate),
    # No update route: the client toggles `paid` by delete + recreate.
    "bills": Category(records.BILLS, BillCreate),
    "goals": Category(records.GOALS, GoalCreate, GoalUpdate),
}


def _json_response(payload: Any, status: int = 200) -> Response:
    body = "" if payload is None else json.dumps(payload, ensure_ascii=False)
    resp = make_response(body, status)
    resp.headers["Content-Type"] = "application/json; charset=utf-8"
    resp.headers["Access-Control-Allow-Origin"] = "*"
    resp.headers["Access-Control-Allow-Methods"] = "GET, POST, PUT, DELETE, OPTIONS"
    resp.headers["Access-Control-Allow-Headers"] = "Content-Type, Authorization"
    return resp


def _error(message: str, status: int = 400, extra: Dict[str, Any] | None = None) -> Response:
    body: Dict[str, Any] = {"error": message}
    if extra:
        body.update(extra)
    return _json_response(body, status=status)


def _not_found() -> Response:
    return _error("Not found", 404)


def _parse_json(request) -> Tuple[Dict[str, Any] | None, Response | None]:
    if not request.data:
        return None, None
    try:
        return request.get_json(silent=False, force=True), None
    except Exception:
        return None, _error("Invalid JSON body", 400)


def _validated(request, model: Type[BaseModel]) -> Tuple[BaseModel | None, Response | None]:
    body, err = _parse_json(request)
    if err:
        return None, err
    if body is None:
        return None, _error("JSON body required", 400)
    if not isinstance(body, dict):
        return None, _error("JSON object required", 400)
    try:
        return model.model_validate(body), None
    except ValidationError as e:
        return None, _error("Validation error", 400, {"details": e.errors(include_url=False, include_context=False)})


def _route_parts(path: str) -> List[str]:
    parts = [p for p in (path or "/").split("/") if p]
    prefix = (os.getenv("API_PREFIX") or "api").strip("/")
    if prefix and parts and parts[0] == prefix:
        parts = parts[1:]
    return parts


def _handle_auth(request, store: RecordStore, action: str) -> Response:
    gate = PinGate(store)

    if action == "verify":
        payload, err = _validated(request, PinVerify)
        if err:
            return err
        try:
            result = gate.verify(payload.pin)
        except AuthenticationError as e:
            logger.warning("PIN verification failed")
            return _json_response({"success": False, "error": str(e)}, status=401)
        if result.first_time:
            logger.info("PIN set up on first verification")
        return _json_response(result.to_dict())

    if action == "change-pin":
        payload, err = _validated(request, PinChange)
        if err:
            return err
        try:
            gate.change(payload.oldPin, payload.newPin)
        except AuthenticationError as e:
            logger.warning("PIN change rejected")
            return _json_response({"success": False, "error": str(e)}, status=401)
        logger.info("PIN changed")
        return _json_response({"success": True})

    return _not_found()


def _handle_profile(request, store: RecordStore) -> Response:
    if request.method == "GET":
        return _json_response(profile_to_dict(store.get_singleton(records.PROFILE)))

    if request.method == "POST":
        payload, err = _validated(request, UserProfile)
        if err:
            return err
        profile = payload.model_dump(mode="json")
        store.put_singleton(records.PROFILE, profile)
        return _json_response(profile)

    return _not_found()


def _apply_update(category: Category, request, store: RecordStore, record_id: str) -> Response:
    payload, err = _validated(request, category.update_model)
    if err:
        return err

    # Use `model_fields_set` to distinguish missing vs provided-as-null.
    for field in sorted(payload.model_fields_set):
        if getattr(payload, field) is None and field not in NULLABLE_UPDATE_FIELDS:
            return _error(f"`{field}` cannot be null", 400)
    # Same stored shape as create: absent optionals stay absent, except explicit clears.
    changes = payload.model_dump(mode="json", include=payload.model_fields_set, exclude_none=True)
    for field in payload.model_fields_set & NULLABLE_UPDATE_FIELDS:
        if getattr(payload, field) is None:
            changes[field] = None

    try:
        return _json_response(store.patch(category.key, record_id, changes))
    except RecordNotFound as e:
        logger.info(f"Update skipped, {e.key}/{e.record_id} does not exist")
        return _not_found()


def _handle_category(category: Category, request, store: RecordStore, record_id: str | None) -> Response:
    method = request.method

    # /{category}
    if record_id is None:
        if method == "GET":
            return _json_response(store.list(category.key))

        if method == "POST":
            payload, err = _validated(request, category.create_model)
            if err:
                return err
            doc = payload.model_dump(mode="json", exclude_none=True)
            created = store.append(category.key, doc, stamp_created_at=category.stamp_created_at)
            return _json_response(created)

        return _not_found()

    # /{category}/{id}
    if method == "DELETE":
        store.remove(category.key, record_id)
        return _json_response({"success": True})

    if method == "PUT" and category.update_model is not None:
        return _apply_update(category, request, store, record_id)

    return _not_found()


def _handle_statement(request) -> Response:
    upload = request.files.get("file")
    if upload is None:
        return _error("No file provided", 400)
    text = decode_upload(upload.read())
    transactions = [t.to_dict() for t in parse_statement(text)]
    return _json_response({"transactions": transactions})


@functions_framework.http
def finance_api(request):
    """
    Cloud Function HTTP entry point for the personal finance tracker.

    Paths (optionally under /api):
      - POST            /auth/verify
      - POST            /auth/change-pin
      - GET/POST        /user/profile
      - GET/POST        /cashflow | /credit-cards | /expenses | /bills | /goals
      - DELETE          /{category}/{id}
      - PUT             /credit-cards/{id}, /goals/{id}
      - POST            /bank-statement/parse (multipart, field "file")
    """
    if request.method == "OPTIONS":
        return _json_response(None, status=200)

    try:
        db = get_db()
    except Exception as e:
        logger.error(f"Storage client unavailable: {e}")
        return _error("Storage not configured", 500)

    try:
        store = RecordStore(db)
        parts = _route_parts(request.path)
        method = request.method

        if len(parts) == 2 and parts[0] == "auth" and method == "POST":
            return _handle_auth(request, store, parts[1])

        if parts == ["user", "profile"]:
            return _handle_profile(request, store)

        if parts == ["bank-statement", "parse"] and method == "POST":
            return _handle_statement(request)

        if parts and parts[0] in CATEGORIES and len(parts) <= 2:
            record_id = parts[1] if len(parts) == 2 else None
            return _handle_category(CATEGORIES[parts[0]], request, store, record_id)

        return _not_found()

    except StorageUnavailableError as e:
        logger.exception(f"Storage failure on {request.method} {request.path}")
        return _error(str(e), 500)
    except Exception as e:
        logger.exception(f"Unhandled error on {request.method} {request.path}")
        return _error(str(e), 500)
