from dataclasses import dataclass
from enum import Enum

try:  # pragma: no cover
    from .store import PIN, RecordStore, key_lock
except Exception:  # pragma: no cover
    from store import PIN, RecordStore, key_lock


class AuthenticationError(Exception):
    pass


class PinState(str, Enum):
    UNSET = "unset"
    SET = "set"


@dataclass(frozen=True)
class VerifyResult:
    success: bool
    first_time: bool = False

    def to_dict(self) -> dict:
        body = {"success": self.success}
        if self.first_time:
            body["firstTime"] = True
        return body


class PinGate:
    """
    Single shared PIN kept in the `user:pin` singleton.

    UNSET -> SET happens exactly once: the first verification stores whatever
    PIN was submitted. There is no way back to UNSET through the API.
    """

    def __init__(self, store: RecordStore):
        self._store = store

    def _stored(self) -> str | None:
        pin = self._store.get_singleton(PIN)
        return None if pin in (None, "") else str(pin)

    def state(self) -> PinState:
        return PinState.UNSET if self._stored() is None else PinState.SET

    def verify(self, pin: str) -> VerifyResult:
        with key_lock(PIN):
            stored = self._stored()
            if stored is None:
                self._store.put_singleton(PIN, pin)
                return VerifyResult(success=True, first_time=True)
        if stored != pin:
            raise AuthenticationError("Invalid PIN")
        return VerifyResult(success=True)

    def change(self, old_pin: str, new_pin: str) -> None:
        with key_lock(PIN):
            stored = self._stored()
            if stored is None or stored != old_pin:
                raise AuthenticationError("Invalid current PIN")
            self._store.put_singleton(PIN, new_pin)
