"""Per-transaction and per-scenario settings."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from ..core.errors import DocumentError


def _folded(obj: Dict[str, Any]) -> Dict[str, Any]:
    # Settings written with kebab-case keys are accepted as well.
    return {str(k).replace("-", "_"): v for k, v in obj.items()}


def _opt_int(obj: Dict[str, Any], key: str) -> Optional[int]:
    raw = obj.get(key)
    if raw is None:
        return None
    if isinstance(raw, bool) or not isinstance(raw, int) or raw < 0:
        raise DocumentError(f"{key} must be a non-negative integer")
    return raw


@dataclass(frozen=True)
class TxSettings:
    signers: Tuple[str, ...] = ()
    gas_payer: Optional[str] = None
    gas_limit: Optional[int] = None
    broadcast_only: bool = False
    gas_token: Optional[str] = None
    expiration: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "signers": list(self.signers),
            "broadcast_only": self.broadcast_only,
        }
        if self.gas_payer is not None:
            out["gas_payer"] = self.gas_payer
        if self.gas_limit is not None:
            out["gas_limit"] = self.gas_limit
        if self.gas_token is not None:
            out["gas_token"] = self.gas_token
        if self.expiration is not None:
            out["expiration"] = self.expiration
        return out

    @classmethod
    def from_dict(cls, obj: Any) -> "TxSettings":
        if not isinstance(obj, dict):
            raise DocumentError("settings must be an object")
        data = _folded(obj)
        signers = data.get("signers") or []
        if not isinstance(signers, list) or not all(isinstance(s, str) for s in signers):
            raise DocumentError("settings.signers must be a list of aliases")
        gas_payer = data.get("gas_payer")
        if gas_payer is not None and not isinstance(gas_payer, str):
            raise DocumentError("settings.gas_payer must be an alias")
        gas_token = data.get("gas_token")
        if gas_token is not None and not isinstance(gas_token, str):
            raise DocumentError("settings.gas_token must be an alias")
        return cls(
            signers=tuple(signers),
            gas_payer=gas_payer,
            gas_limit=_opt_int(data, "gas_limit"),
            broadcast_only=bool(data.get("broadcast_only", False)),
            gas_token=gas_token,
            expiration=_opt_int(data, "expiration"),
        )


@dataclass(frozen=True)
class ScenarioSettings:
    retry_for: Optional[int] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        out = dict(self.extra)
        if self.retry_for is not None:
            out["retry_for"] = self.retry_for
        return out

    @classmethod
    def from_dict(cls, obj: Any) -> "ScenarioSettings":
        if obj is None:
            return cls()
        if not isinstance(obj, dict):
            raise DocumentError("scenario settings must be an object")
        data = _folded(obj)
        retry_for = _opt_int(data, "retry_for")
        extra = {k: v for k, v in data.items() if k != "retry_for"}
        return cls(retry_for=retry_for, extra=extra)
