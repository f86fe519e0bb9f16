from __future__ import annotations
import logging
import math
import time
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from pitchlab.core.errors import RateLimited
from pitchlab.core.ports.admission import AdmissionDecision, IAdmissionStore

log = logging.getLogger("pitchlab.admission")


@dataclass(frozen=True)
class RatePolicy:
    name: str
    limit: int
    window_sec: float


def client_id_from_headers(headers: Mapping[str, str], fallback: Optional[str] = None) -> str:
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return fallback or "unknown-client"


class AdmissionControl:
    """Fixed-window request throttling per (policy, client)."""

    def __init__(self, store: IAdmissionStore, policies: Dict[str, RatePolicy]):
        self.store = store
        self.policies = policies

    def admit(self, policy_name: str, client_id: str, now: float | None = None) -> AdmissionDecision:
        policy = self.policies[policy_name]
        now = time.time() if now is None else now
        decision = self.store.hit(f"{policy.name}:{client_id}", policy.limit, policy.window_sec, now=now)
        if not decision.allowed:
            log.warning(
                "Rate limited | policy=%s | client=%s | retry_after=%ds",
                policy.name, client_id, decision.retry_after,
            )
            raise RateLimited(
                retry_after=decision.retry_after,
                limit=decision.limit,
                reset_at=int(math.ceil(decision.reset_at)),
            )
        return decision
