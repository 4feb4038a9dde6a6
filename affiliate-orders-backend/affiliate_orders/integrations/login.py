"""Bounded retry state for the captcha login loop.

The loop itself lives in the LinkHaitao adapter; what to do after each attempt
is decided here by a pure function so it can be tested without any I/O.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Optional

from affiliate_orders.config import LOGIN_SETTINGS


class LoginStep(str, enum.Enum):
    ATTEMPT = "attempt"
    DONE = "done"
    EXHAUSTED = "exhausted"


@dataclass
class LoginRetryState:
    max_attempts: int = field(default_factory=lambda: int(LOGIN_SETTINGS["max_attempts"]))
    attempts: int = 0
    token: Optional[str] = None
    expire_time: Any = None
    last_error: Optional[str] = None


@dataclass(frozen=True)
class AttemptOutcome:
    """Result of one captcha → sign → submit round."""
    token: Optional[str] = None
    expire_time: Any = None
    error: Optional[str] = None


def next_login_step(state: LoginRetryState, outcome: Optional[AttemptOutcome] = None) -> tuple[LoginRetryState, LoginStep]:
    """Fold one attempt outcome into the state and say what happens next.

    Call with ``outcome=None`` before the first attempt.
    """
    if outcome is not None:
        state.attempts += 1
        if outcome.token:
            state.token = outcome.token
            state.expire_time = outcome.expire_time
            state.last_error = None
            return state, LoginStep.DONE
        state.last_error = outcome.error or "login rejected"
    if state.token:
        return state, LoginStep.DONE
    if state.attempts >= state.max_attempts:
        return state, LoginStep.EXHAUSTED
    return state, LoginStep.ATTEMPT


def parse_login_response(payload: Any) -> AttemptOutcome:
    """Accept a login response only when it reports success and carries a token."""
    if not isinstance(payload, dict):
        return AttemptOutcome(error="login response was not an object")
    success = (
        payload.get("code") == "0200"
        or payload.get("msg") == "success"
        or payload.get("error_no") == "lh_suc"
    )
    body = payload.get("payload") if isinstance(payload.get("payload"), dict) else {}
    token = body.get("auth_token")
    if success and token:
        return AttemptOutcome(token=str(token), expire_time=body.get("expire_time"))
    return AttemptOutcome(error=str(payload.get("msg") or payload.get("error_info") or "login rejected"))


__all__ = ["LoginStep", "LoginRetryState", "AttemptOutcome", "next_login_step", "parse_login_response"]
