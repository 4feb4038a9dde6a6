"""
LinkHaitao integration.

Two modes: accounts with an API token use the public cashback API; accounts
without one log into the dashboard (captcha + signed form) and read the
transaction report with the session token, which is cached in a TokenStore.
"""
from datetime import date, datetime
from typing import Any, Callable, Optional

from affiliate_orders import config
from affiliate_orders.exceptions import AuthenticationFailure, RecognitionFailure, UpstreamAPIError
from affiliate_orders.models.db import PlatformAccount, PlatformType
from affiliate_orders.models.schemas.platform import LinkHaitaoLoginRecord, LinkHaitaoTokenRecord, PartnerRecord
from affiliate_orders.services.token_store import TokenStore
from affiliate_orders.utils.signing import decrypt_password, generate_sign
from affiliate_orders.utils.time import parse_expiry, utc_now
from .base import PlatformAdapter, is_success_code
from .captcha import CaptchaSolver, validate_code
from .http import PartnerHttp
from .login import AttemptOutcome, LoginRetryState, LoginStep, next_login_step, parse_login_response

REPORT_OK_CODE = "0200"
REPORT_OK_MSG = "成功"


class LinkHaitaoAdapter(PlatformAdapter):
    platform = PlatformType.LINKHAITAO
    record_type = LinkHaitaoTokenRecord

    def __init__(
        self,
        http: PartnerHttp,
        token_store: TokenStore,
        captcha_solver: CaptchaSolver,
        base_url: Optional[str] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        super().__init__(http, base_url)
        self.token_store = token_store
        self.captcha_solver = captcha_solver
        self.clock = clock

    @staticmethod
    def uses_api_token(account: PlatformAccount) -> bool:
        return bool((account.api_token or "").strip())

    def record_type_for(self, account: PlatformAccount) -> type[PartnerRecord]:
        return LinkHaitaoTokenRecord if self.uses_api_token(account) else LinkHaitaoLoginRecord

    async def fetch_rows(self, account: PlatformAccount, start_date: date, end_date: date) -> list[Any]:
        if self.uses_api_token(account):
            return await self._fetch_with_api_token(account, start_date, end_date)
        session_token = await self.session_token(account)
        return await self._fetch_with_session(session_token, start_date, end_date)

    # ------------------------------------------------------------------ token mode
    async def _fetch_with_api_token(self, account: PlatformAccount, start_date: date, end_date: date) -> list[Any]:
        payload = await self.http.get_json(
            f"{self.base_url}/api.php",
            params={
                "mod": "medium",
                "op": "cashback2",
                "token": self.require_token(account),
                "begin_date": start_date.isoformat(),
                "end_date": end_date.isoformat(),
                "page": "1",
                "per_page": str(config.PAGE_SIZES["linkhaitao_token"]),
            },
        )
        status = payload.get("status") if isinstance(payload, dict) else None
        status = status if isinstance(status, dict) else {}
        data = payload.get("data") if isinstance(payload, dict) else None
        if is_success_code(status.get("code")) and isinstance(data, dict) and data.get("list") is not None:
            return list(data["list"])
        raise self.upstream_error(payload, status.get("msg") or "LinkHaitao data fetch failed", status.get("code"))

    # ------------------------------------------------------------------ login mode
    async def session_token(self, account: PlatformAccount) -> str:
        """Reuse the cached session token while it is unexpired, else log in again."""
        cached = await self.token_store.get(account.id)
        if cached is not None and cached.is_valid(self.clock()):
            self.logger.debug("Using cached session token", account_id=account.id)
            return cached.token

        self.logger.info("Session token missing or expired, logging in", account_id=account.id)
        password = decrypt_password(account.account_password)
        token, expire_time = await self.login(account.account_name, password)
        await self.token_store.put(account.id, token, parse_expiry(expire_time))
        return token

    async def login(self, account_name: str, password: str) -> tuple[str, Any]:
        state, step = next_login_step(LoginRetryState())
        while step is LoginStep.ATTEMPT:
            outcome = await self._attempt_login(account_name, password, state.attempts + 1)
            state, step = next_login_step(state, outcome)

        if step is LoginStep.EXHAUSTED or not state.token:
            self.logger.error(
                "Login attempts exhausted",
                account_name=account_name,
                attempts=state.attempts,
                last_error=state.last_error,
            )
            raise AuthenticationFailure(
                f"Automatic login failed after {state.attempts} attempts",
                details={"last_error": state.last_error},
            )
        self.logger.info("Login succeeded", account_name=account_name, attempts=state.attempts)
        return state.token, state.expire_time

    async def _attempt_login(self, account_name: str, password: str, attempt: int) -> AttemptOutcome:
        timestamp = str(int(self.clock().timestamp() * 1000))
        remember = str(config.LOGIN_SETTINGS["remember"])
        try:
            image = await self.http.get_bytes(f"{self.base_url}/api2.php?c=verifyCode&a=getCode&t={timestamp}")
            code = validate_code(await self.captcha_solver.solve(image))
            payload = await self.http.post_form(
                f"{self.base_url}/api2.php?c=login&a=login",
                {
                    "sign": generate_sign(account_name + password + code + remember + timestamp),
                    "uname": account_name,
                    "password": password,
                    "code": code,
                    "remember": remember,
                    "t": timestamp,
                },
            )
        except (RecognitionFailure, UpstreamAPIError) as e:
            self.logger.warning("Login attempt failed", attempt=attempt, error=str(e))
            return AttemptOutcome(error=str(e))

        outcome = parse_login_response(payload)
        if outcome.error:
            self.logger.warning("Login rejected", attempt=attempt, error=outcome.error)
        return outcome

    async def _fetch_with_session(self, session_token: str, start_date: date, end_date: date) -> list[Any]:
        page, page_size, export_flag = "1", str(config.PAGE_SIZES["linkhaitao_login"]), "0"
        start, end = start_date.isoformat(), end_date.isoformat()
        payload = await self.http.post_form(
            f"{self.base_url}/api2.php?c=report&a=transactionDetail",
            {
                "sign": generate_sign(f"{start}{end}{page}{page_size}{export_flag}"),
                "start_date": start,
                "end_date": end,
                "page": page,
                "page_size": page_size,
                "export": export_flag,
            },
            headers={"Lh-Authorization": session_token},
        )
        if not isinstance(payload, dict):
            raise self.upstream_error(payload, "LinkHaitao report returned an unexpected body")
        ok = payload.get("code") == REPORT_OK_CODE or payload.get("msg") == REPORT_OK_MSG
        body = payload.get("payload")
        if ok and isinstance(body, dict):
            return list(body.get("info") or [])
        raise self.upstream_error(payload, payload.get("msg") or "LinkHaitao report fetch failed", payload.get("code"))


__all__ = ["LinkHaitaoAdapter"]
