"""
Demo Session Service

Issues and validates time-boxed demo sessions.

Issuance mints an unguessable bearer token bound to the requesting IP (and
User-Agent when present) for a fixed window. Validation is re-run on every
proxied request; nothing is cached between requests, so expiry on the
server is authoritative whatever the client-side timer does.
"""
import enum
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from ..core.clock import Clock, utcnow, isoformat_z
from ..core.config import settings
from ..models import App, DemoSession
from ..storage.base import Storage
from .demo_quota import QuotaGate
from .errors import (
    AppNotFound,
    DemoUnavailable,
    SessionNotFound,
    SessionExpired,
    SecurityViolation,
)

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32  # 256 bits of entropy


def generate_session_token() -> str:
    return secrets.token_hex(TOKEN_BYTES)


def mask_token(token: str) -> str:
    """Loggable form of a session token."""
    if not token:
        return ""
    return token[:6] + "..."


class SessionError(str, enum.Enum):
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    SESSION_EXPIRED = "SESSION_EXPIRED"
    IP_MISMATCH = "IP_MISMATCH"
    UA_MISMATCH = "UA_MISMATCH"


@dataclass
class ValidationResult:
    valid: bool
    session: Optional[DemoSession] = None
    app: Optional[App] = None
    error: Optional[SessionError] = None

    def raise_for_error(self) -> None:
        """Translate a failed validation into the matching DemoAccessError."""
        if self.valid:
            return
        if self.error == SessionError.SESSION_NOT_FOUND:
            raise SessionNotFound()
        if self.error == SessionError.SESSION_EXPIRED:
            raise SessionExpired(self.app)
        if self.error == SessionError.IP_MISMATCH:
            raise SecurityViolation(
                self.error.value,
                app=self.app,
                message="IP address mismatch - session cannot be shared",
            )
        raise SecurityViolation(SessionError.UA_MISMATCH.value, app=self.app)


@dataclass
class IssuedSession:
    session_token: str
    expires_at: datetime
    duration_minutes: int
    app_id: str

    def to_dict(self) -> dict:
        return {
            "sessionToken": self.session_token,
            "expiresAt": isoformat_z(self.expires_at),
            "durationMinutes": self.duration_minutes,
            "proxyUrl": f"{settings.DEMO_PROXY_PREFIX}/{self.session_token}/",
        }


class DemoSessionService:
    """Issuer and validator for demo sessions over a Storage backend."""

    def __init__(
        self,
        storage: Storage,
        quota_gate: Optional[QuotaGate] = None,
        clock: Clock = utcnow,
        duration_minutes: Optional[int] = None,
    ):
        self.storage = storage
        self.quota_gate = quota_gate or QuotaGate(storage)
        self.clock = clock
        self.duration_minutes = duration_minutes or settings.DEMO_SESSION_MINUTES

    def issue_session(
        self,
        app_id: str,
        request_ip: str,
        request_user_agent: Optional[str] = None,
    ) -> IssuedSession:
        """
        Mint a demo session for (app, ip).

        Raises:
            AppNotFound: unknown app
            DemoUnavailable: app has no demo URL
            QuotaExceeded: daily cap reached for this ip + app
            ConcurrencyExceeded: too many active sessions for this ip + app
        """
        app = self.storage.get_app(app_id)
        if app is None:
            raise AppNotFound()
        if not app.has_demo:
            raise DemoUnavailable()

        with self.storage.issuance_guard(request_ip, app.id):
            now = self.clock()
            self.quota_gate.check(request_ip, app, now)

            end_time = now + timedelta(minutes=self.duration_minutes)
            session = self.storage.create_demo_session(
                app_id=app.id,
                session_token=generate_session_token(),
                ip_address=request_ip,
                user_agent=request_user_agent or None,
                start_time=now,
                end_time=end_time,
            )

        logger.info(
            f"Issued demo session {session.id} for app {app.id} "
            f"(token {mask_token(session.session_token)}, expires {isoformat_z(end_time)})"
        )

        issued = IssuedSession(
            session_token=session.session_token,
            expires_at=end_time,
            duration_minutes=self.duration_minutes,
            app_id=app.id,
        )
        self.cleanup_expired()
        return issued

    def validate(
        self,
        token: str,
        request_ip: Optional[str] = None,
        request_user_agent: Optional[str] = None,
    ) -> ValidationResult:
        """
        Check a token against existence, expiry and client binding, in that order.

        A not-found token never carries session or app data; every other
        failure does, so callers can build a purchase upsell.
        """
        found = self.storage.get_demo_session_with_app(token) if token else None
        if found is None:
            return ValidationResult(valid=False, error=SessionError.SESSION_NOT_FOUND)

        session, app = found
        now = self.clock()

        if not session.is_usable(now):
            return ValidationResult(valid=False, session=session, app=app, error=SessionError.SESSION_EXPIRED)

        if request_ip and session.ip_address != request_ip:
            logger.warning(f"Demo session {session.id}: IP mismatch")
            return ValidationResult(valid=False, session=session, app=app, error=SessionError.IP_MISMATCH)

        if request_user_agent and session.user_agent and session.user_agent != request_user_agent:
            logger.warning(f"Demo session {session.id}: User-Agent mismatch")
            return ValidationResult(valid=False, session=session, app=app, error=SessionError.UA_MISMATCH)

        return ValidationResult(valid=True, session=session, app=app)

    def validate_and_release(
        self,
        token: str,
        request_ip: Optional[str] = None,
        request_user_agent: Optional[str] = None,
    ) -> ValidationResult:
        """
        validate(), then hand the storage connection back so the caller can
        wait on upstream I/O without pinning a pooled connection.
        """
        try:
            return self.validate(token, request_ip, request_user_agent)
        finally:
            self.storage.release()

    def revoke(self, token: str, request_ip: Optional[str], request_user_agent: Optional[str]) -> DemoSession:
        """End a session early. The caller must pass the same binding checks as the proxy."""
        result = self.validate(token, request_ip, request_user_agent)
        result.raise_for_error()
        self.storage.deactivate_demo_session(result.session.id)
        logger.info(f"Revoked demo session {result.session.id}")
        return result.session

    def cleanup_expired(self) -> int:
        """Best-effort housekeeping: failures are logged and never propagate."""
        try:
            touched = self.storage.cleanup_expired_demo_sessions(self.clock())
        except Exception as e:
            logger.warning(f"Demo session cleanup failed: {e}", exc_info=True)
            return 0
        if touched:
            logger.info(f"Deactivated {touched} expired demo sessions")
        return touched
