"""
Demo access routes.

POST   /api/demo-access/{app_id}          issue a time-boxed demo session
GET    /api/demo-session/{token}          session status for the client countdown
DELETE /api/demo-session/{token}          end a session early
ANY    /demo-proxy/{token}/{path}         rewriting reverse proxy to the app's demo
"""
import logging

from fastapi import APIRouter, Depends, Request, Response, status
from starlette.concurrency import run_in_threadpool

from ..core.clock import isoformat_z
from ..core.config import settings
from ..schemas.demo import DemoAccessResponse, DemoSessionStatus
from ..services.demo_proxy import DemoProxy, session_prefix
from ..services.demo_sessions import DemoSessionService, mask_token
from ..services.errors import RateLimited
from ..storage import get_storage
from ..storage.base import Storage
from ..utils.client_ip import get_client_ip
from ..utils.rate_limit import get_rate_limiter

logger = logging.getLogger(__name__)

router = APIRouter(tags=["demo"])

PROXY_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def get_demo_session_service(storage: Storage = Depends(get_storage)) -> DemoSessionService:
    return DemoSessionService(storage)


def get_demo_proxy(request: Request) -> DemoProxy:
    proxy = getattr(request.app.state, "demo_proxy", None)
    if proxy is None:
        raise RuntimeError("Demo proxy not initialized; is the application lifespan running?")
    return proxy


@router.post("/api/demo-access/{app_id}", response_model=DemoAccessResponse)
def request_demo_access(
    app_id: str,
    request: Request,
    service: DemoSessionService = Depends(get_demo_session_service),
):
    """Issue a demo session bound to the caller's IP and User-Agent."""
    ip = get_client_ip(request)
    allowed, _ = get_rate_limiter().check_demo_issue_limit(ip)
    if not allowed:
        logger.warning(f"Demo issuance rate limit exceeded for {ip}")
        raise RateLimited("Too many demo requests from this IP, please try again tomorrow.")

    issued = service.issue_session(app_id, ip, request.headers.get("user-agent"))
    return issued.to_dict()


@router.get("/api/demo-session/{token}", response_model=DemoSessionStatus)
def get_demo_session_status(
    token: str,
    request: Request,
    service: DemoSessionService = Depends(get_demo_session_service),
):
    result = service.validate(token, get_client_ip(request), request.headers.get("user-agent"))
    result.raise_for_error()

    now = service.clock()
    session, app = result.session, result.app
    return DemoSessionStatus(
        valid=True,
        appId=app.id,
        appName=app.name,
        startTime=isoformat_z(session.start_time),
        expiresAt=isoformat_z(session.end_time),
        remainingSeconds=session.remaining_seconds(now),
        proxyUrl=f"{session_prefix(token)}/",
    )


@router.delete("/api/demo-session/{token}", status_code=status.HTTP_204_NO_CONTENT)
def revoke_demo_session(
    token: str,
    request: Request,
    service: DemoSessionService = Depends(get_demo_session_service),
):
    service.revoke(token, get_client_ip(request), request.headers.get("user-agent"))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.api_route(settings.DEMO_PROXY_PREFIX + "/{token}", methods=PROXY_METHODS, include_in_schema=False)
@router.api_route(settings.DEMO_PROXY_PREFIX + "/{token}/{path:path}", methods=PROXY_METHODS, include_in_schema=False)
async def demo_proxy(
    token: str,
    request: Request,
    path: str = "",
    service: DemoSessionService = Depends(get_demo_session_service),
    proxy: DemoProxy = Depends(get_demo_proxy),
):
    """
    Re-validate the session on every request, then forward upstream.

    Validation runs before the body is read or the upstream is contacted,
    so an expired or shared token never reaches the demo origin.
    """
    result = await run_in_threadpool(
        service.validate_and_release, token, get_client_ip(request), request.headers.get("user-agent")
    )
    if not result.valid:
        logger.info(f"Demo proxy refused for {mask_token(token)}: {result.error.value}")
    result.raise_for_error()

    raw_path = request.scope.get("raw_path") or request.url.path.encode()
    body = await request.body()
    return await proxy.forward(
        session=result.session,
        app=result.app,
        method=request.method,
        raw_path=raw_path.decode("latin-1"),
        query=request.url.query,
        headers=request.headers,
        body=body,
    )
