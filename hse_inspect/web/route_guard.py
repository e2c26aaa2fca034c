"""
Page-level route guard.

Redirects navigation to protected pages when there is no session or the session
lacks the page's role or permission. This is advisory: the API routes enforce the
same requirements again through the authorization guard.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlencode

from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from hse_inspect.schemas.permissions import Permission, Role
from hse_inspect.schemas.user import User
from hse_inspect.services.audit import AuditService
from hse_inspect.services.auth import AuthService
from hse_inspect.services.permissions import has_permission

logger = logging.getLogger(__name__)


class RouteState(str, Enum):
    CHECKING = "checking"
    AUTHORIZED = "authenticated-authorized"
    REDIRECTING = "redirecting"


@dataclass(frozen=True)
class RouteDecision:
    state: RouteState
    redirect_to: str | None = None


@dataclass(frozen=True)
class PageRule:
    """Pages under prefix need a session, plus the role and permission when set."""

    prefix: str
    required_role: Role | None = None
    required_permission: Permission | None = None

    def matches(self, path: str) -> bool:
        return path == self.prefix or path.startswith(self.prefix + "/")


PAGE_RULES: tuple[PageRule, ...] = (
    PageRule("/admin", required_role=Role.ADMIN),
    PageRule("/analytics", required_permission=Permission.VIEW_ANALYTICS),
    PageRule("/approval-workflow"),
    PageRule("/devsecops", required_role=Role.DEVSECOPS),
)


class RouteGuard:
    def __init__(self, login_path: str = "/login", unauthorized_path: str = "/unauthorized") -> None:
        self.login_path = login_path
        self.unauthorized_path = unauthorized_path

    def login_redirect(self, path: str) -> str:
        return f"{self.login_path}?{urlencode({'from': path})}"

    def evaluate(
        self,
        user: User | None,
        path: str,
        required_role: Role | None = None,
        required_permission: Permission | None = None,
        *,
        session_resolved: bool = True,
    ) -> RouteDecision:
        """Decide what a navigation to path should do. Inactive accounts count as no session."""
        if not session_resolved:
            return RouteDecision(RouteState.CHECKING)
        if user is None or not user.is_active:
            return RouteDecision(RouteState.REDIRECTING, self.login_redirect(path))
        if required_role is not None and user.role != required_role:
            return RouteDecision(RouteState.REDIRECTING, self.unauthorized_path)
        if required_permission is not None and not has_permission(user, required_permission):
            return RouteDecision(RouteState.REDIRECTING, self.unauthorized_path)
        return RouteDecision(RouteState.AUTHORIZED)


def find_page_rule(path: str) -> PageRule | None:
    for rule in PAGE_RULES:
        if rule.matches(path):
            return rule
    return None


class PageGuardMiddleware(BaseHTTPMiddleware):
    """Applies PAGE_RULES to page requests. API paths are left to the authorization guard."""

    def __init__(self, app, api_prefix: str = "/api/") -> None:
        super().__init__(app)
        self.api_prefix = api_prefix

    def _session_user(self, request: Request) -> User | None:
        store = request.app.state.store
        settings = request.app.state.settings
        token = request.cookies.get(settings.SESSION_COOKIE_NAME)
        if not token:
            return None
        auth = AuthService(store, settings, AuditService(store, settings))
        return auth.resolve_token(token)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if path.startswith(self.api_prefix):
            return await call_next(request)

        settings = request.app.state.settings
        guard = RouteGuard(settings.LOGIN_PATH, settings.UNAUTHORIZED_PATH)

        if path == settings.LOGIN_PATH:
            user = await run_in_threadpool(self._session_user, request)
            if user is not None and user.is_active:
                return RedirectResponse("/", status_code=302)
            return await call_next(request)

        rule = find_page_rule(path)
        if rule is None:
            return await call_next(request)

        user = await run_in_threadpool(self._session_user, request)
        decision = guard.evaluate(
            user,
            path,
            rule.required_role,
            rule.required_permission,
        )
        if decision.state is RouteState.REDIRECTING:
            logger.info("Page redirect: path=%s to=%s", path, decision.redirect_to)
            return RedirectResponse(decision.redirect_to, status_code=302)
        return await call_next(request)
