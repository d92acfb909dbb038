"""Middleware that keeps every page URL under a locale prefix."""

from logging import getLogger
from typing import Optional

from starlette.requests import Request
from starlette.responses import RedirectResponse
from starlette.types import ASGIApp
from starlette.types import Receive
from starlette.types import Scope
from starlette.types import Send

from bloomcart.config import LocaleConfig
from bloomcart.i18n import negotiate_locale

logger = getLogger(__name__)


class LocaleRedirectMiddleware:
    """Redirect paths without a supported locale prefix to a localized path.

    ``/`` goes to the negotiated locale, ``/cart/checkout`` to the default
    locale's checkout page, and any other unprefixed path to the same path
    under the default locale. Excluded prefixes pass through untouched.
    """

    def __init__(
        self,
        app: ASGIApp,
        config: Optional[LocaleConfig] = None,
        status_code: int = 307,
    ) -> None:
        self.app = app
        self.config = config if config is not None else LocaleConfig()
        self.status_code = status_code

    def _is_excluded(self, path: str) -> bool:
        return any(
            path == prefix or path.startswith(f"{prefix}/")
            for prefix in self.config.excluded_prefixes
        )

    def _has_locale(self, path: str) -> bool:
        return any(
            path == f"/{locale}" or path.startswith(f"/{locale}/")
            for locale in self.config.locales
        )

    def redirect_target(
        self, path: str, accept_language: Optional[str] = None
    ) -> Optional[str]:
        """Localized path to redirect to, or None to let the request through."""
        default = self.config.default_locale
        if self._is_excluded(path):
            return None
        if path.startswith("/cart/checkout"):
            return f"/{default}/checkout"
        if path in ("", "/"):
            if self.config.detect_locale:
                return f"/{negotiate_locale(accept_language, self.config.locales, default)}"
            return f"/{default}"
        if self._has_locale(path):
            return None
        return f"/{default}{path}"

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        target = self.redirect_target(
            request.url.path, request.headers.get("accept-language")
        )
        if target is None:
            await self.app(scope, receive, send)
            return

        url = request.url.replace(path=target)
        logger.debug("Redirecting %s to %s", request.url.path, target)
        response = RedirectResponse(str(url), status_code=self.status_code)
        await response(scope, receive, send)
