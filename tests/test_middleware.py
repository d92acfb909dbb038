"""Tests for the locale redirect middleware."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from bloomcart.config import LocaleConfig
from bloomcart.middleware import LocaleRedirectMiddleware


async def noop_app(scope, receive, send):
    pass


@pytest.fixture
def middleware() -> LocaleRedirectMiddleware:
    """Create middleware with the default locale settings."""
    return LocaleRedirectMiddleware(noop_app)


@pytest.fixture
def client() -> TestClient:
    app = FastAPI()

    @app.get("/{locale}")
    async def home(locale: str) -> dict[str, str]:
        return {"locale": locale}

    @app.get("/{locale}/catalog")
    async def catalog(locale: str) -> dict[str, str]:
        return {"locale": locale, "page": "catalog"}

    @app.get("/api/ping")
    async def ping() -> dict[str, str]:
        return {"status": "ok"}

    app.add_middleware(LocaleRedirectMiddleware)
    return TestClient(app, follow_redirects=False)


def test_middleware_default_config(middleware: LocaleRedirectMiddleware) -> None:
    assert middleware.config.default_locale == "en"
    assert middleware.status_code == 307


class TestRedirectTarget:
    @pytest.mark.parametrize(
        "path,expected",
        [
            ("/catalog", "/en/catalog"),
            ("/catalog/roses", "/en/catalog/roses"),
            ("/cart/checkout", "/en/checkout"),
            ("/cart/checkout/confirm", "/en/checkout"),
            ("/english", "/en/english"),
        ],
    )
    def test_unprefixed_paths(self, middleware, path, expected) -> None:
        assert middleware.redirect_target(path) == expected

    @pytest.mark.parametrize(
        "path", ["/en", "/uk/catalog", "/pl/bouquet/42", "/api/cart", "/static/logo.png"]
    )
    def test_paths_passed_through(self, middleware, path) -> None:
        assert middleware.redirect_target(path) is None

    def test_root_uses_accept_language(self, middleware) -> None:
        assert middleware.redirect_target("/", "uk-UA,uk;q=0.9,en;q=0.8") == "/uk"
        assert middleware.redirect_target("/", "de-DE") == "/en"
        assert middleware.redirect_target("/") == "/en"

    def test_root_without_detection(self) -> None:
        middleware = LocaleRedirectMiddleware(
            noop_app, LocaleConfig(default_locale="pl", detect_locale=False)
        )

        assert middleware.redirect_target("/", "uk") == "/pl"

    def test_custom_exclusions(self) -> None:
        middleware = LocaleRedirectMiddleware(
            noop_app, LocaleConfig(excluded_prefixes=("/healthz",))
        )

        assert middleware.redirect_target("/healthz") is None
        assert middleware.redirect_target("/api/cart") == "/en/api/cart"


class TestRedirects:
    def test_redirect_keeps_query_string(self, client: TestClient) -> None:
        response = client.get("/catalog?sort=price")

        assert response.status_code == 307
        assert response.headers["location"] == "http://testserver/en/catalog?sort=price"

    def test_root_redirect(self, client: TestClient) -> None:
        response = client.get("/", headers={"Accept-Language": "ru,en;q=0.5"})

        assert response.status_code == 307
        assert response.headers["location"] == "http://testserver/ru"

    def test_localized_path_is_served(self, client: TestClient) -> None:
        response = client.get("/uk/catalog")

        assert response.status_code == 200
        assert response.json() == {"locale": "uk", "page": "catalog"}

    def test_excluded_path_is_served(self, client: TestClient) -> None:
        response = client.get("/api/ping")

        assert response.status_code == 200

    def test_redirect_is_followed(self, client: TestClient) -> None:
        response = client.get("/catalog", follow_redirects=True)

        assert response.json() == {"locale": "en", "page": "catalog"}
