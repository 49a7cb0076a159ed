# =============================================================================
# app/middleware/security.py - Security Headers Stage
# =============================================================================
# Adds baseline protective headers to every response, whatever produced it
# (pages, static files, JSON, rate-limit rejections, 404s, 500s).
#
# Content-Security-Policy is OFF by default. That is a relaxation: with
# CSP_ENABLED unset, responses carry no CSP and pages get no CSP protection.
# =============================================================================

from dataclasses import dataclass

from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

DEFAULT_CONTENT_SECURITY_POLICY = (
    "default-src 'self';base-uri 'self';font-src 'self' https: data:;"
    "form-action 'self';frame-ancestors 'self';img-src 'self' data:;"
    "object-src 'none';script-src 'self';script-src-attr 'none';"
    "style-src 'self' https: 'unsafe-inline';upgrade-insecure-requests"
)


@dataclass(frozen=True)
class SecurityHeadersConfig:
    """
    Header values applied to every response.

    A header set to None is not sent. content_security_policy defaults to
    None, i.e. no CSP.
    """

    cross_origin_opener_policy: str | None = "same-origin"
    cross_origin_resource_policy: str | None = "same-origin"
    origin_agent_cluster: str | None = "?1"
    referrer_policy: str | None = "no-referrer"
    strict_transport_security: str | None = "max-age=15552000; includeSubDomains"
    x_content_type_options: str | None = "nosniff"
    x_dns_prefetch_control: str | None = "off"
    x_download_options: str | None = "noopen"
    x_frame_options: str | None = "SAMEORIGIN"
    x_permitted_cross_domain_policies: str | None = "none"
    x_xss_protection: str | None = "0"
    content_security_policy: str | None = None

    @classmethod
    def with_csp(cls, enabled: bool) -> "SecurityHeadersConfig":
        """Default header set, with or without the default CSP."""
        return cls(content_security_policy=DEFAULT_CONTENT_SECURITY_POLICY if enabled else None)

    def headers(self) -> list[tuple[str, str]]:
        """Header name/value pairs to send, in a stable order."""
        pairs = [
            ("Content-Security-Policy", self.content_security_policy),
            ("Cross-Origin-Opener-Policy", self.cross_origin_opener_policy),
            ("Cross-Origin-Resource-Policy", self.cross_origin_resource_policy),
            ("Origin-Agent-Cluster", self.origin_agent_cluster),
            ("Referrer-Policy", self.referrer_policy),
            ("Strict-Transport-Security", self.strict_transport_security),
            ("X-Content-Type-Options", self.x_content_type_options),
            ("X-DNS-Prefetch-Control", self.x_dns_prefetch_control),
            ("X-Download-Options", self.x_download_options),
            ("X-Frame-Options", self.x_frame_options),
            ("X-Permitted-Cross-Domain-Policies", self.x_permitted_cross_domain_policies),
            ("X-XSS-Protection", self.x_xss_protection),
        ]
        return [(name, value) for name, value in pairs if value is not None]


class SecurityHeadersMiddleware:
    """
    Inject security headers into every HTTP response.

    Headers a handler set itself are left alone.

    Usage:
        Middleware(SecurityHeadersMiddleware, config=SecurityHeadersConfig())
    """

    def __init__(self, app: ASGIApp, config: SecurityHeadersConfig | None = None) -> None:
        self.app = app
        self.config = config or SecurityHeadersConfig()
        self._headers = self.config.headers()

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                for name, value in self._headers:
                    headers.setdefault(name, value)
            await send(message)

        await self.app(scope, receive, send_with_headers)
