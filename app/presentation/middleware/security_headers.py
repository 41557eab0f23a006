"""Cabeçalhos de segurança aplicados a todas as respostas HTTP."""

from starlette.middleware.base import BaseHTTPMiddleware
from fastapi import Request, Response

# Swagger UI precisa de scripts/estilos do CDN e 'unsafe-inline'
_DOCS_CSP = (
    "default-src 'self'; "
    "img-src 'self' data: https://fastapi.tiangolo.com; "
    "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
    "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net;"
)
_API_CSP = "default-src 'none'; frame-ancestors 'none'"

_DOCS_PATHS = ("/docs", "/redoc")

STATIC_HEADERS = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "Permissions-Policy": "geolocation=(), microphone=(), camera=()",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response: Response = await call_next(request)

        for name, value in STATIC_HEADERS.items():
            response.headers[name] = value

        if request.url.path.startswith(_DOCS_PATHS):
            response.headers["Content-Security-Policy"] = _DOCS_CSP
        else:
            response.headers["Content-Security-Policy"] = _API_CSP

        return response
