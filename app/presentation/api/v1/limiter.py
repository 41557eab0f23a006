"""Rate limiter em memória usado nos endpoints de autenticação."""

import math
import time
from collections import defaultdict

from fastapi import HTTPException, Request, status


class InMemoryRateLimiter:
    """
    Janela deslizante por IP do cliente.
    NOTE: com múltiplos workers cada processo tem sua própria contagem.
    """

    MAX_TRACKED_CLIENTS = 10000

    def __init__(self, requests: int, window: int):
        self.requests = requests
        self.window = window
        self.clients: dict[str, list[float]] = defaultdict(list)

    async def __call__(self, request: Request):
        client_ip = request.client.host if request.client else "unknown"
        now = time.time()

        if len(self.clients) > self.MAX_TRACKED_CLIENTS:
            self.clients.clear()

        recent = [t for t in self.clients[client_ip] if now - t < self.window]
        self.clients[client_ip] = recent

        if len(recent) >= self.requests:
            retry_after = math.ceil(self.window - (now - recent[0]))
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Muitas requisições, tente novamente mais tarde",
                headers={"Retry-After": str(max(retry_after, 1))},
            )

        recent.append(now)

    def reset(self):
        """Zera as contagens (útil em testes)."""
        self.clients.clear()
