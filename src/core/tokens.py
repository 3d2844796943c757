import asyncio
import time
from typing import Awaitable, Callable, Optional, Tuple

# (access_token, expires_in_seconds)
TokenFetcher = Callable[[], Awaitable[Tuple[str, int]]]


class TokenCache:
    """Process-scoped cache for a single OAuth access token.

    The token is refreshed ``refresh_margin`` seconds before it expires. The
    lock makes concurrent callers share one refresh instead of racing.
    """

    def __init__(self, fetcher: TokenFetcher, refresh_margin: int = 60, clock: Callable[[], float] = time.monotonic):
        self._fetcher = fetcher
        self._refresh_margin = refresh_margin
        self._clock = clock
        self._token: Optional[str] = None
        self._expires_at: float = 0.0
        self._lock = asyncio.Lock()

    def _valid(self) -> bool:
        return self._token is not None and self._clock() < self._expires_at

    async def get(self) -> str:
        if self._valid():
            return self._token
        async with self._lock:
            if self._valid():
                return self._token
            token, expires_in = await self._fetcher()
            self._token = token
            self._expires_at = self._clock() + max(int(expires_in) - self._refresh_margin, 0)
            return token

    def invalidate(self) -> None:
        self._token = None
        self._expires_at = 0.0
