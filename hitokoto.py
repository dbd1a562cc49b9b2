"""一言 (hitokoto.cn) 远程语录源

只做一次带超时的 GET，任何失败都以 RemoteUnavailable 抛出，由调用方跳过。
"""
import asyncio
from typing import Any, List, Optional, Sequence

import aiohttp

from .errors import RemoteUnavailable
from .model import DisplayQuote

DEFAULT_URL = "https://v1.hitokoto.cn/"
DEFAULT_TIMEOUT = 5.0
REMOTE_SENDER = "一言"
GENERIC_SOURCE = "一言"


def format_attribution(work: Optional[str], author: Optional[str]) -> str:
    work = (work or "").strip()
    author = (author or "").strip()
    if author and work:
        return f"{author}《{work}》"
    if work:
        return f"《{work}》"
    if author:
        return author
    return GENERIC_SOURCE


def parse_payload(payload: Any) -> DisplayQuote:
    """按固定字段校验返回体，形状不符即视为不可用"""
    if not isinstance(payload, dict):
        raise RemoteUnavailable(f"unexpected payload type: {type(payload).__name__}")
    text = payload.get("hitokoto")
    if not isinstance(text, str) or not text.strip():
        raise RemoteUnavailable("payload missing 'hitokoto'")
    work = payload.get("from")
    author = payload.get("from_who")
    for field, value in (("from", work), ("from_who", author)):
        if value is not None and not isinstance(value, str):
            raise RemoteUnavailable(f"payload field {field!r} is not a string")
    return DisplayQuote(text=text.strip(), source=format_attribution(work, author), sender=REMOTE_SENDER)


class HitokotoClient:
    def __init__(self, url: str = DEFAULT_URL, timeout: float = DEFAULT_TIMEOUT,
                 categories: Sequence[str] = ()):
        self.url = url
        self.timeout = timeout
        self.categories: List[str] = [str(c) for c in categories if c]

    async def fetch(self) -> DisplayQuote:
        params = [("c", c) for c in self.categories]
        try:
            async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as s:
                async with s.get(self.url, params=params) as r:
                    if r.status != 200:
                        raise RemoteUnavailable(f"HTTP {r.status}")
                    payload = await r.json(content_type=None)
        except asyncio.TimeoutError as e:
            raise RemoteUnavailable(f"timed out after {self.timeout}s") from e
        except (aiohttp.ClientError, ValueError) as e:
            raise RemoteUnavailable(str(e) or type(e).__name__) from e
        return parse_payload(payload)
