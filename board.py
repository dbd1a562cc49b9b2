"""语录板：投稿、撤回、随机挑选展示语录"""
import random
import re
import time
from typing import Awaitable, Callable, List, Optional, Tuple, Union

from .dao import QuoteTable
from .errors import DuplicateQuote, MalformedSubmission, NothingToRetract, RemoteUnavailable
from .model import DisplayQuote, QuoteRecord

FALLBACK_TEXT = "快点使用 今日人品 投稿！！！"
FALLBACK_SENDER = "?"

_BODY_MARKERS = ("text", "文本")
_MARKER_RE = re.compile(r"^[ \t]*[!！](text|source|文本|出处)[ \t]*(?=\n|$)", re.MULTILINE | re.IGNORECASE)

RemoteFetcher = Callable[[], Awaitable[DisplayQuote]]


class _RemoteCandidate:
    def __repr__(self):
        return "<remote>"


REMOTE = _RemoteCandidate()


def trim_br(text: str) -> str:
    return text.strip("\r\n")


def normalize_sentence(text: str) -> str:
    text = trim_br(text.replace("\r\n", "\n"))
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r"\n{2,}", "\n", text)
    return text.strip()


def parse_submission(raw: str) -> Tuple[str, str]:
    """从投稿文本中取出 (正文, 出处)

    每个标记独占一行，段落内容一直延续到下一个标记或文本末尾。
    """
    content = (raw or "").replace("\r\n", "\n")
    sections = {}
    matches = list(_MARKER_RE.finditer(content))
    for i, m in enumerate(matches):
        end = matches[i + 1].start() if i + 1 < len(matches) else len(content)
        key = "body" if m.group(1).lower() in _BODY_MARKERS else "source"
        # 重复标记只认第一次出现
        sections.setdefault(key, trim_br(content[m.end():end]))

    body = sections.get("body", "")
    source = sections.get("source", "")
    if not body.strip() or not source.strip():
        raise MalformedSubmission("submission needs both !text and !source sections")
    return body, source


class QuoteBoard:
    def __init__(self, table: QuoteTable, remote: Optional[RemoteFetcher] = None,
                 rng: Optional[random.Random] = None,
                 clock: Callable[[], float] = time.time):
        self.table = table
        self.remote = remote
        self.rng = rng or random.Random()
        self._clock = clock

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    async def submit(self, sender: str, raw_text: str) -> QuoteRecord:
        sentence, source = parse_submission(raw_text)
        fingerprint = normalize_sentence(sentence)

        dup = await self.table.get(fingerprint=fingerprint, limit=1)
        if dup:
            raise DuplicateQuote(fingerprint)

        return await self.table.create(
            sender=str(sender),
            sentence=sentence,
            fingerprint=fingerprint,
            source=source,
            created_at=self._now_ms(),
        )

    async def retract(self, sender: str) -> QuoteRecord:
        """只撤回该用户最近的一条投稿"""
        records = await self.table.get(sender=str(sender), limit=1, newest_first=True)
        if not records:
            raise NothingToRetract(str(sender))
        last = records[0]
        if not await self.table.remove(last.id):
            # 查到之后被别的请求删掉了
            raise NothingToRetract(str(sender))
        return last

    async def candidates(self) -> List[Union[QuoteRecord, _RemoteCandidate]]:
        pool: List[Union[QuoteRecord, _RemoteCandidate]] = list(await self.table.get())
        if self.remote is not None:
            pool.append(REMOTE)
        self.rng.shuffle(pool)
        return pool

    async def pick_display_quote(self) -> DisplayQuote:
        for cand in await self.candidates():
            if cand is REMOTE:
                try:
                    return await self.remote()
                except RemoteUnavailable:
                    continue
            return DisplayQuote(text=cand.sentence, source=cand.source, sender=cand.sender or FALLBACK_SENDER)
        return DisplayQuote(text=FALLBACK_TEXT, source="", sender=FALLBACK_SENDER)
