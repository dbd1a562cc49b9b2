import os
import json
import asyncio
import dataclasses
from pathlib import Path
from typing import List, Optional, Dict, Any, Protocol

from .errors import DuplicateQuote, StorageFailure
from .model import QuoteRecord


class QuoteTable(Protocol):
    """语录表的存储接口，QuoteBoard 只依赖这几个操作"""

    async def get(
        self,
        *,
        fingerprint: Optional[str] = None,
        sender: Optional[str] = None,
        limit: Optional[int] = None,
        newest_first: bool = False,
    ) -> List[QuoteRecord]: ...

    async def create(
        self, sender: str, sentence: str, fingerprint: str, source: str, created_at: int
    ) -> QuoteRecord: ...

    async def remove(self, record_id: int) -> bool: ...


def select_records(
    rows: List[Dict[str, Any]],
    fingerprint: Optional[str] = None,
    sender: Optional[str] = None,
    limit: Optional[int] = None,
    newest_first: bool = False,
) -> List[Dict[str, Any]]:
    """按条件过滤行；newest_first 时按 created_at 倒序，同时间戳时 id 大者在前"""
    res = []
    for row in rows:
        if fingerprint is not None and row.get("fingerprint") != fingerprint:
            continue
        if sender is not None and str(row.get("sender")) != str(sender):
            continue
        res.append(row)
    if newest_first:
        res.sort(key=lambda x: (x.get("created_at", 0), x.get("id", 0)), reverse=True)
    if limit is not None:
        res = res[:limit]
    return res


class JsonQuoteTable:
    """基于 JSON 文件的语录表，id 自增，fingerprint 唯一"""

    def __init__(self, data_dir: Path):
        self.data_dir = data_dir
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.file = self.data_dir / "quotes.json"
        self._lock = asyncio.Lock()
        self._next_id, self._cache = self._load()

    def _load(self):
        if not self.file.exists():
            return 1, []
        try:
            data = json.loads(self.file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise StorageFailure(f"无法读取 {self.file}: {e}") from e
        if not isinstance(data, dict):
            raise StorageFailure(f"{self.file} 格式不正确")
        quotes = data.get("quotes", [])
        if not isinstance(quotes, list) or not all(isinstance(q, dict) for q in quotes):
            raise StorageFailure(f"{self.file} 中 quotes 应为对象列表")
        try:
            # 缺字段的行在加载时即报错
            rows = [dataclasses.asdict(self._safe_to_record(q)) for q in quotes]
            next_id = data.get("next_id") or max((q["id"] for q in rows), default=0) + 1
        except (TypeError, AttributeError) as e:
            raise StorageFailure(f"{self.file} 中存在损坏的语录: {e}") from e
        return next_id, rows

    def _save(self):
        data = {"next_id": self._next_id, "quotes": self._cache}
        try:
            # 写临时文件后原子替换
            tmp = self.file.with_name(self.file.name + ".tmp")
            tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
            os.replace(tmp, self.file)
        except OSError as e:
            raise StorageFailure(f"无法写入 {self.file}: {e}") from e

    def _safe_to_record(self, data: Dict[str, Any]) -> QuoteRecord:
        """安全转换为 QuoteRecord 对象，自动忽略多余字段"""
        valid_keys = {f.name for f in dataclasses.fields(QuoteRecord)}
        clean_data = {k: v for k, v in data.items() if k in valid_keys}
        return QuoteRecord(**clean_data)

    async def get(
        self,
        *,
        fingerprint: Optional[str] = None,
        sender: Optional[str] = None,
        limit: Optional[int] = None,
        newest_first: bool = False,
    ) -> List[QuoteRecord]:
        rows = select_records(self._cache, fingerprint, sender, limit, newest_first)
        return [self._safe_to_record(r) for r in rows]

    async def create(
        self, sender: str, sentence: str, fingerprint: str, source: str, created_at: int
    ) -> QuoteRecord:
        async with self._lock:
            # 加锁后再查一次，保证同文本并发投稿只进一条
            if select_records(self._cache, fingerprint=fingerprint, limit=1):
                raise DuplicateQuote(fingerprint)
            record = QuoteRecord(
                id=self._next_id,
                sender=str(sender),
                sentence=sentence,
                fingerprint=fingerprint,
                source=source,
                created_at=created_at,
            )
            self._cache.append(dataclasses.asdict(record))
            self._next_id += 1
            try:
                self._save()
            except StorageFailure:
                self._cache.pop()
                self._next_id -= 1
                raise
            return record

    async def remove(self, record_id: int) -> bool:
        async with self._lock:
            before = self._cache
            self._cache = [q for q in before if q.get("id") != record_id]
            if len(self._cache) == len(before):
                return False
            try:
                self._save()
            except StorageFailure:
                self._cache = before
                raise
            return True
