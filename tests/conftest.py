"""Shared fixtures: an in-memory quote table and a scripted random source."""
from __future__ import annotations

import random
from typing import List, Optional

import pytest

from astrbot_plugin_jrrp.board import QuoteBoard
from astrbot_plugin_jrrp.errors import DuplicateQuote
from astrbot_plugin_jrrp.model import QuoteRecord


class MemoryQuoteTable:
    """In-memory stand-in for the persisted quote table."""

    def __init__(self) -> None:
        self.rows: List[QuoteRecord] = []
        self._next_id = 1
        self.removed: List[int] = []

    async def get(
        self,
        *,
        fingerprint: Optional[str] = None,
        sender: Optional[str] = None,
        limit: Optional[int] = None,
        newest_first: bool = False,
    ) -> List[QuoteRecord]:
        rows = [
            r
            for r in self.rows
            if (fingerprint is None or r.fingerprint == fingerprint)
            and (sender is None or r.sender == sender)
        ]
        if newest_first:
            rows.sort(key=lambda r: (r.created_at, r.id), reverse=True)
        return rows[:limit] if limit is not None else rows

    async def create(self, sender, sentence, fingerprint, source, created_at) -> QuoteRecord:
        if any(r.fingerprint == fingerprint for r in self.rows):
            raise DuplicateQuote(fingerprint)
        record = QuoteRecord(self._next_id, sender, sentence, fingerprint, source, created_at)
        self._next_id += 1
        self.rows.append(record)
        return record

    async def remove(self, record_id: int) -> bool:
        before = len(self.rows)
        self.rows = [r for r in self.rows if r.id != record_id]
        if len(self.rows) < before:
            self.removed.append(record_id)
            return True
        return False


class ReversingRandom:
    """Shuffle stub that reverses the candidate list."""

    def shuffle(self, seq) -> None:
        seq.reverse()


class Clock:
    def __init__(self, start: float = 1_790_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        self.now += 1.0
        return self.now


@pytest.fixture
def table() -> MemoryQuoteTable:
    return MemoryQuoteTable()


@pytest.fixture
def board(table) -> QuoteBoard:
    return QuoteBoard(table, rng=random.Random(1234), clock=Clock())


@pytest.fixture
def make_board(table):
    """Factory for boards with a custom remote source or random source."""

    def _make(remote=None, rng=None) -> QuoteBoard:
        return QuoteBoard(table, remote=remote, rng=rng or random.Random(1234), clock=Clock())

    return _make


@pytest.fixture
def reversing_random() -> ReversingRandom:
    return ReversingRandom()
