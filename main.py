from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

from astrbot.api.event import filter, AstrMessageEvent
from astrbot.api.star import Context, Star, register
from astrbot.api import logger
import astrbot.api.message_components as Comp

# 导入分层模块
from .board import QuoteBoard
from .dao import JsonQuoteTable
from .errors import DuplicateQuote, MalformedSubmission, NothingToRetract, RemoteUnavailable, StorageFailure
from .hitokoto import DEFAULT_TIMEOUT, DEFAULT_URL, HitokotoClient
from .luck import roll_luck
from .model import DisplayQuote
from .renderer import (
    FORMAT_HELP,
    HELP_TEXT,
    DUPLICATE_TEXT,
    NOTHING_TO_RETRACT_TEXT,
    SUBMIT_FAILED_TEXT,
    RETRACT_FAILED_TEXT,
    LUCK_FAILED_TEXT,
    QuoteRenderer,
)

PLUGIN_NAME = "jrrp"

SUBMIT_WORDS = ("投稿", "submit")
RETRACT_WORDS = ("撤回投稿", "retract")
HELP_WORDS = ("帮助", "help")


@register("astrbot_plugin_jrrp", "jrrp", "今日人品", "1.0.0", "每日幸运指数 + 群友投稿语录 / 一言")
class JrrpPlugin(Star):
    def __init__(self, context: Context, config: Dict = None):
        super().__init__(context)
        self.config = config or {}
        self.data_dir = Path(f"data/plugin_data/{PLUGIN_NAME}")
        self.table = JsonQuoteTable(self.data_dir)

        self.hitokoto: Optional[HitokotoClient] = None
        if self.config.get("enable_hitokoto", True):
            self.hitokoto = HitokotoClient(
                url=self.config.get("hitokoto_url", DEFAULT_URL) or DEFAULT_URL,
                timeout=float(self.config.get("hitokoto_timeout", DEFAULT_TIMEOUT) or DEFAULT_TIMEOUT),
                categories=self.config.get("hitokoto_categories", []) or [],
            )
        self.board = QuoteBoard(self.table, remote=self._fetch_hitokoto if self.hitokoto else None)

    # ================= 1. 指令注册 =================

    @filter.command("jrrp", alias={"今日人品"})
    async def cmd_jrrp(self, event: AstrMessageEvent):
        """今日人品 [投稿|撤回投稿|帮助]"""
        action, rest = self._split_action(event.message_str)

        route_map = {}
        for word in SUBMIT_WORDS:
            route_map[word] = self._logic_submit
        for word in RETRACT_WORDS:
            route_map[word] = self._logic_retract
        for word in HELP_WORDS:
            route_map[word] = self._logic_help

        logic = route_map.get(action.lower(), self._logic_luck)
        async for res in logic(event, rest):
            yield res

    # ================= 2. 核心业务逻辑 =================

    async def _logic_luck(self, event: AstrMessageEvent, rest: str):
        """逻辑：今日人品 + 随机语录"""
        luck = roll_luck(event.get_platform_name(), str(event.get_sender_id()))
        try:
            quote = await self.board.pick_display_quote()
        except StorageFailure as e:
            logger.error(f"[jrrp] 读取语录失败: {e}")
            yield event.plain_result(LUCK_FAILED_TEXT)
            return

        text = QuoteRenderer.render_luck_card(luck, quote)
        message_id = getattr(event.message_obj, "message_id", None)
        if message_id:
            yield event.chain_result([Comp.Reply(id=message_id), Comp.Plain(text)])
        else:
            yield event.plain_result(text)

    async def _logic_submit(self, event: AstrMessageEvent, rest: str):
        """逻辑：投稿"""
        sender = str(event.get_sender_id())
        try:
            record = await self.board.submit(sender, rest)
        except MalformedSubmission:
            yield event.plain_result(FORMAT_HELP)
            return
        except DuplicateQuote:
            yield event.plain_result(DUPLICATE_TEXT)
            return
        except StorageFailure as e:
            logger.error(f"[jrrp] 投稿写入失败: {e}")
            yield event.plain_result(SUBMIT_FAILED_TEXT)
            return

        logger.info(f"[jrrp] {sender} 投稿 #{record.id}")
        yield event.plain_result(QuoteRenderer.render_submitted(record))

    async def _logic_retract(self, event: AstrMessageEvent, rest: str):
        """逻辑：撤回自己的上一条投稿"""
        sender = str(event.get_sender_id())
        try:
            record = await self.board.retract(sender)
        except NothingToRetract:
            yield event.plain_result(NOTHING_TO_RETRACT_TEXT)
            return
        except StorageFailure as e:
            logger.error(f"[jrrp] 撤回失败: {e}")
            yield event.plain_result(RETRACT_FAILED_TEXT)
            return

        logger.info(f"[jrrp] {sender} 撤回投稿 #{record.id}")
        yield event.plain_result(QuoteRenderer.render_retracted(record))

    async def _logic_help(self, event: AstrMessageEvent, rest: str):
        yield event.plain_result(HELP_TEXT)

    # ================= 3. 工具方法 =================

    async def _fetch_hitokoto(self) -> DisplayQuote:
        try:
            return await self.hitokoto.fetch()
        except RemoteUnavailable as e:
            logger.warning(f"[jrrp] 一言获取失败，跳过: {e}")
            raise

    @staticmethod
    def _split_action(message: Optional[str]):
        """'今日人品 投稿\\n!text ...' -> ('投稿', '!text ...')"""
        text = (message or "").replace("\r\n", "\n").strip()
        parts = text.split(maxsplit=2)
        action = parts[1] if len(parts) > 1 else ""
        rest = parts[2] if len(parts) > 2 else ""
        return action, rest
