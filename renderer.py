from typing import List

from .model import DisplayQuote, LuckResult, QuoteRecord

DIVIDER = "- - - - - - - - - - - - - - - -"

FORMAT_HELP = (
    "投稿格式: \n"
    "今日人品 投稿\n"
    "!text\n"
    "在此处填写文本 可换行\n"
    "!source\n"
    "在此处填写出处 作者《出处》\n"
    "(也可以使用 !文本 / !出处)"
)

HELP_TEXT = (
    "今日人品\n"
    "今日人品 -> 今日幸运指数+随机语录(娱乐向)\n"
    "——同一天内幸运指数不变，语录每次随机\n"
    "今日人品 投稿 -> 查看如何投稿语录\n"
    "今日人品 撤回投稿 -> 撤回自己的上一条投稿\n"
    "今日人品 帮助 -> 显示此信息"
)

DUPLICATE_TEXT = "投稿失败: 已存在相同的语句喵~"
NOTHING_TO_RETRACT_TEXT = "撤回失败:找不到可以撤回的消息"
SUBMIT_FAILED_TEXT = "投稿失败"
RETRACT_FAILED_TEXT = "撤回失败"
LUCK_FAILED_TEXT = "今日人品获取失败，请稍后再试"


class QuoteRenderer:
    """视图层：负责把结果拼成回复文本"""

    @staticmethod
    def render_quote(text: str, source: str) -> str:
        if not source:
            return text
        return f"「{text}」\n    ——{source}"

    @staticmethod
    def render_luck_card(luck: LuckResult, quote: DisplayQuote) -> str:
        lines: List[str] = [
            f"=====『{luck.tier.value}』=====",
            f"* 幸运指数 : {luck.luck_index}%",
            luck.tip,
            DIVIDER,
            QuoteRenderer.render_quote(quote.text, quote.source),
            f"---[ from {quote.sender} ]---",
            "今日人品 帮助",
        ]
        return "\n".join(lines)

    @staticmethod
    def render_submitted(record: QuoteRecord) -> str:
        return "投稿成功:\n" + QuoteRenderer.render_quote(record.sentence, record.source)

    @staticmethod
    def render_retracted(record: QuoteRecord) -> str:
        return "撤回成功:\n" + QuoteRenderer.render_quote(record.sentence, record.source)
