class JrrpError(Exception):
    """插件内所有可预期错误的基类"""


class MalformedSubmission(JrrpError):
    """投稿缺少 !text 或 !source 段"""


class DuplicateQuote(JrrpError):
    def __init__(self, fingerprint: str):
        super().__init__(f"duplicate quote: {fingerprint!r}")
        self.fingerprint = fingerprint


class NothingToRetract(JrrpError):
    def __init__(self, sender: str):
        super().__init__(f"no submission by {sender}")
        self.sender = sender


class RemoteUnavailable(JrrpError):
    """远程一言获取失败 (超时/网络/格式)，调用方直接跳过"""


class StorageFailure(JrrpError):
    """持久化层的意外错误"""
