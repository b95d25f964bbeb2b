import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from deca_chat.config.settings import get_settings

# 未调用 setup_logger 时日志只向上传递给 root logger
logger = logging.getLogger("deca_chat")


class JsonFormatter(logging.Formatter):
    """把日志记录序列化为一行 JSON，extra={"extra": {...}} 中的字段会合并进去。"""

    def __init__(self, redact_content: bool = False):
        super().__init__()
        self._redact_content = redact_content

    def format(self, record: logging.LogRecord) -> str:
        msg = record.getMessage()
        if self._redact_content:
            msg = (msg or "")[:64]
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "name": record.name,
            "msg": msg,
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update(extra)
        if record.exc_info and record.exc_info[1] is not None:
            payload["exc"] = repr(record.exc_info[1])
        return json.dumps(payload, ensure_ascii=False)


def setup_logger(log_dir=None, redact_content=None) -> logging.Logger:
    """给 deca_chat logger 挂上 JSON 文件 handler。

    导入本包时不会写任何文件，由 CLI 或调用方显式调用。未传入的参数从 Settings 读取。
    """
    if log_dir is None or redact_content is None:
        cfg = get_settings()
        log_dir = cfg.log_dir if log_dir is None else log_dir
        redact_content = cfg.log_redact_content if redact_content is None else redact_content
    logger.setLevel(logging.INFO)
    # 重复调用时不叠加 handler
    for handler in list(logger.handlers):
        if getattr(handler, "_deca_chat_json", False):
            logger.removeHandler(handler)
            handler.close()
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    fh = logging.FileHandler(log_path / "deca_chat.log", encoding="utf-8")
    fh.setLevel(logging.INFO)
    fh.setFormatter(JsonFormatter(redact_content=redact_content))
    fh._deca_chat_json = True
    logger.addHandler(fh)
    return logger
