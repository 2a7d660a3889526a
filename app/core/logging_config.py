import logging
import json
import os
import re
from logging.handlers import TimedRotatingFileHandler
from typing import Any, Optional

from app.core.context import get_trace_id, get_caller


class LogMasker:
    """
    로그에 남으면 안 되는 값(비밀번호, 토큰, 이메일 등)을 마스킹합니다.

    dict는 키 기준으로 재귀 마스킹하고, 문자열은 `key=value`, `key: value`,
    JSON(`"key": "value"`), `Authorization: Bearer xxx` 형식을 인식합니다.
    """

    MASK = "***"

    SENSITIVE_KEYS = frozenset({
        "password",
        "passwd",
        "new_password",
        "token",
        "access_token",
        "refresh_token",
        "upload_token",
        "authorization",
        "secret",
        "jwt_secret",
        "api_key",
        "apikey",
        "email",
    })

    _KEYS = "|".join(sorted(SENSITIVE_KEYS, key=len, reverse=True))

    _JSON_PATTERN = re.compile(rf'("(?:{_KEYS})"\s*:\s*)"[^"]*"', re.IGNORECASE)
    _QUOTED_PATTERN = re.compile(rf"\b({_KEYS})(\s*[=:]\s*)([\"'])(.*?)\3", re.IGNORECASE)
    _HEADER_PATTERN = re.compile(r"\b(authorization)(\s*:\s*)(?:bearer\s+)?[^\s,;&]+", re.IGNORECASE)
    _PLAIN_PATTERN = re.compile(rf"\b({_KEYS})(\s*[=:]\s*)(?![\"'*])[^\s,;&\"']+", re.IGNORECASE)

    @classmethod
    def mask_string(cls, text: str) -> str:
        if not text:
            return text
        text = cls._JSON_PATTERN.sub(lambda m: f'{m.group(1)}"{cls.MASK}"', text)
        text = cls._QUOTED_PATTERN.sub(lambda m: f"{m.group(1)}{m.group(2)}{m.group(3)}{cls.MASK}{m.group(3)}", text)
        text = cls._HEADER_PATTERN.sub(lambda m: f"{m.group(1)}{m.group(2)}{cls.MASK}", text)
        text = cls._PLAIN_PATTERN.sub(lambda m: f"{m.group(1)}{m.group(2)}{cls.MASK}", text)
        return text

    @classmethod
    def mask_dict(cls, data: Any) -> Any:
        """dict/list를 재귀적으로 순회하며 민감 키의 값을 마스킹합니다. 그 외 타입은 그대로 반환."""
        if isinstance(data, dict):
            masked = {}
            for key, value in data.items():
                if isinstance(key, str) and key.lower() in cls.SENSITIVE_KEYS:
                    masked[key] = cls.MASK
                else:
                    masked[key] = cls.mask_dict(value)
            return masked
        if isinstance(data, list):
            return [cls.mask_dict(item) for item in data]
        if isinstance(data, str):
            return cls.mask_string(data)
        return data


class SensitiveDataFilter(logging.Filter):
    """메시지 마스킹 + trace_id/caller 주입. 레코드를 버리지 않습니다."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, dict):
            record.msg = LogMasker.mask_dict(record.msg)
        elif isinstance(record.msg, str):
            if record.args:
                record.msg = record.getMessage()
                record.args = None
            record.msg = LogMasker.mask_string(record.msg)

        record.trace_id = get_trace_id()
        record.caller = get_caller()
        return True


# LogRecord 기본 속성. 이 외의 속성은 extra로 전달된 값으로 간주합니다.
_RESERVED_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None)).keys()) | {
    "message", "asctime", "trace_id", "caller", "taskName",
}


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        # 메시지가 dict면 그대로 기반으로 삼고, 아니면 기본 구조 생성
        base_message = record.msg if isinstance(record.msg, dict) else {
            "message": record.getMessage()
        }

        extra = {
            key: value for key, value in vars(record).items()
            if key not in _RESERVED_ATTRS
        }

        log = {
            "timestamp": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "trace_id": getattr(record, "trace_id", None),
            **base_message,
            **LogMasker.mask_dict(extra),
        }

        caller = getattr(record, "caller", None)
        if caller:
            log["caller"] = caller

        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)

        return json.dumps(log, ensure_ascii=False, default=str)


def setup_logging(log_dir: Optional[str] = None, level: int = logging.INFO) -> None:
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    json_formatter = JsonFormatter()
    sensitive_filter = SensitiveDataFilter()

    # 재호출 시 핸들러 중복 방지
    for handler in list(root_logger.handlers):
        if getattr(handler, "_recipe_backend", False):
            root_logger.removeHandler(handler)

    # 콘솔 핸들러
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(json_formatter)
    console_handler.addFilter(sensitive_filter)
    console_handler._recipe_backend = True
    root_logger.addHandler(console_handler)

    # 일자별 파일 로테이션 핸들러 (자정 기준, 7일 보관)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = TimedRotatingFileHandler(
            filename=os.path.join(log_dir, "app.log"),
            when="midnight",
            backupCount=7,
            encoding="utf-8",
            utc=False,
        )
        file_handler.setFormatter(json_formatter)
        file_handler.addFilter(sensitive_filter)
        file_handler._recipe_backend = True
        root_logger.addHandler(file_handler)
