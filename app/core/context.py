import contextvars
from typing import Optional

# 요청 단위 추적 정보. 로거가 request 객체 없이도 현재 요청/호출자를 식별하는 데 사용합니다.
trace_id_context: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("trace_id", default=None)
caller_context: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("caller", default=None)


def get_trace_id() -> Optional[str]:
    return trace_id_context.get()


def set_trace_id(trace_id: str) -> None:
    trace_id_context.set(trace_id)


def get_caller() -> Optional[str]:
    """토큰으로 인증된 현재 호출자의 내부 ID (비인증 요청이면 None)"""
    return caller_context.get()


def set_caller(user_ref: Optional[str]) -> None:
    caller_context.set(user_ref)
