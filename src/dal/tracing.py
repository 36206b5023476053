import hashlib
from typing import Awaitable, Optional

from common.config.env import get_env_bool

PROVIDER = "mssql"


def trace_enabled() -> bool:
    """Return True when DAL query tracing is enabled (on unless DAL_TRACE_QUERIES=false)."""
    return bool(get_env_bool("DAL_TRACE_QUERIES", True))


def _hash_sql(sql: str) -> str:
    return hashlib.sha256(sql.encode("utf-8")).hexdigest()


async def trace_query_operation(
    name: str,
    sql: Optional[str],
    operation: Awaitable,
    provider: str = PROVIDER,
    execution_model: str = "async",
):
    """Trace a DAL query operation with OTEL when enabled.

    The statement itself is never attached to the span, only its hash.
    """
    if not trace_enabled():
        return await operation

    from opentelemetry import trace

    tracer = trace.get_tracer("dal")
    with tracer.start_as_current_span(name) as span:
        span.set_attribute("db.provider", provider)
        span.set_attribute("db.execution_model", execution_model)
        if sql:
            span.set_attribute("db.statement_hash", _hash_sql(sql))
        try:
            result = await operation
            span.set_attribute("db.status", "ok")
            return result
        except Exception:
            span.set_attribute("db.status", "error")
            raise
