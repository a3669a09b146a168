"""PARA context — tagged results and the providers that gather them."""

from assistant.context.models import (
    ContextResult,
    OpaqueContext,
    ParaContext,
    ParaItem,
    parse_context,
    has_content,
    render_context,
)
from assistant.context.providers import (
    CachedContextProvider,
    ContextProvider,
    HttpContextProvider,
    NullContextProvider,
)

__all__ = [
    "CachedContextProvider",
    "ContextProvider",
    "ContextResult",
    "HttpContextProvider",
    "NullContextProvider",
    "OpaqueContext",
    "ParaContext",
    "ParaItem",
    "has_content",
    "parse_context",
    "render_context",
]
