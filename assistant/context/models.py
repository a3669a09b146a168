"""Tagged context results returned by context providers."""

import json
import logging
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

logger = logging.getLogger(__name__)

PARA_SECTIONS = ("projects", "areas", "resources", "archives")


class ParaItem(BaseModel):
    """A single project, area, resource or archived entry."""

    title: str
    summary: str = ""
    status: str | None = None
    due: str | None = None
    url: str | None = None


class ParaContext(BaseModel):
    """Projects, Areas, Resources and Archives relevant to a query."""

    kind: Literal["para"] = "para"
    projects: list[ParaItem] = Field(default_factory=list)
    areas: list[ParaItem] = Field(default_factory=list)
    resources: list[ParaItem] = Field(default_factory=list)
    archives: list[ParaItem] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not any(getattr(self, section) for section in PARA_SECTIONS)


class OpaqueContext(BaseModel):
    """Fallback for provider payloads with no known shape."""

    kind: Literal["opaque"] = "opaque"
    source: str = "unknown"
    data: dict[str, Any] = Field(default_factory=dict)


ContextResult = Annotated[ParaContext | OpaqueContext, Field(discriminator="kind")]

_adapter: TypeAdapter[ParaContext | OpaqueContext] = TypeAdapter(ContextResult)


def parse_context(raw: Any, source: str = "unknown") -> ParaContext | OpaqueContext | None:
    """Coerce a provider payload into a tagged context result.

    ``None`` and empty payloads yield ``None``. Dicts without a ``kind``
    that carry any PARA section are read as ``ParaContext``. Anything that
    fails validation is kept as ``OpaqueContext`` rather than dropped.
    """
    if raw is None or raw == {} or raw == []:
        return None
    if isinstance(raw, ParaContext | OpaqueContext):
        return raw
    if not isinstance(raw, dict):
        return OpaqueContext(source=source, data={"value": raw})

    payload = dict(raw)
    if "kind" not in payload and any(section in payload for section in PARA_SECTIONS):
        payload["kind"] = "para"

    try:
        return _adapter.validate_python(payload)
    except PydanticValidationError:
        logger.debug("Unrecognised context payload from %s, keeping as opaque", source)
        data = {k: v for k, v in raw.items() if k != "kind"}
        return OpaqueContext(source=source, data=data)


def has_content(context: ParaContext | OpaqueContext | None) -> bool:
    """True when *context* would add something to the prompt."""
    if context is None:
        return False
    if isinstance(context, ParaContext):
        return not context.is_empty
    return bool(context.data)


def _render_items(title: str, items: list[ParaItem]) -> str:
    lines = [f"### {title}"]
    for item in items:
        line = f"- {item.title}"
        extras = [part for part in (item.status, f"due {item.due}" if item.due else None) if part]
        if extras:
            line += f" ({', '.join(extras)})"
        if item.summary:
            line += f": {item.summary}"
        lines.append(line)
    return "\n".join(lines)


def render_context(context: ParaContext | OpaqueContext) -> str:
    """Render a context result as text for the system prompt."""
    if isinstance(context, ParaContext):
        sections = [
            _render_items(section.capitalize(), getattr(context, section))
            for section in PARA_SECTIONS
            if getattr(context, section)
        ]
        return "\n\n".join(sections)
    return json.dumps(context.data, indent=2, default=str)
