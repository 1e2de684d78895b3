"""Schema-driven structured extraction."""

import asyncio
import re
from collections.abc import Iterable, Mapping
from typing import Any

from .config import config
from .conversation import ConversationManager
from .models import FieldSpec, Settings
from .pipeline import join_context

logger = config.get_logger(__name__)

TRUE_PATTERN = re.compile(r"\b(yes|true)\b", re.IGNORECASE)
FALSE_PATTERN = re.compile(r"\b(no|false)\b", re.IGNORECASE)
NON_NUMERIC_PATTERN = re.compile(r"[^0-9.]")

ExtractedValue = bool | int | float | str | None
RawFieldSpec = FieldSpec | Mapping[str, Any]
SchemaLike = Mapping[str, RawFieldSpec] | Iterable[tuple[str, RawFieldSpec]]


def schema_fields(schema: SchemaLike) -> list[tuple[str, RawFieldSpec]]:
    """List the (name, spec) pairs of a schema mapping or pair sequence.

    Specs are left unresolved so that one malformed entry only affects its
    own field.

    Returns:
        The schema fields in their original order.
    """
    items = schema.items() if isinstance(schema, Mapping) else schema
    return list(items)


def as_field_spec(spec: RawFieldSpec) -> FieldSpec:
    """Resolve a schema entry into a FieldSpec.

    Raises:
        TypeError: If the entry is neither a FieldSpec nor a mapping.

    Returns:
        The field spec.
    """
    if isinstance(spec, FieldSpec):
        return spec
    if not isinstance(spec, Mapping):
        msg = f"Field spec must be a FieldSpec or a mapping, got {type(spec).__name__}"
        raise TypeError(msg)
    return FieldSpec.from_dict(spec)


def field_prompt(name: str, spec: FieldSpec) -> str:
    if spec.description:
        return f"Extract the field {name} ({spec.description})"
    return f"Extract the field {name}"


def coerce_boolean(answer: str) -> bool | None:
    if TRUE_PATTERN.search(answer):
        return True
    if FALSE_PATTERN.search(answer):
        return False
    return None


def coerce_number(answer: str) -> int | float | None:
    """Parse the digits and dots of an answer as a number.

    Every other character is discarded, so signs and exponents are lost:
    "-3" parses as 3 and "1e5" as 15.

    Returns:
        An int when no dot remains, a float otherwise, or None when nothing
        parsable is left.
    """
    numeric = NON_NUMERIC_PATTERN.sub("", answer)
    if not numeric:
        return None
    try:
        return float(numeric) if "." in numeric else int(numeric)
    except ValueError:
        return None


def coerce_value(answer: str, field_type: str) -> ExtractedValue:
    if field_type == "boolean":
        return coerce_boolean(answer)
    if field_type == "number":
        return coerce_number(answer)
    return answer.strip()


class ExtractionEngine:
    """Extracts typed fields from text, one generation call per field."""

    def __init__(
        self, conversation: ConversationManager, settings: Settings
    ) -> None:
        self.conversation = conversation
        self.settings = settings

    async def _extraction_context(self, query: str, context: str) -> str:
        if not self.settings.use_rag:
            return context
        documents = await self.conversation.rag_pipeline.rag(query)
        return join_context("\n".join(documents), context)

    async def extract_field(
        self, name: str, spec: RawFieldSpec, context: str
    ) -> ExtractedValue:
        """Extract one field; a malformed spec or failed call degrades to None.

        Returns:
            The coerced field value.
        """
        try:
            field_spec = as_field_spec(spec)
            answer = await self.conversation.query(
                field_prompt(name, field_spec), context
            )
        except Exception:
            logger.exception("Error extracting field %s", name)
            return None
        value = coerce_value(answer, field_spec.type)
        logger.debug("Extracted %s=%r from %r", name, value, answer)
        return value

    async def extract(
        self,
        schema: SchemaLike,
        query: str = "",
        context: str = "",
        *,
        concurrent: bool = False,
    ) -> dict[str, ExtractedValue]:
        """Extract every schema field from the query and context.

        Args:
            schema: Field names mapped to their type and optional description.
            query: Query used to retrieve document chunks when RAG is enabled.
            context: Caller-supplied text to extract from.
            concurrent: Run field extractions concurrently instead of in order.

        Returns:
            Field values keyed by field name, in schema order.
        """
        fields = schema_fields(schema)
        extraction_context = await self._extraction_context(query, context)

        if concurrent:
            values = await asyncio.gather(
                *(
                    self.extract_field(name, spec, extraction_context)
                    for name, spec in fields
                )
            )
        else:
            values = [
                await self.extract_field(name, spec, extraction_context)
                for name, spec in fields
            ]

        return {name: value for (name, _), value in zip(fields, values, strict=True)}
