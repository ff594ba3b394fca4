from __future__ import annotations

from functools import lru_cache
from typing import TYPE_CHECKING, TypeVar

from openai import AsyncOpenAI

from cosmic_notes.config import settings
from cosmic_notes.utils.logging import get_logger

if TYPE_CHECKING:
    from pydantic import BaseModel

logger = get_logger(__name__)

SchemaT = TypeVar("SchemaT", bound="BaseModel")


class StructuredOutputError(RuntimeError):
    """Raised when the model refuses or returns nothing parsable."""


@lru_cache(maxsize=1)
def get_openai_client() -> AsyncOpenAI:
    """Return a singleton OpenAI client.

    Uses the environment's OPENAI_API_KEY by default. If `APP_OPENAI_API_KEY` is
    provided in the application's settings, it will be used explicitly.
    """
    if settings.openai_api_key:
        logger.debug("Initializing OpenAI client with APP_OPENAI_API_KEY")
        return AsyncOpenAI(api_key=settings.openai_api_key)
    logger.debug("Initializing OpenAI client with default OPENAI_API_KEY from environment")
    return AsyncOpenAI()


async def parse_structured(
    client: AsyncOpenAI,
    *,
    model: str,
    system: str,
    prompt: str,
    schema: type[SchemaT],
) -> SchemaT:
    """Run a Responses API call constrained to `schema` and return the parsed object.

    Raises StructuredOutputError on refusals and empty parses; transport errors
    from the SDK propagate unchanged so callers can wrap them.
    """
    response = await client.responses.parse(
        model=model,
        input=[
            {"role": "system", "content": system},
            {"role": "user", "content": prompt},
        ],
        reasoning={"effort": settings.llm_reasoning_effort},
        text={"verbosity": "low"},
        text_format=schema,
    )

    refusal = getattr(response, "refusal", None)
    if refusal:
        logger.warning("Model refused structured request: %s", refusal, extra={"schema": schema.__name__})
        raise StructuredOutputError(f"Model refused: {refusal}")

    parsed = getattr(response, "output_parsed", None)
    if parsed is None:
        raise StructuredOutputError(f"Model returned no parsable {schema.__name__}")
    return parsed
