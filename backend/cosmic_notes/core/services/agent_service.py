from __future__ import annotations

import asyncio
import json
from datetime import datetime
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from cosmic_notes.background import generate_and_store_note_embedding
from cosmic_notes.config import settings
from cosmic_notes.core.errors import CosmicNotesError
from cosmic_notes.core.models.note import NoteCategory
from cosmic_notes.core.prompts.summary import format_note
from cosmic_notes.core.schemas.note_input import NoteCreate, NoteUpdate
from cosmic_notes.core.schemas.note_search import NoteSearchQuery
from cosmic_notes.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from uuid import UUID

    from openai import AsyncOpenAI

    from cosmic_notes.core.models.note import Note
    from cosmic_notes.core.schemas.cluster import ClusterWithNotes
    from cosmic_notes.core.services.cluster_service import ClusterService
    from cosmic_notes.core.services.lifecycle_service import NoteLifecycleService
    from cosmic_notes.core.services.search_service import SearchService
    from cosmic_notes.core.services.tag_service import TagService


logger = get_logger(__name__)

MAX_TOOL_ROUNDS = 3
FAIL_SAFE_MESSAGE = "I'm unable to complete that request right now. Please try again."

_CATEGORY_VALUES = [c.value for c in NoteCategory]


def describe_focus(*, note: Note | None = None, cluster: ClusterWithNotes | None = None) -> str | None:
    """Render the note or cluster a conversation is about, for the instructions."""
    if note is not None:
        return format_note(note, with_date=True)
    if cluster is None:
        return None
    c = cluster.cluster
    header = f"Cluster \"{c.tag_family}\" ({c.category.value}, {c.note_count} notes)\nSummary:\n{c.summary}"
    return "\n\n".join([header, *(format_note(n, with_date=True) for n in cluster.notes)])


def _nullable(schema: dict[str, Any]) -> dict[str, Any]:
    kind = schema["type"]
    return {**schema, "type": [kind, "null"]}


class AgentService:
    """Notes assistant using function calling to query and manage notes.

    Mutating tools go through `NoteLifecycleService`, so assistant edits tag
    notes and rebuild clusters exactly like edits made through the API.
    """

    def __init__(
        self,
        lifecycle: NoteLifecycleService,
        search_service: SearchService,
        cluster_service: ClusterService,
        tag_service: TagService,
        openai_client: AsyncOpenAI,
    ) -> None:
        self._lifecycle = lifecycle
        self._search_service = search_service
        self._cluster_service = cluster_service
        self._tag_service = tag_service
        self._client = openai_client
        self._background: set[asyncio.Task[None]] = set()

    @staticmethod
    def _safe_log_args(args: dict[str, Any]) -> dict[str, Any]:
        """Truncate note content before it reaches the logs."""
        safe: dict[str, Any] = {}
        for key, value in (args or {}).items():
            if key == "content" and isinstance(value, str) and len(value) > 200:
                safe[key] = f"{value[:200]}... ({len(value)} chars)"
            else:
                safe[key] = value
        return safe

    def _schedule_embedding(self, note: Note) -> None:
        task = asyncio.create_task(
            generate_and_store_note_embedding(note_id=note.id, title=note.title, content=note.content)
        )
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    def _build_tools(self) -> list[dict[str, Any]]:
        category = {"type": "string", "enum": _CATEGORY_VALUES}
        return [
            {
                "type": "function",
                "name": "search_notes",
                "description": "Search the user's notes, returning matches sorted by relevance.",
                "strict": True,
                "parameters": {
                    "type": "object",
                    "properties": {
                        "query": {"type": ["string", "null"], "description": "Free text query"},
                        "semantic": {"type": ["boolean", "null"], "description": "Rank by meaning instead of keywords"},
                        "category": {"type": ["string", "null"], "enum": [*_CATEGORY_VALUES, None]},
                        "zone": {"type": ["string", "null"]},
                        "limit": {"type": ["integer", "null"], "minimum": 1, "maximum": 200},
                    },
                    "required": ["query", "semantic", "category", "zone", "limit"],
                    "additionalProperties": False,
                },
            },
            {
                "type": "function",
                "name": "create_note",
                "description": "Create a new note. Missing title, category or zone are generated automatically.",
                "strict": True,
                "parameters": {
                    "type": "object",
                    "properties": {
                        "content": {"type": "string", "maxLength": 20000},
                        "title": {"type": ["string", "null"], "maxLength": 255},
                        "category": {**_nullable(category), "enum": [*_CATEGORY_VALUES, None]},
                        "zone": {"type": ["string", "null"], "maxLength": 50},
                    },
                    "required": ["content", "title", "category", "zone"],
                    "additionalProperties": False,
                },
            },
            {
                "type": "function",
                "name": "update_note",
                "description": "Update fields on an existing note by ID. Null fields are left unchanged.",
                "strict": True,
                "parameters": {
                    "type": "object",
                    "properties": {
                        "id": {"type": "integer"},
                        "content": {"type": ["string", "null"], "maxLength": 20000},
                        "title": {"type": ["string", "null"], "maxLength": 255},
                        "category": {**_nullable(category), "enum": [*_CATEGORY_VALUES, None]},
                        "zone": {"type": ["string", "null"], "maxLength": 50},
                    },
                    "required": ["id", "content", "title", "category", "zone"],
                    "additionalProperties": False,
                },
            },
            {
                "type": "function",
                "name": "delete_note",
                "description": "Delete a note by ID.",
                "strict": True,
                "parameters": {
                    "type": "object",
                    "properties": {"id": {"type": "integer"}},
                    "required": ["id"],
                    "additionalProperties": False,
                },
            },
            {
                "type": "function",
                "name": "list_clusters",
                "description": "List cluster summaries, optionally for one tag or category.",
                "strict": True,
                "parameters": {
                    "type": "object",
                    "properties": {
                        "tag_family": {"type": ["string", "null"]},
                        "category": {"type": ["string", "null"], "enum": [*_CATEGORY_VALUES, None]},
                    },
                    "required": ["tag_family", "category"],
                    "additionalProperties": False,
                },
            },
        ]

    async def _dispatch_tool(self, *, name: str, args: dict[str, Any], user_id: UUID, sources: set[int]) -> Any:
        logger.debug(
            "Dispatching tool %s with args=%s",
            name,
            json.dumps(self._safe_log_args(args)),
            extra={"user_id": str(user_id), "tool_name": name},
        )
        try:
            if name == "search_notes":
                return await self._tool_search_notes(args, sources)
            if name == "create_note":
                return await self._tool_create_note(args, user_id)
            if name == "update_note":
                return await self._tool_update_note(args)
            if name == "delete_note":
                result = await self._lifecycle.delete_note(int(args["id"]))
                return {"status": "success", "id": result.note.id}
            if name == "list_clusters":
                return await self._tool_list_clusters(args)
        except ValidationError as err:
            return {"error": f"Invalid arguments: {err.error_count()} errors"}
        except CosmicNotesError as err:
            logger.warning("Tool %s failed: %s", name, err.message, extra={"tool_name": name, **err.data})
            return {"error": err.message}

        logger.warning("Unknown tool requested: %s", name, extra={"user_id": str(user_id), "tool_name": name})
        return {"error": f"Unknown tool: {name}"}

    async def _tool_search_notes(self, args: dict[str, Any], sources: set[int]) -> dict[str, Any]:
        request = NoteSearchQuery(
            query=args.get("query") or None,
            category=args.get("category") or None,
            zone=args.get("zone") or None,
            limit=max(1, min(int(args.get("limit") or 20), 200)),
        )
        if args.get("semantic") and request.query:
            results = await self._search_service.semantic_search(request)
        else:
            results = await self._search_service.search_notes(request)

        payload = []
        for r in results:
            sources.add(r.id)
            payload.append(
                {
                    "id": r.id,
                    "title": r.title,
                    "content": r.content,
                    "category": r.category.value,
                    "zone": r.zone,
                    "tags": r.tags,
                    "rank": r.rank,
                    "updated_at": (r.updated_at or r.created_at).isoformat(),
                }
            )
        logger.info("Search completed: count=%d", len(payload), extra={"result_count": len(payload)})
        return {"results": payload}

    async def _tool_create_note(self, args: dict[str, Any], user_id: UUID) -> dict[str, Any]:
        data = NoteCreate(
            content=args.get("content") or "",
            title=args.get("title"),
            category=args.get("category"),
            zone=args.get("zone"),
        )
        result = await self._lifecycle.create_note(data, user_id)
        self._schedule_embedding(result.note)
        return {
            "status": "success",
            "id": result.note.id,
            "title": result.note.title,
            "failed_side_effects": [s.operation for s in result.failed_side_effects],
        }

    async def _tool_update_note(self, args: dict[str, Any]) -> dict[str, Any]:
        fields = {k: args[k] for k in ("content", "title", "category", "zone") if args.get(k) is not None}
        result = await self._lifecycle.update_note(int(args["id"]), NoteUpdate(**fields))
        self._schedule_embedding(result.note)
        return {
            "status": "success",
            "id": result.note.id,
            "failed_side_effects": [s.operation for s in result.failed_side_effects],
        }

    async def _tool_list_clusters(self, args: dict[str, Any]) -> dict[str, Any]:
        category = args.get("category")
        clusters = await self._cluster_service.list_clusters(
            tag_family=args.get("tag_family") or None,
            category=NoteCategory(category) if category else None,
            limit=20,
        )
        return {
            "clusters": [
                {
                    "id": c.id,
                    "tag_family": c.tag_family,
                    "category": c.category.value,
                    "note_count": c.note_count,
                    "summary": c.summary,
                }
                for c in clusters
            ]
        }

    async def _instructions(self, focus: str | None = None) -> str:
        try:
            known_tags = (await self._tag_service.get_taxonomy()).tag_vocab
        except Exception as err:
            logger.warning("Failed to load tag vocabulary: %s", err)
            known_tags = []

        base = (
            "You are a helpful assistant for a personal knowledge base of notes.\n"
            "- Use tools to search and manage notes; prefer searching before answering.\n"
            "- Notes are grouped into clusters by shared tag and category; use list_clusters for overviews.\n"
            "- Keep answers concise and cite notes you used as [id].\n"
            f"- Categories: {', '.join(_CATEGORY_VALUES)}.\n"
            f"- Known tags: {', '.join(known_tags[:200]) if known_tags else 'none'}.\n\n"
            "<tool_calling_rules>\n"
            "- Arguments must match the schema exactly; set unknown values to null.\n"
            "- Do not invent note IDs; only use IDs from prior tool results or the user.\n"
            "- Prefer 1 tool round; absolute max 3. Stop as soon as you can answer confidently.\n"
            "- If a tool returns an error, adjust once, then explain instead of retrying.\n"
            "</tool_calling_rules>\n"
            "Today is " + datetime.now().strftime("%A, %Y-%m-%d at %H:%M")
        )
        if focus:
            base += f"\n\n<focus>\nThe user is asking about:\n{focus}\n</focus>"
        return base

    def _build_response_kwargs(
        self,
        *,
        tools: list[dict[str, Any]],
        inputs: list[Any],
        instructions: str,
        previous_response_id: str | None,
    ) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": settings.agent_model,
            "tools": tools,
            "input": inputs,
            "instructions": instructions,
            "reasoning": {"effort": settings.agent_model_reasoning},
            "text": {"verbosity": settings.agent_model_text_verbosity},
            "tool_choice": "auto",
            "parallel_tool_calls": True,
            "store": True,
            "truncation": "auto",
        }
        if previous_response_id is not None:
            kwargs["previous_response_id"] = previous_response_id
        return kwargs

    @staticmethod
    def _get_field(obj: Any, key: str) -> Any:
        if isinstance(obj, dict):
            return obj.get(key)
        return getattr(obj, key, None)

    async def _stream_final(self, kwargs: dict[str, Any], sources: set[int]) -> AsyncIterator[dict[str, Any]]:
        yield {"type": "final_start"}
        response_id = kwargs.get("previous_response_id")
        try:
            async with self._client.responses.stream(**kwargs) as stream:
                async for event in stream:
                    etype = self._get_field(event, "type")
                    if etype == "response.output_text.delta":
                        delta = self._get_field(event, "delta")
                        if delta:
                            yield {"type": "final_delta", "delta": str(delta)}
                    elif etype == "response.completed":
                        final_resp = self._get_field(event, "response")
                        response_id = self._get_field(final_resp, "id") or response_id
                        yield {"type": "final_done", "sources": sorted(sources), "response_id": response_id}
                        return
        except Exception as err:  # pragma: no cover - network errors
            logger.error("Responses API stream failed: %s", err)
        yield {"type": "final", "response": FAIL_SAFE_MESSAGE, "sources": sorted(sources), "response_id": response_id}

    async def chat_stream(
        self,
        *,
        user_id: UUID,
        message: str,
        previous_response_id: str | None = None,
        focus: str | None = None,
    ) -> AsyncIterator[dict[str, Any]]:
        """Stream tool calls and the final assistant response.

        Yields dict events of shape:
        - {"type": "tool_call", "name": str, "arguments": dict, "call_id": str}
        - {"type": "tool_result", "name": str, "call_id": str}
        - {"type": "final_start"} then {"type": "final_delta", "delta": str}...
        - {"type": "final_done", "sources": list[int], "response_id": str | None}
        - {"type": "error", "message": str}
        """
        logger.info("Starting streaming chat session", extra={"user_id": str(user_id), "message_length": len(message)})

        tools = self._build_tools()
        instructions = await self._instructions(focus)
        inputs: list[Any] = [{"role": "user", "content": message}]
        sources: set[int] = set()

        for turn in range(MAX_TOOL_ROUNDS):
            kwargs = self._build_response_kwargs(
                tools=tools,
                inputs=inputs,
                instructions=instructions,
                previous_response_id=previous_response_id,
            )
            try:
                response = await self._client.responses.create(**kwargs)
            except Exception as err:  # pragma: no cover - network errors
                logger.error("Responses API call failed: %s", err, extra={"user_id": str(user_id)})
                yield {"type": "error", "message": FAIL_SAFE_MESSAGE}
                return

            pending = [item for item in (response.output or []) if self._get_field(item, "type") == "function_call"]
            if not pending:
                async for event in self._stream_final(kwargs, sources):
                    yield event
                return

            previous_response_id = getattr(response, "id", None)
            logger.info("Executing %d tool calls", len(pending), extra={"turn": turn + 1, "tool_count": len(pending)})

            inputs = []
            for tool_call in pending:
                name: str = self._get_field(tool_call, "name") or ""
                call_id = self._get_field(tool_call, "call_id")
                try:
                    args: dict[str, Any] = json.loads(self._get_field(tool_call, "arguments") or "{}")
                except json.JSONDecodeError:
                    args = {}

                yield {"type": "tool_call", "name": name, "arguments": args, "call_id": call_id}
                try:
                    result = await self._dispatch_tool(name=name, args=args, user_id=user_id, sources=sources)
                except Exception as err:
                    logger.error("Tool execution failed: %s", err, extra={"user_id": str(user_id), "tool_name": name})
                    result = {"error": "Tool execution failed"}
                yield {"type": "tool_result", "name": name, "call_id": call_id}

                inputs.append({"type": "function_call_output", "call_id": call_id, "output": json.dumps(result)})

        logger.warning("Agent exceeded max tool rounds", extra={"user_id": str(user_id)})
        kwargs = self._build_response_kwargs(
            tools=tools,
            inputs=inputs,
            instructions=instructions,
            previous_response_id=previous_response_id,
        )
        kwargs["tool_choice"] = "none"
        async for event in self._stream_final(kwargs, sources):
            yield event
