from __future__ import annotations

CATEGORY_DESCRIPTIONS = """- to-do: The note contains a list of things to do.
- collection: The note contains a list of related ideas or items.
- brainstorm: The note contains ideas for features or products.
- journal: The note is a journal entry or personal reflection.
- meeting: The note contains notes from a meeting.
- research: The note contains research notes.
- learning: The note contains notes from a class or course.
- feedback: The note contains feedback for a product or service.
- scratchpad: Random thoughts, or content that fits no other category."""

ZONE_DESCRIPTIONS = """- personal: personal life, hobbies, or non-work activities.
- work: professional work, job tasks, or career.
- other: neither clearly personal nor work."""

CLASSIFICATION_SYSTEM_PROMPT = (
    "You are a helpful assistant that specializes in organizing and categorizing notes."
)


def build_classification_prompt(content: str) -> str:
    return (
        "Generate a concise title and determine the most appropriate category and zone "
        "for the following note.\n\n"
        f"# Note\n{content}\n\n"
        f"# Categories\n{CATEGORY_DESCRIPTIONS}\n\n"
        f"# Zones\n{ZONE_DESCRIPTIONS}"
    )
