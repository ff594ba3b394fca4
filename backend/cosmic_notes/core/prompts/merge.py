from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

MERGE_SYSTEM_PROMPT = (
    "You are a helpful assistant that analyzes tags and identifies similar or related ones "
    "that should be merged."
)


def build_merge_prompt(tag_counts: Sequence[tuple[str, int]], guidelines: str | None = None) -> str:
    lines = "\n".join(f"{name} ({count})" for name, count in tag_counts)
    prompt = (
        "Analyze these tags and identify groups of similar or related tags that should be merged.\n"
        "For each group, select the most appropriate tag as the primary tag.\n"
        "Only suggest merging tags that are truly similar or represent the same concept, such as "
        "spelling, casing or pluralization variants.\n"
        "Do not merge tags that are merely related but distinct concepts.\n"
    )
    if guidelines:
        prompt += f"\n# Additional guidelines\n{guidelines}\n"
    return prompt + f"\n# Tags with their usage counts\n{lines}"
