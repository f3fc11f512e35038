"""Prompt templates for the writing assistant."""

PROMPT_KINDS: dict[str, str] = {
    "reflective": (
        "Suggest a journal prompt focused on self-reflection about recent experiences, "
        "emotions, or lessons learned. Make it thoughtful."
    ),
    "creative": (
        "Suggest an imaginative or creative writing prompt suitable for a journal entry. "
        "It could be a 'what if' scenario, a descriptive task, or a story starter."
    ),
    "goal": (
        "Suggest a journal prompt focused on setting, reviewing, or reflecting on personal "
        "goals, progress, or challenges."
    ),
    "gratitude": (
        "Suggest a journal prompt focused on practicing gratitude or appreciating positive "
        "aspects of life."
    ),
}

GENERAL_PROMPT = (
    "Suggest a thoughtful and inspiring general-purpose journal prompt suitable for "
    "self-reflection."
)

REFLECTION_TEMPLATE = """\
Please reflect on the following journal entry. Provide some thoughtful insights, questions \
to consider, or a brief summary of the potential themes or emotions expressed. Keep the \
reflection concise (2-4 sentences).

Journal Entry:
---
{entry}
---

Reflection:"""

WEEKLY_SUMMARY_TEMPLATE = """\
You are an insightful assistant. Below is a collection of journal entries from the past 7 days.
Please read through them and provide a concise summary (around 3-5 sentences) highlighting \
the main themes, activities, or emotions present.
Focus on providing a reflective overview rather than just listing events. If there are \
conflicting emotions or themes, briefly mention that complexity.
If there is not enough to make a meaningful summary, just summarize what you can in 1-2 \
sentences and say that there was not much journaling this week.

Journal Entries Text:
---
{entries}
---

Summary:"""

EMPTY_ENTRY_MESSAGE = "The entry is empty, nothing to reflect on."
NO_ENTRIES_MESSAGE = "No entries found in the last 7 days to summarize."


def prompt_for_kind(kind: str) -> str:
    return PROMPT_KINDS.get(kind.lower(), GENERAL_PROMPT)
