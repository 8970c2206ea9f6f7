# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Prompt texts and fixed user-visible replies.

The system turn of every conversation is built here.  After a
summarization pass it has the shape::

    You are talking to: <user id>
    <instructions>Here is the summary of your conversation history with the user previously:
    <summary>
"""

from assistant.config import settings

SUMMARY_MARKER = "Here is the summary of your conversation history with the user previously:\n"

COMPRESSION_PROMPT = (
    "Summarise the following conversation history to reduce its length while "
    "preserving the main points and context. The summary should be concise and "
    "capture the essence of the conversation without losing important details."
)

CONVERSATION_HISTORY_HEADER = "Conversation history:\n"

IMAGE_DESCRIPTION_PROMPT = "What is in this image? Make sure to give me full details."

FORGET_REPLY = "Your message history has been cleared"
APOLOGY_REPLY = "Sorry, something went wrong while I was working on that. Please try again in a moment."
SECTION_HEADER = "[Section {index}/{total}]\n"


def build_system_prompt(user_id: str, instructions: str | None = None) -> str:
    """Base system instructions for one user's conversation.

    Args:
        user_id (str): Identity of the user the conversation belongs to.
        instructions (str | None): Persona text. Defaults to
            ``settings.INSTRUCTIONS``.

    Returns:
        str: System turn content without any compaction summary.
    """
    if instructions is None:
        instructions = settings.INSTRUCTIONS
    return f"You are talking to: {user_id}\n{instructions}"


def split_summary(system_content: str) -> tuple[str, str]:
    """Split a system turn into (base instructions, prior summary).

    The summary part is empty when the conversation has never been
    summarized.
    """
    base, marker, summary = system_content.partition(SUMMARY_MARKER)
    if not marker:
        return system_content, ""
    return base, summary


def with_summary(base_instructions: str, summary: str) -> str:
    """System turn content carrying a compaction summary."""
    return f"{base_instructions}{SUMMARY_MARKER}{summary}"
