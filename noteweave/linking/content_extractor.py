"""Wikilink and context extraction for note text."""

import re
from typing import List

from pydantic import BaseModel

# [[Title]] or [[Title|display text]]; the title is everything up to the first "|"
WIKILINK_PATTERN = re.compile(r"\[\[(.*?)\]\]")

SENTENCE_TERMINATORS = (".", "!", "?", "\n")


class Mention(BaseModel):
    """A single [[wikilink]] occurrence in a note's text."""

    title: str
    match_text: str
    start_index: int

    @property
    def end_index(self) -> int:
        return self.start_index + len(self.match_text)


class ContentExtractor:
    """Service for extracting wikilink mentions and their context from note text."""

    @staticmethod
    def extract_mentions(content: str) -> List[Mention]:
        """Extract every wikilink occurrence from note text, in order of appearance.

        Repeated mentions of the same title are all returned; deduplication
        happens after resolution, in the synchronizer.

        Args:
            content: Raw note text

        Returns:
            List of mentions, ordered by start index
        """
        mentions = []
        for match in WIKILINK_PATTERN.finditer(content):
            title = match.group(1).split("|", 1)[0].strip()
            if not title:
                continue
            mentions.append(
                Mention(title=title, match_text=match.group(0), start_index=match.start())
            )
        return mentions

    @staticmethod
    def extract_context(content: str, start_index: int, match_length: int) -> str:
        """Extract the sentence surrounding a mention.

        The context starts right after the closest sentence terminator before the
        mention (or at the start of the text) and runs up to and including the
        closest terminator after the mention (or the end of the text).

        Args:
            content: Full note text
            start_index: Index where the mention starts
            match_length: Length of the mention's matched text

        Returns:
            Trimmed context string, always containing the mention verbatim
        """
        match_end = start_index + match_length

        previous_terminator = max(content.rfind(t, 0, start_index) for t in SENTENCE_TERMINATORS)
        start = previous_terminator + 1  # -1 (not found) maps to the start of the text

        next_terminators = [
            idx for idx in (content.find(t, match_end) for t in SENTENCE_TERMINATORS) if idx != -1
        ]
        end = min(next_terminators) + 1 if next_terminators else len(content)

        return content[start:end].strip()
