"""Heuristic summarization of overflowing conversation turns."""

from typing import List, Sequence

from schemas.message import ContentKind, Message
from .models import ConversationTurn


class ConversationSummarizer:
    """
    Condenses a batch of turns into one compact text.

    Turns are grouped into contiguous runs sharing a keyword-detected
    topic; each run is described by its turn count, question count,
    code snippet count and a few key activities. The result is lossy by
    nature and only meant to relieve the context budget.
    """

    EMPTY_SUMMARY = "No conversation to summarize."
    DEFAULT_TOPIC = "General Discussion"
    MAX_KEY_POINTS = 3
    MAX_ACTIONS = 3
    CODE_PREVIEW_CHARS = 100

    # Checked in order, first match wins
    TOPIC_KEYWORDS = [
        ("Programming", ["function", "class", "code", "bug", "implement", "debug"]),
        ("File Operations", ["file", "directory", "folder", "save", "read", "write"]),
        ("Configuration", ["config", "setup", "install", "configure"]),
        ("Explanation/Help", ["explain", "help", "how", "what", "why"]),
    ]

    ACTION_WORDS = [
        "create", "build", "implement", "develop", "write", "generate",
        "fix", "debug", "solve", "resolve", "update", "modify", "change",
        "explain", "describe", "analyze", "review", "check", "test",
        "install", "configure", "setup", "deploy", "run", "execute",
        "read", "parse", "load", "save", "export", "import",
        "optimize", "improve", "refactor", "clean", "organize",
    ]

    def summarize(self, turns: Sequence[ConversationTurn]) -> str:
        """
        Summarize turns into a single text.

        Args:
            turns: Turns in chronological order

        Returns:
            Summary text; a fixed sentence when there is nothing to summarize
        """
        if not turns:
            return self.EMPTY_SUMMARY

        summary_parts = []
        current_topic = ""
        topic_turns: List[ConversationTurn] = []

        for turn in turns:
            topic = self.detect_topic(self._topic_text(turn.user_message))
            if topic != current_topic and topic_turns:
                summary_parts.append(self.summarize_topic_group(current_topic, topic_turns))
                topic_turns = []
            current_topic = topic
            topic_turns.append(turn)

        if topic_turns:
            summary_parts.append(self.summarize_topic_group(current_topic, topic_turns))

        if len(summary_parts) == 1:
            return summary_parts[0]

        return f"Conversation covered {len(summary_parts)} topics:\n" + "\n\n".join(summary_parts)

    def detect_topic(self, text: str) -> str:
        """Coarse topic label for a user message."""
        text_lower = text.lower()
        for topic, keywords in self.TOPIC_KEYWORDS:
            if any(keyword in text_lower for keyword in keywords):
                return topic
        return self.DEFAULT_TOPIC

    def extract_actions(self, text: str) -> List[str]:
        """Action verbs found in text, deduplicated, sorted, at most three."""
        text_lower = text.lower()
        found = sorted({action for action in self.ACTION_WORDS if action in text_lower})
        return found[:self.MAX_ACTIONS]

    def summarize_topic_group(self, topic: str, turns: Sequence[ConversationTurn]) -> str:
        """Describe one run of same-topic turns."""
        if not turns:
            return f"{topic}: No activity"

        key_points = []
        code_snippets = 0
        questions_asked = 0

        for turn in turns:
            user_message = turn.user_message
            if user_message.content.kind == ContentKind.TEXT:
                if "?" in user_message.content.text:
                    questions_asked += 1
                actions = self.extract_actions(user_message.content.text)
                if actions:
                    key_points.append(f"User: {', '.join(actions)}")
            elif user_message.content.kind == ContentKind.CODE:
                code_snippets += 1
                key_points.append(f"Code in {user_message.content.language}")

            response = turn.assistant_response
            if response is None:
                continue
            if response.content.kind == ContentKind.TEXT:
                actions = self.extract_actions(response.content.text)
                if actions:
                    key_points.append(f"Assistant: {', '.join(actions)}")
            elif response.content.kind == ContentKind.CODE:
                key_points.append(f"Generated {response.content.language} code")

        summary = f"**{topic}** ({len(turns)} turns)"
        if questions_asked > 0:
            summary += f" - {questions_asked} questions asked"
        if code_snippets > 0:
            summary += f" - {code_snippets} code snippets"
        if key_points:
            summary += f"\nKey activities: {'; '.join(key_points[:self.MAX_KEY_POINTS])}"

        return summary

    def _topic_text(self, message: Message) -> str:
        content = message.content
        if content.kind == ContentKind.TEXT:
            return content.text
        if content.kind == ContentKind.CODE:
            source = content.text
            if len(source) > self.CODE_PREVIEW_CHARS:
                source = source[:self.CODE_PREVIEW_CHARS] + "..."
            return f"Code request in {content.language}: {source}"
        return "Non-text message"
