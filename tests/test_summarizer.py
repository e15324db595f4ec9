"""Tests for ConversationSummarizer."""

import pytest
from memory.models import ConversationTurn
from memory.summarizer import ConversationSummarizer
from schemas.message import Message, MessageSender


def turn(user_text, reply=None):
    return ConversationTurn(
        user_message=Message.user(user_text),
        assistant_response=Message.assistant(reply, "test", "test-model") if reply else None,
    )


class TestConversationSummarizer:
    """Test heuristic summarization."""

    def setup_method(self):
        """Set up test fixtures."""
        self.summarizer = ConversationSummarizer()

    def test_empty_input(self):
        """Empty input yields the placeholder sentence."""
        assert self.summarizer.summarize([]) == "No conversation to summarize."

    @pytest.mark.parametrize("text,topic", [
        ("Fix this bug please", "Programming"),
        ("Please read the file", "File Operations"),
        ("install numpy", "Configuration"),
        ("Explain recursion", "Explanation/Help"),
        ("Hello there", "General Discussion"),
        ("How do I write a function?", "Programming"),
        ("Where should I save this folder", "File Operations"),
    ])
    def test_detect_topic(self, text, topic):
        """Topics are matched by keyword in priority order."""
        assert self.summarizer.detect_topic(text) == topic

    def test_extract_actions(self):
        """Actions are deduplicated, sorted and capped at three."""
        actions = self.summarizer.extract_actions("Please fix and test and deploy and refactor this")
        assert actions == ["deploy", "fix", "refactor"]

    def test_extract_actions_none(self):
        """Text without action verbs yields nothing."""
        assert self.summarizer.extract_actions("hello there") == []

    def test_single_topic_summary(self):
        """A single run is returned verbatim."""
        summary = self.summarizer.summarize([
            turn("Create a function to parse JSON?", "Here is the code, I will explain it."),
        ])

        assert summary == (
            "**Programming** (1 turns) - 1 questions asked\n"
            "Key activities: User: create, parse; Assistant: explain"
        )

    def test_multiple_topics(self):
        """Several runs are prefixed with the topic count."""
        summary = self.summarizer.summarize([
            turn("fix the bug"),
            turn("save the file"),
            turn("hello"),
        ])

        assert summary.startswith("Conversation covered 3 topics:\n")
        assert "**Programming** (1 turns)" in summary
        assert "**File Operations** (1 turns)" in summary
        assert "**General Discussion** (1 turns)" in summary
        assert summary.count("\n\n") == 2

    def test_runs_are_contiguous(self):
        """A topic seen again after another one starts a new run."""
        summary = self.summarizer.summarize([
            turn("fix the bug"),
            turn("debug the crash"),
            turn("save the file"),
            turn("implement the parser"),
        ])

        assert summary.startswith("Conversation covered 3 topics:")
        assert "**Programming** (2 turns)" in summary
        assert "**Programming** (1 turns)" in summary

    def test_code_messages(self):
        """Code messages count as snippets and name their language."""
        code_turn = ConversationTurn(
            user_message=Message.code("python", "print(1)"),
            assistant_response=Message.code("rust", "fn main() {}", sender=MessageSender.ASSISTANT),
        )

        summary = self.summarizer.summarize([code_turn])

        assert summary == (
            "**Programming** (1 turns) - 1 code snippets\n"
            "Key activities: Code in python; Generated rust code"
        )

    def test_key_points_are_capped(self):
        """At most three key activities are listed."""
        turns = [turn(f"fix bug {i}", "I will test and deploy it") for i in range(3)]

        summary = self.summarizer.summarize(turns)

        key_line = summary.split("\nKey activities: ")[1]
        assert key_line.count("; ") == 2

    def test_pending_turns(self):
        """Turns without a reply are summarized from the user side only."""
        summary = self.summarizer.summarize([turn("What is a closure?")])
        assert summary == "**Explanation/Help** (1 turns) - 1 questions asked"
