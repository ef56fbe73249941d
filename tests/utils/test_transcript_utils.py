"""Tests for transcript conversion."""

from datetime import datetime

from deepdive.utils.transcript import attach_client_ids, convert_raw_entry, load_transcript


class TestConvertRawEntry:
    """SUT: convert_raw_entry"""

    def test_user_string_content(self, transcript):
        raw = transcript.user("What do people think of Cursor?")
        entry = convert_raw_entry(raw)

        assert entry.type == "user"
        assert entry.uuid == "user-1"
        assert entry.text() == "What do people think of Cursor?"
        assert entry.timestamp == datetime(2026, 1, 1, 0, 0, 1)
        assert entry.session_id == "sess-1"
        assert entry.model is None

    def test_assistant_blocks(self, transcript):
        transcript.user("hi")
        raw = transcript.assistant("Searching Reddit.", tools=[{"name": "WebSearch", "input": {"query": "cursor"}}])
        raw["message"]["content"].insert(0, {"type": "thinking", "thinking": "hmm"})
        entry = convert_raw_entry(raw)

        assert [b.type for b in entry.contents] == ["text", "tool_use"]
        assert entry.contents[1].name == "WebSearch"
        assert entry.contents[1].input == {"query": "cursor"}
        assert entry.parent_uuid == "user-1"
        assert entry.model == "claude-sonnet"

    def test_tool_result(self, transcript):
        raw = transcript.user([
            {"type": "tool_result", "tool_use_id": "toolu_1", "content": [{"type": "text", "text": "3 results"}]},
            {"type": "tool_result", "tool_use_id": "toolu_2", "content": {"status": 200}},
        ])
        entry = convert_raw_entry(raw)

        assert entry.contents[0].tool_use_id == "toolu_1"
        assert entry.contents[0].content == "3 results"
        assert entry.contents[1].content == '{"status": 200}'

    def test_skipped_entries(self, transcript):
        assert convert_raw_entry({"type": "queue-operation", "operation": "enqueue"}) is None
        assert convert_raw_entry({"type": "summary", "summary": "x"}) is None
        assert convert_raw_entry(transcript.user("<command>", isMeta=True)) is None

    def test_bad_timestamp(self):
        entry = convert_raw_entry({"type": "user", "uuid": "u", "timestamp": "yesterday",
                                   "message": {"content": "hi"}})
        assert isinstance(entry.timestamp, datetime)


class TestLoadTranscript:
    """SUT: load_transcript"""

    async def test_load(self, tmp_path, transcript):
        transcript.raw({"type": "queue-operation"})
        transcript.user("hello")
        transcript.assistant("hi there")
        path = transcript.write(tmp_path / "session.jsonl")

        entries = await load_transcript(path)
        assert [e.type for e in entries] == ["user", "assistant"]

    async def test_missing(self, tmp_path):
        assert await load_transcript(tmp_path / "missing.jsonl") == []


class TestAttachClientIds:
    """SUT: attach_client_ids"""

    def _entries(self, transcript, *texts):
        for text in texts:
            transcript.user(text)
            transcript.assistant("ok")
        return [convert_raw_entry(line) for line in transcript.lines]

    def test_identical_messages_map_in_order(self, transcript):
        entries = self._entries(transcript, "again", "again")
        inputs = [
            {"content": "again", "client_message_id": "a"},
            {"content": "again", "client_message_id": "b"},
        ]
        attach_client_ids(entries, inputs)

        users = [e for e in entries if e.type == "user"]
        assert [u.client_message_id for u in users] == ["a", "b"]
        assert all(e.client_message_id is None for e in entries if e.type == "assistant")

    def test_unmatched_inputs(self, transcript):
        """Inputs the agent has not picked up yet leave entries untouched."""
        entries = self._entries(transcript, "first")
        inputs = [
            {"content": "first", "client_message_id": "a"},
            {"content": "second", "client_message_id": "b"},
        ]
        attach_client_ids(entries, inputs)
        assert entries[0].client_message_id == "a"

    def test_skips_tool_results(self, transcript):
        transcript.user("question")
        transcript.user([{"type": "tool_result", "tool_use_id": "t", "content": "question"}])
        entries = [convert_raw_entry(line) for line in transcript.lines]

        attach_client_ids(entries, [{"content": "question", "client_message_id": "a"}])
        assert entries[0].client_message_id == "a"
        assert entries[1].client_message_id is None
