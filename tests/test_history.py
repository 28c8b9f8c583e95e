import json
from datetime import datetime, timezone

from chat.history import history_filename, save_transcript


def test_history_filename_replaces_colons_and_periods() -> None:
    now = datetime(2024, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc)

    assert history_filename(now) == "2024-01-02T03-04-05-678Z.json"


def test_save_transcript_creates_directory(tmp_path) -> None:
    now = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    messages = [{"role": "user", "content": "hi"}, {"role": "assistant", "content": None}]

    path = save_transcript(messages, tmp_path / "history", now=now)

    assert path.endswith("2024-01-02T03-04-05-000Z.json")
    with open(path, encoding="utf-8") as fh:
        assert json.load(fh) == messages
