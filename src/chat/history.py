"""Persist a session transcript as a timestamped JSON file."""

from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Sequence, Union


def history_filename(now: Optional[datetime] = None) -> str:
    """``2024-01-02T03:04:05.000Z`` becomes ``2024-01-02T03-04-05-000Z.json``."""
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    stamp = now.strftime("%Y-%m-%dT%H:%M:%S") + f".{now.microsecond // 1000:03d}Z"
    return stamp.replace(":", "-").replace(".", "-") + ".json"


def save_transcript(
    messages: Sequence[Dict[str, Any]],
    output_dir: Union[str, os.PathLike],
    now: Optional[datetime] = None,
) -> str:
    os.makedirs(output_dir, exist_ok=True)
    output_path = os.path.join(output_dir, history_filename(now))
    with open(output_path, "w", encoding="utf-8") as fh:
        json.dump(list(messages), fh, indent=4, ensure_ascii=False)
    return output_path
