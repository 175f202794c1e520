"""
JSONL log of the picks a session has applied.

One pick per line, written in feed order as the sync engine applies them.
On restart the log is replayed into a fresh DraftStateManager so the
session resumes at the same cursor; the next poll then only appends picks
beyond it.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from .draft_event import Pick

logger = logging.getLogger(__name__)


class PickEventStore:
    """Append-only log of processed picks."""

    def __init__(self, filepath: Path):
        """
        Initialize pick store.

        Args:
            filepath: Path to JSONL file for pick storage
        """
        self.filepath = Path(filepath)
        self.filepath.parent.mkdir(parents=True, exist_ok=True)

    def append_picks(self, picks: List[Pick]) -> None:
        """
        Append picks to the log.

        Args:
            picks: Picks to append, in feed order
        """
        if not picks:
            return

        with open(self.filepath, 'a', encoding='utf-8') as f:
            for pick in picks:
                f.write(pick.to_json() + '\n')

        logger.debug(f"Appended {len(picks)} picks to {self.filepath}")

    def load_all_picks(self) -> List[Pick]:
        """
        Load complete pick history from file.

        Returns:
            List of Picks in the order they were appended

        Returns empty list if file doesn't exist.
        """
        if not self.filepath.exists():
            logger.debug(f"Pick store file does not exist: {self.filepath}")
            return []

        picks = []
        with open(self.filepath, 'r', encoding='utf-8') as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue

                try:
                    picks.append(Pick.from_json(line))
                except (json.JSONDecodeError, KeyError, ValueError) as e:
                    logger.error(
                        f"Failed to parse pick at line {line_num}: {e}\n"
                        f"Line content: {line}"
                    )

        logger.info(f"Loaded {len(picks)} picks from {self.filepath}")
        return picks

    def replay(self, state_manager) -> int:
        """
        Apply the logged picks to a state manager that has no picks yet.

        Returns:
            Number of picks replayed
        """
        if state_manager.pick_count:
            raise ValueError("Replay needs an empty pick history")

        picks = self.load_all_picks()
        if picks:
            state_manager.apply_picks(picks)
            logger.info(
                f"Replayed {len(picks)} picks - round {state_manager.current_round()}, "
                f"next pick {state_manager.overall_pick()}"
            )
        return len(picks)


def create_session_filepath(
    base_dir: Path,
    draft_id: str,
    session_id: Optional[str] = None
) -> Path:
    """
    Generate a filepath for a draft's pick log.

    Args:
        base_dir: Base directory for pick logs
        draft_id: Sleeper draft identifier
        session_id: Optional session identifier (uses date if None)

    Returns:
        Path for pick log file
    """
    if session_id is None:
        session_id = datetime.now().strftime('%Y%m%d')

    filename = f"draft_{draft_id}_{session_id}.jsonl"
    return Path(base_dir) / filename
