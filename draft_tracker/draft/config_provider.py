"""
Draft session configuration and persisted user state.

Configuration is read from a JSON file, overlaid with environment variables
(see config.ENV_VARS) and finally with explicit overrides such as CLI
arguments. The plan and queue are stored per draft as JSON files using
atomic writes (temp file + rename).
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional

from .. import config
from ..valuation import ScoringFormat, parse_scoring_format
from .errors import InvalidConfiguration
from .pick_queue import PickQueue
from .plan_builder import DraftPlan

logger = logging.getLogger(__name__)

MAX_TEAMS = 32


def _optional_int(data: dict, key: str) -> Optional[int]:
    value = data.get(key)
    if value is None or value == '':
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise InvalidConfiguration(f"{key} must be an integer, got {value!r}") from e


@dataclass
class DraftConfig:
    """Settings a draft session needs before it can start."""

    league_id: Optional[str] = None
    draft_id: Optional[str] = None
    scoring_format: Optional[ScoringFormat] = None
    draft_position: Optional[int] = None
    tracked_username: Optional[str] = None
    team_count: Optional[int] = None
    poll_interval: float = config.POLL_INTERVAL_SECONDS
    pick_clock_seconds: int = config.DEFAULT_PICK_CLOCK_SECONDS

    @classmethod
    def from_dict(cls, data: dict) -> 'DraftConfig':
        """
        Build a config from loosely typed values (JSON, env, CLI).

        Raises:
            InvalidConfiguration: If a value has the wrong type or an
                unrecognized scoring format is given
        """
        try:
            scoring_format = parse_scoring_format(data.get('scoring_format'))
        except ValueError as e:
            raise InvalidConfiguration(str(e)) from e

        poll_interval = data.get('poll_interval')
        try:
            poll_interval = float(config.POLL_INTERVAL_SECONDS if poll_interval is None else poll_interval)
        except (TypeError, ValueError) as e:
            raise InvalidConfiguration(f"poll_interval must be a number: {e}") from e

        pick_clock_seconds = _optional_int(data, 'pick_clock_seconds')
        if pick_clock_seconds is None:
            pick_clock_seconds = config.DEFAULT_PICK_CLOCK_SECONDS

        return cls(
            league_id=str(data['league_id']) if data.get('league_id') else None,
            draft_id=str(data['draft_id']) if data.get('draft_id') else None,
            scoring_format=scoring_format,
            draft_position=_optional_int(data, 'draft_position'),
            tracked_username=data.get('tracked_username') or None,
            team_count=_optional_int(data, 'team_count'),
            poll_interval=poll_interval,
            pick_clock_seconds=pick_clock_seconds,
        )

    def validate(self) -> None:
        """
        Check the config can drive a session.

        Raises:
            InvalidConfiguration: Missing league/draft id or out-of-range values
        """
        if not self.league_id and not self.draft_id:
            raise InvalidConfiguration("A league_id or draft_id is required")

        if self.team_count is not None and not 2 <= self.team_count <= MAX_TEAMS:
            raise InvalidConfiguration(f"team_count must be 2-{MAX_TEAMS}, got {self.team_count}")

        if self.draft_position is not None:
            limit = self.team_count or MAX_TEAMS
            if not 1 <= self.draft_position <= limit:
                raise InvalidConfiguration(
                    f"draft_position must be 1-{limit}, got {self.draft_position}"
                )

        if self.poll_interval <= 0:
            raise InvalidConfiguration(f"poll_interval must be positive, got {self.poll_interval}")

        if self.pick_clock_seconds <= 0:
            raise InvalidConfiguration(
                f"pick_clock_seconds must be positive, got {self.pick_clock_seconds}"
            )


def _write_json(path: Path, data) -> None:
    """Atomic write: temp file + rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_file = path.with_suffix('.tmp')
    with open(temp_file, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2)
    temp_file.replace(path)


def _read_json(path: Path) -> Optional[dict]:
    if not path.exists():
        return None
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.error(f"Failed to read {path}: {e}")
        return None


class FileConfigProvider:
    """JSON-file configuration with environment overrides and state persistence."""

    def __init__(
        self,
        path: Path = Path(config.CONFIG_FILE),
        state_dir: Path = Path(config.DRAFT_STATE_DIR),
        environ: Optional[Mapping[str, str]] = None,
        overrides: Optional[Dict] = None
    ):
        """
        Args:
            path: JSON config file (optional on disk)
            state_dir: Directory for persisted plans and queues
            environ: Environment mapping (default: os.environ)
            overrides: Highest-priority values, e.g. from CLI arguments
        """
        self.path = Path(path)
        self.state_dir = Path(state_dir)
        self.environ = os.environ if environ is None else environ
        self.overrides = {k: v for k, v in (overrides or {}).items() if v is not None}

    def load(self) -> DraftConfig:
        """
        Merge file, environment and overrides into a DraftConfig.

        Raises:
            InvalidConfiguration: If the file is not valid JSON or a value is malformed
        """
        data = {}

        if self.path.exists():
            try:
                with open(self.path, 'r', encoding='utf-8') as f:
                    data.update(json.load(f))
            except json.JSONDecodeError as e:
                raise InvalidConfiguration(f"Config file {self.path} is not valid JSON: {e}") from e
            logger.debug(f"Loaded config file {self.path}")

        for env_name, key in config.ENV_VARS.items():
            value = self.environ.get(env_name)
            if value:
                data[key] = value
                logger.debug(f"Config {key} from ${env_name}")

        data.update(self.overrides)
        return DraftConfig.from_dict(data)

    # ----- Plan / queue persistence -----

    def _state_file(self, kind: str, draft_id: str) -> Path:
        return self.state_dir / f"{kind}_{draft_id}.json"

    def save_plan(self, draft_id: str, plan: DraftPlan) -> None:
        _write_json(self._state_file('plan', draft_id), plan.to_dict())

    def load_plan(self, draft_id: str) -> Optional[DraftPlan]:
        data = _read_json(self._state_file('plan', draft_id))
        if data is None:
            return None
        try:
            return DraftPlan.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Discarding unreadable plan for draft {draft_id}: {e}")
            return None

    def save_queue(self, draft_id: str, queue: PickQueue) -> None:
        _write_json(self._state_file('queue', draft_id), queue.to_dict())

    def load_queue(self, draft_id: str) -> Optional[PickQueue]:
        data = _read_json(self._state_file('queue', draft_id))
        if data is None:
            return None
        try:
            return PickQueue.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Discarding unreadable queue for draft {draft_id}: {e}")
            return None
