"""
Sleeper API client for polling draft state.

Integrates with Sleeper endpoints:
- /league/<id>/drafts: Draft lookup for a league
- /draft/<id>, /draft/<id>/picks: Draft metadata and the append-only pick feed
- /league/<id>/rosters, /league/<id>/users, /user/<name>: Roster identification
- /players/nfl: Full player catalog (large, cached on disk for 24h)
- /players/nfl/trending/<type>: Trending add/drop counts

Sleeper answers unknown ids with a null body, which is returned as None.
Network failures and timeouts are raised as TransientFetchError.
"""

import json
import logging
import time
from datetime import datetime, timedelta
from pathlib import Path
from typing import Dict, List, Optional

import requests

from .. import config
from .errors import TransientFetchError

logger = logging.getLogger(__name__)


class SleeperClient:
    """Read-only client for the Sleeper fantasy football API."""

    def __init__(
        self,
        base_url: str = config.SLEEPER_BASE_URL,
        cache_dir: Optional[Path] = None,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize Sleeper client.

        Args:
            base_url: API root
            cache_dir: Directory for the player catalog cache (default: data/cache)
            session: Optional pre-configured requests session
        """
        self.base_url = base_url.rstrip('/')
        self.cache_dir = Path(cache_dir or config.CACHE_DIR)

        # Session for connection pooling
        self.session = session or requests.Session()

    # ----- League / draft -----

    def fetch_league(self, league_id: str) -> Optional[Dict]:
        return self._make_request(f"/league/{league_id}")

    def fetch_league_drafts(self, league_id: str) -> List[Dict]:
        return self._make_request(f"/league/{league_id}/drafts") or []

    def fetch_draft(self, draft_id: str, timeout: float = config.POLL_TIMEOUT_SECONDS) -> Optional[Dict]:
        return self._make_request(f"/draft/{draft_id}", timeout=timeout)

    def fetch_draft_picks(self, draft_id: str, timeout: float = config.POLL_TIMEOUT_SECONDS) -> List[Dict]:
        """
        Poll the pick feed for a draft.

        Returns:
            Raw pick records (unordered as delivered by the API)

        Raises:
            TransientFetchError: On network failure or timeout
        """
        picks = self._make_request(f"/draft/{draft_id}/picks", timeout=timeout) or []
        logger.debug(f"Fetched draft picks: {len(picks)} picks")
        return picks

    # ----- Rosters / users -----

    def fetch_rosters(self, league_id: str) -> List[Dict]:
        return self._make_request(f"/league/{league_id}/rosters") or []

    def fetch_users(self, league_id: str) -> List[Dict]:
        return self._make_request(f"/league/{league_id}/users") or []

    def fetch_user(self, username: str) -> Optional[Dict]:
        return self._make_request(f"/user/{username}")

    # ----- Players -----

    def fetch_players(self, force_refresh: bool = False) -> Dict[str, Dict]:
        """
        Load the full NFL player dictionary from cache or Sleeper.

        Args:
            force_refresh: If True, re-fetch even if a fresh cache exists

        Returns:
            Mapping of player_id -> raw player record
        """
        cache_file = self.cache_dir / "sleeper_players_nfl.json"

        if not force_refresh and self._is_cache_valid(cache_file):
            try:
                with open(cache_file, 'r', encoding='utf-8') as f:
                    players = json.load(f)
                logger.info(f"Using cached player database: {len(players)} players")
                return players
            except (json.JSONDecodeError, OSError) as e:
                logger.warning(f"Failed to load cached players: {e}, will re-fetch")

        players = self._make_request("/players/nfl", timeout=60, max_retries=3) or {}

        self.cache_dir.mkdir(parents=True, exist_ok=True)
        temp_file = cache_file.with_suffix('.tmp')
        with open(temp_file, 'w', encoding='utf-8') as f:
            json.dump(players, f)
        temp_file.replace(cache_file)

        logger.info(f"Fetched and cached {len(players)} players → {cache_file}")
        return players

    def fetch_trending_players(
        self,
        trend_type: str = 'add',
        lookback_hours: int = config.TRENDING_LOOKBACK_HOURS,
        limit: int = config.TRENDING_LIMIT
    ) -> List[Dict]:
        """Trending players as [{'player_id': ..., 'count': ...}]."""
        return self._make_request(
            f"/players/nfl/trending/{trend_type}",
            params={'lookback_hours': lookback_hours, 'limit': limit}
        ) or []

    def _is_cache_valid(self, cache_path: Path) -> bool:
        """Check if cached data is still valid (not expired)."""
        if not cache_path.exists():
            return False

        cache_time = datetime.fromtimestamp(cache_path.stat().st_mtime)
        expiry_time = datetime.now() - timedelta(hours=config.PLAYER_CACHE_HOURS)

        return cache_time > expiry_time

    def _make_request(
        self,
        path: str,
        params: Optional[Dict] = None,
        timeout: float = config.POLL_TIMEOUT_SECONDS,
        max_retries: int = 1
    ):
        """
        Make HTTP request to the Sleeper API.

        Polling paths use a single attempt: a failed poll is simply retried
        on the next cycle. Larger one-off loads pass max_retries > 1.

        Args:
            path: Endpoint path below base_url
            params: Query parameters
            timeout: Request timeout in seconds
            max_retries: Maximum attempts

        Returns:
            Parsed JSON response (None for a null body or HTTP 404)

        Raises:
            TransientFetchError: After all attempts fail
        """
        url = f"{self.base_url}{path}"

        for attempt in range(1, max_retries + 1):
            try:
                logger.debug(f"GET {url} (attempt {attempt}/{max_retries})")
                response = self.session.get(url, params=params, timeout=timeout)

                if response.status_code == 404:
                    return None

                response.raise_for_status()
                return response.json()

            except requests.Timeout as e:
                logger.warning(f"Request timeout for {path} (attempt {attempt}/{max_retries})")
                if attempt == max_retries:
                    raise TransientFetchError(f"Timed out fetching {path}") from e
                time.sleep(2 ** attempt)

            except (requests.RequestException, ValueError) as e:
                logger.error(f"Request failed for {path} (attempt {attempt}/{max_retries}): {e}")
                if attempt == max_retries:
                    raise TransientFetchError(f"Failed fetching {path}: {e}") from e
                time.sleep(2 ** attempt)

    def close(self) -> None:
        """Close the HTTP session."""
        self.session.close()
