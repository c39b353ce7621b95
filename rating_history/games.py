"""
Chess.com API access: archive listing and month fetching.

The month fetcher retries only on rate limiting (HTTP 429) with pure
exponential backoff. Every other failure is terminal for that month and
reported as ``None`` so the import loop can skip it.
"""

import os
import threading
import time
from typing import Optional

import requests
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

API_BASE = "https://api.chess.com/pub"

# Build User-Agent from environment variables
# Format: ProjectName/Version (username: your_username; contact: your_email)
_project = os.getenv("CHESSCOM_PROJECT_NAME", "rating-history")
_version = os.getenv("CHESSCOM_PROJECT_VERSION", "0.1")
_username = os.getenv("CHESSCOM_USERNAME", "")
_contact = os.getenv("CHESSCOM_CONTACT_EMAIL", "")

if _username and _contact:
    USER_AGENT = f"{_project}/{_version} (username: {_username}; contact: {_contact})"
else:
    USER_AGENT = f"{_project}/{_version}"

HEADERS = {"User-Agent": USER_AGENT}

# Rate limiting - be respectful of Chess.com API
REQUEST_DELAY = 0.3  # 300ms between month requests
MAX_RETRIES = 3
BASE_RETRY_DELAY = 0.5  # 500ms, 1s, 2s, ...
CONNECT_TIMEOUT = 5
READ_TIMEOUT = 10


class ImportCancelled(Exception):
    """Raised when a cancellation signal is observed during a wait."""


def wait_interruptibly(seconds: float, cancel_event: Optional[threading.Event] = None) -> None:
    """
    Sleep for ``seconds``, aborting early if ``cancel_event`` gets set.

    Raises:
        ImportCancelled: if the event is (or becomes) set.
    """
    if cancel_event is None:
        time.sleep(seconds)
        return
    if cancel_event.is_set() or cancel_event.wait(seconds):
        raise ImportCancelled("Import cancelled during wait")


def archives_url(username: str) -> str:
    return f"{API_BASE}/player/{username}/games/archives"


def monthly_games_url(username: str, year: int, month: int) -> str:
    return f"{API_BASE}/player/{username}/games/{year:04d}/{month:02d}"


def fetch_archives(
    username: str,
    session: Optional[requests.Session] = None,
    timeout: tuple[float, float] = (CONNECT_TIMEOUT, READ_TIMEOUT),
) -> list[str]:
    """
    Fetch the list of monthly game archives for a player.

    Args:
        username: Chess.com username.
        session: Optional requests session (defaults to module-level requests).
        timeout: (connect, read) timeout in seconds.

    Returns:
        List of archive URLs (e.g., ["https://api.chess.com/pub/player/username/games/2024/01", ...]).
        Empty if the player has no archives or the listing could not be fetched.
    """
    http = session if session is not None else requests
    url = archives_url(username)

    try:
        response = http.get(url, headers=HEADERS, timeout=timeout)
    except requests.RequestException as e:
        print(f"  Error fetching archives for {username}: {e}")
        return []

    if response.status_code == 404:
        print(f"  No archives found for user: {username}")
        return []
    if response.status_code != 200:
        print(f"  HTTP {response.status_code} fetching archives for {username}")
        return []

    try:
        archives = response.json().get("archives", [])
    except ValueError as e:
        print(f"  Warning: Could not parse archives response for {username}: {e}")
        return []

    print(f"  Found {len(archives)} archives for {username}")
    return archives


def fetch_monthly_games(
    username: str,
    year: int,
    month: int,
    session: Optional[requests.Session] = None,
    max_retries: int = MAX_RETRIES,
    base_delay: float = BASE_RETRY_DELAY,
    timeout: tuple[float, float] = (CONNECT_TIMEOUT, READ_TIMEOUT),
    cancel_event: Optional[threading.Event] = None,
) -> Optional[list[dict]]:
    """
    Fetch one month of games, retrying on rate limiting.

    Args:
        username: Chess.com username.
        year: Archive year.
        month: Archive month (1-12).
        session: Optional requests session (defaults to module-level requests).
        max_retries: Total number of attempts made while rate limited.
        base_delay: Backoff base in seconds; attempt n waits base_delay * 2**(n-1).
        timeout: (connect, read) timeout in seconds.
        cancel_event: Optional event that aborts a pending backoff sleep.

    Returns:
        List of raw game dicts. An empty list for a month with no games
        (including a 404). None if the month could not be fetched
        (rate limit exhausted, timeout, other HTTP or transport error).

    Raises:
        ImportCancelled: if cancel_event is set during a backoff sleep.
    """
    http = session if session is not None else requests
    url = monthly_games_url(username, year, month)

    for attempt in range(1, max_retries + 1):
        print(f"  Fetching {year}/{month:02d} (attempt {attempt}/{max_retries})")
        try:
            response = http.get(url, headers=HEADERS, timeout=timeout)
        except requests.exceptions.Timeout:
            print(f"  Timeout fetching {year}/{month:02d}, skipping month")
            return None
        except requests.RequestException as e:
            print(f"  Request error fetching {year}/{month:02d}: {e}")
            return None

        if response.status_code == 200:
            try:
                games = response.json().get("games", [])
            except ValueError as e:
                print(f"  Warning: Could not parse games for {year}/{month:02d}: {e}")
                return None
            print(f"  Fetched {len(games)} games for {year}/{month:02d}")
            return games
        elif response.status_code == 404:
            print(f"  No games found for {year}/{month:02d}")
            return []
        elif response.status_code == 429:
            if attempt < max_retries:
                wait_time = base_delay * (2 ** (attempt - 1))
                print(f"  Rate limited, waiting {wait_time}s...")
                wait_interruptibly(wait_time, cancel_event)
                continue
            print(f"  Rate limited, max retries exceeded for {year}/{month:02d}. Giving up.")
            return None
        else:
            print(f"  HTTP {response.status_code} for {url}")
            return None

    return None
