"""
Chess.com rating history reconstruction.

Rebuilds a daily rating time series per game mode from a player's monthly
game archives and formats it as gap-aware series for charting.
"""

from .archives import (
    ArchiveReference,
    month_key,
    is_month_in_range,
    parse_archive_url,
    filter_archives,
    resolve_archives,
)
from .games import (
    API_BASE,
    HEADERS,
    REQUEST_DELAY,
    MAX_RETRIES,
    BASE_RETRY_DELAY,
    ImportCancelled,
    wait_interruptibly,
    fetch_archives,
    fetch_monthly_games,
)
from .extraction import (
    STANDARD_RULES,
    TRACKED_MODES,
    RatingEvent,
    is_eligible_game,
    map_time_class,
    extract_player_rating,
    game_date,
    extract_rating_event,
)
from .aggregation import (
    MonthReconstruction,
    aggregate_daily_ratings,
    reconstruct_month,
)
from .storage import (
    DailyRatingRecord,
    get_rating_store_path,
    init_rating_store,
    get_daily_rating,
    save_daily_rating,
    merge_daily_rating,
    merge_daily_ratings,
    has_rating_history,
    count_daily_ratings,
    get_all_rating_history,
    get_rating_history_between,
    get_recent_rating_history,
    build_snapshot,
)
from .series import (
    MODE_COLORS,
    RatingSeries,
    format_series,
    build_chart_datasets,
    build_chart_data,
    series_to_dataframe,
    latest_ratings,
)
from .importer import (
    STATUS_COMPLETED,
    STATUS_NO_DATA,
    STATUS_CANCELLED,
    ImportResult,
    import_historical_data,
    fetch_guest_history,
    fetch_month_history,
    refresh_month,
)
