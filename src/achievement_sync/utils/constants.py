# Shared constants used across the application

# File names written by the supported loader runtimes
ACHIEVEMENT_INI = "achievements.ini"
ACHIEVEMENT_JSON = "achievements.json"
ACHIEVEMENT_FILE_NAMES = frozenset({ACHIEVEMENT_INI, ACHIEVEMENT_JSON})

# OnlineFix keeps its INI under <root>/<game_id>/Stats
ONLINEFIX_ROOT_NAME = "OnlineFix"
ONLINEFIX_STATS_DIR = "Stats"

# Debounce window and poll granularity of the watcher loop (seconds)
DEBOUNCE_SECONDS = 0.5
POLL_INTERVAL_SECONDS = 0.1

# Soft budget for the serialized cache document
MAX_CACHE_SIZE = 128 * 1024 * 1024
# Share of entries dropped (oldest first) when the budget is exceeded
CACHE_EVICTION_RATIO = 0.2

APP_DIR_NAME = "achievement-sync"
SETTINGS_FILE_NAME = "settings.json"
CACHE_FILE_NAME = "cache.json"
