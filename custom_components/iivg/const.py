# File: const.py
"""Constants for the IIVG integration.

This file centralizes storage keys, defaults, the achievement ladder, service
names, event suffixes and platform identifiers for consistency across the
integration.
"""

import logging

from homeassistant.const import Platform

# ------------------------------------------------------------------------------------------------
# General / Integration Information
# ------------------------------------------------------------------------------------------------
# Integration Name
IIVG_TITLE = "IIVG"

# Integration Domain
DOMAIN = "iivg"

# Logger
LOGGER = logging.getLogger(__package__)

# Supported Platforms
PLATFORMS = [
    Platform.SENSOR,
]

# Coordinator
COORDINATOR = "coordinator"
COORDINATOR_SUFFIX = "_coordinator"

# Storage and Versioning
STORAGE_MANAGER = "storage_manager"
STORAGE_KEY = "iivg_data"
STORAGE_VERSION = 1
SCHEMA_VERSION = 1

# ------------------------------------------------------------------------------------------------
# Configuration Keys
# ------------------------------------------------------------------------------------------------

CONF_DISPLAY_NAME = "display_name"
CONF_CATALOG_PATH = "catalog_path"
CONF_REMOTE_URL = "remote_url"
CONF_REMOTE_TOKEN = "remote_token"
CONF_WAVE_FLOOR = "wave_floor"
CONF_SERIES_UNLOCK_RATING = "series_unlock_rating"

CONFIG_FLOW_STEP_USER = "user"
OPTIONS_FLOW_STEP_INIT = "init"

DEFAULT_CATALOG_DIR = "iivg"
DEFAULT_WAVE_FLOOR = 2
DEFAULT_SERIES_UNLOCK_RATING = 8

WAVE_FLOOR_MIN = 1
WAVE_FLOOR_MAX = 20

# ------------------------------------------------------------------------------------------------
# Catalog files (one directory per generation: gen1, gen2, ...)
# ------------------------------------------------------------------------------------------------

CATALOG_GEN_DIR_PATTERN = r"^gen(\d+)$"
CATALOG_FILE_BASE = "games.json"
CATALOG_FILE_EXTRA = "extra.json"
CATALOG_FILE_SERIES = "series.json"

# JSON field names used by the catalog files and the remote API
JSON_ID = "id"
JSON_TITLE = "title"
JSON_SERIES = "series"
JSON_SERIES_INDEX = "seriesIndex"
JSON_CONSOLE = "console"
JSON_RELEASE_YEAR = "releaseYear"
JSON_ORDER_INDEX = "orderIndex"
JSON_CUSTOM = "custom"
JSON_SERIES_GAMES = "games"
JSON_GAME_ID = "gameId"
JSON_RATING = "rating"
JSON_COMPLETED_AT = "completedAt"
JSON_COMPLETIONS = "completions"
JSON_LABEL = "label"
JSON_IMAGE_URL = "imageUrl"

# ------------------------------------------------------------------------------------------------
# Data Keys - Catalog entry
# ------------------------------------------------------------------------------------------------

DATA_ENTRY_ID = "id"
DATA_ENTRY_TITLE = "title"
DATA_ENTRY_SERIES = "series_name"
DATA_ENTRY_SERIES_RANK = "series_rank"
DATA_ENTRY_CATEGORY = "category"
DATA_ENTRY_RELEASE_YEAR = "release_year"
DATA_ENTRY_ORDER_INDEX = "order_index"
DATA_ENTRY_IS_CUSTOM = "is_custom"
DATA_ENTRY_GENERATION = "generation"

# ------------------------------------------------------------------------------------------------
# Data Keys - Completion
# ------------------------------------------------------------------------------------------------

DATA_COMPLETION_ENTRY_ID = "entry_id"
DATA_COMPLETION_RATING = "rating"
DATA_COMPLETION_COMPLETED_AT = "completed_at"

# ------------------------------------------------------------------------------------------------
# Data Keys - Achievement record
# ------------------------------------------------------------------------------------------------

DATA_ACHIEVEMENT_CATEGORY = "category"
DATA_ACHIEVEMENT_TIER_LABEL = "tier_label"
DATA_ACHIEVEMENT_EARNED_AT = "earned_at"
DATA_ACHIEVEMENT_ARTIFACT = "rendered_artifact"

# ------------------------------------------------------------------------------------------------
# Data Keys - Progression state (persisted snapshot)
# ------------------------------------------------------------------------------------------------

DATA_META = "meta"
DATA_META_SCHEMA_VERSION = "schema_version"
DATA_META_LAST_SAVED = "last_saved"

DATA_DISPLAY_NAME = "display_name"
DATA_AVAILABLE_IDS = "available_ids"
DATA_COMPLETIONS = "completions"
DATA_RELEASED_WAVES = "released_waves"
DATA_YEAR_CURSOR = "year_cursor"
DATA_DYNAMIC_ENTRIES = "dynamic_entries"
DATA_SERIES_AVERAGES = "series_averages"
DATA_EARNED_ACHIEVEMENTS = "earned_achievements"
DATA_LAST_EARNED = "last_earned"

# Category summary keys (achievements-by-category view)
DATA_SUMMARY_CATEGORY = "category"
DATA_SUMMARY_COUNT = "count"
DATA_SUMMARY_HIGHEST = "highest"

# ------------------------------------------------------------------------------------------------
# Achievement ladder
# ------------------------------------------------------------------------------------------------

TIER_KINDERGARTEN = "Kindergarten Diploma"
TIER_PRIMARY = "Primary School Diploma"
TIER_MIDDLE = "Middle School Certificate"
TIER_HIGH_SCHOOL = "High School Diploma"
TIER_ASSOCIATE = "Associate's Degree"
TIER_BACHELOR = "Bachelor's Degree"
TIER_MASTER = "Master's Degree"
TIER_PHD = "PhD"

# (threshold, label) ascending by threshold; position + 1 is the tier rank
DEGREE_STEPS: tuple[tuple[int, str], ...] = (
    (3, TIER_KINDERGARTEN),
    (5, TIER_PRIMARY),
    (8, TIER_MIDDLE),
    (10, TIER_HIGH_SCHOOL),
    (13, TIER_ASSOCIATE),
    (15, TIER_BACHELOR),
    (18, TIER_MASTER),
    (20, TIER_PHD),
)

# Number of artifact templates reserved per tier (diploma_1 .. diploma_29 for rank 1)
ARTIFACT_TEMPLATE_SPAN = 29

# ------------------------------------------------------------------------------------------------
# Progression rules
# ------------------------------------------------------------------------------------------------

RATING_MIN = 1
RATING_MAX = 10
SERIES_AVERAGE_PRECISION = 2
ELECTIVE_ORDER_INDEX = 999
ELECTIVE_ID_PREFIX = "custom-"

# ------------------------------------------------------------------------------------------------
# Remote completion store
# ------------------------------------------------------------------------------------------------

REMOTE_PATH_COMPLETIONS = "/api/completions"
REMOTE_PATH_COMPLETE = "/api/complete"
REMOTE_PATH_ACHIEVEMENT_IMAGE = "/api/achievement-image"
REMOTE_TIMEOUT_SECONDS = 15

# ------------------------------------------------------------------------------------------------
# Events (dispatcher signal suffixes, scoped per config entry)
# ------------------------------------------------------------------------------------------------

SIGNAL_SUFFIX_COMPLETION_RECORDED = "completion_recorded"
SIGNAL_SUFFIX_ACHIEVEMENT_EARNED = "achievement_earned"
SIGNAL_SUFFIX_ENTRY_UNLOCKED = "entry_unlocked"
SIGNAL_SUFFIX_STATE_REHYDRATED = "state_rehydrated"
SIGNAL_SUFFIXES = (
    SIGNAL_SUFFIX_COMPLETION_RECORDED,
    SIGNAL_SUFFIX_ACHIEVEMENT_EARNED,
    SIGNAL_SUFFIX_ENTRY_UNLOCKED,
    SIGNAL_SUFFIX_STATE_REHYDRATED,
)

# Payload key naming the config entry that emitted the event
EVENT_CONFIG_ENTRY_ID = "config_entry_id"

# ------------------------------------------------------------------------------------------------
# Services
# ------------------------------------------------------------------------------------------------

SERVICE_COMPLETE_ENTRY = "complete_entry"
SERVICE_ADD_ELECTIVE = "add_elective"
SERVICE_DISMISS_ACHIEVEMENT = "dismiss_achievement"
SERVICE_ATTACH_ARTIFACT = "attach_artifact"
SERVICE_SET_DISPLAY_NAME = "set_display_name"
SERVICE_SYNC_REMOTE = "sync_remote"

FIELD_ENTRY_ID = "entry_id"
FIELD_TITLE = "title"
FIELD_RATING = "rating"
FIELD_CATEGORY = "category"
FIELD_RELEASE_YEAR = "release_year"
FIELD_SERIES = "series"
FIELD_SERIES_RANK = "series_rank"
FIELD_DATA = "data"
FIELD_NAME = "name"

# ------------------------------------------------------------------------------------------------
# Sensors
# ------------------------------------------------------------------------------------------------

SENSOR_UID_SUFFIX_AVAILABLE = "_available_courses"
SENSOR_UID_SUFFIX_COMPLETED = "_completed_courses"
SENSOR_UID_SUFFIX_LATEST_ACHIEVEMENT = "_latest_achievement"

TRANS_KEY_SENSOR_AVAILABLE = "available_courses"
TRANS_KEY_SENSOR_COMPLETED = "completed_courses"
TRANS_KEY_SENSOR_LATEST_ACHIEVEMENT = "latest_achievement"

ATTR_AVAILABLE_IDS = "available_ids"
ATTR_AVAILABLE_TITLES = "available_titles"
ATTR_YEAR_CURSOR = "year_cursor"
ATTR_SERIES_AVERAGES = "series_averages"
ATTR_CATEGORIES = "categories"
ATTR_CATEGORY = "category"
ATTR_EARNED_AT = "earned_at"
ATTR_ARTIFACT_INDEX = "artifact_index"
ATTR_HAS_ARTIFACT = "has_artifact"
ATTR_HIGHEST_BY_CATEGORY = "highest_by_category"
ATTR_DISPLAY_NAME = "display_name"

SENTINEL_NONE_TEXT = "none"
DEFAULT_DIPLOMA_ICON = "mdi:school"
DEFAULT_COURSES_ICON = "mdi:gamepad-variant"
DEFAULT_COMPLETED_ICON = "mdi:check-decagram"

DEVICE_MANUFACTURER = "IIVG"
DEVICE_MODEL = "Video Game Curriculum"

# ------------------------------------------------------------------------------------------------
# Errors
# ------------------------------------------------------------------------------------------------

MSG_NO_ENTRY_FOUND = "No IIVG entry found"
ERROR_ENTRY_NOT_FOUND_FMT = "Course '{}' not found"
ERROR_SINGLE_INSTANCE = "single_instance_allowed"
