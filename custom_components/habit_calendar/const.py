# File: const.py
"""Constants for the Habit Calendar integration.

This file centralizes storage keys, data field names, service names, defaults
and user-facing texts so every module reads the same vocabulary.
"""

import logging
from enum import IntEnum

# ------------------------------------------------------------------------------------------------
# General / Integration Information
# ------------------------------------------------------------------------------------------------
HABIT_CALENDAR_TITLE = "Habit Calendar"

# Integration Domain
DOMAIN = "habit_calendar"

# Logger
LOGGER = logging.getLogger(__package__)

# Coordinator
COORDINATOR = "coordinator"
COORDINATOR_SUFFIX = "_coordinator"
STORAGE_MANAGER = "storage_manager"

# Open challenges that ended are closed at local midnight.
DEFAULT_MIDNIGHT_TIME = {"hour": 0, "minute": 0, "second": 0}

# Storage and Versioning
STORAGE_KEY = "habit_calendar_data"
STORAGE_VERSION = 1
SCHEMA_VERSION = 1

# ------------------------------------------------------------------------------------------------
# Configuration Keys (config entry options)
# ------------------------------------------------------------------------------------------------
CONF_NOTIFY_SERVICE = "notify_service"
CONF_REMINDER_SUBTITLE = "reminder_subtitle"

# ------------------------------------------------------------------------------------------------
# Storage buckets
# ------------------------------------------------------------------------------------------------
DATA_META = "meta"
DATA_META_SCHEMA_VERSION = "schema_version"
DATA_META_LAST_MIDNIGHT_PROCESSED = "last_midnight_processed"

DATA_HABITS = "habits"
DATA_DAYS = "days"
DATA_HABIT_DAYS = "habit_days"
DATA_CHALLENGES = "challenges"
DATA_STREAKS = "streaks"
DATA_FIRE_TIMES = "fire_times"
DATA_NOTIFICATIONS = "notifications"

ENTITY_BUCKETS = (
    DATA_HABITS,
    DATA_DAYS,
    DATA_HABIT_DAYS,
    DATA_CHALLENGES,
    DATA_STREAKS,
    DATA_FIRE_TIMES,
    DATA_NOTIFICATIONS,
)

# Shared record fields
DATA_INTERNAL_ID = "internal_id"
DATA_CREATED_AT = "created_at"
DATA_UPDATED_AT = "updated_at"
DATA_HABIT_ID = "habit_id"

# Habit
DATA_HABIT_NAME = "name"
DATA_HABIT_COLOR = "color"

# Day
DATA_DAY_DATE = "date"

# HabitDay
DATA_HABIT_DAY_DAY_ID = "day_id"
DATA_HABIT_DAY_DATE = "date"
DATA_HABIT_DAY_CHALLENGE_ID = "challenge_id"
DATA_HABIT_DAY_WAS_EXECUTED = "was_executed"

# Challenge
DATA_CHALLENGE_FROM_DATE = "from_date"
DATA_CHALLENGE_TO_DATE = "to_date"
DATA_CHALLENGE_IS_CLOSED = "is_closed"

# Streak (offensive)
DATA_STREAK_CHALLENGE_ID = "challenge_id"
DATA_STREAK_FROM_DATE = "from_date"
DATA_STREAK_TO_DATE = "to_date"

# FireTime
DATA_FIRE_TIME_HOUR = "hour"
DATA_FIRE_TIME_MINUTE = "minute"

# Notification
DATA_NOTIFICATION_EXTERNAL_ID = "external_id"
DATA_NOTIFICATION_FIRE_TIME_ID = "fire_time_id"
DATA_NOTIFICATION_HABIT_DAY_ID = "habit_day_id"
DATA_NOTIFICATION_FIRE_DATE = "fire_date"
DATA_NOTIFICATION_WAS_SCHEDULED = "was_scheduled"


# ------------------------------------------------------------------------------------------------
# Habit colors
# ------------------------------------------------------------------------------------------------
class HabitColor(IntEnum):
    """Colors a habit can be displayed with."""

    SYSTEM_RED = 0
    SYSTEM_ORANGE = 1
    SYSTEM_YELLOW = 2
    SYSTEM_GREEN = 3
    SYSTEM_TEAL = 4
    SYSTEM_BLUE = 5
    SYSTEM_PURPLE = 6
    SYSTEM_PINK = 7


HABIT_COLOR_OPTIONS = [color.name.lower() for color in HabitColor]
DEFAULT_HABIT_COLOR = HabitColor.SYSTEM_BLUE

# ------------------------------------------------------------------------------------------------
# Fire time bounds
# ------------------------------------------------------------------------------------------------
FIRE_TIME_HOUR_MIN = 0
FIRE_TIME_HOUR_MAX = 23
FIRE_TIME_MINUTE_MIN = 0
FIRE_TIME_MINUTE_MAX = 59
FIRE_TIME_SEPARATOR = ":"

# A challenge with fewer days is allowed but logged.
RECOMMENDED_MIN_CHALLENGE_DAYS = 2

# ------------------------------------------------------------------------------------------------
# Notifications
# ------------------------------------------------------------------------------------------------
NOTIFY_DOMAIN = "notify"
NOTIFY_PERSISTENT_NOTIFICATION = "persistent_notification"
NOTIFY_CREATE = "create"
NOTIFY_TITLE = "title"
NOTIFY_MESSAGE = "message"
NOTIFY_DATA = "data"
NOTIFY_TAG = "tag"
NOTIFY_SUBTITLE = "subtitle"
NOTIFY_NOTIFICATION_ID = "notification_id"
NOTIFY_HABIT_ID = "habit_id"
NOTIFY_TAG_PREFIX = "habit_calendar"
NOTIFY_ACTION = "action"
NOTIFY_ACTIONS = "actions"

# Companion app action buttons: "ACTION|entry_id[:8]|habit_id"
NOTIFICATION_EVENT = "mobile_app_notification_action"
ACTION_MARK_EXECUTED = "HABIT_DAY_EXECUTED"
ACTION_MARK_NOT_EXECUTED = "HABIT_DAY_NOT_EXECUTED"
ACTION_SEPARATOR = "|"
ACTION_ENTRY_ID_LENGTH = 8
ACTION_TITLE_EXECUTED = "Yes"
ACTION_TITLE_NOT_EXECUTED = "No"

DEFAULT_NOTIFY_SERVICE = ""
DEFAULT_REMINDER_SUBTITLE = "Did you practice this activity today?"
REMINDER_BODY_TEXT = "Don't forget to execute this activity."
ORDER_TEXT_FMT = "{ordinal} day of the challenge."

# ------------------------------------------------------------------------------------------------
# Services
# ------------------------------------------------------------------------------------------------
SERVICE_CREATE_HABIT = "create_habit"
SERVICE_EDIT_HABIT = "edit_habit"
SERVICE_DELETE_HABIT = "delete_habit"
SERVICE_MARK_TODAY = "mark_today"
SERVICE_GET_HABIT_STATUS = "get_habit_status"

FIELD_HABIT_ID = "habit_id"
FIELD_HABIT_NAME = "name"
FIELD_COLOR = "color"
FIELD_DAYS = "days"
FIELD_FIRE_TIMES = "fire_times"
FIELD_EXECUTED = "executed"
FIELD_DATE = "date"

# Service response keys
ATTR_HABIT_ID = "habit_id"
ATTR_NAME = "name"
ATTR_COLOR = "color"
ATTR_PROGRESS_PAST = "progress_past"
ATTR_PROGRESS_TOTAL = "progress_total"
ATTR_STREAK_FROM = "streak_from"
ATTR_STREAK_TO = "streak_to"
ATTR_STREAK_LENGTH = "streak_length"
ATTR_ORDER_TEXT = "order_text"
ATTR_DATE = "date"
ATTR_DATE_ORDER_TEXT = "date_order_text"
ATTR_EXECUTED_COUNT = "executed_count"
ATTR_EXECUTION_PERCENTAGE = "execution_percentage"
ATTR_IN_PROGRESS = "in_progress"
ATTR_COMPLETED = "completed"
ATTR_FIRE_TIMES = "fire_times"
ATTR_NOTIFICATIONS_AUTHORIZED = "notifications_authorized"
ATTR_PENDING_REMINDERS = "pending_reminders"

# ------------------------------------------------------------------------------------------------
# Error messages
# ------------------------------------------------------------------------------------------------
ERROR_HABIT_NOT_FOUND_FMT = "Habit '{}' not found"
ERROR_DAY_ALREADY_EXISTS_FMT = "A day for {} already exists"
ERROR_INVALID_TIME_FMT = "Invalid fire time {:02d}:{:02d}"
ERROR_INVALID_TIME_STRING_FMT = "Invalid fire time '{}' (expected HH:MM)"
ERROR_EMPTY_DAYS = "A challenge needs at least one day"
ERROR_TODAY_NOT_IN_CHALLENGE = "Today is not part of the challenge"
ERROR_SAVE_FAILED = "Failed to save habit data, please try again"
ERROR_NO_ENTRY_LOADED = "Habit Calendar is not set up"
ERROR_DATE_WITHOUT_HABIT = "A date can only be given together with a habit"

# ------------------------------------------------------------------------------------------------
# Config / options flow
# ------------------------------------------------------------------------------------------------
CONFIG_FLOW_STEP_USER = "user"
OPTIONS_FLOW_STEP_INIT = "init"
TRANS_KEY_ERROR_SINGLE_INSTANCE = "single_instance_allowed"
CFOP_ERROR_INVALID_NOTIFY_SERVICE = "invalid_notify_service"
