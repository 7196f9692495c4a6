"""Constants for the Task Manager API.

This module centralizes limits and whitelists used by validation and storage.
"""

# Credentials
MIN_PASSWORD_LENGTH = 7
MAX_PASSWORD_BYTES = 72  # bcrypt input limit
FORBIDDEN_PASSWORD_SUBSTRING = "password"

# Whitelisted update fields
PROFILE_UPDATE_FIELDS = ("name", "email", "password", "age")
TASK_CREATE_FIELDS = ("description", "completed")
TASK_UPDATE_FIELDS = ("description", "completed")

# Task listing
TASK_SORT_FIELDS = ("description", "completed", "created_at", "updated_at")
SORT_ASC = "asc"
SORT_DESC = "desc"
SORT_DIRECTIONS = (SORT_ASC, SORT_DESC)

# Avatar upload
AVATAR_MAX_BYTES = 1_000_000  # 1 MB
AVATAR_ALLOWED_EXTENSIONS = (".jpg", ".jpeg", ".png")
AVATAR_SIZE_PX = (250, 250)
AVATAR_MAX_PIXELS = 4096 * 4096  # declared width x height, checked before decoding
AVATAR_CONTENT_TYPE = "image/png"
