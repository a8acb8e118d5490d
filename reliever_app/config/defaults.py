"""
Fixed values shared by the session core: sentinels, tag rules, storage keys.
"""

from __future__ import annotations

# Sentinel target id meaning "the unsaved vessel currently being edited"
UNSAVED_VESSEL = "current"

# Default name used when a vessel is created without one
DEFAULT_VESSEL_NAME = "Untitled Vessel"

# Generated tags: untitled-01, untitled-02, ... (collision-free per owner)
UNTITLED_TAG_PREFIX = "untitled-"
UNTITLED_TAG_PATTERN = r"^untitled-\d+$"
UNTITLED_TAG_WIDTH = 2

# Loading indicator messages
MSG_LOADING = "Loading..."
MSG_SAVING = "Saving..."
MSG_CREATING = "Creating vessel..."
MSG_DELETING = "Deleting vessel..."

# Local cache store keys
KEY_VESSEL = "cache:vessel:{vessel_id}"
KEY_CASES = "cache:cases:{vessel_id}"
KEY_VESSEL_LIST = "cache:vessel-list"
KEY_CURRENT_VESSEL_ID = "current-vessel-id"

# Working copy of the open session (restored on startup)
KEY_SESSION_VESSEL = "session:vessel"
KEY_SESSION_CASE = "session:case:{case_type}"

# ASME VIII: relieving flow is divided by this factor to obtain the design flow
ASME_VIII_FLOW_FACTOR = 0.9
