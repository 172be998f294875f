# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Gravity Guard Contributors

"""
Constants and default values for the quota guard.

Tunable defaults (thresholds, polling interval) can be overridden through
the environment by ConfigLoader. The remaining values describe the local
language server's wire protocol and the alerting cadence.
"""

# =============================================================================
# CONFIGURATION DEFAULTS
# =============================================================================

DEFAULT_ENABLED = True
DEFAULT_WARNING_THRESHOLD = 20.0  # percent
DEFAULT_BLOCK_THRESHOLD = 2.0  # percent
DEFAULT_GUARD_ENABLED = True
DEFAULT_SOUND_ENABLED = True
DEFAULT_POLLING_INTERVAL = 120.0  # seconds

ENV_PREFIX = "GRAVITY_"

# =============================================================================
# LANGUAGE SERVER CONNECTION
# =============================================================================

LOOPBACK_HOST = "127.0.0.1"
API_SCHEME = "https"

RPC_SERVICE = "/exa.language_server_pb.LanguageServerService"
STATUS_RPC_PATH = f"{RPC_SERVICE}/GetUserStatus"
HEALTH_RPC_PATH = f"{RPC_SERVICE}/GetUnleashData"

CSRF_HEADER = "X-Codeium-Csrf-Token"
PROTOCOL_VERSION_HEADER = "Connect-Protocol-Version"
PROTOCOL_VERSION = "1"

STATUS_REQUEST_METADATA = {
    "ideName": "antigravity",
    "extensionName": "antigravity",
    "locale": "en",
}
HEALTH_REQUEST_BODY = {"wrapper_data": {}}

PROBE_TIMEOUT = 5.0  # seconds per candidate port
STATUS_TIMEOUT = 10.0  # seconds per status query
COMMAND_TIMEOUT = 15.0  # seconds per shell command

# =============================================================================
# DISCOVERY
# =============================================================================

DEFAULT_DISCOVERY_RETRIES = 3
DISCOVERY_RETRY_DELAY = 0.5  # seconds between attempts

# =============================================================================
# GUARD CADENCE
# =============================================================================

PROMPT_CREDITS_ID = "prompt_credits"
PROMPT_CREDITS_LABEL = "Global Prompt Credits"
PROMPT_CREDITS_RESET_TEXT = "this billing cycle"

RESET_JUMP_THRESHOLD = 2.0  # percentage points
WARNING_REALERT_INTERVAL = 600.0  # seconds
WARNING_REALERT_DROP = 5.0  # percentage points
WARNING_ACK_TTL = 3600.0  # seconds
BLOCK_PROMPT_COOLDOWN = 15.0  # seconds
SOUND_COOLDOWN = 10.0  # seconds

# Logging
LIB_LOGGER_NAME = "gravity_guard"
