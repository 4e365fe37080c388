"""Configuration constants.

This module contains truly constant values that should NOT be user-configurable.
For configurable values, see models.py.
"""

# =============================================================================
# Generation
# =============================================================================

GENERATION_API_VERSION = 1
"""Version of the helper/context contract templates are compiled against."""

INVALID_SENTINEL_PREFIX = "!!"
"""Prefix of the in-place marker rendered for a failed helper lookup."""

# =============================================================================
# Option categories
# =============================================================================

MANUFACTURER_CODES_CATEGORY = "manufacturerCodes"
"""Option category holding the manufacturer code → name map."""

BOOL_OPTION_TRUE = "1"
BOOL_OPTION_FALSE = "0"

# =============================================================================
# Source markup
# =============================================================================

CONFIGURATOR_ROOT_TAG = "configurator"
"""Root element of every metadata XML file."""

SIDE_CLIENT = "client"
SIDE_SERVER = "server"
SIDE_EITHER = "either"
