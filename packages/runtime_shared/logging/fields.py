"""Canonical logging field names for the runtime composition root.

Keeping names centralized keeps bootstrap diagnostics stable between the
registry, the plugin protocol and the process entrypoint.
"""

TIMESTAMP = "timestamp"
LEVEL = "level"
LOGGER = "logger"
MESSAGE = "message"
EVENT = "event"

# Composition fields.
SERVICE_KEY = "service_key"
DEPENDENCIES = "dependencies"
COMPOSER_COUNT = "composer_count"
PLUGIN_NAME = "plugin_name"
SETTINGS_PREFIX = "settings_prefix"
RESOLUTION_CHAIN = "resolution_chain"
CONFIG_PATH = "config_path"
ERRORS = "errors"
STAGE = "stage"

# Common process-level fields.
SERVICE = "service"
ENVIRONMENT = "environment"
APPLICATION_ROOT = "application_root"
