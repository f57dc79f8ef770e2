DOMAIN = "homeotter"
VERSION = "0.3.0"

# Settings keys
CONF_BASE_URL = "base_url"
CONF_ACCESS_TOKEN = "access_token"
CONF_CPU_ENTITY_ID = "cpu_entity_id"
CONF_MEMORY_ENTITY_ID = "memory_entity_id"
CONF_DISK_ENTITY_ID = "disk_entity_id"
CONF_MENU_BAR_SENSOR_IDS = "menu_bar_sensor_ids"
CONF_DASHBOARD_ENTITIES = "dashboard_entities"
CONF_WARNING_THRESHOLD = "health_warning_threshold"
CONF_CRITICAL_THRESHOLD = "health_critical_threshold"
CONF_REFRESH_INTERVAL = "refresh_interval"
CONF_APPEARANCE_MODE = "appearance_mode"
CONF_LAUNCH_AT_LOGIN = "launch_at_login"
CONF_NOTIFICATIONS_ENABLED = "notifications_enabled"

# Defaults
DEFAULT_WARNING_THRESHOLD = 75
DEFAULT_CRITICAL_THRESHOLD = 90
DEFAULT_REFRESH_INTERVAL = 30  # seconds
DEFAULT_APPEARANCE_MODE = "auto"

# Bounds
MIN_REFRESH_INTERVAL = 10      # seconds
MIN_THRESHOLD = 0
MAX_THRESHOLD = 99
THRESHOLD_GAP = 5              # auto-adjust gap between warning and critical
MAX_MENU_BAR_SENSORS = 3
SENSOR_HISTORY_SIZE = 20       # samples kept per metric for sparklines

# Delay before re-reading state after a toggle; the server applies service
# calls asynchronously and gives no completion signal.
TOGGLE_SETTLE_DELAY = 0.5      # seconds

# Well-known entities
CORE_UPDATE_ENTITY_ID = "update.home_assistant_core_update"

# REST endpoints
API_CONFIG_PATH = "/api/config"
API_STATES_PATH = "/api/states"
API_SERVICE_PATH = "/api/services/{domain}/{service}"

# Notification texts
HEALTH_ALERT_TITLE = "HomeOtter Health Alert"
UPDATE_ALERT_TITLE = "Home Assistant Update Available"
HEALTH_DETAILS_FALLBACK = "System threshold exceeded"

# Environment variables used by the runner and the live tests
ENV_URL = "HOMEOTTER_URL"
ENV_TOKEN = "HOMEOTTER_TOKEN"
