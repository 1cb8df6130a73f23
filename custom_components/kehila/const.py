DOMAIN = "kehila"

CONF_SYNAGOGUE_NAME = "synagogue_name"
CONF_SYNAGOGUE_HEBREW_NAME = "synagogue_hebrew_name"
CONF_ADMIN_NAME = "admin_name"
CONF_ADMIN_EMAIL = "admin_email"
CONF_IS_IN_ISRAEL = "is_in_israel"
CONF_CURRENCY = "currency"
CONF_UPCOMING_LOOKAHEAD_DAYS = "upcoming_lookahead_days"

DEFAULT_IS_IN_ISRAEL = True
DEFAULT_CURRENCY = "ILS"
DEFAULT_UPCOMING_LOOKAHEAD_DAYS = 14

CURRENCIES = ["ILS", "USD", "EUR", "GBP"]

# Sent after every service call that changes stored data
SIGNAL_DATA_UPDATED = f"{DOMAIN}_data_updated"
