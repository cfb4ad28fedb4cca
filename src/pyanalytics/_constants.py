"""Internal constants shared across the library."""

PROTOCOL_VERSION = "1"

ENDPOINT_SECURE_DEBUG = "https://ssl.google-analytics.com/debug/collect"
ENDPOINT_INSECURE_DEBUG = "http://www.google-analytics.com/debug/collect"
ENDPOINT_SECURE = "https://ssl.google-analytics.com/collect"
ENDPOINT_INSECURE = "http://www.google-analytics.com/collect"

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

# ------------------------------------------------------------------
# Hit type discriminators  (``t`` parameter)
# ------------------------------------------------------------------

HIT_TYPE_SCREENVIEW = "screenview"
HIT_TYPE_EVENT = "event"
HIT_TYPE_EXCEPTION = "exception"
HIT_TYPE_TIMING = "timing"

# ------------------------------------------------------------------
# Preference store keys
# ------------------------------------------------------------------

PREFERENCES_GROUP = "GoogleAnalytics"
KEY_APP_OPT_OUT = "AppOptOut"
KEY_ANONYMOUS_CLIENT_ID = "AnonymousClientId"

#: Number of digits in the ``z`` cache buster.
CACHE_BUSTER_DIGITS = 9
