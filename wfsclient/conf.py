from django.conf import settings
from django.core.signals import setting_changed
from django.dispatch import receiver

_originals = {}

# -- version negotiation

# The preferred protocol version. This is tried first during negotiation,
# and used as fallback when no version could be negotiated with the server.
WFS_CLIENT_DEFAULT_VERSION = getattr(settings, "WFS_CLIENT_DEFAULT_VERSION", "2.0.2")

# Either "auto" to negotiate the version, or a fixed version like "1.1.0".
WFS_CLIENT_VERSION_STRATEGY = getattr(settings, "WFS_CLIENT_VERSION_STRATEGY", "auto")

# -- response parsing

# How to treat the axis ordering of GML coordinates: "preserve", "forceLonLat" or "forceLatLon".
# The swapping only considers EPSG:4326 reference systems (detected by the "4326" in the srsName).
WFS_CLIENT_AXIS_ORDER_STRATEGY = getattr(settings, "WFS_CLIENT_AXIS_ORDER_STRATEGY", "preserve")

# The output formats that give GeoJSON. The first one is requested by GetFeature,
# when the server rejects it, the request is repeated without an output format.
WFS_CLIENT_GEOJSON_OUTPUT_FORMATS = getattr(
    settings,
    "WFS_CLIENT_GEOJSON_OUTPUT_FORMATS",
    ["application/json", "application/geo+json", "json"],
)

# -- transport

# Timeout in seconds for each HTTP request (None means the transport default).
WFS_CLIENT_REQUEST_TIMEOUT = getattr(settings, "WFS_CLIENT_REQUEST_TIMEOUT", None)

# Headers that are sent with every request.
WFS_CLIENT_DEFAULT_HEADERS = getattr(settings, "WFS_CLIENT_DEFAULT_HEADERS", {})

# -- namespaces

# Project-wide XML namespace prefixes, e.g. {"topp": "http://www.openplans.org/topp"}.
# The client configuration can add or override entries.
WFS_CLIENT_NAMESPACES = getattr(settings, "WFS_CLIENT_NAMESPACES", {})


@receiver(setting_changed)
def _on_settings_change(setting, value, enter, **kwargs):
    if not setting.startswith("WFS_CLIENT_"):
        return

    conf_module = globals()
    if value is None and not enter:
        # override_settings().disable() returns what the django settings module had.
        # Revert to our defaults here instead.
        value = _originals.get(setting)
    else:
        # Track defaults of this file for reverting to them
        _originals.setdefault(setting, conf_module[setting])

    conf_module[setting] = value
