from django.conf import settings
from django.core.signals import setting_changed
from django.dispatch import receiver

_originals = {}

# -- request parsing policies

# Whether a present, but unusable BBOX parameter (wrong shape, not numeric, empty extent)
# should be reported as an error. By default, it's ignored so the query runs without
# a spatial filter, as the bbox is only a hint on top of the selector.
FEATURESERVER_STRICT_BBOX = getattr(settings, "FEATURESERVER_STRICT_BBOX", False)

# Whether non-numeric LIMIT / START parameters are reported as an error.
# When disabled, these parameters fall back to their defaults instead.
FEATURESERVER_STRICT_NUMERIC_PARAMS = getattr(
    settings, "FEATURESERVER_STRICT_NUMERIC_PARAMS", True
)


@receiver(setting_changed)
def _on_settings_change(setting, value, enter, **kwargs):
    if not setting.startswith("FEATURESERVER_"):
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
