from fieldsales.appsettings.resolver import SettingsResolver, resolve_settings, settings_to_rows
from fieldsales.appsettings.schemas import DEFAULT_SETTINGS, AppSettings, SettingRow

__all__ = [
    "AppSettings",
    "DEFAULT_SETTINGS",
    "SettingRow",
    "SettingsResolver",
    "resolve_settings",
    "settings_to_rows",
]
