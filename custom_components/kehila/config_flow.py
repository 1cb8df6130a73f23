import voluptuous as vol
from homeassistant import config_entries
from homeassistant.core import callback
from homeassistant.helpers.selector import selector

from .const import (
    CONF_ADMIN_EMAIL,
    CONF_ADMIN_NAME,
    CONF_CURRENCY,
    CONF_IS_IN_ISRAEL,
    CONF_SYNAGOGUE_HEBREW_NAME,
    CONF_SYNAGOGUE_NAME,
    CONF_UPCOMING_LOOKAHEAD_DAYS,
    CURRENCIES,
    DEFAULT_CURRENCY,
    DEFAULT_IS_IN_ISRAEL,
    DEFAULT_UPCOMING_LOOKAHEAD_DAYS,
    DOMAIN,
)

_LOOKAHEAD_SELECTOR = selector({
    "number": {
        "min": 1,
        "max": 60,
        "step": 1,
        "mode": "slider",
        "unit_of_measurement": "days",
    }
})


class KehilaConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    """Handle a config flow for Kehila."""
    VERSION = 1

    async def async_step_user(self, user_input=None):
        """Synagogue, first administrator and calendar settings."""
        errors = {}

        if user_input is not None:
            name = (user_input.get(CONF_SYNAGOGUE_NAME) or "").strip()
            email = (user_input.get(CONF_ADMIN_EMAIL) or "").strip()
            if not name:
                errors[CONF_SYNAGOGUE_NAME] = "name_required"
            elif "@" not in email:
                errors[CONF_ADMIN_EMAIL] = "invalid_email"
            else:
                await self.async_set_unique_id(name.lower())
                self._abort_if_unique_id_configured()
                return self.async_create_entry(title=name, data=user_input)

        current = user_input or {}
        schema = vol.Schema(
            {
                vol.Required(CONF_SYNAGOGUE_NAME, default=current.get(CONF_SYNAGOGUE_NAME, "")): str,
                vol.Optional(
                    CONF_SYNAGOGUE_HEBREW_NAME,
                    default=current.get(CONF_SYNAGOGUE_HEBREW_NAME, ""),
                ): str,
                vol.Required(CONF_ADMIN_NAME, default=current.get(CONF_ADMIN_NAME, "")): str,
                vol.Required(CONF_ADMIN_EMAIL, default=current.get(CONF_ADMIN_EMAIL, "")): str,
                vol.Optional(
                    CONF_IS_IN_ISRAEL,
                    default=current.get(CONF_IS_IN_ISRAEL, DEFAULT_IS_IN_ISRAEL),
                ): bool,
                vol.Optional(
                    CONF_CURRENCY,
                    default=current.get(CONF_CURRENCY, DEFAULT_CURRENCY),
                ): selector({
                    "select": {
                        "options": [{"value": c, "label": c} for c in CURRENCIES]
                    }
                }),
                vol.Optional(
                    CONF_UPCOMING_LOOKAHEAD_DAYS,
                    default=current.get(CONF_UPCOMING_LOOKAHEAD_DAYS, DEFAULT_UPCOMING_LOOKAHEAD_DAYS),
                ): _LOOKAHEAD_SELECTOR,
            }
        )
        return self.async_show_form(step_id="user", data_schema=schema, errors=errors)

    @staticmethod
    @callback
    def async_get_options_flow(config_entry):
        return OptionsFlowHandler(config_entry)


class OptionsFlowHandler(config_entries.OptionsFlow):
    """Calendar options; saving them reloads the entry."""

    def __init__(self, config_entry):
        self._config_entry = config_entry

    async def async_step_init(self, user_input=None):
        data = self._config_entry.data or {}
        opts = self._config_entry.options or {}

        def get(k, default):
            return opts.get(k, data.get(k, default))

        if user_input is None:
            schema = vol.Schema(
                {
                    vol.Optional(
                        CONF_IS_IN_ISRAEL,
                        default=get(CONF_IS_IN_ISRAEL, DEFAULT_IS_IN_ISRAEL),
                    ): bool,
                    vol.Optional(
                        CONF_UPCOMING_LOOKAHEAD_DAYS,
                        default=get(CONF_UPCOMING_LOOKAHEAD_DAYS, DEFAULT_UPCOMING_LOOKAHEAD_DAYS),
                    ): _LOOKAHEAD_SELECTOR,
                }
            )
            return self.async_show_form(step_id="init", data_schema=schema)

        new_opts = {**self._config_entry.options, **user_input}
        return self.async_create_entry(title="", data=new_opts)
