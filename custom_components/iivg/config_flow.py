# File: config_flow.py
"""Config flow for the IIVG integration.

The user step collects the student's display name, the catalog directory and
the optional remote store. The options flow tunes the wave floor, the series
unlock rating and the remote store.
"""

from __future__ import annotations

from typing import Any

import voluptuous as vol
from homeassistant import config_entries
from homeassistant.core import callback
from homeassistant.helpers import config_validation as cv

from . import const


def _remote_schema(defaults: dict[str, Any]) -> dict[Any, Any]:
    return {
        vol.Optional(
            const.CONF_REMOTE_URL,
            description={"suggested_value": defaults.get(const.CONF_REMOTE_URL)},
        ): cv.string,
        vol.Optional(
            const.CONF_REMOTE_TOKEN,
            description={"suggested_value": defaults.get(const.CONF_REMOTE_TOKEN)},
        ): cv.string,
    }


class IIVGConfigFlow(config_entries.ConfigFlow, domain=const.DOMAIN):
    """Config Flow for IIVG."""

    VERSION = 1

    async def async_step_user(self, user_input: dict[str, Any] | None = None):
        """Collect the display name, catalog path and remote store."""
        if self._async_current_entries():
            return self.async_abort(reason=const.ERROR_SINGLE_INSTANCE)

        if user_input is not None:
            data = {
                key: value.strip() if isinstance(value, str) else value
                for key, value in user_input.items()
            }
            if not data.get(const.CONF_CATALOG_PATH):
                data[const.CONF_CATALOG_PATH] = self.hass.config.path(
                    const.DEFAULT_CATALOG_DIR
                )
            title = data.get(const.CONF_DISPLAY_NAME) or const.IIVG_TITLE
            return self.async_create_entry(title=title, data=data)

        schema = vol.Schema(
            {
                vol.Optional(const.CONF_DISPLAY_NAME): cv.string,
                vol.Optional(
                    const.CONF_CATALOG_PATH,
                    default=self.hass.config.path(const.DEFAULT_CATALOG_DIR),
                ): cv.string,
                **_remote_schema({}),
            }
        )
        return self.async_show_form(
            step_id=const.CONFIG_FLOW_STEP_USER, data_schema=schema
        )

    @staticmethod
    @callback
    def async_get_options_flow(config_entry: config_entries.ConfigEntry):
        """Return the Options Flow."""
        return IIVGOptionsFlowHandler()


class IIVGOptionsFlowHandler(config_entries.OptionsFlow):
    """Options Flow for tuning progression rules and the remote store."""

    async def async_step_init(self, user_input: dict[str, Any] | None = None):
        """Show and store the options form."""
        if user_input is not None:
            options = {
                key: value.strip() if isinstance(value, str) else value
                for key, value in user_input.items()
            }
            # a cleared field is omitted by the form; store "" so it overrides setup data
            options.setdefault(const.CONF_REMOTE_URL, "")
            options.setdefault(const.CONF_REMOTE_TOKEN, "")
            const.LOGGER.debug("DEBUG: Options updated: %s", list(options))
            return self.async_create_entry(title="", data=options)

        options = self.config_entry.options
        defaults = {
            const.CONF_REMOTE_URL: options.get(
                const.CONF_REMOTE_URL,
                self.config_entry.data.get(const.CONF_REMOTE_URL),
            ),
            const.CONF_REMOTE_TOKEN: options.get(
                const.CONF_REMOTE_TOKEN,
                self.config_entry.data.get(const.CONF_REMOTE_TOKEN),
            ),
        }
        schema = vol.Schema(
            {
                vol.Required(
                    const.CONF_WAVE_FLOOR,
                    default=options.get(
                        const.CONF_WAVE_FLOOR, const.DEFAULT_WAVE_FLOOR
                    ),
                ): vol.All(
                    vol.Coerce(int),
                    vol.Range(min=const.WAVE_FLOOR_MIN, max=const.WAVE_FLOOR_MAX),
                ),
                vol.Required(
                    const.CONF_SERIES_UNLOCK_RATING,
                    default=options.get(
                        const.CONF_SERIES_UNLOCK_RATING,
                        const.DEFAULT_SERIES_UNLOCK_RATING,
                    ),
                ): vol.All(
                    vol.Coerce(int),
                    vol.Range(min=const.RATING_MIN, max=const.RATING_MAX),
                ),
                **_remote_schema(defaults),
            }
        )
        return self.async_show_form(
            step_id=const.OPTIONS_FLOW_STEP_INIT, data_schema=schema
        )
