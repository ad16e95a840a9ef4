"""Builds the Google Ads client used by the Customer Match sink."""
from __future__ import annotations

import os
from typing import Dict, Mapping

from google.ads.googleads.client import GoogleAdsClient

from .config import GoogleAdsConfig

DEFAULT_API_VERSION = "v17"

# client setting -> environment variable suffix
CREDENTIAL_VARIABLES = {
    "developer_token": "DEVELOPER_TOKEN",
    "client_id": "CLIENT_ID",
    "client_secret": "CLIENT_SECRET",
    "refresh_token": "REFRESH_TOKEN",
}


def google_ads_settings(
    config: GoogleAdsConfig,
    environ: Mapping[str, str] | None = None,
    prefix: str = "GOOGLE_ADS",
) -> Dict[str, object]:
    """Combine OAuth credentials from the environment with the account in ``config``.

    Credentials stay out of the YAML file; the login (manager) customer id is
    taken from ``config`` so it is normalized like the other account ids.
    """
    environ = os.environ if environ is None else environ
    settings: Dict[str, object] = {
        setting: environ.get(f"{prefix}_{suffix}")
        for setting, suffix in CREDENTIAL_VARIABLES.items()
    }
    unset = [
        f"{prefix}_{CREDENTIAL_VARIABLES[setting]}"
        for setting, value in settings.items()
        if not value
    ]
    if unset:
        raise RuntimeError(f"Google Ads credentials not set: {', '.join(unset)}")
    settings["use_proto_plus"] = True
    if config.login_customer_id:
        settings["login_customer_id"] = config.login_customer_id
    return settings


def load_google_ads_client(config: GoogleAdsConfig) -> GoogleAdsClient:
    return GoogleAdsClient.load_from_dict(
        google_ads_settings(config),
        version=config.api_version or DEFAULT_API_VERSION,
    )


__all__ = ["google_ads_settings", "load_google_ads_client"]
