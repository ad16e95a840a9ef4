from __future__ import annotations

from unittest.mock import patch

import pytest

from gads_audience.config import AudienceConfig, GoogleAdsConfig
from gads_audience.google_ads_client import google_ads_settings, load_google_ads_client
from gads_audience.run_context import RunContext
from gads_audience.sink_factory import create_batch_sink
from gads_audience.sink_google_ads import GoogleAdsUserListSink
from gads_audience.sink_local import LocalFilesystemBatchSink

CREDENTIALS = {
    "GOOGLE_ADS_DEVELOPER_TOKEN": "dev-token",
    "GOOGLE_ADS_CLIENT_ID": "client-id",
    "GOOGLE_ADS_CLIENT_SECRET": "client-secret",
    "GOOGLE_ADS_REFRESH_TOKEN": "refresh-token",
}


def _google_ads(**overrides) -> GoogleAdsConfig:
    values = {"customer_id": "123-456-7890", "user_list_id": "55"}
    values.update(overrides)
    return GoogleAdsConfig(**values)


def test_settings_combine_env_credentials_and_config() -> None:
    settings = google_ads_settings(
        _google_ads(login_customer_id="999-888-7777"), environ=CREDENTIALS
    )

    assert settings == {
        "developer_token": "dev-token",
        "client_id": "client-id",
        "client_secret": "client-secret",
        "refresh_token": "refresh-token",
        "use_proto_plus": True,
        "login_customer_id": "9998887777",
    }


def test_settings_omit_login_customer_id_when_not_configured() -> None:
    settings = google_ads_settings(_google_ads(), environ=CREDENTIALS)
    assert "login_customer_id" not in settings


def test_settings_report_every_missing_credential() -> None:
    environ = dict(CREDENTIALS)
    del environ["GOOGLE_ADS_CLIENT_SECRET"]
    environ["GOOGLE_ADS_REFRESH_TOKEN"] = ""

    with pytest.raises(RuntimeError) as excinfo:
        google_ads_settings(_google_ads(), environ=environ)

    message = str(excinfo.value)
    assert "GOOGLE_ADS_CLIENT_SECRET" in message
    assert "GOOGLE_ADS_REFRESH_TOKEN" in message
    assert "GOOGLE_ADS_DEVELOPER_TOKEN" not in message


def test_load_client_uses_configured_api_version() -> None:
    with patch.dict("os.environ", CREDENTIALS), patch(
        "gads_audience.google_ads_client.GoogleAdsClient.load_from_dict"
    ) as load_from_dict:
        load_google_ads_client(_google_ads(api_version="v18"))

    assert load_from_dict.call_args.kwargs["version"] == "v18"
    assert load_from_dict.call_args[0][0]["developer_token"] == "dev-token"


def test_factory_builds_google_ads_sink() -> None:
    config = AudienceConfig(google_ads=_google_ads())
    with patch("gads_audience.sink_factory.load_google_ads_client") as load_client:
        sink = create_batch_sink(config, RunContext(run_id="r"))

    assert isinstance(sink, GoogleAdsUserListSink)
    assert sink.customer_id == "1234567890"
    load_client.assert_called_once_with(config.google_ads)


def test_factory_requires_google_ads_section_unless_dry_run(tmp_path) -> None:
    config = AudienceConfig()
    config.upload.local_sink_root = str(tmp_path)

    with pytest.raises(RuntimeError, match="--dry-run"):
        create_batch_sink(config, RunContext(run_id="r"))
    assert isinstance(
        create_batch_sink(config, RunContext(run_id="r"), dry_run=True),
        LocalFilesystemBatchSink,
    )
