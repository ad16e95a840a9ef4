from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

import pytest

from gads_audience.sink_google_ads import GoogleAdsUserListSink
from gads_audience.transform import Fragment

JOB = "customers/1234567890/offlineUserDataJobs/42"


def _client() -> MagicMock:
    client = MagicMock()
    client.get_type.side_effect = lambda name: MagicMock(name=name)
    service = client.get_service.return_value
    service.create_offline_user_data_job.return_value.resource_name = JOB
    service.add_offline_user_data_job_operations.return_value.partial_failure_error.message = ""
    return client


def _identifiers(request) -> list:
    return [
        operation.create.user_identifiers.append.call_args[0][0]
        for operation in request.operations
    ]


def test_sink_uploads_fragments_as_user_identifiers() -> None:
    client = _client()
    service = client.get_service.return_value
    sink = GoogleAdsUserListSink(client, customer_id="1234567890", user_list_id="55")
    batch = [
        Fragment("hashed_email", "abc"),
        Fragment("address_info.postal_code", 90210),
        Fragment("hashed_phone_number", None),
    ]

    async def scenario():
        await sink.open()
        added = await sink.submit(batch)
        await sink.close()
        return added

    added = asyncio.run(scenario())

    assert added == 2
    assert sink.job_resource_name == JOB
    create_kwargs = service.create_offline_user_data_job.call_args.kwargs
    assert create_kwargs["customer_id"] == "1234567890"
    request = service.add_offline_user_data_job_operations.call_args.kwargs["request"]
    assert request.resource_name == JOB
    assert request.enable_partial_failure is True
    first, second = _identifiers(request)
    assert first.hashed_email == "abc"
    assert second.address_info.postal_code == "90210"
    service.run_offline_user_data_job.assert_called_once_with(resource_name=JOB)


def test_sink_skips_empty_batches() -> None:
    client = _client()
    service = client.get_service.return_value
    sink = GoogleAdsUserListSink(client, customer_id="1", user_list_id="2")

    async def scenario():
        await sink.open()
        return await sink.submit([])

    assert asyncio.run(scenario()) == 0
    service.add_offline_user_data_job_operations.assert_not_called()


def test_sink_requires_open_before_submit() -> None:
    sink = GoogleAdsUserListSink(_client(), customer_id="1", user_list_id="2")
    with pytest.raises(RuntimeError):
        asyncio.run(sink.submit([Fragment("hashed_email", "abc")]))


def test_close_without_open_does_not_run_job() -> None:
    client = _client()
    sink = GoogleAdsUserListSink(client, customer_id="1", user_list_id="2")
    asyncio.run(sink.close())
    client.get_service.return_value.run_offline_user_data_job.assert_not_called()
