"""Customer Match sink backed by Google Ads offline user data jobs."""
from __future__ import annotations

import asyncio
import logging
from typing import Sequence

from google.ads.googleads.client import GoogleAdsClient

from .sink import BatchSink
from .transform import PATH_SEPARATOR, Fragment

logger = logging.getLogger(__name__)


class GoogleAdsUserListSink(BatchSink):
    """Uploads fragments as user identifiers into one Customer Match job.

    ``open()`` creates the offline user data job, each ``submit()`` adds one
    batch of operations to it and ``close()`` starts processing the job.
    Client calls are blocking, so they run in a worker thread.
    """

    def __init__(
        self,
        client: GoogleAdsClient,
        customer_id: str,
        user_list_id: str,
        enable_partial_failure: bool = True,
    ) -> None:
        self.client = client
        self.customer_id = customer_id
        self.user_list_id = user_list_id
        self.enable_partial_failure = enable_partial_failure
        self.job_resource_name: str | None = None
        self._service = client.get_service("OfflineUserDataJobService")

    @property
    def user_list_resource_name(self) -> str:
        return self.client.get_service("UserListService").user_list_path(
            self.customer_id, self.user_list_id
        )

    async def open(self) -> None:
        self.job_resource_name = await asyncio.to_thread(self._create_job)

    def submit(self, batch: Sequence[Fragment]):
        return asyncio.to_thread(self._add_operations, list(batch))

    async def close(self) -> None:
        if self.job_resource_name is None:
            return
        await asyncio.to_thread(self._run_job)

    def _create_job(self) -> str:
        job = self.client.get_type("OfflineUserDataJob")
        job.type_ = self.client.enums.OfflineUserDataJobTypeEnum.CUSTOMER_MATCH_USER_LIST
        job.customer_match_user_list_metadata.user_list = self.user_list_resource_name
        response = self._service.create_offline_user_data_job(
            customer_id=self.customer_id, job=job
        )
        logger.info(
            "Created offline user data job %s for user list %s",
            response.resource_name,
            self.user_list_id,
        )
        return response.resource_name

    def _add_operations(self, batch: list[Fragment]) -> int:
        if self.job_resource_name is None:
            raise RuntimeError("Offline user data job not created; call open() first.")
        operations = [op for op in (self._build_operation(f) for f in batch) if op is not None]
        if not operations:
            logger.info("Skipping batch with no uploadable identifiers")
            return 0
        request = self.client.get_type("AddOfflineUserDataJobOperationsRequest")
        request.resource_name = self.job_resource_name
        request.operations = operations
        request.enable_partial_failure = self.enable_partial_failure
        response = self._service.add_offline_user_data_job_operations(request=request)
        if response.partial_failure_error.message:
            logger.warning(
                "Partial failure while adding %s operations: %s",
                len(operations),
                response.partial_failure_error.message,
            )
        logger.info("Added %s operations to %s", len(operations), self.job_resource_name)
        return len(operations)

    def _build_operation(self, fragment: Fragment):
        if fragment.value is None:
            return None
        operation = self.client.get_type("OfflineUserDataJobOperation")
        identifier = self.client.get_type("UserIdentifier")
        parts = fragment.path.split(PATH_SEPARATOR)
        target = identifier
        for part in parts[:-1]:
            target = getattr(target, part)
        setattr(target, parts[-1], str(fragment.value))
        operation.create.user_identifiers.append(identifier)
        return operation

    def _run_job(self) -> None:
        self._service.run_offline_user_data_job(resource_name=self.job_resource_name)
        logger.info("Requested processing of offline user data job %s", self.job_resource_name)


__all__ = ["GoogleAdsUserListSink"]
