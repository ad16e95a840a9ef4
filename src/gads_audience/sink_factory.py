"""Factory for selecting the BatchSink backend."""
from __future__ import annotations

import logging
from pathlib import Path

from .config import AudienceConfig
from .google_ads_client import load_google_ads_client
from .run_context import RunContext
from .sink import BatchSink
from .sink_google_ads import GoogleAdsUserListSink
from .sink_local import LocalFilesystemBatchSink

logger = logging.getLogger(__name__)


def create_batch_sink(
    config: AudienceConfig, run_context: RunContext, dry_run: bool = False
) -> BatchSink:
    if dry_run:
        root = Path(config.upload.local_sink_root)
        logger.info("Dry run: writing batches under %s", root)
        return LocalFilesystemBatchSink(root, run_context.run_id)
    google_ads = config.require_google_ads()
    return GoogleAdsUserListSink(
        load_google_ads_client(google_ads),
        customer_id=google_ads.customer_id,
        user_list_id=google_ads.user_list_id,
    )


__all__ = ["create_batch_sink"]
