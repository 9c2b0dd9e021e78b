"""
CoordinatorClient - Fetches pending work and reports job status.
"""

import logging
from typing import List, Optional, Union

import urllib3

from .api_channel import ApiChannel, decode_json, is_success
from .errors import CoordinatorUnavailable
from .work_item import JobOutcome, WorkItem

FIND_WORK_PATH = '/coordinator/v1/find-file-work'
MARK_FILE_PATH = '/coordinator/v1/mark-file'

# Statuses accepted by the coordinator's mark-file endpoint.
WIRE_STATUSES = ('pending', 'finished', 'invalid-file')


class CoordinatorClient:
    """Client for the central coordinator."""

    def __init__(self, channel: ApiChannel, logger: Optional[logging.Logger] = None):
        self.channel = channel
        self.logger = logger or logging.getLogger(__name__)

    def fetch_work(self) -> List[WorkItem]:
        """
        Query the coordinator for currently assignable work.

        Returns:
            Work items in the order the coordinator sent them

        Raises:
            CoordinatorUnavailable: On transport error, non-2xx status or a
                malformed payload
        """
        try:
            response = self.channel.get(FIND_WORK_PATH)
        except urllib3.exceptions.HTTPError as e:
            raise CoordinatorUnavailable(f"get file list failed: {e}") from e

        if not is_success(response):
            raise CoordinatorUnavailable(
                f"get file list failed, status: {response.status}",
                status=response.status,
            )

        try:
            payload = decode_json(response)
        except ValueError as e:
            raise CoordinatorUnavailable(f"get file list failed: invalid JSON ({e})") from e

        if not isinstance(payload, dict) or not isinstance(payload.get('data'), list):
            raise CoordinatorUnavailable("get file list failed: payload has no data list")

        try:
            items = [WorkItem.from_dict(entry) for entry in payload['data']]
        except (ValueError, TypeError, KeyError) as e:
            raise CoordinatorUnavailable(f"get file list failed: malformed work item ({e})") from e

        self.logger.info(f"Got {len(items)} work item(s)")
        return items

    def report_status(
        self,
        work_item_id: str,
        outcome: Union[JobOutcome, str]
    ) -> bool:
        """
        Tell the coordinator a file reached a terminal state.

        Fire-and-forget: a failed report is logged and never raised.

        Returns:
            True if the coordinator accepted the report
        """
        status = outcome.value if isinstance(outcome, JobOutcome) else outcome
        if status not in WIRE_STATUSES:
            self.logger.warning(
                f"Not reporting status {status!r} for {work_item_id}: "
                f"coordinator accepts only {', '.join(WIRE_STATUSES)}"
            )
            return False

        try:
            response = self.channel.post_json(
                MARK_FILE_PATH,
                {'fileId': work_item_id, 'status': status},
            )
        except urllib3.exceptions.HTTPError as e:
            self.logger.error(f"Failed to report {status} for {work_item_id} to coordinator: {e}")
            return False

        if not is_success(response):
            self.logger.error(
                f"Failed to report {status} for {work_item_id} to coordinator, "
                f"status: {response.status}"
            )
            return False

        self.logger.debug(f"Reported {status} for {work_item_id}")
        return True
