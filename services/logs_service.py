"""
CloudWatch Logs service for the log groups Lambda creates.
"""
import boto3
from typing import List, Optional
from botocore.exceptions import ClientError
from more_itertools import flatten
from logger_config import get_logger
from utils.exceptions import LogsOperationError

logger = get_logger(__name__)


class LogsService:
    """Service for CloudWatch Logs operations."""

    def __init__(self, session: Optional[boto3.Session] = None) -> None:
        self.session = session
        self._client = None

    @property
    def client(self):
        """Lazy initialization of CloudWatch Logs client."""
        if self._client is None:
            if self.session is not None:
                self._client = self.session.client('logs')
            else:
                self._client = boto3.client('logs')
        return self._client

    def list_log_group_names(self, prefix: str) -> List[str]:
        """
        List log group names starting with a prefix.

        Args:
            prefix: Log group name prefix, e.g. '/aws/lambda/'

        Returns:
            Matching log group names
        """
        try:
            paginator = self.client.get_paginator('describe_log_groups')
            groups = flatten(
                page.get('logGroups', [])
                for page in paginator.paginate(logGroupNamePrefix=prefix)
            )
            return [group['logGroupName'] for group in groups]
        except ClientError as e:
            raise LogsOperationError(
                f'Failed to list log groups with prefix {prefix}: {str(e)}',
                log_group=prefix,
                operation='DescribeLogGroups'
            ) from e

    def delete_log_group(self, log_group_name: str) -> None:
        try:
            self.client.delete_log_group(logGroupName=log_group_name)
        except ClientError as e:
            raise LogsOperationError(
                f'Failed to delete log group {log_group_name}: {str(e)}',
                log_group=log_group_name,
                operation='DeleteLogGroup'
            ) from e
        logger.info(f'Deleted log group {log_group_name}')
