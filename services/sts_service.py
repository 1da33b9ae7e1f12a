"""
STS service for verifying the caller's AWS credentials.
"""
import boto3
from typing import Dict, Optional
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError
from logger_config import get_logger
from utils.exceptions import AWSCredentialsError

logger = get_logger(__name__)


class STSService:
    """Service for STS operations."""

    def __init__(self, session: Optional[boto3.Session] = None) -> None:
        self.session = session
        self._client = None
        self._identity: Optional[Dict[str, str]] = None

    @property
    def client(self):
        """Lazy initialization of STS client."""
        if self._client is None:
            if self.session is not None:
                self._client = self.session.client('sts')
            else:
                self._client = boto3.client('sts')
        return self._client

    def get_caller_identity(self) -> Dict[str, str]:
        """
        Get the identity of the current credentials.

        Returns:
            Dictionary containing Account, Arn and UserId

        Raises:
            AWSCredentialsError: If no credentials are configured or STS rejects them
        """
        if self._identity is not None:
            return self._identity

        try:
            response = self.client.get_caller_identity()
        except NoCredentialsError as e:
            raise AWSCredentialsError(
                'No AWS credentials found. Configure a profile or '
                'environment credentials first.'
            ) from e
        except (ClientError, BotoCoreError) as e:
            raise AWSCredentialsError(
                f'Failed to verify AWS credentials: {str(e)}'
            ) from e

        self._identity = {
            'Account': response['Account'],
            'Arn': response['Arn'],
            'UserId': response['UserId'],
        }
        logger.info(
            f'Authenticated as {self._identity["Arn"]} '
            f'(account {self._identity["Account"]})'
        )
        return self._identity

    @property
    def account_id(self) -> str:
        """AWS account id of the current credentials."""
        return self.get_caller_identity()['Account']
