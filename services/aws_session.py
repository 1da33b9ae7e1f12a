"""
boto3 session construction for the workshop CLI.
"""
import boto3
from typing import Optional
from logger_config import get_logger

logger = get_logger(__name__)


def create_session(
    profile: Optional[str] = None,
    region: Optional[str] = None
) -> boto3.Session:
    """
    Create a boto3 session for the given named profile and region.

    Args:
        profile: Named profile from the shared AWS config, if any
        region: Region for every client created from the session

    Returns:
        A boto3 Session
    """
    session_kwargs = {}
    if profile:
        session_kwargs['profile_name'] = profile
    if region:
        session_kwargs['region_name'] = region

    logger.debug(
        f'Creating boto3 session (profile: {profile or "default"}, '
        f'region: {region or "default"})'
    )
    return boto3.Session(**session_kwargs)
