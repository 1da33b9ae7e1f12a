"""
IAM service for the workshop's OIDC provider, roles and policies.
"""
import json
import boto3
from typing import Any, Dict, List, Optional, TYPE_CHECKING
from botocore.exceptions import ClientError
from more_itertools import flatten
from logger_config import get_logger
from utils.exceptions import IAMOperationError

if TYPE_CHECKING:
    from mypy_boto3_iam import IAMClient
else:
    IAMClient = Any

logger = get_logger(__name__)

NOT_FOUND_CODES = {'NoSuchEntity', 'NoSuchEntityException'}


def _error_code(error: ClientError) -> str:
    return error.response.get('Error', {}).get('Code', '')


class IAMService:
    """Service for IAM operations."""

    def __init__(self, session: Optional[boto3.Session] = None) -> None:
        """
        Initialize IAM service.

        Args:
            session: Optional boto3 session carrying profile and region
        """
        self.session = session
        self._client: Optional[IAMClient] = None

    @property
    def client(self) -> IAMClient:
        """Lazy initialization of IAM client."""
        if self._client is None:
            if self.session is not None:
                self._client = self.session.client('iam')
            else:
                self._client = boto3.client('iam')
        return self._client

    def _paginate(self, operation: str, result_key: str, **kwargs) -> List[Any]:
        paginator = self.client.get_paginator(operation)
        return list(flatten(
            page.get(result_key, []) for page in paginator.paginate(**kwargs)
        ))

    # OIDC providers

    def get_oidc_provider(self, provider_arn: str) -> Optional[Dict[str, Any]]:
        """
        Get an OpenID Connect provider.

        Returns:
            Provider description if it exists, None otherwise

        Raises:
            IAMOperationError: For any error other than "not found"
        """
        try:
            return self.client.get_open_id_connect_provider(
                OpenIDConnectProviderArn=provider_arn
            )
        except ClientError as e:
            if _error_code(e) in NOT_FOUND_CODES:
                return None
            raise IAMOperationError(
                f'Failed to get OIDC provider {provider_arn}: {str(e)}',
                resource=provider_arn,
                operation='GetOpenIDConnectProvider'
            ) from e

    def create_oidc_provider(
        self,
        url: str,
        client_ids: List[str],
        thumbprints: List[str],
        tags: Optional[List[Dict[str, str]]] = None
    ) -> str:
        """
        Create an OpenID Connect provider.

        Returns:
            ARN of the new provider
        """
        kwargs = {
            'Url': url,
            'ClientIDList': client_ids,
            'ThumbprintList': thumbprints,
        }
        if tags:
            kwargs['Tags'] = tags
        try:
            response = self.client.create_open_id_connect_provider(**kwargs)
        except ClientError as e:
            raise IAMOperationError(
                f'Failed to create OIDC provider for {url}: {str(e)}',
                resource=url,
                operation='CreateOpenIDConnectProvider'
            ) from e
        provider_arn = response['OpenIDConnectProviderArn']
        logger.info(f'Created OIDC provider {provider_arn}')
        return provider_arn

    def delete_oidc_provider(self, provider_arn: str) -> None:
        try:
            self.client.delete_open_id_connect_provider(
                OpenIDConnectProviderArn=provider_arn
            )
        except ClientError as e:
            raise IAMOperationError(
                f'Failed to delete OIDC provider {provider_arn}: {str(e)}',
                resource=provider_arn,
                operation='DeleteOpenIDConnectProvider'
            ) from e
        logger.info(f'Deleted OIDC provider {provider_arn}')

    # Roles

    def get_role(self, role_name: str) -> Optional[Dict[str, Any]]:
        """
        Get a role by name.

        Returns:
            Role dictionary if it exists, None otherwise

        Raises:
            IAMOperationError: For any error other than "not found"
        """
        try:
            return self.client.get_role(RoleName=role_name)['Role']
        except ClientError as e:
            if _error_code(e) in NOT_FOUND_CODES:
                return None
            raise IAMOperationError(
                f'Failed to get role {role_name}: {str(e)}',
                resource=role_name,
                operation='GetRole'
            ) from e

    def role_exists(self, role_name: str) -> bool:
        return self.get_role(role_name) is not None

    def create_role(
        self,
        role_name: str,
        trust_policy: Dict[str, Any],
        description: str,
        tags: Optional[List[Dict[str, str]]] = None,
        max_session_duration: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Create a role with the given trust policy.

        Args:
            role_name: Name of the role
            trust_policy: Assume-role policy document
            description: Role description
            tags: Optional list of {'Key': ..., 'Value': ...} tags
            max_session_duration: Optional maximum session duration in seconds

        Returns:
            The created role dictionary

        Raises:
            IAMOperationError: If the role cannot be created
        """
        kwargs = {
            'RoleName': role_name,
            'AssumeRolePolicyDocument': json.dumps(trust_policy),
            'Description': description,
        }
        if tags:
            kwargs['Tags'] = tags
        if max_session_duration:
            kwargs['MaxSessionDuration'] = max_session_duration

        try:
            role = self.client.create_role(**kwargs)['Role']
        except ClientError as e:
            raise IAMOperationError(
                f'Failed to create role {role_name}: {str(e)}',
                resource=role_name,
                operation='CreateRole'
            ) from e
        logger.info(f'Created role {role_name}')
        return role

    def delete_role(self, role_name: str) -> None:
        try:
            self.client.delete_role(RoleName=role_name)
        except ClientError as e:
            raise IAMOperationError(
                f'Failed to delete role {role_name}: {str(e)}',
                resource=role_name,
                operation='DeleteRole'
            ) from e
        logger.info(f'Deleted role {role_name}')

    def list_roles(self) -> List[Dict[str, Any]]:
        """List every role in the account."""
        try:
            return self._paginate('list_roles', 'Roles')
        except ClientError as e:
            raise IAMOperationError(
                f'Failed to list roles: {str(e)}',
                operation='ListRoles'
            ) from e

    # Inline policies

    def put_role_policy(
        self,
        role_name: str,
        policy_name: str,
        policy_document: Dict[str, Any]
    ) -> None:
        """Create or replace an inline policy on a role."""
        try:
            self.client.put_role_policy(
                RoleName=role_name,
                PolicyName=policy_name,
                PolicyDocument=json.dumps(policy_document)
            )
        except ClientError as e:
            raise IAMOperationError(
                f'Failed to put policy {policy_name} on role {role_name}: {str(e)}',
                resource=role_name,
                operation='PutRolePolicy'
            ) from e
        logger.info(f'Put inline policy {policy_name} on role {role_name}')

    def list_role_policy_names(self, role_name: str) -> List[str]:
        try:
            return self._paginate(
                'list_role_policies', 'PolicyNames', RoleName=role_name
            )
        except ClientError as e:
            raise IAMOperationError(
                f'Failed to list inline policies of role {role_name}: {str(e)}',
                resource=role_name,
                operation='ListRolePolicies'
            ) from e

    def delete_role_policy(self, role_name: str, policy_name: str) -> None:
        try:
            self.client.delete_role_policy(
                RoleName=role_name, PolicyName=policy_name
            )
        except ClientError as e:
            raise IAMOperationError(
                f'Failed to delete policy {policy_name} from role {role_name}: {str(e)}',
                resource=role_name,
                operation='DeleteRolePolicy'
            ) from e
        logger.info(f'Deleted inline policy {policy_name} from role {role_name}')

    # Managed policies

    def list_attached_policy_arns(self, role_name: str) -> List[str]:
        try:
            attached = self._paginate(
                'list_attached_role_policies', 'AttachedPolicies',
                RoleName=role_name
            )
        except ClientError as e:
            raise IAMOperationError(
                f'Failed to list attached policies of role {role_name}: {str(e)}',
                resource=role_name,
                operation='ListAttachedRolePolicies'
            ) from e
        return [policy['PolicyArn'] for policy in attached]

    def detach_role_policy(self, role_name: str, policy_arn: str) -> None:
        try:
            self.client.detach_role_policy(
                RoleName=role_name, PolicyArn=policy_arn
            )
        except ClientError as e:
            raise IAMOperationError(
                f'Failed to detach {policy_arn} from role {role_name}: {str(e)}',
                resource=role_name,
                operation='DetachRolePolicy'
            ) from e
        logger.info(f'Detached {policy_arn} from role {role_name}')

    def list_local_policies(self) -> List[Dict[str, Any]]:
        """List the customer managed policies of the account."""
        try:
            return self._paginate('list_policies', 'Policies', Scope='Local')
        except ClientError as e:
            raise IAMOperationError(
                f'Failed to list policies: {str(e)}',
                operation='ListPolicies'
            ) from e

    def list_policy_role_names(self, policy_arn: str) -> List[str]:
        """List the names of the roles a managed policy is attached to."""
        try:
            roles = self._paginate(
                'list_entities_for_policy', 'PolicyRoles',
                PolicyArn=policy_arn, EntityFilter='Role'
            )
        except ClientError as e:
            raise IAMOperationError(
                f'Failed to list entities for policy {policy_arn}: {str(e)}',
                resource=policy_arn,
                operation='ListEntitiesForPolicy'
            ) from e
        return [role['RoleName'] for role in roles]

    def delete_policy(self, policy_arn: str) -> None:
        """
        Delete a managed policy, removing its non-default versions first.

        IAM refuses to delete a policy that still has non-default versions.
        """
        try:
            versions = self.client.list_policy_versions(
                PolicyArn=policy_arn
            )['Versions']
            for version in versions:
                if not version['IsDefaultVersion']:
                    self.client.delete_policy_version(
                        PolicyArn=policy_arn, VersionId=version['VersionId']
                    )
            self.client.delete_policy(PolicyArn=policy_arn)
        except ClientError as e:
            raise IAMOperationError(
                f'Failed to delete policy {policy_arn}: {str(e)}',
                resource=policy_arn,
                operation='DeletePolicy'
            ) from e
        logger.info(f'Deleted policy {policy_arn}')

    def delete_role_completely(self, role_name: str) -> None:
        """Detach managed policies, delete inline policies, then delete the role."""
        for policy_arn in self.list_attached_policy_arns(role_name):
            self.detach_role_policy(role_name, policy_arn)
        for policy_name in self.list_role_policy_names(role_name):
            self.delete_role_policy(role_name, policy_name)
        self.delete_role(role_name)
