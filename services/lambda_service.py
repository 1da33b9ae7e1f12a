"""
Lambda service for function and Function URL operations.
"""
import boto3
from typing import Any, Dict, List, Optional, TYPE_CHECKING
from botocore.exceptions import ClientError, WaiterError
from more_itertools import flatten
from logger_config import get_logger
from utils.exceptions import LambdaOperationError

if TYPE_CHECKING:
    from mypy_boto3_lambda import LambdaClient
else:
    LambdaClient = Any

logger = get_logger(__name__)

PUBLIC_URL_STATEMENT_ID = 'FunctionURLAllowPublicAccess'


def _error_code(error: ClientError) -> str:
    return error.response.get('Error', {}).get('Code', '')


class LambdaService:
    """Service for Lambda operations."""

    def __init__(self, session: Optional[boto3.Session] = None) -> None:
        """
        Initialize Lambda service.

        Args:
            session: Optional boto3 session carrying profile and region
        """
        self.session = session
        self._client: Optional[LambdaClient] = None

    @property
    def client(self) -> LambdaClient:
        """Lazy initialization of Lambda client."""
        if self._client is None:
            if self.session is not None:
                self._client = self.session.client('lambda')
            else:
                self._client = boto3.client('lambda')
        return self._client

    def get_function(self, function_name: str) -> Optional[Dict[str, Any]]:
        """
        Get a function's configuration and tags.

        Returns:
            The GetFunction response if the function exists, None otherwise

        Raises:
            LambdaOperationError: For any error other than "not found"
        """
        try:
            return self.client.get_function(FunctionName=function_name)
        except ClientError as e:
            if _error_code(e) == 'ResourceNotFoundException':
                return None
            raise LambdaOperationError(
                f'Failed to get function {function_name}: {str(e)}',
                function_name=function_name,
                operation='GetFunction'
            ) from e

    def function_exists(self, function_name: str) -> bool:
        return self.get_function(function_name) is not None

    def create_function(
        self,
        function_name: str,
        role_arn: str,
        zip_file: bytes,
        runtime: str,
        handler: str,
        timeout: int = 30,
        memory_size: int = 128,
        tags: Optional[Dict[str, str]] = None,
        description: str = ''
    ) -> Dict[str, Any]:
        """
        Create a function from a zip package.

        Returns:
            The new function's configuration

        Raises:
            LambdaOperationError: If the function cannot be created
        """
        kwargs = {
            'FunctionName': function_name,
            'Runtime': runtime,
            'Role': role_arn,
            'Handler': handler,
            'Code': {'ZipFile': zip_file},
            'Timeout': timeout,
            'MemorySize': memory_size,
            'Publish': False,
        }
        if description:
            kwargs['Description'] = description
        if tags:
            kwargs['Tags'] = tags

        try:
            configuration = self.client.create_function(**kwargs)
        except ClientError as e:
            raise LambdaOperationError(
                f'Failed to create function {function_name}: {str(e)}',
                function_name=function_name,
                operation='CreateFunction'
            ) from e
        logger.info(f'Created function {function_name}')
        return configuration

    def update_function_code(
        self,
        function_name: str,
        zip_file: bytes
    ) -> Dict[str, Any]:
        """Replace a function's code with a new zip package."""
        try:
            configuration = self.client.update_function_code(
                FunctionName=function_name, ZipFile=zip_file
            )
        except ClientError as e:
            raise LambdaOperationError(
                f'Failed to update code of function {function_name}: {str(e)}',
                function_name=function_name,
                operation='UpdateFunctionCode'
            ) from e
        logger.info(f'Updated code of function {function_name}')
        return configuration

    def _wait(self, waiter_name: str, function_name: str) -> None:
        try:
            self.client.get_waiter(waiter_name).wait(FunctionName=function_name)
        except WaiterError as e:
            raise LambdaOperationError(
                f'Function {function_name} did not settle ({waiter_name}): {str(e)}',
                function_name=function_name,
                operation=waiter_name
            ) from e

    def wait_until_active(self, function_name: str) -> None:
        """Block until a newly created function reaches State=Active."""
        self._wait('function_active_v2', function_name)

    def wait_until_updated(self, function_name: str) -> None:
        """Block until a code update reaches LastUpdateStatus=Successful."""
        self._wait('function_updated_v2', function_name)

    def get_function_url_config(
        self,
        function_name: str
    ) -> Optional[Dict[str, Any]]:
        """Get a function's URL configuration, or None if it has none."""
        try:
            return self.client.get_function_url_config(
                FunctionName=function_name
            )
        except ClientError as e:
            if _error_code(e) == 'ResourceNotFoundException':
                return None
            raise LambdaOperationError(
                f'Failed to get URL config of function {function_name}: {str(e)}',
                function_name=function_name,
                operation='GetFunctionUrlConfig'
            ) from e

    def create_function_url_config(
        self,
        function_name: str,
        auth_type: str = 'NONE'
    ) -> Dict[str, Any]:
        try:
            response = self.client.create_function_url_config(
                FunctionName=function_name, AuthType=auth_type
            )
        except ClientError as e:
            raise LambdaOperationError(
                f'Failed to create URL config of function {function_name}: {str(e)}',
                function_name=function_name,
                operation='CreateFunctionUrlConfig'
            ) from e
        logger.info(
            f'Created Function URL for {function_name}: {response["FunctionUrl"]}'
        )
        return response

    def add_public_url_permission(
        self,
        function_name: str,
        statement_id: str = PUBLIC_URL_STATEMENT_ID
    ) -> bool:
        """
        Allow unauthenticated invocation through the Function URL.

        Returns:
            True if the permission was added, False if it already existed
        """
        try:
            self.client.add_permission(
                FunctionName=function_name,
                StatementId=statement_id,
                Action='lambda:InvokeFunctionUrl',
                Principal='*',
                FunctionUrlAuthType='NONE'
            )
        except ClientError as e:
            if _error_code(e) == 'ResourceConflictException':
                logger.info(
                    f'Permission {statement_id} already present on {function_name}'
                )
                return False
            raise LambdaOperationError(
                f'Failed to add URL permission to function {function_name}: {str(e)}',
                function_name=function_name,
                operation='AddPermission'
            ) from e
        logger.info(f'Added public URL permission to {function_name}')
        return True

    def delete_function_url_config(self, function_name: str) -> None:
        try:
            self.client.delete_function_url_config(FunctionName=function_name)
        except ClientError as e:
            raise LambdaOperationError(
                f'Failed to delete URL config of function {function_name}: {str(e)}',
                function_name=function_name,
                operation='DeleteFunctionUrlConfig'
            ) from e
        logger.info(f'Deleted Function URL of {function_name}')

    def delete_function(self, function_name: str) -> None:
        try:
            self.client.delete_function(FunctionName=function_name)
        except ClientError as e:
            raise LambdaOperationError(
                f'Failed to delete function {function_name}: {str(e)}',
                function_name=function_name,
                operation='DeleteFunction'
            ) from e
        logger.info(f'Deleted function {function_name}')

    def list_functions(self) -> List[Dict[str, Any]]:
        """List every function in the region."""
        try:
            paginator = self.client.get_paginator('list_functions')
            return list(flatten(
                page.get('Functions', []) for page in paginator.paginate()
            ))
        except ClientError as e:
            raise LambdaOperationError(
                f'Failed to list functions: {str(e)}',
                operation='ListFunctions'
            ) from e

    def list_tags(self, function_arn: str) -> Dict[str, str]:
        try:
            return self.client.list_tags(Resource=function_arn).get('Tags', {})
        except ClientError as e:
            raise LambdaOperationError(
                f'Failed to list tags of {function_arn}: {str(e)}',
                function_name=function_arn,
                operation='ListTags'
            ) from e

    def list_tagged_functions(
        self,
        tag_key: str,
        tag_value: str
    ) -> List[Dict[str, Any]]:
        """
        List functions carrying a tag.

        ListFunctions does not return tags, so each function's tags are
        fetched separately.
        """
        return [
            function for function in self.list_functions()
            if self.list_tags(function['FunctionArn']).get(tag_key) == tag_value
        ]
