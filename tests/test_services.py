"""
Unit tests for service layer.

This module provides tests for the STS, IAM, Lambda, Logs and Function URL services.
"""
import datetime
import pytest
import requests
from unittest.mock import Mock, patch
from botocore.exceptions import ClientError, NoCredentialsError, WaiterError
from services.iam_service import IAMService
from services.lambda_service import LambdaService, PUBLIC_URL_STATEMENT_ID
from services.logs_service import LogsService
from services.sts_service import STSService
from services.function_url_service import FunctionURLService
from utils.exceptions import (
    AWSCredentialsError,
    FunctionURLCheckError,
    IAMOperationError,
    LambdaOperationError,
    LogsOperationError,
)


def client_error(code, operation='Operation'):
    return ClientError({'Error': {'Code': code, 'Message': code}}, operation)


def paginator_of(*pages):
    paginator = Mock()
    paginator.paginate.return_value = list(pages)
    return paginator


class TestSTSService:
    """Tests for STSService."""

    def test_init(self):
        service = STSService()
        assert service.session is None
        assert service._client is None

    @patch('services.sts_service.boto3')
    def test_client_lazy_init(self, mock_boto3):
        mock_client = Mock()
        mock_boto3.client.return_value = mock_client

        service = STSService()
        assert service.client == mock_client
        mock_boto3.client.assert_called_once_with('sts')

    def test_client_from_session(self):
        session = Mock()
        service = STSService(session)
        assert service.client == session.client.return_value
        session.client.assert_called_once_with('sts')

    def test_account_id_cached(self):
        service = STSService()
        service._client = Mock()
        service._client.get_caller_identity.return_value = {
            'Account': '123456789012',
            'Arn': 'arn:aws:iam::123456789012:user/facilitator',
            'UserId': 'AIDEXAMPLE',
        }

        assert service.account_id == '123456789012'
        assert service.account_id == '123456789012'
        service._client.get_caller_identity.assert_called_once()

    def test_no_credentials(self):
        service = STSService()
        service._client = Mock()
        service._client.get_caller_identity.side_effect = NoCredentialsError()

        with pytest.raises(AWSCredentialsError, match="No AWS credentials"):
            service.get_caller_identity()

    def test_rejected_credentials(self):
        service = STSService()
        service._client = Mock()
        service._client.get_caller_identity.side_effect = client_error(
            'InvalidClientTokenId', 'GetCallerIdentity'
        )

        with pytest.raises(AWSCredentialsError, match="InvalidClientTokenId"):
            service.get_caller_identity()


class TestIAMService:
    """Tests for IAMService."""

    @patch('services.iam_service.boto3')
    def test_client_lazy_init(self, mock_boto3):
        mock_client = Mock()
        mock_boto3.client.return_value = mock_client

        service = IAMService()
        assert service.client == mock_client
        mock_boto3.client.assert_called_once_with('iam')

    def test_get_role_not_found(self):
        service = IAMService()
        service._client = Mock()
        service._client.get_role.side_effect = client_error('NoSuchEntity', 'GetRole')

        assert service.get_role('missing') is None
        assert service.role_exists('missing') is False

    def test_get_role_other_error(self):
        service = IAMService()
        service._client = Mock()
        service._client.get_role.side_effect = client_error('AccessDenied', 'GetRole')

        with pytest.raises(IAMOperationError) as exc_info:
            service.get_role('GitHubActions-Lambda-Workshop')
        assert exc_info.value.operation == 'GetRole'
        assert exc_info.value.resource == 'GitHubActions-Lambda-Workshop'

    def test_get_oidc_provider_not_found(self):
        service = IAMService()
        service._client = Mock()
        service._client.get_open_id_connect_provider.side_effect = client_error(
            'NoSuchEntity'
        )

        assert service.get_oidc_provider('arn:aws:iam::1:oidc-provider/x') is None

    def test_create_role_serializes_policy(self):
        service = IAMService()
        service._client = Mock()
        service._client.create_role.return_value = {'Role': {'RoleName': 'r'}}

        service.create_role(
            'r', {'Version': '2012-10-17', 'Statement': []}, 'desc',
            tags=[{'Key': 'Workshop', 'Value': 'GitHubActions'}],
            max_session_duration=3600,
        )

        kwargs = service._client.create_role.call_args.kwargs
        assert kwargs['AssumeRolePolicyDocument'] == '{"Version": "2012-10-17", "Statement": []}'
        assert kwargs['MaxSessionDuration'] == 3600
        assert kwargs['Tags'] == [{'Key': 'Workshop', 'Value': 'GitHubActions'}]

    def test_delete_policy_removes_non_default_versions(self):
        service = IAMService()
        service._client = Mock()
        service._client.list_policy_versions.return_value = {'Versions': [
            {'VersionId': 'v2', 'IsDefaultVersion': True},
            {'VersionId': 'v1', 'IsDefaultVersion': False},
        ]}

        service.delete_policy('arn:aws:iam::1:policy/LambdaWorkshop')

        service._client.delete_policy_version.assert_called_once_with(
            PolicyArn='arn:aws:iam::1:policy/LambdaWorkshop', VersionId='v1'
        )
        service._client.delete_policy.assert_called_once_with(
            PolicyArn='arn:aws:iam::1:policy/LambdaWorkshop'
        )

    def test_delete_role_completely_order(self):
        service = IAMService()
        service._client = Mock()
        service._client.get_paginator.side_effect = lambda name: {
            'list_attached_role_policies': paginator_of(
                {'AttachedPolicies': [{'PolicyArn': 'arn:managed'}]}
            ),
            'list_role_policies': paginator_of({'PolicyNames': ['inline']}),
        }[name]

        calls = []
        service._client.detach_role_policy.side_effect = lambda **kw: calls.append('detach')
        service._client.delete_role_policy.side_effect = lambda **kw: calls.append('delete_inline')
        service._client.delete_role.side_effect = lambda **kw: calls.append('delete_role')

        service.delete_role_completely('alice-workshop-lambda-role')

        assert calls == ['detach', 'delete_inline', 'delete_role']


class TestLambdaService:
    """Tests for LambdaService."""

    @patch('services.lambda_service.boto3')
    def test_client_lazy_init(self, mock_boto3):
        mock_client = Mock()
        mock_boto3.client.return_value = mock_client

        service = LambdaService()
        assert service.client == mock_client
        mock_boto3.client.assert_called_once_with('lambda')

    def test_get_function_not_found(self):
        service = LambdaService()
        service._client = Mock()
        service._client.get_function.side_effect = client_error(
            'ResourceNotFoundException', 'GetFunction'
        )

        assert service.get_function('missing') is None
        assert service.function_exists('missing') is False

    def test_get_function_url_config_not_found(self):
        service = LambdaService()
        service._client = Mock()
        service._client.get_function_url_config.side_effect = client_error(
            'ResourceNotFoundException'
        )

        assert service.get_function_url_config('fn') is None

    def test_create_function_error(self):
        service = LambdaService()
        service._client = Mock()
        service._client.create_function.side_effect = client_error(
            'InvalidParameterValueException', 'CreateFunction'
        )

        with pytest.raises(LambdaOperationError) as exc_info:
            service.create_function('fn', 'arn:role', b'zip', 'python3.12', 'handler.handler')
        assert exc_info.value.function_name == 'fn'
        assert exc_info.value.operation == 'CreateFunction'

    def test_add_public_url_permission(self):
        service = LambdaService()
        service._client = Mock()

        assert service.add_public_url_permission('fn') is True
        service._client.add_permission.assert_called_once_with(
            FunctionName='fn',
            StatementId=PUBLIC_URL_STATEMENT_ID,
            Action='lambda:InvokeFunctionUrl',
            Principal='*',
            FunctionUrlAuthType='NONE'
        )

    def test_add_public_url_permission_already_present(self):
        service = LambdaService()
        service._client = Mock()
        service._client.add_permission.side_effect = client_error(
            'ResourceConflictException'
        )

        assert service.add_public_url_permission('fn') is False

    def test_wait_until_updated_failure(self):
        service = LambdaService()
        service._client = Mock()
        service._client.get_waiter.return_value.wait.side_effect = WaiterError(
            'FunctionUpdatedV2', 'Waiter encountered a terminal failure state', {}
        )

        with pytest.raises(LambdaOperationError, match="did not settle"):
            service.wait_until_updated('fn')
        service._client.get_waiter.assert_called_once_with('function_updated_v2')

    def test_list_tagged_functions(self):
        service = LambdaService()
        service._client = Mock()
        service._client.get_paginator.return_value = paginator_of(
            {'Functions': [{'FunctionName': 'a', 'FunctionArn': 'arn:a'}]},
            {'Functions': [{'FunctionName': 'b', 'FunctionArn': 'arn:b'}]},
        )
        service._client.list_tags.side_effect = lambda Resource: {
            'arn:a': {'Tags': {'Workshop': 'GitHubActions'}},
            'arn:b': {'Tags': {}},
        }[Resource]

        functions = service.list_tagged_functions('Workshop', 'GitHubActions')

        assert [f['FunctionName'] for f in functions] == ['a']


class TestLogsService:
    """Tests for LogsService."""

    @patch('services.logs_service.boto3')
    def test_client_lazy_init(self, mock_boto3):
        mock_client = Mock()
        mock_boto3.client.return_value = mock_client

        service = LogsService()
        assert service.client == mock_client
        mock_boto3.client.assert_called_once_with('logs')

    def test_delete_log_group_error(self):
        service = LogsService()
        service._client = Mock()
        service._client.delete_log_group.side_effect = client_error(
            'OperationAbortedException'
        )

        with pytest.raises(LogsOperationError) as exc_info:
            service.delete_log_group('/aws/lambda/alice-workshop-lambda')
        assert exc_info.value.log_group == '/aws/lambda/alice-workshop-lambda'


class TestFunctionURLService:
    """Tests for FunctionURLService."""

    URL = 'https://abc123.lambda-url.eu-west-1.on.aws/'

    def test_init_default_headers(self):
        service = FunctionURLService(self.URL)
        assert service.url == self.URL
        assert service.headers == FunctionURLService.DEFAULT_HEADERS

    @patch('services.function_url_service.requests.get')
    def test_invoke_success(self, mock_get):
        mock_response = Mock()
        mock_response.status_code = 200
        mock_response.json.return_value = {'event': {}, 'context': {}}
        mock_response.elapsed = datetime.timedelta(milliseconds=42)
        mock_get.return_value = mock_response

        result = FunctionURLService(self.URL).invoke()

        assert result.status_code == 200
        assert result.body == {'event': {}, 'context': {}}
        assert result.elapsed_ms == pytest.approx(42)
        mock_get.assert_called_once()

    @patch('services.function_url_service.requests.post')
    def test_invoke_with_payload_posts_json(self, mock_post):
        mock_response = Mock()
        mock_response.status_code = 200
        mock_response.json.return_value = {'event': {'hello': 'world'}}
        mock_response.elapsed = datetime.timedelta(milliseconds=5)
        mock_post.return_value = mock_response

        FunctionURLService(self.URL).invoke({'hello': 'world'})

        assert mock_post.call_args.kwargs['json'] == {'hello': 'world'}

    @patch('services.function_url_service.requests.get')
    def test_invoke_non_200(self, mock_get):
        mock_response = Mock()
        mock_response.status_code = 502
        mock_response.text = 'Bad Gateway'
        mock_get.return_value = mock_response

        with pytest.raises(FunctionURLCheckError) as exc_info:
            FunctionURLService(self.URL).invoke()
        assert exc_info.value.status_code == 502

    @patch('services.function_url_service.requests.get')
    def test_invoke_connection_error(self, mock_get):
        mock_get.side_effect = requests.RequestException("Connection error")

        with pytest.raises(FunctionURLCheckError, match="Connection error"):
            FunctionURLService(self.URL).invoke()
