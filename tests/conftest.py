"""
Shared fixtures for the workshop test suite.
"""
import os
import pytest

WORKSHOP_ENV_VARS = (
    "AWS_PROFILE",
    "FUNCTION_NAME",
    "LAMBDA_EXECUTION_ROLE_ARN",
    "GITHUB_REPOSITORY",
    "GITHUB_REF_NAME",
    "GITHUB_OUTPUT",
    "LOG_LEVEL",
    "LAMBDA_TIMEOUT",
    "LAMBDA_MEMORY_SIZE",
)


@pytest.fixture(autouse=True)
def aws_credentials(monkeypatch):
    """Fake credentials so no test can reach a real AWS account."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "eu-west-1")
    monkeypatch.setenv("AWS_REGION", "eu-west-1")
    for name in WORKSHOP_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def reset_config():
    """Drop the cached config so each test reads its own environment."""
    import config
    config._config = None
    yield
    config._config = None


@pytest.fixture
def mock_context():
    """Mock Lambda context."""
    class MockContext:
        def __init__(self):
            self.function_name = 'alice-workshop-lambda'
            self.function_version = '$LATEST'
            self.memory_limit_in_mb = 128
            self.invoked_function_arn = (
                'arn:aws:lambda:eu-west-1:123456789012:function:alice-workshop-lambda'
            )
            self.aws_request_id = 'test-request-id'
            self.log_group_name = '/aws/lambda/alice-workshop-lambda'
            self.log_stream_name = '2024/01/01/[$LATEST]abcdef'

    return MockContext()


@pytest.fixture
def deploy_env(monkeypatch):
    """Environment the deploy workflow provides."""
    monkeypatch.setenv("FUNCTION_NAME", "alice-workshop-lambda")
    monkeypatch.setenv(
        "LAMBDA_EXECUTION_ROLE_ARN",
        "arn:aws:iam::123456789012:role/Lambda-Execution-Role-Workshop",
    )
    return os.environ
