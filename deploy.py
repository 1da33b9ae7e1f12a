"""
Lambda deployment as run by the workshop's GitHub Actions workflow.

Creates the participant's function on the first push and updates its
code on later pushes, then makes sure it is reachable through a public
Function URL.
"""
import datetime
from dataclasses import dataclass
from typing import Optional
from dateutil.parser import parse
from config import Config
from lambda_package import code_sha256
from logger_config import get_logger
from policies import WORKSHOP_TAG_KEY, WORKSHOP_TAG_VALUE
from services.lambda_service import LambdaService
from utils.decorators import log_operation
from utils.exceptions import ValidationError

logger = get_logger(__name__)

WORKSHOP_BRANCH_SUFFIX = "-workshop"
FUNCTION_NAME_SUFFIX = "-lambda"
FUNCTION_DESCRIPTION = "GitHub Actions Lambda workshop function"

ACTION_CREATED = "created"
ACTION_UPDATED = "updated"
ACTION_UNCHANGED = "unchanged"


def function_name_for_branch(branch: str) -> str:
    """
    Derive a participant's function name from their workshop branch.

    'refs/heads/Alice-workshop' => 'Alice-workshop-lambda'

    Case is kept so the name matches the workflow's
    `${{ github.ref_name }}-lambda`.

    Raises:
        ValidationError: If the branch does not follow USERNAME-workshop
    """
    name = branch.strip()
    if name.startswith("refs/heads/"):
        name = name[len("refs/heads/"):]

    username = name[:-len(WORKSHOP_BRANCH_SUFFIX)]
    if not name.endswith(WORKSHOP_BRANCH_SUFFIX) or not username or "/" in name:
        raise ValidationError(
            f"Branch {branch!r} is not a workshop branch (USERNAME-workshop)",
            field="branch",
            value=branch,
        )
    return f"{name}{FUNCTION_NAME_SUFFIX}"


@dataclass
class DeploymentResult:
    """What a deployment did and where the function can be reached."""

    function_name: str
    function_arn: str
    action: str
    function_url: str
    code_sha256: str
    last_modified: Optional[datetime.datetime] = None


class LambdaDeployer:
    """Create-or-update deployment of the workshop function."""

    def __init__(
        self,
        config: Config,
        lambda_service: Optional[LambdaService] = None
    ) -> None:
        self.config = config
        self.lambdas = lambda_service or LambdaService()

    def deploy(self, package: bytes, force: bool = False) -> DeploymentResult:
        """
        Deploy a zip package to the configured function.

        Args:
            package: Zip archive bytes
            force: Upload even when the function already runs this exact code

        Raises:
            ValueError: If FUNCTION_NAME or LAMBDA_EXECUTION_ROLE_ARN is missing
            LambdaOperationError: If a Lambda call fails
        """
        self.config.require_deploy_settings()
        function_name = self.config.function_name
        package_sha = code_sha256(package)

        existing = self.lambdas.get_function(function_name)
        if existing is None:
            configuration = self.create(package)
            action = ACTION_CREATED
        elif existing["Configuration"].get("CodeSha256") == package_sha and not force:
            logger.info(f"Function {function_name} already runs this code, skipping update")
            configuration = existing["Configuration"]
            action = ACTION_UNCHANGED
        else:
            configuration = self.update(package)
            action = ACTION_UPDATED

        function_url = self.ensure_function_url(function_name)

        last_modified = configuration.get("LastModified")
        return DeploymentResult(
            function_name=function_name,
            function_arn=configuration["FunctionArn"],
            action=action,
            function_url=function_url,
            code_sha256=configuration.get("CodeSha256", package_sha),
            last_modified=parse(last_modified) if last_modified else None,
        )

    @log_operation("Creating Lambda function")
    def create(self, package: bytes) -> dict:
        configuration = self.lambdas.create_function(
            self.config.function_name,
            role_arn=self.config.lambda_execution_role_arn,
            zip_file=package,
            runtime=self.config.lambda_runtime,
            handler=self.config.lambda_handler,
            timeout=self.config.lambda_timeout,
            memory_size=self.config.lambda_memory_size,
            tags={
                WORKSHOP_TAG_KEY: WORKSHOP_TAG_VALUE,
                "Repository": self.config.github_repository,
            },
            description=FUNCTION_DESCRIPTION,
        )
        self.lambdas.wait_until_active(self.config.function_name)
        return configuration

    @log_operation("Updating Lambda function code")
    def update(self, package: bytes) -> dict:
        configuration = self.lambdas.update_function_code(
            self.config.function_name, package
        )
        self.lambdas.wait_until_updated(self.config.function_name)
        return configuration

    @log_operation("Ensuring Function URL")
    def ensure_function_url(self, function_name: str) -> str:
        """Return the function's URL, creating a public one if it has none."""
        url_config = self.lambdas.get_function_url_config(function_name)
        if url_config is None:
            url_config = self.lambdas.create_function_url_config(
                function_name, auth_type="NONE"
            )
            self.lambdas.add_public_url_permission(function_name)
        return url_config["FunctionUrl"]
