"""
Workshop environment setup.

Provisions, idempotently, what every participant's workflow relies on:
the GitHub OIDC provider, the role GitHub Actions assumes to deploy, and
the execution role the deployed functions run under. Re-running only
refreshes the inline permission policies.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from config import Config
from logger_config import get_logger
from policies import (
    EXECUTION_POLICY_NAME,
    EXECUTION_ROLE_DESCRIPTION,
    EXECUTION_ROLE_MAX_SESSION_DURATION,
    GITHUB_OIDC_AUDIENCE,
    GITHUB_OIDC_THUMBPRINT,
    GITHUB_OIDC_URL,
    WORKSHOP_POLICY_NAME,
    WORKSHOP_ROLE_DESCRIPTION,
    github_oidc_provider_arn,
    github_trust_policy,
    lambda_execution_policy,
    lambda_trust_policy,
    role_arn,
    workshop_permissions_policy,
    workshop_tags,
)
from services.iam_service import IAMService
from services.sts_service import STSService
from utils.decorators import log_operation

logger = get_logger(__name__)


@dataclass
class SetupResult:
    """ARNs produced by a setup run and what it had to create."""

    account_id: str
    oidc_provider_arn: str
    workshop_role_arn: str
    lambda_execution_role_arn: str
    created: List[str] = field(default_factory=list)

    def repository_secrets(self) -> Dict[str, str]:
        """The secrets participants add to the GitHub repository."""
        return {
            "AWS_ROLE_ARN": self.workshop_role_arn,
            "LAMBDA_EXECUTION_ROLE_ARN": self.lambda_execution_role_arn,
        }


def secrets_url(repository: str) -> str:
    return f"https://github.com/{repository}/settings/secrets/actions"


class WorkshopProvisioner:
    """Creates or refreshes the workshop's IAM resources."""

    def __init__(
        self,
        config: Config,
        iam_service: Optional[IAMService] = None,
        sts_service: Optional[STSService] = None
    ) -> None:
        self.config = config
        self.iam = iam_service or IAMService()
        self.sts = sts_service or STSService()

    def run(self) -> SetupResult:
        """
        Provision the workshop environment.

        Raises:
            AWSCredentialsError: If the caller's credentials cannot be verified
            IAMOperationError: If any IAM call fails; later steps are not attempted
        """
        account_id = self.sts.account_id
        created: List[str] = []

        provider_arn = github_oidc_provider_arn(account_id)
        if self.ensure_oidc_provider(provider_arn):
            created.append(provider_arn)

        if self.ensure_workshop_role(account_id):
            created.append(self.config.workshop_role_name)

        if self.ensure_execution_role():
            created.append(self.config.lambda_execution_role_name)

        return SetupResult(
            account_id=account_id,
            oidc_provider_arn=provider_arn,
            workshop_role_arn=role_arn(account_id, self.config.workshop_role_name),
            lambda_execution_role_arn=role_arn(
                account_id, self.config.lambda_execution_role_name
            ),
            created=created,
        )

    @log_operation("Setting up GitHub OIDC provider")
    def ensure_oidc_provider(self, provider_arn: str) -> bool:
        """Create the GitHub OIDC provider unless it exists. Returns True if created."""
        if self.iam.get_oidc_provider(provider_arn) is not None:
            logger.info("GitHub OIDC provider already exists")
            return False

        self.iam.create_oidc_provider(
            url=GITHUB_OIDC_URL,
            client_ids=[GITHUB_OIDC_AUDIENCE],
            thumbprints=[GITHUB_OIDC_THUMBPRINT],
        )
        return True

    @log_operation("Setting up GitHub Actions role")
    def ensure_workshop_role(self, account_id: str) -> bool:
        role_name = self.config.workshop_role_name
        created = self._ensure_role(
            role_name,
            trust_policy=github_trust_policy(
                account_id, self.config.github_repository
            ),
            description=WORKSHOP_ROLE_DESCRIPTION,
        )
        self.iam.put_role_policy(
            role_name, WORKSHOP_POLICY_NAME, workshop_permissions_policy()
        )
        return created

    @log_operation("Setting up Lambda execution role")
    def ensure_execution_role(self) -> bool:
        role_name = self.config.lambda_execution_role_name
        created = self._ensure_role(
            role_name,
            trust_policy=lambda_trust_policy(),
            description=EXECUTION_ROLE_DESCRIPTION,
            max_session_duration=EXECUTION_ROLE_MAX_SESSION_DURATION,
        )
        self.iam.put_role_policy(
            role_name, EXECUTION_POLICY_NAME, lambda_execution_policy()
        )
        return created

    def _ensure_role(self, role_name, trust_policy, description, max_session_duration=None) -> bool:
        if self.iam.role_exists(role_name):
            logger.info(f"Role {role_name} already exists, updating permissions")
            return False

        self.iam.create_role(
            role_name,
            trust_policy=trust_policy,
            description=description,
            tags=workshop_tags(),
            max_session_duration=max_session_duration,
        )
        return True
