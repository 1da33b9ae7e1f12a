"""
Workshop environment teardown.

Finds every resource participants' deployments left behind and deletes
it in dependency order: Function URLs before functions, policy
attachments before roles and policies, log groups last.
"""
from dataclasses import dataclass, field
from typing import List, Optional
from config import Config
from logger_config import get_logger
from policies import WORKSHOP_TAG_KEY, WORKSHOP_TAG_VALUE, github_oidc_provider_arn
from services.iam_service import IAMService
from services.lambda_service import LambdaService
from services.logs_service import LogsService
from services.sts_service import STSService
from utils.decorators import log_operation
from utils.exceptions import LambdaOperationError

logger = get_logger(__name__)

ROLE_NAME_MARKERS = ("workshop-lambda", "WorkshopLambda")
POLICY_NAME_MARKERS = ("LambdaWorkshop", "workshop-lambda")
LOG_GROUP_PREFIX = "/aws/lambda/"
LOG_GROUP_MARKERS = ("workshop-lambda",)


def matches_any(name: str, markers) -> bool:
    return any(marker in name for marker in markers)


@dataclass
class CleanupReport:
    """Names of everything a cleanup run deleted."""

    functions: List[str] = field(default_factory=list)
    roles: List[str] = field(default_factory=list)
    policies: List[str] = field(default_factory=list)
    log_groups: List[str] = field(default_factory=list)
    setup_resources: List[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return (
            len(self.functions) + len(self.roles) + len(self.policies)
            + len(self.log_groups) + len(self.setup_resources)
        )


class WorkshopCleaner:
    """Deletes workshop resources. The first failing call aborts the run."""

    def __init__(
        self,
        config: Config,
        iam_service: Optional[IAMService] = None,
        lambda_service: Optional[LambdaService] = None,
        logs_service: Optional[LogsService] = None,
        sts_service: Optional[STSService] = None
    ) -> None:
        self.config = config
        self.iam = iam_service or IAMService()
        self.lambdas = lambda_service or LambdaService()
        self.logs = logs_service or LogsService()
        self.sts = sts_service or STSService()

    def run(self, include_setup_resources: bool = False) -> CleanupReport:
        """
        Remove all workshop resources.

        Args:
            include_setup_resources: Also delete the two setup roles and the
                GitHub OIDC provider created by the setup command

        Raises:
            AWSCredentialsError: If the caller's credentials cannot be verified
            WorkshopError: If a delete fails
        """
        account_id = self.sts.account_id

        report = CleanupReport()
        report.functions = self.cleanup_functions()
        report.roles = self.cleanup_roles()
        report.policies = self.cleanup_policies()
        report.log_groups = self.cleanup_log_groups()
        if include_setup_resources:
            report.setup_resources = self.cleanup_setup_resources(account_id)

        logger.info(f"Cleanup removed {report.total} resources")
        return report

    @log_operation("Cleaning up workshop Lambda functions")
    def cleanup_functions(self) -> List[str]:
        functions = self.lambdas.list_tagged_functions(
            WORKSHOP_TAG_KEY, WORKSHOP_TAG_VALUE
        )
        if not functions:
            logger.info("No workshop Lambda functions found")
            return []

        deleted = []
        for function in functions:
            name = function["FunctionName"]
            if self.lambdas.get_function_url_config(name) is not None:
                try:
                    self.lambdas.delete_function_url_config(name)
                except LambdaOperationError as e:
                    # The function delete below removes the URL config anyway.
                    logger.warning(f"Could not remove Function URL of {name}: {e.message}")
            self.lambdas.delete_function(name)
            deleted.append(name)
        return deleted

    @log_operation("Cleaning up Lambda execution roles")
    def cleanup_roles(self) -> List[str]:
        role_names = [
            role["RoleName"] for role in self.iam.list_roles()
            if matches_any(role["RoleName"], ROLE_NAME_MARKERS)
        ]
        if not role_names:
            logger.info("No Lambda execution roles found")
            return []

        for role_name in role_names:
            self.iam.delete_role_completely(role_name)
        return role_names

    @log_operation("Cleaning up workshop policies")
    def cleanup_policies(self) -> List[str]:
        policies = [
            policy for policy in self.iam.list_local_policies()
            if matches_any(policy["PolicyName"], POLICY_NAME_MARKERS)
        ]
        if not policies:
            logger.info("No workshop policies found")
            return []

        deleted = []
        for policy in policies:
            policy_arn = policy["Arn"]
            for role_name in self.iam.list_policy_role_names(policy_arn):
                self.iam.detach_role_policy(role_name, policy_arn)
            self.iam.delete_policy(policy_arn)
            deleted.append(policy["PolicyName"])
        return deleted

    @log_operation("Cleaning up log groups")
    def cleanup_log_groups(self) -> List[str]:
        log_groups = [
            name for name in self.logs.list_log_group_names(LOG_GROUP_PREFIX)
            if matches_any(name, LOG_GROUP_MARKERS)
        ]
        if not log_groups:
            logger.info("No workshop log groups found")
            return []

        for log_group in log_groups:
            self.logs.delete_log_group(log_group)
        return log_groups

    @log_operation("Cleaning up setup roles and OIDC provider")
    def cleanup_setup_resources(self, account_id: str) -> List[str]:
        deleted = []
        for role_name in (
            self.config.workshop_role_name,
            self.config.lambda_execution_role_name,
        ):
            if self.iam.role_exists(role_name):
                self.iam.delete_role_completely(role_name)
                deleted.append(role_name)

        provider_arn = github_oidc_provider_arn(account_id)
        if self.iam.get_oidc_provider(provider_arn) is not None:
            self.iam.delete_oidc_provider(provider_arn)
            deleted.append(provider_arn)
        return deleted
