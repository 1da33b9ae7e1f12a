"""
IAM policy documents and naming constants for the workshop roles.
"""
import json
from typing import Any, Dict, List

POLICY_VERSION = "2012-10-17"

GITHUB_OIDC_URL = "https://token.actions.githubusercontent.com"
GITHUB_OIDC_HOST = "token.actions.githubusercontent.com"
GITHUB_OIDC_AUDIENCE = "sts.amazonaws.com"
GITHUB_OIDC_THUMBPRINT = "6938fd4d98bab03faadb97b34396831e3780aea1"

WORKSHOP_TAG_KEY = "Workshop"
WORKSHOP_TAG_VALUE = "GitHubActions"

WORKSHOP_POLICY_NAME = "LambdaWorkshopPermissions"
EXECUTION_POLICY_NAME = "LambdaWorkshopExecutionPermissions"

WORKSHOP_ROLE_DESCRIPTION = "GitHub Actions role for Lambda workshop"
EXECUTION_ROLE_DESCRIPTION = "Lambda execution role for workshop"
EXECUTION_ROLE_MAX_SESSION_DURATION = 3600

WORKSHOP_ACTIONS = [
    "lambda:CreateFunction",
    "lambda:UpdateFunctionCode",
    "lambda:GetFunction",
    "lambda:GetFunctionUrlConfig",
    "lambda:CreateFunctionUrlConfig",
    "lambda:DeleteFunctionUrlConfig",
    "lambda:AddPermission",
    "lambda:RemovePermission",
    "lambda:TagResource",
    "lambda:UntagResource",
    "logs:CreateLogGroup",
    "logs:CreateLogStream",
    "logs:PutLogEvents",
    "iam:PassRole",
    "iam:CreateRole",
    "iam:GetRole",
    "iam:DeleteRole",
    "iam:AttachRolePolicy",
    "iam:DetachRolePolicy",
    "iam:CreatePolicy",
    "iam:DeletePolicy",
]

EXECUTION_LOG_ACTIONS = [
    "logs:CreateLogGroup",
    "logs:CreateLogStream",
    "logs:PutLogEvents",
]


def workshop_tags() -> List[Dict[str, str]]:
    """IAM-style tag list marking a resource as part of the workshop."""
    return [{"Key": WORKSHOP_TAG_KEY, "Value": WORKSHOP_TAG_VALUE}]


def github_oidc_provider_arn(account_id: str) -> str:
    return f"arn:aws:iam::{account_id}:oidc-provider/{GITHUB_OIDC_HOST}"


def role_arn(account_id: str, role_name: str) -> str:
    return f"arn:aws:iam::{account_id}:role/{role_name}"


def github_trust_policy(account_id: str, repository: str) -> Dict[str, Any]:
    """
    Trust policy letting GitHub Actions runs of one repository assume a role.

    Any branch, tag or environment of the repository matches the subject
    condition; the audience must be STS.
    """
    return {
        "Version": POLICY_VERSION,
        "Statement": [
            {
                "Effect": "Allow",
                "Principal": {
                    "Federated": github_oidc_provider_arn(account_id)
                },
                "Action": "sts:AssumeRoleWithWebIdentity",
                "Condition": {
                    "StringEquals": {
                        f"{GITHUB_OIDC_HOST}:aud": GITHUB_OIDC_AUDIENCE
                    },
                    "StringLike": {
                        f"{GITHUB_OIDC_HOST}:sub": f"repo:{repository}:*"
                    },
                },
            }
        ],
    }


def workshop_permissions_policy() -> Dict[str, Any]:
    """Permissions the GitHub Actions role needs to deploy workshop functions."""
    return {
        "Version": POLICY_VERSION,
        "Statement": [
            {
                "Effect": "Allow",
                "Action": list(WORKSHOP_ACTIONS),
                "Resource": "*",
            }
        ],
    }


def lambda_trust_policy() -> Dict[str, Any]:
    return {
        "Version": POLICY_VERSION,
        "Statement": [
            {
                "Effect": "Allow",
                "Principal": {"Service": "lambda.amazonaws.com"},
                "Action": "sts:AssumeRole",
            }
        ],
    }


def lambda_execution_policy() -> Dict[str, Any]:
    """Permissions of the deployed function: write its logs, list buckets."""
    return {
        "Version": POLICY_VERSION,
        "Statement": [
            {
                "Effect": "Allow",
                "Action": list(EXECUTION_LOG_ACTIONS),
                "Resource": "arn:aws:logs:*:*:*",
            },
            {
                "Effect": "Allow",
                "Action": ["s3:ListAllMyBuckets"],
                "Resource": "*",
            },
        ],
    }


def to_json(document: Dict[str, Any]) -> str:
    return json.dumps(document, indent=4)
