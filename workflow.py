"""
GitHub Actions workflow generation for the workshop deploy job.

Two variants are rendered from the same skeleton so participants can
compare them: one deploys with this repository's own CLI steps, the
other hands the upload to the pre-built aws-lambda-deploy action.
"""
import json
from pathlib import Path
from typing import Any, Dict, List, Union
import yaml
from config import Config
from lambda_package import DEFAULT_SOURCES
from logger_config import get_logger
from policies import WORKSHOP_TAG_KEY, WORKSHOP_TAG_VALUE

logger = get_logger(__name__)

DEFAULT_WORKFLOW_PATH = Path(".github") / "workflows" / "deploy.yml"
STAGE_DIR = "build/lambda"

CHECKOUT_ACTION = "actions/checkout@v4"
SETUP_PYTHON_ACTION = "actions/setup-python@v5"
CREDENTIALS_ACTION = "aws-actions/configure-aws-credentials@v4"
LAMBDA_DEPLOY_ACTION = "aws-actions/aws-lambda-deploy@v1"


def _python_version(runtime: str) -> str:
    return runtime[len("python"):] if runtime.startswith("python") else "3.12"


def _deploy_steps(config: Config, use_action: bool) -> List[Dict[str, Any]]:
    if not use_action:
        return [
            {
                "name": "Deploy Lambda function",
                "run": "lambda-workshop deploy",
                "env": {
                    "LAMBDA_EXECUTION_ROLE_ARN": "${{ secrets.LAMBDA_EXECUTION_ROLE_ARN }}",
                },
            },
            {
                "name": "Check Function URL",
                "run": "lambda-workshop verify",
            },
        ]

    return [
        {
            "name": "Stage function sources",
            "run": f"lambda-workshop package --stage-dir {STAGE_DIR} "
                   + " ".join(f"--source {source}" for source in DEFAULT_SOURCES),
        },
        {
            "name": "Deploy Lambda function",
            "uses": LAMBDA_DEPLOY_ACTION,
            "with": {
                "function-name": "${{ env.FUNCTION_NAME }}",
                "code-artifacts-dir": STAGE_DIR,
                "handler": config.lambda_handler,
                "runtime": config.lambda_runtime,
                "role": "${{ secrets.LAMBDA_EXECUTION_ROLE_ARN }}",
                "tags": json.dumps({
                    WORKSHOP_TAG_KEY: WORKSHOP_TAG_VALUE,
                    "Repository": config.github_repository,
                }),
            },
        },
        {
            "name": "Check Function URL",
            "run": "lambda-workshop verify --ensure-url",
        },
    ]


def build_workflow(config: Config, use_action: bool = False) -> Dict[str, Any]:
    """
    Build the deploy workflow as a dictionary.

    Args:
        config: Supplies region, runtime and handler
        use_action: Deploy with the pre-built action instead of CLI steps
    """
    steps = [
        {"name": "Check out repository", "uses": CHECKOUT_ACTION},
        {
            "name": "Set up Python",
            "uses": SETUP_PYTHON_ACTION,
            "with": {"python-version": _python_version(config.lambda_runtime)},
        },
        {"name": "Install workshop tooling", "run": "pip install ."},
        {
            "name": "Configure AWS credentials",
            "uses": CREDENTIALS_ACTION,
            "with": {
                "role-to-assume": "${{ secrets.AWS_ROLE_ARN }}",
                "aws-region": "${{ env.AWS_REGION }}",
            },
        },
    ]
    steps.extend(_deploy_steps(config, use_action))

    return {
        "name": "Deploy Lambda" + (" (action)" if use_action else ""),
        "on": {"push": {"branches": ["*-workshop"]}},
        "permissions": {"id-token": "write", "contents": "read"},
        "env": {
            "AWS_REGION": config.aws_region,
            "FUNCTION_NAME": "${{ github.ref_name }}-lambda",
        },
        "jobs": {
            "deploy": {
                "runs-on": "ubuntu-latest",
                "steps": steps,
            }
        },
    }


def render_workflow(config: Config, use_action: bool = False) -> str:
    return yaml.safe_dump(
        build_workflow(config, use_action),
        sort_keys=False,
        default_flow_style=False,
        width=120,
    )


def write_workflow(
    path: Union[str, Path],
    config: Config,
    use_action: bool = False
) -> Path:
    """Render the workflow to a file, creating parent directories."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(render_workflow(config, use_action))
    logger.info(f"Wrote workflow to {target}")
    return target
