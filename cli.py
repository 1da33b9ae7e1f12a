"""
Command line interface for the GitHub Actions AWS Lambda workshop.

Facilitators run `setup` before the workshop and `cleanup` after it;
participants' workflows run `deploy` and `verify` on every push to a
workshop branch.
"""
import functools
import json
import os
import sys

import click

from config import get_config
from logger_config import get_logger, set_log_level
from services.aws_session import create_session
from utils.exceptions import WorkshopError

logger = get_logger(__name__)


def _abort_on_error(func):
    """Turn workshop and configuration errors into a message and exit status 1."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (WorkshopError, ValueError) as e:
            click.echo(f"❌ {e}", err=True)
            sys.exit(1)
    return wrapper


class WorkshopContext:
    """Configuration and lazily created boto3 session shared by commands."""

    def __init__(self, config):
        self.config = config
        self._session = None

    @property
    def session(self):
        if self._session is None:
            self._session = create_session(
                self.config.aws_profile, self.config.aws_region
            )
        return self._session


pass_workshop = click.make_pass_decorator(WorkshopContext)


@click.group()
@click.option("-p", "--profile", default=None, help="AWS named profile to use")
@click.option("-r", "--region", default=None, help="AWS region (default: eu-west-1)")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
@_abort_on_error
def cli(ctx, profile, region, verbose):
    """GitHub Actions AWS Lambda workshop tooling"""
    if verbose:
        set_log_level("DEBUG")
    config = get_config().with_overrides(aws_profile=profile, aws_region=region)
    ctx.obj = WorkshopContext(config)


@cli.command()
@pass_workshop
@_abort_on_error
def setup(workshop):
    """Create the OIDC provider and workshop IAM roles"""
    from provisioning import WorkshopProvisioner, secrets_url
    from services.iam_service import IAMService
    from services.sts_service import STSService

    config = workshop.config
    click.echo("🚀 Setting up GitHub Actions AWS Lambda Workshop Environment")
    click.echo(f"Region: {config.aws_region}")

    provisioner = WorkshopProvisioner(
        config,
        iam_service=IAMService(workshop.session),
        sts_service=STSService(workshop.session),
    )
    result = provisioner.run()

    for resource in result.created:
        click.echo(f"✅ Created {resource}")
    click.echo("")
    click.echo("🎉 AWS Environment Setup Complete!")
    click.echo("")
    click.echo("📋 Required Repository Secrets:")
    click.echo("==================================")
    for name, value in result.repository_secrets().items():
        click.echo(f"{name}: {value}")
    click.echo("")
    click.echo("➡️ Add these secrets to your GitHub repository:")
    click.echo(f"   1. Go to: {secrets_url(config.github_repository)}")
    click.echo("   2. Click 'New repository secret'")
    click.echo("   3. Add the two secrets above")


@cli.command()
@click.option("--include-setup-resources", is_flag=True,
              help="Also delete the setup roles and the GitHub OIDC provider")
@click.option("-y", "--yes", is_flag=True, help="Do not ask for confirmation")
@pass_workshop
@_abort_on_error
def cleanup(workshop, include_setup_resources, yes):
    """Delete all workshop-related AWS resources"""
    from cleanup import WorkshopCleaner
    from services.iam_service import IAMService
    from services.lambda_service import LambdaService
    from services.logs_service import LogsService
    from services.sts_service import STSService

    config = workshop.config
    if not yes:
        click.confirm(
            f"⚠️ This will DELETE all workshop resources in {config.aws_region}. Continue?",
            abort=True,
        )

    click.echo("🧹 Cleaning up GitHub Actions AWS Lambda Workshop Environment")
    click.echo(f"Region: {config.aws_region}")

    cleaner = WorkshopCleaner(
        config,
        iam_service=IAMService(workshop.session),
        lambda_service=LambdaService(workshop.session),
        logs_service=LogsService(workshop.session),
        sts_service=STSService(workshop.session),
    )
    report = cleaner.run(include_setup_resources=include_setup_resources)

    sections = [
        ("Lambda functions", report.functions),
        ("Lambda execution roles", report.roles),
        ("Workshop policies", report.policies),
        ("Log groups", report.log_groups),
    ]
    if include_setup_resources:
        sections.append(("Setup resources", report.setup_resources))
    for title, names in sections:
        if names:
            for name in names:
                click.echo(f"🗑️ {title}: deleted {name}")
        else:
            click.echo(f"✅ No workshop {title.lower()} found")

    click.echo("")
    click.echo(f"🎉 AWS Environment Cleanup Complete! ({report.total} resources removed)")


def _resolve_function_name(config, function_name, branch):
    from deploy import function_name_for_branch

    if function_name:
        return config.with_overrides(function_name=function_name)
    if config.function_name:
        return config
    if branch:
        return config.with_overrides(function_name=function_name_for_branch(branch))
    return config


@cli.command()
@click.option("--function-name", default=None, help="Overrides FUNCTION_NAME")
@click.option("--branch", default=None, envvar="GITHUB_REF_NAME",
              help="Workshop branch to derive the function name from")
@click.option("--source", "sources", multiple=True,
              help="File or directory to package (repeatable)")
@click.option("--base-dir", default=".", type=click.Path(file_okay=False),
              help="Directory package sources are relative to")
@click.option("--force", is_flag=True, help="Upload even if the code is unchanged")
@pass_workshop
@_abort_on_error
def deploy(workshop, function_name, branch, sources, base_dir, force):
    """Create or update the workshop Lambda function"""
    from deploy import LambdaDeployer
    from lambda_package import DEFAULT_SOURCES, build_deployment_package
    from services.lambda_service import LambdaService

    config = _resolve_function_name(workshop.config, function_name, branch)
    config.require_deploy_settings()

    package = build_deployment_package(sources or DEFAULT_SOURCES, base_dir)
    deployer = LambdaDeployer(config, LambdaService(workshop.session))
    result = deployer.deploy(package, force=force)

    click.echo(f"✅ Function {result.function_name} {result.action}")
    click.echo(f"📋 ARN: {result.function_arn}")
    if result.last_modified:
        click.echo(f"🕒 Last modified: {result.last_modified.isoformat()}")
    click.echo(f"🔗 Function URL: {result.function_url}")

    github_output = os.environ.get("GITHUB_OUTPUT")
    if github_output:
        with open(github_output, "a") as f:
            f.write(f"function-url={result.function_url}\n")
            f.write(f"function-arn={result.function_arn}\n")


@cli.command()
@click.option("--source", "sources", multiple=True,
              help="File or directory to package (repeatable)")
@click.option("--base-dir", default=".", type=click.Path(file_okay=False),
              help="Directory package sources are relative to")
@click.option("--output", default=None, type=click.Path(dir_okay=False),
              help="Write the zip package to this path")
@click.option("--stage-dir", default=None, type=click.Path(file_okay=False),
              help="Copy the sources into this directory instead of zipping")
@_abort_on_error
def package(sources, base_dir, output, stage_dir):
    """Build the function's deployment package"""
    from lambda_package import (
        DEFAULT_SOURCES, build_deployment_package, code_sha256,
        stage_sources, write_package,
    )

    sources = sources or DEFAULT_SOURCES
    if stage_dir:
        target = stage_sources(sources, base_dir, stage_dir)
        click.echo(f"✅ Staged sources in {target}")
    if output or not stage_dir:
        zip_bytes = build_deployment_package(sources, base_dir)
        target = write_package(zip_bytes, output or "build/lambda.zip")
        click.echo(f"✅ Wrote {target} ({len(zip_bytes)} bytes, sha256 {code_sha256(zip_bytes)})")


@cli.command()
@click.option("--function-name", default=None, help="Overrides FUNCTION_NAME")
@click.option("--url", default=None, help="Call this URL instead of looking it up")
@click.option("--ensure-url", is_flag=True,
              help="Create a public Function URL if the function has none")
@click.option("--payload", default=None, help="JSON body to POST instead of a GET")
@pass_workshop
@_abort_on_error
def verify(workshop, function_name, url, ensure_url, payload):
    """Call the Function URL and check it answers 200"""
    from services.function_url_service import FunctionURLService

    if url is None:
        from deploy import LambdaDeployer
        from services.lambda_service import LambdaService
        from utils.exceptions import LambdaOperationError

        config = workshop.config.with_overrides(function_name=function_name)
        if not config.function_name:
            raise ValueError("FUNCTION_NAME environment variable is required")
        lambdas = LambdaService(workshop.session)
        if ensure_url:
            url = LambdaDeployer(config, lambdas).ensure_function_url(config.function_name)
        else:
            url_config = lambdas.get_function_url_config(config.function_name)
            if url_config is None:
                raise LambdaOperationError(
                    f"Function {config.function_name} has no Function URL",
                    function_name=config.function_name,
                    operation="GetFunctionUrlConfig",
                )
            url = url_config["FunctionUrl"]

    body = json.loads(payload) if payload else None
    response = FunctionURLService(url).invoke(body)
    click.echo(f"✅ {response.url} answered {response.status_code} in {response.elapsed_ms:.0f}ms")
    click.echo(json.dumps(response.body, indent=2) if not isinstance(response.body, str) else response.body)


@cli.command()
@click.option("--output", default=None, type=click.Path(dir_okay=False),
              help="Workflow file to write (default: .github/workflows/deploy.yml)")
@click.option("--use-action", is_flag=True,
              help="Deploy with aws-actions/aws-lambda-deploy instead of CLI steps")
@click.option("--stdout", "to_stdout", is_flag=True, help="Print instead of writing")
@pass_workshop
@_abort_on_error
def workflow(workshop, output, use_action, to_stdout):
    """Generate the GitHub Actions deploy workflow"""
    from workflow import DEFAULT_WORKFLOW_PATH, render_workflow, write_workflow

    if to_stdout:
        click.echo(render_workflow(workshop.config, use_action), nl=False)
        return
    target = write_workflow(output or DEFAULT_WORKFLOW_PATH, workshop.config, use_action)
    click.echo(f"✅ Wrote {target}")


@cli.command("show-policies")
@click.option("--account-id", default=None,
              help="Account id for the trust policy (looked up via STS if omitted)")
@pass_workshop
@_abort_on_error
def show_policies(workshop, account_id):
    """Print the IAM policy documents setup applies"""
    from policies import (
        github_trust_policy, lambda_execution_policy, lambda_trust_policy,
        to_json, workshop_permissions_policy,
    )

    if account_id is None:
        from services.sts_service import STSService
        account_id = STSService(workshop.session).account_id

    documents = [
        ("GitHub Actions trust policy", github_trust_policy(account_id, workshop.config.github_repository)),
        ("GitHub Actions permissions", workshop_permissions_policy()),
        ("Lambda trust policy", lambda_trust_policy()),
        ("Lambda execution permissions", lambda_execution_policy()),
    ]
    for title, document in documents:
        click.echo(f"# {title}")
        click.echo(to_json(document))


@cli.command("show-config")
@pass_workshop
def show_config(workshop):
    """Show current configuration"""
    config = workshop.config
    click.echo("Current Configuration:")
    click.echo(f"  AWS Region: {config.aws_region}")
    click.echo(f"  AWS Profile: {config.aws_profile or 'default'}")
    click.echo(f"  GitHub Repository: {config.github_repository}")
    click.echo(f"  Workshop Role: {config.workshop_role_name}")
    click.echo(f"  Execution Role: {config.lambda_execution_role_name}")
    click.echo(f"  Function Name: {config.function_name or 'not set'}")
    click.echo(f"  Execution Role ARN: {config.lambda_execution_role_arn or 'not set'}")
    click.echo(f"  Runtime: {config.lambda_runtime} ({config.lambda_handler})")


if __name__ == "__main__":
    cli()
