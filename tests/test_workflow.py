"""
Tests for the generated GitHub Actions deploy workflow.
"""
import json
import yaml
from config import Config
from workflow import (
    CREDENTIALS_ACTION,
    LAMBDA_DEPLOY_ACTION,
    STAGE_DIR,
    build_workflow,
    render_workflow,
    write_workflow,
)


def load(config, use_action=False):
    return yaml.safe_load(render_workflow(config, use_action))


def steps_of(workflow):
    return workflow['jobs']['deploy']['steps']


def test_triggers_on_workshop_branches():
    workflow = load(Config())

    # PyYAML loads the bare `on` key as a string because safe_dump quotes it.
    assert workflow['on'] == {'push': {'branches': ['*-workshop']}}


def test_requests_oidc_token_permission():
    workflow = load(Config())

    assert workflow['permissions'] == {'id-token': 'write', 'contents': 'read'}


def test_env_uses_region_and_branch_function_name():
    workflow = load(Config(aws_region='us-east-1'))

    assert workflow['env'] == {
        'AWS_REGION': 'us-east-1',
        'FUNCTION_NAME': '${{ github.ref_name }}-lambda',
    }


def test_assumes_workshop_role():
    credentials = next(
        step for step in steps_of(load(Config())) if step.get('uses') == CREDENTIALS_ACTION
    )

    assert credentials['with']['role-to-assume'] == '${{ secrets.AWS_ROLE_ARN }}'


def test_cli_variant_deploys_then_verifies():
    steps = steps_of(load(Config()))

    assert [step.get('run') for step in steps[-2:]] == [
        'lambda-workshop deploy',
        'lambda-workshop verify',
    ]
    assert steps[-2]['env']['LAMBDA_EXECUTION_ROLE_ARN'] == (
        '${{ secrets.LAMBDA_EXECUTION_ROLE_ARN }}'
    )
    assert all(step.get('uses') != LAMBDA_DEPLOY_ACTION for step in steps)


def test_action_variant_uses_deploy_action():
    steps = steps_of(load(Config(), use_action=True))

    assert steps[-3]['run'].startswith(f'lambda-workshop package --stage-dir {STAGE_DIR}')
    assert '--source handler.py' in steps[-3]['run']
    assert steps[-2]['uses'] == LAMBDA_DEPLOY_ACTION
    assert steps[-2]['with']['code-artifacts-dir'] == STAGE_DIR
    assert steps[-2]['with']['handler'] == 'handler.handler'
    assert steps[-2]['with']['runtime'] == 'python3.12'
    assert json.loads(steps[-2]['with']['tags']) == {
        'Workshop': 'GitHubActions',
        'Repository': 'daemon-labs-io/github-actions-aws-lambda',
    }
    assert steps[-1]['run'] == 'lambda-workshop verify --ensure-url'


def test_python_version_follows_runtime():
    workflow = build_workflow(Config(lambda_runtime='python3.11'))

    setup_python = steps_of(workflow)[1]
    assert setup_python['with']['python-version'] == '3.11'


def test_rendered_keys_keep_order():
    rendered = render_workflow(Config())

    assert rendered.index('name:') < rendered.index('permissions:') < rendered.index('jobs:')


def test_write_workflow_creates_directories(tmp_path):
    target = write_workflow(tmp_path / '.github' / 'workflows' / 'deploy.yml', Config())

    assert target.exists()
    assert yaml.safe_load(target.read_text())['jobs']['deploy']['runs-on'] == 'ubuntu-latest'
