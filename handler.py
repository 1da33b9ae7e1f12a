"""
Lambda handler deployed by the workshop workflow.

It does nothing beyond logging and echoing what it received, so
participants can see their deployment answer through the Function URL.
"""
import json
from typing import Any, Dict
from logger_config import get_logger
from utils.decorators import lambda_handler

logger = get_logger(__name__)

CONTEXT_ATTRIBUTES = (
    "function_name",
    "function_version",
    "invoked_function_arn",
    "memory_limit_in_mb",
    "aws_request_id",
    "log_group_name",
    "log_stream_name",
)


def describe_context(context: Any) -> Dict[str, Any]:
    """Pick the serializable attributes of a LambdaContext."""
    if context is None:
        return {}
    return {
        name: getattr(context, name)
        for name in CONTEXT_ATTRIBUTES
        if getattr(context, name, None) is not None
    }


@lambda_handler
def handler(event, context):
    """Echo the event and invocation context back to the caller."""
    context_data = describe_context(context)

    logger.info("Hello world!")
    logger.info(json.dumps({"event": event, "context": context_data}, default=str))

    return {
        "statusCode": 200,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps({"event": event, "context": context_data}, default=str),
    }
