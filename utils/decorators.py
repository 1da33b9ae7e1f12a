"""
Decorators for Lambda handler error handling and operation logging.
"""
import functools
import json
import time
import uuid
import traceback
from typing import Callable, Any, Dict
from logger_config import get_logger
from utils.exceptions import ValidationError

logger = get_logger(__name__)


def _error_response(
    status_code: int,
    error: Exception,
    correlation_id: str,
    handler_name: str
) -> Dict[str, Any]:
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps({
            "error": {
                "type": type(error).__name__,
                "message": str(error),
                "correlation_id": correlation_id
            },
            "metadata": {
                "correlation_id": correlation_id,
                "handler": handler_name
            }
        })
    }


def lambda_handler(
    func: Callable[[Any, Any], Any]
) -> Callable[[Any, Any], Dict[str, Any]]:
    """
    Decorator for Lambda handler functions invoked through a Function URL.

    Provides:
    - Request correlation IDs for logging
    - Response formatting (non-HTTP results are wrapped in a 200 response)
    - 400 responses for validation errors, 500 responses for anything else

    Args:
        func: The handler function to decorate

    Returns:
        Decorated handler function
    """
    @functools.wraps(func)
    def wrapper(event: Any, context: Any) -> Dict[str, Any]:
        correlation_id = str(uuid.uuid4())

        logger.info(
            f"Handler {func.__name__} invoked",
            extra={
                "correlation_id": correlation_id,
                "handler": func.__name__,
                "request_id": getattr(context, "aws_request_id", None) if context else None
            }
        )

        try:
            result = func(event, context)

            if not (isinstance(result, dict) and "statusCode" in result):
                logger.warning(
                    f"Handler {func.__name__} returned a non-HTTP result, wrapping",
                    extra={"correlation_id": correlation_id}
                )
                result = {
                    "statusCode": 200,
                    "body": result if isinstance(result, str) else json.dumps(result, default=str)
                }

            headers = result.setdefault("headers", {})
            headers["X-Correlation-Id"] = correlation_id

            logger.info(
                f"Handler {func.__name__} completed successfully",
                extra={"correlation_id": correlation_id}
            )

            return result

        except (ValueError, ValidationError) as e:
            logger.warning(
                f"Handler {func.__name__} validation error: {str(e)}",
                extra={"correlation_id": correlation_id}
            )
            return _error_response(400, e, correlation_id, func.__name__)

        except Exception as e:
            logger.error(
                f"Handler {func.__name__} failed: {str(e)}",
                extra={
                    "correlation_id": correlation_id,
                    "traceback": traceback.format_exc()
                },
                exc_info=True
            )
            return _error_response(500, e, correlation_id, func.__name__)

    return wrapper


def log_operation(description: str):
    """Decorator for timing and logging a provisioning or deployment step."""
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            logger.info(f"Starting: {description}")
            start_time = time.monotonic()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                duration = time.monotonic() - start_time
                logger.error(f"Failed: {description} after {duration:.2f}s - {str(e)}")
                raise
            duration = time.monotonic() - start_time
            logger.info(f"Completed: {description} in {duration:.2f}s")
            return result
        return wrapper
    return decorator
