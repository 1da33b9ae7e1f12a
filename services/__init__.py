"""
Service layer for AWS operations and the Function URL smoke test.

Each service wraps one AWS API behind a lazily created boto3 client and
translates botocore errors into the workshop's exception types, keeping
the setup, cleanup and deploy flows free of client plumbing.
"""
