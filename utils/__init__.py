"""
Shared helpers for the Lambda handler and the workshop tooling.
"""
