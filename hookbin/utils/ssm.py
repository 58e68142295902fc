# hookbin/utils/ssm.py
import boto3
import os

# Default region fallback (so code doesn't raise NoRegionError)
_REGION = os.getenv("AWS_DEFAULT_REGION", os.getenv("AWS_REGION", "us-east-1"))


def _ssm_client():
    return boto3.client("ssm", region_name=_REGION)


def parameter_name(prefix: str, name: str) -> str:
    """Parameter Store path for a setting, e.g. ("/hookbin/prod", "BASE_URL") -> "/hookbin/prod/BASE_URL"."""
    return f"{prefix.rstrip('/')}/{name}"


def get_param(prefix: str, name: str, decrypt: bool = True) -> str:
    """Fetch a setting from AWS SSM Parameter Store (raises on AWS errors)."""
    resp = _ssm_client().get_parameter(Name=parameter_name(prefix, name), WithDecryption=decrypt)
    return resp["Parameter"]["Value"]
