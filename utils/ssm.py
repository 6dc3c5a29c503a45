"""Secrets from the environment, dereferencing SSM parameter paths"""
import os
from functools import lru_cache

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from aws_lambda_powertools import Logger

logger = Logger()
SSM_PREFIX = os.environ.get('SSM_PARAMETER_PREFIX', '/order-pricing/')


@lru_cache(maxsize=1)
def _ssm_client():
    return boto3.client('ssm')


@lru_cache(maxsize=None)
def get_parameter(name: str) -> str:
    """Decrypted SecureString/String value; failures are not cached"""
    response = _ssm_client().get_parameter(Name=name, WithDecryption=True)
    return response.get("Parameter", {}).get("Value", "")


def get_secret(env_key: str, default: str = "") -> str:
    """
    Value of `env_key`. Values under SSM_PREFIX are parameter names and
    are replaced by the parameter value; an unreadable parameter gives "".
    """
    value = os.environ.get(env_key, default)
    if not value or not value.startswith(SSM_PREFIX):
        return value
    try:
        return get_parameter(value)
    except (BotoCoreError, ClientError) as e:
        logger.error(f"❌ Failed to read SSM parameter {value} for {env_key}: {str(e)}")
        return ""
