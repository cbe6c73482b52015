import os
from dataclasses import dataclass
from typing import Optional
from dotenv import load_dotenv

from errors import MissingConfigurationError

# Load environment variables from a .env file
load_dotenv()

DEFAULT_ENVIRONMENT = "prod"
DEFAULT_LAMBDA_ARTIFACT = "../../services/zana_lambda/target/lambda/zana_lambda/bootstrap.zip"


@dataclass(frozen=True)
class EnvConfig:
    """
    Process-level inputs for one synthesis run.
    Built once at the entry point and passed down explicitly.
    """
    name: str
    account: str
    region: str
    lambda_artifact: str = DEFAULT_LAMBDA_ARTIFACT
    parameters_file: Optional[str] = None

    @property
    def tags(self) -> dict:
        return {"zanaEnv": self.name}


def get_required_env(key: str) -> str:
    """
    Retrieves a required environment variable or raises MissingConfigurationError if missing.
    """
    value = os.getenv(key)
    if not value:
        raise MissingConfigurationError(key, "required environment variable not found in .env or process")
    return value


def get_environment_name(scope=None) -> str:
    """
    Resolves the target environment name.
    Order: CDK context 'env', then ZANA_ENV, then 'prod'. This is the only defaulted setting.
    """
    env_name = None
    if scope is not None:
        env_name = scope.node.try_get_context("env")
    return env_name or os.getenv("ZANA_ENV") or DEFAULT_ENVIRONMENT


def get_config(scope=None) -> EnvConfig:
    """
    Factory function to generate the EnvConfig object from the process environment.
    Usage: ZANA_ENV=test cdk synth   or   cdk synth -c env=test
    """
    env_name = get_environment_name(scope)

    print(f"🔍 Initializing Zana infrastructure for environment: {env_name}")

    # Load Mandatory Variables
    account = get_required_env("CDK_DEFAULT_ACCOUNT")
    region = get_required_env("CDK_DEFAULT_REGION")

    # Load Optional Variables
    lambda_artifact = os.getenv("ZANA_LAMBDA_ARTIFACT") or DEFAULT_LAMBDA_ARTIFACT
    parameters_file = os.getenv("ZANA_PARAMETERS_FILE") or None

    return EnvConfig(
        name=env_name,
        account=account,
        region=region,
        lambda_artifact=lambda_artifact,
        parameters_file=parameters_file
    )
