"""
Environment-scoped configuration parameters for the Zana deployment.

Every value the stacks consume lives in a parameter store under
``/zana/<environment>/<key>``. A resolved value is either a ``Literal`` known at
synthesis time or a ``DeferredReference`` that CloudFormation materializes from
SSM Parameter Store at deploy time. Callers only ever ask a value for its string
form (possibly a CDK token), they never branch on what it will eventually be.
"""
import logging
from dataclasses import dataclass
from typing import Mapping, Optional, Protocol, Union

from aws_cdk import aws_ssm as ssm
from constructs import Construct
from dotenv import dotenv_values

from errors import ExternalReferenceError, MissingConfigurationError

logger = logging.getLogger(__name__)

APP_NAMESPACE = "zana"

CORS_ALLOW_ORIGINS = "cors-allow-origins"
HOSTED_ZONE_ID = "hosted-zone-id"
HOSTED_ZONE_NAME = "hosted-zone-name"
CERTIFICATE_ARN = "certificate-arn"
API_HOST = "api-host"
LAMBDA_SSM_EXTENSION_ARN = "lambda-ssm-extension-arn"
LAMBDA_INSIGHTS_EXTENSION_ARN = "lambda-insights-extension-arn"

# Resolution order follows the order the layers consume them.
REQUIRED_KEYS = (
    LAMBDA_SSM_EXTENSION_ARN,
    LAMBDA_INSIGHTS_EXTENSION_ARN,
    CORS_ALLOW_ORIGINS,
    CERTIFICATE_ARN,
    API_HOST,
    HOSTED_ZONE_ID,
    HOSTED_ZONE_NAME,
)


def parameter_path(environment: str, key: str) -> str:
    """Return the store path of ``key`` for ``environment``."""
    if not environment or "/" in environment:
        raise ValueError(f"Invalid environment name: {environment!r}")
    return f"/{APP_NAMESPACE}/{environment}/{key}"


def split_origins(value: str) -> list[str]:
    """Split a comma-separated origin list exactly, empty entries included."""
    return value.split(",")


@dataclass(frozen=True)
class Literal:
    value: str

    def as_string(self, scope: Construct) -> str:
        return self.value


@dataclass(frozen=True)
class DeferredReference:
    path: str

    def as_string(self, scope: Construct) -> str:
        # Renders as an SSM-typed template parameter, one per path and stack.
        return ssm.StringParameter.value_for_string_parameter(scope, self.path)


ConfigValue = Union[Literal, DeferredReference]


@dataclass(frozen=True)
class ConfigParameter:
    path: str
    value: ConfigValue

    @property
    def is_deferred(self) -> bool:
        return isinstance(self.value, DeferredReference)

    def as_string(self, scope: Construct) -> str:
        return self.value.as_string(scope)


class ParameterStore(Protocol):
    def lookup(self, path: str) -> Optional[ConfigValue]:
        ...


class SsmParameterStore:
    """
    SSM Parameter Store backed values.
    Every path becomes a deferred reference; a missing parameter surfaces at deploy time.
    """

    def lookup(self, path: str) -> Optional[ConfigValue]:
        return DeferredReference(path)


class StaticParameterStore:
    """
    Literal values keyed by parameter path, used for offline synthesis and tests.
    """

    def __init__(self, values: Mapping[str, Optional[str]]):
        self._values = dict(values)

    @classmethod
    def from_dotenv(cls, file_path: str) -> "StaticParameterStore":
        """
        Loads a dotenv-style file whose keys are parameter paths, e.g.
        /zana/test/api-host=api.example.com
        """
        return cls(dotenv_values(file_path))

    def lookup(self, path: str) -> Optional[ConfigValue]:
        value = self._values.get(path)
        if value is None:
            return None
        return Literal(value)


class ConfigurationResolver:
    """Resolves mandatory environment-scoped parameters from a store."""

    def __init__(self, store: ParameterStore):
        self.store = store

    def resolve(self, environment: str, key: str) -> ConfigParameter:
        path = parameter_path(environment, key)
        value = self.store.lookup(path)
        if value is None:
            raise MissingConfigurationError(path, "parameter store has no value")
        if isinstance(value, Literal) and value.value == "":
            raise MissingConfigurationError(path, "parameter value is empty")
        logger.debug("Resolved %s as %s", path, type(value).__name__)
        return ConfigParameter(path=path, value=value)

    def resolve_arn(self, environment: str, key: str) -> ConfigParameter:
        parameter = self.resolve(environment, key)
        if isinstance(parameter.value, Literal) and not parameter.value.value.startswith("arn:"):
            raise ExternalReferenceError(parameter.path, parameter.value.value, "not an ARN")
        return parameter


@dataclass(frozen=True)
class ZanaParameters:
    """All store-backed values a composition run needs, resolved up front."""
    environment: str
    lambda_ssm_extension_arn: ConfigParameter
    lambda_insights_extension_arn: ConfigParameter
    cors_allow_origins: ConfigParameter
    certificate_arn: ConfigParameter
    api_host: ConfigParameter
    hosted_zone_id: ConfigParameter
    hosted_zone_name: ConfigParameter


def resolve_parameters(resolver: ConfigurationResolver, environment: str) -> ZanaParameters:
    """
    Resolves every required parameter for ``environment``.
    The first missing path aborts resolution with MissingConfigurationError.
    """
    ssm_extension = resolver.resolve_arn(environment, LAMBDA_SSM_EXTENSION_ARN)
    insights_extension = resolver.resolve_arn(environment, LAMBDA_INSIGHTS_EXTENSION_ARN)
    cors_allow_origins = resolver.resolve(environment, CORS_ALLOW_ORIGINS)
    certificate_arn = resolver.resolve_arn(environment, CERTIFICATE_ARN)
    api_host = resolver.resolve(environment, API_HOST)
    hosted_zone_id = resolver.resolve(environment, HOSTED_ZONE_ID)
    hosted_zone_name = resolver.resolve(environment, HOSTED_ZONE_NAME)

    resolved = (
        ssm_extension, insights_extension, cors_allow_origins, certificate_arn,
        api_host, hosted_zone_id, hosted_zone_name,
    )
    deferred = [parameter.path for parameter in resolved if parameter.is_deferred]
    logger.info(
        "Resolved %d parameters under /%s/%s/ (%d deferred to deploy time)",
        len(resolved), APP_NAMESPACE, environment, len(deferred)
    )
    for path in deferred:
        logger.debug("Deferred to SSM at deploy time: %s", path)

    return ZanaParameters(
        environment=environment,
        lambda_ssm_extension_arn=ssm_extension,
        lambda_insights_extension_arn=insights_extension,
        cors_allow_origins=cors_allow_origins,
        certificate_arn=certificate_arn,
        api_host=api_host,
        hosted_zone_id=hosted_zone_id,
        hosted_zone_name=hosted_zone_name,
    )
