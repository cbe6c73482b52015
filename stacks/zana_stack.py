"""
Composition of the Zana books API for one environment.

Configuration -> Compute -> Api -> Edge -> Domain, strictly in that order.
Parameters are resolved before the stack exists, so a missing value leaves
nothing behind in the app.
"""
import enum
import logging
from typing import Optional

from aws_cdk import CfnOutput, Stack
from constructs import Construct

from errors import InvalidCompositionOrderError
from stacks.api_layer import ApiLayer
from stacks.compute_layer import ComputeLayer
from stacks.domain_layer import DomainLayer
from stacks.edge_layer import EdgeLayer
from stacks.parameters import ConfigurationResolver, ZanaParameters, resolve_parameters, split_origins
from stacks.settings import CompositionSettings

logger = logging.getLogger(__name__)


class CompositionState(enum.Enum):
    IDLE = "Idle"
    CONFIG_RESOLVED = "ConfigResolved"
    COMPUTE_READY = "ComputeReady"
    API_READY = "ApiReady"
    EDGE_READY = "EdgeReady"
    DOMAIN_BOUND = "DomainBound"
    DONE = "Done"


_ORDER = list(CompositionState)


class CompositionTracker:
    """Enforces the one-way sequence of composition states."""

    def __init__(self, environment: str):
        self.environment = environment
        self.state = CompositionState.IDLE
        self.history = [CompositionState.IDLE]

    def advance(self, target: CompositionState) -> None:
        index = _ORDER.index(self.state)
        expected = _ORDER[index + 1] if index + 1 < len(_ORDER) else None
        if target is not expected:
            raise InvalidCompositionOrderError(
                expected.value if expected else "no further state", target.value
            )
        logger.info("[%s] %s -> %s", self.environment, self.state.value, target.value)
        self.state = target
        self.history.append(target)

    def require(self, state: CompositionState) -> None:
        if self.state is not state:
            raise InvalidCompositionOrderError(state.value, self.state.value)


class ZanaAwsStack(Stack):
    """
    Deploys the Zana books API for one environment:
    1. Books data function with its alias and autoscaling.
    2. REST API proxying /books to the alias.
    3. CloudFront distribution caching the API.
    4. DNS alias record for the public API host.
    """
    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        environment: str,
        parameters: ZanaParameters,
        artifact_path: str,
        settings: CompositionSettings,
        tracker: CompositionTracker,
        **kwargs
    ) -> None:
        tracker.require(CompositionState.CONFIG_RESOLVED)
        super().__init__(scope, construct_id, **kwargs)

        self.environment_name = environment
        self.tracker = tracker

        # =================================================================
        # 1. COMPUTE
        # =================================================================
        self.compute = ComputeLayer(self, "BooksData",
            environment=environment,
            artifact_path=artifact_path,
            ssm_extension_arn=parameters.lambda_ssm_extension_arn.as_string(self),
            insights_extension_arn=parameters.lambda_insights_extension_arn.as_string(self),
            settings=settings.compute
        )
        tracker.advance(CompositionState.COMPUTE_READY)

        # Shared by the API preflight and the edge response headers
        allowed_origins = split_origins(parameters.cors_allow_origins.as_string(self))

        # =================================================================
        # 2. REST API
        # =================================================================
        self.api = ApiLayer(self, "BooksApi",
            environment=environment,
            handler=self.compute.alias,
            allowed_origins=allowed_origins,
            settings=settings.api
        )
        tracker.advance(CompositionState.API_READY)

        # =================================================================
        # 3. EDGE CACHING
        # =================================================================
        self.edge = EdgeLayer(self, "Edge",
            environment=environment,
            rest_api=self.api.rest_api,
            certificate_arn=parameters.certificate_arn.as_string(self),
            api_host=parameters.api_host.as_string(self),
            allowed_origins=allowed_origins,
            allowed_methods=settings.api.allowed_methods,
            settings=settings.cache
        )
        tracker.advance(CompositionState.EDGE_READY)

        # =================================================================
        # 4. DNS
        # =================================================================
        self.domain = DomainLayer(self, "Domain",
            distribution=self.edge.distribution,
            hosted_zone_id=parameters.hosted_zone_id.as_string(self),
            hosted_zone_name=parameters.hosted_zone_name.as_string(self),
            settings=settings.dns
        )
        tracker.advance(CompositionState.DOMAIN_BOUND)

        # =================================================================
        # 5. OUTPUTS
        # =================================================================
        CfnOutput(self, "DistributionDomain", value=self.edge.distribution.distribution_domain_name)
        CfnOutput(self, "BooksApiUrl", value=self.api.rest_api.url_for_path(f"/{settings.api.resource_path}"))
        CfnOutput(self, "ApiHost", value=parameters.api_host.as_string(self))

        tracker.advance(CompositionState.DONE)


def compose(
    scope: Construct,
    construct_id: str,
    *,
    environment: str,
    resolver: ConfigurationResolver,
    artifact_path: str,
    settings: Optional[CompositionSettings] = None,
    **stack_kwargs
) -> ZanaAwsStack:
    """
    Builds the complete Zana resource graph for ``environment``.
    Raises before touching ``scope`` when a parameter cannot be resolved.
    """
    tracker = CompositionTracker(environment)
    parameters = resolve_parameters(resolver, environment)
    tracker.advance(CompositionState.CONFIG_RESOLVED)

    return ZanaAwsStack(scope, construct_id,
        environment=environment,
        parameters=parameters,
        artifact_path=artifact_path,
        settings=settings or CompositionSettings(),
        tracker=tracker,
        **stack_kwargs
    )
