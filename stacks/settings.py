"""
Fixed, validated settings for each resource kind of the Zana deployment.

These values are deployment contracts (timeouts, TTLs, throttling, retention,
capacity bounds) and do not vary by environment.
"""
from dataclasses import dataclass, field
from typing import Mapping, Tuple

from aws_cdk import (
    aws_apigateway as apigw,
    aws_cloudfront as cloudfront,
    aws_lambda as lambda_,
    aws_logs as logs,
)

HOUR = 3600

# Target tracking bounds accepted by Application Auto Scaling
MIN_UTILIZATION_TARGET = 0.1
MAX_UTILIZATION_TARGET = 0.9


@dataclass(frozen=True)
class AutoscalingSettings:
    """Provisioned-concurrency autoscaling bounds for the environment alias."""
    min_capacity: int = 1
    max_capacity: int = 20
    utilization_target: float = 0.5

    def __post_init__(self):
        if not MIN_UTILIZATION_TARGET <= self.utilization_target <= MAX_UTILIZATION_TARGET:
            raise ValueError(
                f"utilization_target must be in [{MIN_UTILIZATION_TARGET}, {MAX_UTILIZATION_TARGET}], "
                f"got {self.utilization_target}"
            )
        if self.min_capacity < 1:
            raise ValueError(f"min_capacity must be at least 1, got {self.min_capacity}")
        if self.max_capacity < self.min_capacity:
            raise ValueError(
                f"max_capacity ({self.max_capacity}) is lower than min_capacity ({self.min_capacity})"
            )


@dataclass(frozen=True)
class ComputeSettings:
    runtime: lambda_.Runtime = field(default_factory=lambda: lambda_.Runtime.PROVIDED_AL2)
    handler: str = "main"
    description: str = "Function that returns book data and ratings."
    timeout_seconds: int = 30
    log_retention: logs.RetentionDays = logs.RetentionDays.TWO_YEARS
    parameters_extension_port: int = 2773
    extra_environment: Mapping[str, str] = field(default_factory=lambda: {"RUST_BACKTRACE": "1"})
    autoscaling: AutoscalingSettings = field(default_factory=AutoscalingSettings)

    def __post_init__(self):
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be positive, got {self.timeout_seconds}")


@dataclass(frozen=True)
class ApiSettings:
    resource_path: str = "books"
    allowed_methods: Tuple[str, ...] = ("GET",)
    stage_name: str = "prod"
    throttling_rate_limit: int = 1000
    throttling_burst_limit: int = 500
    integration_timeout_seconds: int = 29
    logging_level: apigw.MethodLoggingLevel = apigw.MethodLoggingLevel.INFO

    def __post_init__(self):
        if not self.allowed_methods:
            raise ValueError("allowed_methods must not be empty")
        if self.throttling_rate_limit <= 0 or self.throttling_burst_limit <= 0:
            raise ValueError("throttling limits must be positive")
        # API Gateway caps integrations at 29 seconds
        if not 0 < self.integration_timeout_seconds <= 29:
            raise ValueError(
                f"integration_timeout_seconds must be within 1-29, got {self.integration_timeout_seconds}"
            )


@dataclass(frozen=True)
class CacheSettings:
    default_ttl_seconds: int = 6 * HOUR
    max_ttl_seconds: int = 12 * HOUR
    min_ttl_seconds: int = 0
    enable_gzip: bool = True
    enable_brotli: bool = False
    # The REST stage is always deployed as "prod", whatever the environment.
    origin_path: str = "/prod"
    log_file_prefix: str = "zana-distribution-access-logs/"
    http_version: cloudfront.HttpVersion = cloudfront.HttpVersion.HTTP2
    enable_ipv6: bool = True
    viewer_protocol_policy: cloudfront.ViewerProtocolPolicy = cloudfront.ViewerProtocolPolicy.ALLOW_ALL

    def __post_init__(self):
        if not self.min_ttl_seconds <= self.default_ttl_seconds <= self.max_ttl_seconds:
            raise ValueError(
                "TTLs must satisfy min <= default <= max, got "
                f"{self.min_ttl_seconds} / {self.default_ttl_seconds} / {self.max_ttl_seconds}"
            )
        if not self.origin_path.startswith("/"):
            raise ValueError(f"origin_path must start with '/', got {self.origin_path!r}")


@dataclass(frozen=True)
class DnsSettings:
    record_name: str = "api"


@dataclass(frozen=True)
class CompositionSettings:
    compute: ComputeSettings = field(default_factory=ComputeSettings)
    api: ApiSettings = field(default_factory=ApiSettings)
    cache: CacheSettings = field(default_factory=CacheSettings)
    dns: DnsSettings = field(default_factory=DnsSettings)

    def __post_init__(self):
        if self.api.integration_timeout_seconds >= self.compute.timeout_seconds:
            raise ValueError(
                f"API integration timeout ({self.api.integration_timeout_seconds}s) must be lower "
                f"than the function timeout ({self.compute.timeout_seconds}s)"
            )
