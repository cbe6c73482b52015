from typing import Optional, Sequence

from aws_cdk import (
    Duration,
    Stack,
    aws_apigateway as apigw,
    aws_certificatemanager as acm,
    aws_cloudfront as cloudfront,
    aws_cloudfront_origins as origins,
)
from constructs import Construct

from errors import InvalidCompositionOrderError
from stacks.settings import CacheSettings


class EdgeLayer(Construct):
    """
    Deploys the CloudFront distribution in front of the REST API:
    1. Cache policy keyed on every query string, with gzip encoding.
    2. Response headers policy mirroring the API's CORS rule.
    3. The distribution on the custom API host, with access logging.
    """
    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        environment: str,
        rest_api: Optional[apigw.IRestApi],
        certificate_arn: str,
        api_host: str,
        allowed_origins: Sequence[str],
        allowed_methods: Sequence[str],
        settings: CacheSettings,
    ) -> None:
        if rest_api is None:
            raise InvalidCompositionOrderError("REST API", "no origin to front")
        super().__init__(scope, construct_id)

        # =================================================================
        # 1. CACHE POLICY
        # =================================================================
        self.cache_policy = cloudfront.CachePolicy(self, "CachePolicy",
            comment=f"Caching policy for Zana books API ({environment})",
            default_ttl=Duration.seconds(settings.default_ttl_seconds),
            max_ttl=Duration.seconds(settings.max_ttl_seconds),
            min_ttl=Duration.seconds(settings.min_ttl_seconds),
            enable_accept_encoding_gzip=settings.enable_gzip,
            enable_accept_encoding_brotli=settings.enable_brotli,
            query_string_behavior=cloudfront.CacheQueryStringBehavior.all(),
            header_behavior=cloudfront.CacheHeaderBehavior.none(),
            cookie_behavior=cloudfront.CacheCookieBehavior.none()
        )

        # =================================================================
        # 2. CORS RESPONSE HEADERS
        # =================================================================
        self.response_headers_policy = cloudfront.ResponseHeadersPolicy(self, "ResponseHeadersPolicy",
            cors_behavior=cloudfront.ResponseHeadersCorsBehavior(
                access_control_allow_credentials=False,
                access_control_allow_headers=apigw.Cors.DEFAULT_HEADERS,
                access_control_allow_methods=list(allowed_methods),
                access_control_allow_origins=list(allowed_origins),
                origin_override=True
            )
        )

        # =================================================================
        # 3. DISTRIBUTION
        # =================================================================
        # Regional execute-api domain; the stage is addressed through the origin path.
        origin_domain = f"{rest_api.rest_api_id}.execute-api.{Stack.of(self).region}.amazonaws.com"
        api_origin = origins.HttpOrigin(origin_domain,
            origin_path=settings.origin_path
        )

        certificate = acm.Certificate.from_certificate_arn(self, "Certificate", certificate_arn)

        self.distribution = cloudfront.Distribution(self, "Distribution",
            certificate=certificate,
            domain_names=[api_host],
            default_behavior=cloudfront.BehaviorOptions(
                origin=api_origin,
                cache_policy=self.cache_policy,
                response_headers_policy=self.response_headers_policy,
                # No HTTPS redirect at the edge, viewers may use plain HTTP
                viewer_protocol_policy=settings.viewer_protocol_policy
            ),
            enable_logging=True,
            log_file_prefix=settings.log_file_prefix,
            http_version=settings.http_version,
            enable_ipv6=settings.enable_ipv6
        )
