from typing import Optional

from aws_cdk import (
    aws_cloudfront as cloudfront,
    aws_route53 as route53,
    aws_route53_targets as targets,
)
from constructs import Construct

from errors import InvalidCompositionOrderError
from stacks.settings import DnsSettings


class DomainLayer(Construct):
    """
    Points the custom API name at the distribution.
    The hosted zone already exists and is only imported by reference, never modified.
    """
    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        distribution: Optional[cloudfront.IDistribution],
        hosted_zone_id: str,
        hosted_zone_name: str,
        settings: DnsSettings,
    ) -> None:
        if distribution is None:
            raise InvalidCompositionOrderError("distribution", "no alias target to bind")
        super().__init__(scope, construct_id)

        self.hosted_zone = route53.HostedZone.from_hosted_zone_attributes(self, "HostedZone",
            hosted_zone_id=hosted_zone_id,
            zone_name=hosted_zone_name
        )

        self.record = route53.ARecord(self, "ApiDomainRecord",
            zone=self.hosted_zone,
            record_name=settings.record_name,
            target=route53.RecordTarget.from_alias(targets.CloudFrontTarget(distribution))
        )
