from typing import Optional, Sequence

from aws_cdk import (
    Duration,
    aws_apigateway as apigw,
    aws_iam as iam,
    aws_lambda as lambda_,
    aws_logs as logs,
)
from constructs import Construct

from errors import InvalidCompositionOrderError
from stacks.settings import ApiSettings


class ApiLayer(Construct):
    """
    Declares the public REST entry point in front of the books function:
    1. Regional REST API with access logging, throttling and a CORS preflight.
    2. The /books resource proxied to the function alias.
    3. The account-level role API Gateway needs to push logs into CloudWatch.
    """
    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        environment: str,
        handler: Optional[lambda_.IFunction],
        allowed_origins: Sequence[str],
        settings: ApiSettings,
    ) -> None:
        if handler is None:
            raise InvalidCompositionOrderError("compute alias", "no handler to integrate with")
        super().__init__(scope, construct_id)

        # =================================================================
        # 1. REST API & STAGE
        # =================================================================
        self.log_group = logs.LogGroup(self, "AccessLogs")

        self.rest_api = apigw.RestApi(self, "BooksApi",
            rest_api_name=f"zana-books-api-{environment}",
            # The account-level role is declared explicitly below
            cloud_watch_role=False,
            deploy_options=apigw.StageOptions(
                stage_name=settings.stage_name,
                caching_enabled=False,
                metrics_enabled=True,
                logging_level=settings.logging_level,
                access_log_destination=apigw.LogGroupLogDestination(self.log_group),
                access_log_format=apigw.AccessLogFormat.json_with_standard_fields(
                    caller=True,
                    http_method=True,
                    ip=True,
                    protocol=True,
                    request_time=True,
                    resource_path=True,
                    response_length=True,
                    status=True,
                    user=True
                ),
                throttling_rate_limit=settings.throttling_rate_limit,
                throttling_burst_limit=settings.throttling_burst_limit
            ),
            default_cors_preflight_options=apigw.CorsOptions(
                allow_headers=apigw.Cors.DEFAULT_HEADERS,
                allow_methods=list(settings.allowed_methods),
                allow_origins=list(allowed_origins)
            ),
            endpoint_configuration=apigw.EndpointConfiguration(
                types=[apigw.EndpointType.REGIONAL]
            )
        )

        # =================================================================
        # 2. BOOKS RESOURCE
        # =================================================================
        integration = apigw.LambdaIntegration(handler,
            allow_test_invoke=True,
            timeout=Duration.seconds(settings.integration_timeout_seconds),
            proxy=True
        )

        self.books_resource = self.rest_api.root.add_resource(settings.resource_path)
        for method in settings.allowed_methods:
            self.books_resource.add_method(method, integration)

        # =================================================================
        # 3. CLOUDWATCH LOGGING ROLE (ACCOUNT SINGLETON)
        # =================================================================
        self.cloudwatch_role = iam.Role(self, "CloudWatchRole",
            assumed_by=iam.ServicePrincipal("apigateway.amazonaws.com"),
            description="Allows API Gateways to push logs into CloudWatch.",
            managed_policies=[
                iam.ManagedPolicy.from_aws_managed_policy_name("service-role/AmazonAPIGatewayPushToCloudWatchLogs")
            ]
        )

        self.account = apigw.CfnAccount(self, "Account",
            cloud_watch_role_arn=self.cloudwatch_role.role_arn
        )

        # Stage logging fails to deploy until the account knows the role
        self.rest_api.deployment_stage.node.add_dependency(self.account)
