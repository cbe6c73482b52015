from aws_cdk import (
    Duration,
    aws_iam as iam,
    aws_lambda as lambda_,
    aws_logs as logs,
)
from constructs import Construct

from stacks.parameters import APP_NAMESPACE
from stacks.settings import ComputeSettings


class ComputeLayer(Construct):
    """
    Declares the books data function and everything it runs with:
    1. Execution role with basic execution, Lambda Insights and read-only SSM access.
    2. The function, wired to the SSM parameters extension and Lambda Insights.
    3. An alias named after the environment, scaled on provisioned-concurrency utilization.
    """
    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        environment: str,
        artifact_path: str,
        ssm_extension_arn: str,
        insights_extension_arn: str,
        settings: ComputeSettings,
    ) -> None:
        super().__init__(scope, construct_id)

        # =================================================================
        # 1. EXECUTION ROLE (LEAST PRIVILEGE)
        # =================================================================
        # Parameter reads are scoped to the app namespace; only kms:Decrypt takes '*'.
        self.ssm_read_policy = iam.ManagedPolicy(self, "SsmReadOnlyAccess",
            description="Provides read only access to zana related entries on AWS Parameter Store",
            statements=[
                iam.PolicyStatement(
                    effect=iam.Effect.ALLOW,
                    actions=["ssm:GetParameter"],
                    resources=[f"arn:aws:ssm:*:*:parameter/{APP_NAMESPACE}/*"]
                ),
                iam.PolicyStatement(
                    effect=iam.Effect.ALLOW,
                    actions=["kms:Decrypt"],
                    resources=["*"]
                ),
            ]
        )

        self.role = iam.Role(self, "BooksLambdaRole",
            assumed_by=iam.ServicePrincipal("lambda.amazonaws.com"),
            description="Allows lambda functions to retrieve parameters from AWS SSM. "
                        "Intended to be used by Zana book handler lambdas.",
            managed_policies=[
                iam.ManagedPolicy.from_aws_managed_policy_name("service-role/AWSLambdaBasicExecutionRole"),
                iam.ManagedPolicy.from_aws_managed_policy_name("CloudWatchLambdaInsightsExecutionRolePolicy"),
                self.ssm_read_policy,
            ]
        )

        # =================================================================
        # 2. BOOKS DATA FUNCTION
        # =================================================================
        self.log_group = logs.LogGroup(self, "BooksDataHandlerLogs",
            retention=settings.log_retention
        )

        ssm_extension = lambda_.LayerVersion.from_layer_version_arn(self, "SsmExtension", ssm_extension_arn)

        self.function = lambda_.Function(self, "BooksDataHandler",
            runtime=settings.runtime,
            description=settings.description,
            code=lambda_.Code.from_asset(artifact_path),
            handler=settings.handler,
            environment={
                **settings.extra_environment,
                "ZANA_ENV": environment,
                "PARAMETERS_SECRETS_EXTENSION_HTTP_PORT": str(settings.parameters_extension_port),
            },
            role=self.role,
            timeout=Duration.seconds(settings.timeout_seconds),
            insights_version=lambda_.LambdaInsightsVersion.from_insight_version_arn(insights_extension_arn),
            log_group=self.log_group,
            layers=[ssm_extension]
        )

        # =================================================================
        # 3. ENVIRONMENT ALIAS & AUTOSCALING
        # =================================================================
        autoscaling = settings.autoscaling
        self.alias = self.function.add_alias(environment)

        self.scaling_target = self.alias.add_auto_scaling(
            min_capacity=autoscaling.min_capacity,
            max_capacity=autoscaling.max_capacity
        )
        self.scaling_target.scale_on_utilization(
            utilization_target=autoscaling.utilization_target
        )
