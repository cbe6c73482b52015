from aws_cdk.assertions import Template

from stacks.parameters import parameter_path

ACCOUNT = "123456789012"
REGION = "eu-central-1"
CERTIFICATE_ARN = "arn:aws:acm:us-east-1:123456789012:certificate/11111111-2222-3333-4444-555555555555"
SSM_EXTENSION_ARN = "arn:aws:lambda:eu-central-1:187925254637:layer:AWS-Parameters-and-Secrets-Lambda-Extension:11"
INSIGHTS_EXTENSION_ARN = "arn:aws:lambda:eu-central-1:580247275435:layer:LambdaInsightsExtension:38"


def literal_values(environment: str, **overrides) -> dict:
    """Store contents for ``environment``; pass key=None to drop a path."""
    values = {
        "cors-allow-origins": "https://a.example,https://b.example",
        "hosted-zone-id": "Z0123456789ABCDEFGHIJ",
        "hosted-zone-name": "zana.example",
        "certificate-arn": CERTIFICATE_ARN,
        "api-host": "api.zana.example",
        "lambda-ssm-extension-arn": SSM_EXTENSION_ARN,
        "lambda-insights-extension-arn": INSIGHTS_EXTENSION_ARN,
    }
    for key, value in overrides.items():
        values[key.replace("_", "-")] = value
    return {parameter_path(environment, key): value for key, value in values.items() if value is not None}


def single_resource(template: Template, resource_type: str, props=None) -> tuple:
    """Returns (logical_id, resource) of the only matching resource."""
    found = template.find_resources(resource_type, props)
    assert len(found) == 1, f"expected one {resource_type}, found {len(found)}"
    return next(iter(found.items()))


def as_list(value) -> list:
    if isinstance(value, list):
        return value
    if value is None:
        return []
    return [value]
