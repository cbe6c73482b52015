import json

import aws_cdk as cdk
import pytest
from aws_cdk.assertions import Match, Template

from errors import InvalidCompositionOrderError, MissingConfigurationError
from stacks.parameters import (
    REQUIRED_KEYS,
    ConfigurationResolver,
    SsmParameterStore,
    StaticParameterStore,
    resolve_parameters,
)
from stacks.settings import CompositionSettings
from stacks.zana_stack import CompositionState, CompositionTracker, ZanaAwsStack, compose
from tests.unit.helpers import literal_values, single_resource


def _compose(app, artifact_path, environment, store):
    return compose(
        app, "ZanaAwsStack",
        environment=environment,
        resolver=ConfigurationResolver(store),
        artifact_path=artifact_path,
    )


def test_scenario_cors_origins_reach_api_and_edge(template):
    origins = ["https://a.example", "https://b.example"]

    _, policy = single_resource(template, "AWS::CloudFront::ResponseHeadersPolicy")
    cors = policy["Properties"]["ResponseHeadersPolicyConfig"]["CorsConfig"]
    assert cors["AccessControlAllowOrigins"]["Items"] == origins
    assert cors["AccessControlAllowMethods"]["Items"] == ["GET"]

    preflights = template.find_resources("AWS::ApiGateway::Method", {
        "Properties": Match.object_like({"HttpMethod": "OPTIONS"})
    })
    assert preflights
    for method in preflights.values():
        response = method["Properties"]["Integration"]["IntegrationResponses"][0]
        headers = response["ResponseParameters"]
        assert headers["method.response.header.Access-Control-Allow-Methods"] == "'GET'"
        # First origin is the default header value, the rest are echoed back by the template
        assert headers["method.response.header.Access-Control-Allow-Origin"] == f"'{origins[0]}'"
        assert origins[1] in response["ResponseTemplates"]["application/json"]


def test_scenario_full_composition_for_test_environment(template):
    template.resource_count_is("AWS::Lambda::Function", 1)
    template.resource_count_is("AWS::Lambda::Alias", 1)
    template.resource_count_is("AWS::ApplicationAutoScaling::ScalableTarget", 1)
    template.resource_count_is("AWS::ApplicationAutoScaling::ScalingPolicy", 1)
    template.resource_count_is("AWS::ApiGateway::RestApi", 1)
    template.resource_count_is("AWS::ApiGateway::Resource", 1)
    template.resource_count_is("AWS::ApiGateway::Stage", 1)
    template.resource_count_is("AWS::ApiGateway::Account", 1)
    template.resource_count_is("AWS::CloudFront::Distribution", 1)
    template.resource_count_is("AWS::CloudFront::CachePolicy", 1)
    template.resource_count_is("AWS::CloudFront::ResponseHeadersPolicy", 1)
    template.resource_count_is("AWS::Route53::RecordSet", 1)

    template.has_resource_properties("AWS::Lambda::Alias", {"Name": "test"})
    template.has_resource_properties("AWS::ApiGateway::Resource", {"PathPart": "books"})
    template.has_resource_properties("AWS::CloudFront::CachePolicy", {
        "CachePolicyConfig": Match.object_like({"DefaultTTL": 21600, "MaxTTL": 43200, "MinTTL": 0})
    })
    template.has_resource_properties("AWS::Route53::RecordSet", {
        "Name": "api.zana.example.",
        "HostedZoneId": "Z0123456789ABCDEFGHIJ",
    })


def test_scenario_missing_extension_aborts_before_any_resource(artifact_path):
    app = cdk.App()
    store = StaticParameterStore(literal_values("prod", lambda_ssm_extension_arn=None))

    with pytest.raises(MissingConfigurationError) as excinfo:
        _compose(app, artifact_path, "prod", store)

    assert excinfo.value.path == "/zana/prod/lambda-ssm-extension-arn"
    assert app.node.try_find_child("ZanaAwsStack") is None
    assert not [child for child in app.node.find_all() if isinstance(child, cdk.CfnResource)]


@pytest.mark.parametrize("key", REQUIRED_KEYS)
def test_any_missing_key_leaves_the_app_empty(artifact_path, key):
    app = cdk.App()
    store = StaticParameterStore(literal_values("test", **{key: None}))

    with pytest.raises(MissingConfigurationError):
        _compose(app, artifact_path, "test", store)

    assert app.node.try_find_child("ZanaAwsStack") is None


def test_composition_is_idempotent(synth):
    first = synth().to_json()
    second = synth().to_json()

    assert first == second


def test_composition_reaches_done_in_order(artifact_path):
    stack = _compose(cdk.App(), artifact_path, "test", StaticParameterStore(literal_values("test")))

    assert stack.tracker.state is CompositionState.DONE
    assert stack.tracker.history == list(CompositionState)


def test_deferred_parameters_become_ssm_template_parameters(artifact_path):
    stack = _compose(cdk.App(), artifact_path, "test", SsmParameterStore())
    template = Template.from_stack(stack)

    defaults = {
        parameter["Default"]
        for parameter in template.find_parameters("*").values()
        if str(parameter.get("Default", "")).startswith("/zana/")
    }
    assert defaults == {f"/zana/test/{key}" for key in REQUIRED_KEYS}

    template.resource_count_is("AWS::CloudFront::Distribution", 1)
    template.resource_count_is("AWS::Route53::RecordSet", 1)


def test_deferred_composition_keeps_fixed_literals(artifact_path):
    template = Template.from_stack(_compose(cdk.App(), artifact_path, "test", SsmParameterStore()))

    _, distribution = single_resource(template, "AWS::CloudFront::Distribution")
    assert distribution["Properties"]["DistributionConfig"]["Origins"][0]["OriginPath"] == "/prod"
    template.has_resource_properties("AWS::ApplicationAutoScaling::ScalableTarget", {
        "MinCapacity": 1,
        "MaxCapacity": 20,
    })


def test_stack_refuses_unresolved_configuration(artifact_path):
    parameters = resolve_parameters(ConfigurationResolver(SsmParameterStore()), "test")
    app = cdk.App()

    with pytest.raises(InvalidCompositionOrderError):
        ZanaAwsStack(app, "ZanaAwsStack",
            environment="test",
            parameters=parameters,
            artifact_path=artifact_path,
            settings=CompositionSettings(),
            tracker=CompositionTracker("test")
        )

    assert app.node.try_find_child("ZanaAwsStack") is None


def test_tracker_rejects_skipped_state():
    tracker = CompositionTracker("test")
    tracker.advance(CompositionState.CONFIG_RESOLVED)

    with pytest.raises(InvalidCompositionOrderError):
        tracker.advance(CompositionState.API_READY)

    assert tracker.state is CompositionState.CONFIG_RESOLVED


def test_tracker_rejects_moves_past_done():
    tracker = CompositionTracker("test")
    for state in list(CompositionState)[1:]:
        tracker.advance(state)

    with pytest.raises(InvalidCompositionOrderError):
        tracker.advance(CompositionState.DONE)


def test_stack_outputs(template):
    outputs = template.find_outputs("*")

    assert {"DistributionDomain", "BooksApiUrl", "ApiHost"} <= set(outputs)
    assert outputs["ApiHost"]["Value"] == "api.zana.example"


def test_deferred_cors_origins_render_as_one_ssm_value(artifact_path):
    template = Template.from_stack(_compose(cdk.App(), artifact_path, "test", SsmParameterStore()))
    parameter_id = next(
        logical_id
        for logical_id, parameter in template.find_parameters("*").items()
        if parameter.get("Default") == "/zana/test/cors-allow-origins"
    )

    _, policy = single_resource(template, "AWS::CloudFront::ResponseHeadersPolicy")
    cors = policy["Properties"]["ResponseHeadersPolicyConfig"]["CorsConfig"]
    assert cors["AccessControlAllowOrigins"]["Items"] == [{"Ref": parameter_id}]

    preflights = template.find_resources("AWS::ApiGateway::Method", {
        "Properties": Match.object_like({"HttpMethod": "OPTIONS"})
    })
    assert preflights
    for method in preflights.values():
        response = method["Properties"]["Integration"]["IntegrationResponses"][0]
        assert parameter_id in json.dumps(response["ResponseParameters"])
        assert "ResponseTemplates" not in response
