import zipfile

import aws_cdk as cdk
import pytest
from aws_cdk.assertions import Template

from stacks.parameters import ConfigurationResolver, StaticParameterStore
from stacks.zana_stack import compose
from tests.unit.helpers import ACCOUNT, REGION, literal_values


@pytest.fixture
def artifact_path(tmp_path):
    """Stand-in for the prebuilt lambda package."""
    path = tmp_path / "bootstrap.zip"
    with zipfile.ZipFile(path, "w") as archive:
        archive.writestr("bootstrap", "#!/bin/sh\necho zana\n")
    return str(path)


@pytest.fixture
def synth(artifact_path):
    """Returns a function composing the stack and returning its template."""
    def _synth(environment="test", store=None, settings=None):
        app = cdk.App()
        stack = compose(
            app, "ZanaAwsStack",
            environment=environment,
            resolver=ConfigurationResolver(store or StaticParameterStore(literal_values(environment))),
            artifact_path=artifact_path,
            settings=settings,
            env=cdk.Environment(account=ACCOUNT, region=REGION),
        )
        return Template.from_stack(stack)
    return _synth


@pytest.fixture
def template(synth):
    return synth()
