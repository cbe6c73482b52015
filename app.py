import logging

import aws_cdk as cdk
from config import get_config
from stacks.parameters import ConfigurationResolver, SsmParameterStore, StaticParameterStore
from stacks.zana_stack import compose

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

app = cdk.App()
config = get_config(app)

# =================================================================
# PARAMETER SOURCE
# =================================================================
# SSM Parameter Store by default; a local file gives literal values for offline synth.
if config.parameters_file:
    print(f"📄 Using literal parameters from {config.parameters_file}")
    store = StaticParameterStore.from_dotenv(config.parameters_file)
else:
    store = SsmParameterStore()

# =================================================================
# ZANA STACK
# =================================================================
compose(
    app, "ZanaAwsStack",
    environment=config.name,
    resolver=ConfigurationResolver(store),
    artifact_path=config.lambda_artifact,
    env=cdk.Environment(account=config.account, region=config.region),
    tags=config.tags
)

app.synth()
