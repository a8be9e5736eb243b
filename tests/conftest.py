from pathlib import Path

import pytest

from addon_reconciler.core.chart_renderer import ChartRenderer
from addon_reconciler.core.config import CHARTS_PATH
from addon_reconciler.core.image_vector import ImageVector
from addon_reconciler.core.kubernetes import ClusterSpecification
from addon_reconciler.core.secrets import SecretsManager, default_secret_configs
from addon_reconciler.core.template_loader import TemplateLoader

FIXTURES_PATH = Path(__file__).parent / "fixtures"


def make_spec(**overrides) -> ClusterSpecification:
    values = {
        "name": "my-shoot",
        "provider": "alicloud",
        "region": "eu-central-1",
        "kubernetes_version": "1.11.0",
        "api_server_url": "https://api.my-shoot.example.com",
    }
    values.update(overrides)

    return ClusterSpecification(**values)


@pytest.fixture(scope="session")
def generated_secrets():
    """
    Secrets for the default secret set, generated once per test session (RSA key generation is slow).
    """
    return SecretsManager().generate(default_secret_configs(make_spec()))


@pytest.fixture(scope="session")
def existing_secrets(generated_secrets):
    return {name: dict(data) for name, data in generated_secrets.items()}


@pytest.fixture
def spec():
    return make_spec()


@pytest.fixture(scope="session")
def image_vector():
    return ImageVector.from_yaml()


@pytest.fixture(scope="session")
def template_loader():
    return TemplateLoader(templates_dir=CHARTS_PATH)


@pytest.fixture(scope="session")
def chart_renderer(template_loader):
    return ChartRenderer(template_loader)


@pytest.fixture
def spec_factory():
    return make_spec
