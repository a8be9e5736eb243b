import tempfile
from pathlib import Path
import pytest
from unittest.mock import patch, MagicMock

from addon_reconciler.core.exceptions import TemplateNotFoundError, TemplateRenderError
from addon_reconciler.core.template_loader import TemplateLoader


@pytest.fixture
def temp_templates_dir_root():
    """
    Creates a temporary directory that will serve as the charts root for tests.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        templates_root = Path(tmpdir)

        # Create template sets
        (templates_root / 'kubernetes' / 'templates').mkdir(parents=True)
        (templates_root / 'kubernetes' / 'charts' / 'proxy' / 'templates').mkdir(parents=True)
        (templates_root / 'kubernetes' / 'charts' / 'dns' / 'templates').mkdir(parents=True)

        # Create dummy template files
        (templates_root / 'kubernetes' / 'templates' / 'deployment.yaml').write_text(
            'apiVersion: apps/v1\nkind: Deployment\nmetadata:\n  name: {{ app_name }}'
        )
        (templates_root / 'kubernetes' / 'templates' / 'secret.yaml').write_text(
            'data:\n  password: {{ password | b64encode }}\n  name: {{ name | quote }}'
        )
        (templates_root / 'kubernetes' / 'templates' / 'values.yaml').write_text(
            'values:\n  {{ values | to_yaml | indent(2) }}'
        )
        (templates_root / 'kubernetes' / 'templates' / '_helpers.tpl').write_text('{# helpers #}')
        (templates_root / 'kubernetes' / 'templates' / 'README.md').write_text('docs')
        (templates_root / 'kubernetes' / 'templates' / 'broken.yml').write_text('{% if %}')
        (templates_root / 'simple.txt').write_text('Hello, {{ name }}!')
        (templates_root / 'no_vars.txt').write_text('This is a test.')
        (templates_root / 'attribute.txt').write_text('{{ Values.missing }}')

        yield templates_root


@pytest.fixture
def template_loader(temp_templates_dir_root):
    return TemplateLoader(templates_dir=temp_templates_dir_root)


@pytest.fixture(autouse=True)
def mock_setup_logger():
    with patch('addon_reconciler.core.utils.setup_logger') as mock_logger:
        mock_logger.return_value = MagicMock()
        yield


class TestTemplateLoader:
    def test_init_templates_dir_not_found(self):
        non_existent_path = Path("/path/to/nonexistent/templates_xyz")

        with pytest.raises(TemplateNotFoundError, match=f"Templates directory not found at: {non_existent_path}."):
            TemplateLoader(templates_dir=non_existent_path)

    def test_list_templates(self, template_loader):
        assert template_loader.list_templates("kubernetes") == [
            "kubernetes/templates/broken.yml",
            "kubernetes/templates/deployment.yaml",
            "kubernetes/templates/secret.yaml",
            "kubernetes/templates/values.yaml",
        ]

    def test_list_sub_sets(self, template_loader):
        assert template_loader.list_sub_sets("kubernetes") == ["kubernetes/charts/dns", "kubernetes/charts/proxy"]
        assert template_loader.list_sub_sets("kubernetes/charts/dns") == []

    @pytest.mark.parametrize("template_set", ["invalid", "../outside", "simple.txt"])
    def test_invalid_template_set(self, template_loader, template_set):
        with pytest.raises(TemplateNotFoundError):
            template_loader.list_templates(template_set)

    def test_get_template_success(self, template_loader, temp_templates_dir_root):
        template_path = template_loader.get_template("kubernetes/templates/deployment.yaml")
        assert template_path == temp_templates_dir_root / 'kubernetes' / 'templates' / 'deployment.yaml'
        assert template_path.is_file()

    def test_get_template_not_found(self, template_loader):
        with pytest.raises(
            TemplateNotFoundError,
            match="Template 'kubernetes/non_existent.yaml' not found.",
        ):
            template_loader.get_template("kubernetes/non_existent.yaml")

    def test_render_template_no_variables(self, template_loader):
        rendered_content = template_loader.render_template("no_vars.txt")
        assert rendered_content == "This is a test."

    def test_render_template_with_variables(self, template_loader):
        values = {"name": "World"}
        rendered_content = template_loader.render_template("simple.txt", values=values)
        assert rendered_content == "Hello, World!"

    def test_render_template_filters(self, template_loader):
        rendered_content = template_loader.render_template(
            "kubernetes/templates/secret.yaml", values={"password": "s3cret", "name": 'a "quoted" name'}
        )
        assert rendered_content == 'data:\n  password: czNjcmV0\n  name: "a \\"quoted\\" name"'

    def test_render_template_to_yaml(self, template_loader):
        rendered_content = template_loader.render_template(
            "kubernetes/templates/values.yaml", values={"values": {"b": [1, 2], "a": "x"}}
        )
        assert rendered_content == 'values:\n  a: x\n  b:\n  - 1\n  - 2'

    def test_render_template_missing_variables(self, template_loader):
        values = {"another_var": "something"}
        with pytest.raises(
            TemplateRenderError,
            match="There are variables in the template 'simple.txt' that are not provided in the 'values' dictionary: {'name'}",
        ):
            template_loader.render_template("simple.txt", values=values)

    def test_render_template_undefined_attribute(self, template_loader):
        with pytest.raises(TemplateRenderError, match="Failed to render template 'attribute.txt'"):
            template_loader.render_template("attribute.txt", values={"Values": {}})

    def test_render_template_malformed(self, template_loader):
        with pytest.raises(TemplateRenderError, match="Template 'kubernetes/templates/broken.yml' is malformed"):
            template_loader.render_template("kubernetes/templates/broken.yml", values={})

    def test_render_template_not_found(self, template_loader):
        with pytest.raises(
            TemplateNotFoundError,
            match="Template 'kubernetes/non_existent.yaml' not found.",
        ):
            template_loader.render_template("kubernetes/non_existent.yaml")

    def test_render_template_values_not_dict(self, template_loader):
        with pytest.raises(TypeError, match="Template values must be a dictionary"):
            template_loader.render_template("simple.txt", values="not_a_dict")
