import json
from pathlib import Path
from typing import Any

import yaml
from jinja2 import Environment, FileSystemLoader, StrictUndefined, Template, TemplateSyntaxError, UndefinedError, meta
from jinja2.exceptions import TemplateNotFound

from addon_reconciler.core.config import CHARTS_PATH
from addon_reconciler.core.exceptions import TemplateNotFoundError, TemplateRenderError
from addon_reconciler.core.utils import b64encode, setup_logger


def _to_yaml(value: Any) -> str:  # noqa: ANN401 (any configuration value)
    return yaml.safe_dump(value, default_flow_style=False, sort_keys=True).rstrip('\n')


def _quote(value: Any) -> str:  # noqa: ANN401 (any scalar)
    return json.dumps(value if isinstance(value, str) else str(value))


class TemplateLoader:
    _TEMPLATE_SUFFIXES = ('.yaml', '.yml', '.tpl')

    def __init__(self, templates_dir: Path | None = None) -> None:
        self._logger = setup_logger('TemplateLoader')

        if templates_dir is None:
            templates_dir = CHARTS_PATH

        if not templates_dir.is_dir() or not templates_dir.exists():
            raise TemplateNotFoundError(
                f'Templates directory not found at: {templates_dir}. '
                'Please ensure the charts folder exists or set ADDON_RECONCILER_CHARTS_PATH.'
            )

        self.templates_dir = templates_dir

        self._environment = Environment(
            loader=FileSystemLoader(templates_dir),
            autoescape=False,  # noqa: S701 (renders YAML, not HTML)
            undefined=StrictUndefined,
            keep_trailing_newline=True,
        )
        self._environment.filters['b64encode'] = b64encode
        self._environment.filters['to_yaml'] = _to_yaml
        self._environment.filters['quote'] = _quote

    def _validate_template_set(self, template_set: str) -> Path:
        template_set_dir = (self.templates_dir / template_set).resolve()

        if self.templates_dir.resolve() not in template_set_dir.parents:
            raise TemplateNotFoundError(f"Invalid template set: '{template_set}'")

        if not template_set_dir.is_dir():
            msg = f"Template set '{template_set}' not found in {self.templates_dir}"
            self._logger.exception(msg, exc_info=False)
            raise TemplateNotFoundError(msg)

        return template_set_dir

    def list_templates(self, template_set: str) -> list[str]:
        """Template paths of a template set (relative to the templates dir), in lexical order."""
        template_set_dir = self._validate_template_set(template_set)

        return sorted(
            path.relative_to(self.templates_dir.resolve()).as_posix()
            for path in template_set_dir.glob('templates/*')
            if path.is_file() and path.suffix in self._TEMPLATE_SUFFIXES and not path.name.startswith('_')
        )

    def list_sub_sets(self, template_set: str) -> list[str]:
        template_set_dir = self._validate_template_set(template_set)
        sub_sets_dir = template_set_dir / 'charts'

        if not sub_sets_dir.is_dir():
            return []

        return sorted(f'{template_set}/charts/{path.name}' for path in sub_sets_dir.iterdir() if path.is_dir())

    def _search_template(self, template_full_path: str) -> Template:
        try:
            return self._environment.get_template(template_full_path)
        except TemplateNotFound as e:
            msg = f"Template '{template_full_path}' not found."
            self._logger.exception(msg, exc_info=False)
            raise TemplateNotFoundError(msg) from e
        except TemplateSyntaxError as e:
            msg = f"Template '{template_full_path}' is malformed: {e.message} (line {e.lineno})"
            self._logger.exception(msg, exc_info=False)
            raise TemplateRenderError(msg) from e

    def get_template(self, template_path: str) -> Path:
        return Path(self._search_template(template_path).filename)

    def render_template(self, template_path: str, values: dict[str, Any] | None = None) -> str:
        values = values or {}

        if not isinstance(values, dict):
            msg = 'Template values must be a dictionary'
            self._logger.exception(msg, exc_info=True)
            raise TypeError(msg)

        template = self._search_template(template_path)

        template_source = self._environment.loader.get_source(self._environment, template_path)[0]
        parsed_ast = self._environment.parse(template_source)
        template_variables = meta.find_undeclared_variables(parsed_ast)

        undeclared_variables = template_variables - values.keys()

        if undeclared_variables:
            raise TemplateRenderError(
                f"There are variables in the template '{template_path}' "
                f"that are not provided in the 'values' dictionary: {undeclared_variables}"
            )

        try:
            return template.render(**values)
        except UndefinedError as e:
            msg = f"Failed to render template '{template_path}': {e.message}"
            self._logger.exception(msg, exc_info=False)
            raise TemplateRenderError(msg) from e
        except (TypeError, ValueError, yaml.YAMLError) as e:
            msg = f"Failed to render template '{template_path}': {e}"
            self._logger.exception(msg, exc_info=False)
            raise TemplateRenderError(msg) from e
