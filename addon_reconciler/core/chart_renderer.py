from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Any

import yaml

from addon_reconciler.core.exceptions import TemplateRenderError
from addon_reconciler.core.template_loader import TemplateLoader
from addon_reconciler.core.utils import merge_maps, setup_logger


@dataclass(frozen=True)
class RenderedManifest:
    # Template path relative to the chart root, e.g. 'shoot-core/charts/kube-proxy/templates/kube-proxy.yaml'
    name: str
    content: str

    @property
    def key(self) -> str:
        return self.name.replace('/', '_')

    def documents(self) -> list[dict[str, Any]]:
        return [doc for doc in yaml.safe_load_all(self.content) if doc]


@dataclass(frozen=True)
class RenderedChart:
    chart_name: str
    release_name: str
    namespace: str
    manifests: tuple[RenderedManifest, ...]

    def files(self) -> dict[str, str]:
        return {manifest.key: manifest.content for manifest in self.manifests}

    def documents(self) -> list[dict[str, Any]]:
        return [doc for manifest in self.manifests for doc in manifest.documents()]

    def kinds(self) -> list[tuple[str, str]]:
        return [(doc['kind'], doc['metadata']['name']) for doc in self.documents()]

    def checksum(self) -> str:
        hasher = hashlib.sha256()

        for manifest in self.manifests:
            hasher.update(manifest.name.encode('utf-8'))
            hasher.update(b'\0')
            hasher.update(manifest.content.encode('utf-8'))
            hasher.update(b'\0')

        return hasher.hexdigest()


class ChartRenderer:
    """Renders a template set and its nested sub-sets into an ordered bundle of manifests.

    A template set is a directory with a ``templates/`` folder and optional ``charts/<name>/``
    sub-sets. Templates are rendered with ``Values``, ``Release`` and ``Chart`` in scope, a sub-set
    receives ``values[<name>]`` plus the parent's ``global`` section as its ``Values``.
    """

    def __init__(self, template_loader: TemplateLoader) -> None:
        self._logger = setup_logger('ChartRenderer')
        self._template_loader = template_loader

    def _render_set(self, template_set: str, release: dict[str, str], values: dict[str, Any]) -> list[RenderedManifest]:
        chart = {'Name': template_set.rsplit('/', 1)[-1]}
        manifests = []

        for template_path in self._template_loader.list_templates(template_set):
            content = self._template_loader.render_template(
                template_path, {'Values': values, 'Release': release, 'Chart': chart}
            )

            if not content.strip():
                self._logger.debug(f'Skipping empty manifest {template_path}')
                continue

            try:
                documents = [doc for doc in yaml.safe_load_all(content) if doc]
            except yaml.YAMLError as e:
                msg = f"Template '{template_path}' rendered invalid YAML: {e}"
                self._logger.exception(msg, exc_info=False)
                raise TemplateRenderError(msg) from e

            if not documents:
                self._logger.debug(f'Skipping manifest {template_path} without documents')
                continue

            manifests.append(RenderedManifest(name=template_path, content=content))

        global_values = values.get('global') or {}

        for sub_set in self._template_loader.list_sub_sets(template_set):
            sub_set_name = sub_set.rsplit('/', 1)[-1]
            sub_values = values.get(sub_set_name) or {}

            if not isinstance(sub_values, dict):
                raise TemplateRenderError(f"Values for '{sub_set}' must be a mapping, got {type(sub_values).__name__}")

            manifests += self._render_set(sub_set, release, merge_maps(sub_values, {'global': global_values}))

        return manifests

    def render(self, chart_name: str, release_name: str, namespace: str, values: dict[str, Any]) -> RenderedChart:
        release = {'Name': release_name, 'Namespace': namespace}

        manifests = self._render_set(chart_name, release, values)
        manifests.sort(key=lambda x: x.name)

        self._logger.info(f'Rendered {len(manifests)} manifest(s) for {chart_name} (release {release_name})')

        return RenderedChart(
            chart_name=chart_name,
            release_name=release_name,
            namespace=namespace,
            manifests=tuple(manifests),
        )
