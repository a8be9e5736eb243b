from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from addon_reconciler.core.addons import (
    CORE_ADDON_IMAGES,
    OPTIONAL_ADDON_IMAGES,
    AddonConfigComposer,
    ReconciliationContext,
)
from addon_reconciler.core.chart_renderer import ChartRenderer, RenderedChart
from addon_reconciler.core.config import ADDON_NAMESPACE
from addon_reconciler.core.exceptions import AddonReconcilerError, ResourceNotFoundError
from addon_reconciler.core.image_vector import ImageVector
from addon_reconciler.core.kubernetes import BaseClusterClient, CloudProfile, ClusterSpecification
from addon_reconciler.core.providers import ProviderFactory
from addon_reconciler.core.secrets import SecretConfig, SecretsManager, default_secret_configs
from addon_reconciler.core.utils import b64encode, setup_logger

BUNDLE_LABEL = 'addonmanager.kubernetes.io/bundle'

CORE_BUNDLE = 'addons-core'
OPTIONAL_BUNDLE = 'addons-optional'
ADMISSION_CONTROLS_BUNDLE = 'addons-admission-controls'

# Deployments left behind by the heapster chart, superseded by metrics-server
LEGACY_HEAPSTER_SELECTOR = 'chart=heapster-0.1.1,origin=gardener'


class ReconcileStage(StrEnum):
    GATHERING = 'gathering'
    COMPOSE_CORE = 'compose_core'
    RENDER_CORE = 'render_core'
    APPLY_CORE = 'apply_core'
    COMPOSE_OPTIONAL = 'compose_optional'
    CLEANUP = 'cleanup'
    RENDER_OPTIONAL = 'render_optional'
    APPLY_OPTIONAL = 'apply_optional'
    COMPOSE_ADMISSION = 'compose_admission'
    RENDER_ADMISSION = 'render_admission'
    APPLY_ADMISSION = 'apply_admission'
    DONE = 'done'
    FAILED = 'failed'


@dataclass(frozen=True)
class StageResult:
    stage: ReconcileStage
    succeeded: bool
    error: AddonReconcilerError | None = None


@dataclass
class ReconcileResult:
    stages: list[StageResult] = field(default_factory=list)
    state: ReconcileStage = ReconcileStage.GATHERING
    aborted: bool = False

    @property
    def succeeded(self) -> bool:
        return self.state == ReconcileStage.DONE

    @property
    def failed_stage(self) -> ReconcileStage | None:
        return next((x.stage for x in self.stages if not x.succeeded), None)

    @property
    def error(self) -> AddonReconcilerError | None:
        return next((x.error for x in self.stages if x.error is not None), None)

    def raise_for_status(self) -> None:
        if self.error is not None:
            raise self.error


@dataclass
class _CycleState:
    """Values handed from one stage to the next within a single cycle."""

    context: ReconciliationContext | None = None
    composer: AddonConfigComposer | None = None
    core_values: dict[str, Any] | None = None
    optional_values: dict[str, Any] | None = None
    admission_values: dict[str, Any] | None = None
    core_chart: RenderedChart | None = None
    optional_chart: RenderedChart | None = None
    admission_chart: RenderedChart | None = None


class AddonReconciler:
    """Runs one reconciliation cycle of a managed cluster's addons.

    Stages run strictly in order. The first stage raising an ``AddonReconcilerError`` ends the
    cycle in ``failed``, the error is tagged with the stage name and returned unmodified in the
    ``ReconcileResult``. Nothing is retried and nothing is rolled back.
    """

    def __init__(
        self,
        client: BaseClusterClient,
        image_vector: ImageVector,
        chart_renderer: ChartRenderer,
        namespace: str = ADDON_NAMESPACE,
        cloud_profile: CloudProfile | None = None,
    ) -> None:
        self._logger = setup_logger('AddonReconciler')
        self._client = client
        self._image_vector = image_vector
        self._chart_renderer = chart_renderer
        self._namespace = namespace
        self._cloud_profile = cloud_profile

    def reconcile(
        self,
        spec: ClusterSpecification,
        existing_secrets: Mapping[str, Mapping[str, bytes]] | None = None,
        secret_configs: Sequence[SecretConfig] | None = None,
        should_abort: Callable[[], bool] | None = None,
        required_secrets: Iterable[str] = (),
    ) -> ReconcileResult:
        self._logger.info(f'Reconciling addons of cluster {spec.name} ({spec.provider}, v{spec.kubernetes_version})')

        if secret_configs is None:
            secret_configs = default_secret_configs(spec, self._namespace)

        state = _CycleState()
        result = ReconcileResult()

        def gather() -> None:
            self._gather(state, spec, existing_secrets, secret_configs, required_secrets)

        pipeline: list[tuple[ReconcileStage, Callable[[], None]]] = [
            (ReconcileStage.GATHERING, gather),
            (ReconcileStage.COMPOSE_CORE, lambda: self._compose_core(state)),
            (ReconcileStage.RENDER_CORE, lambda: self._render_core(state)),
            (ReconcileStage.APPLY_CORE, lambda: self._apply_core(state)),
            (ReconcileStage.COMPOSE_OPTIONAL, lambda: self._compose_optional(state)),
            (ReconcileStage.CLEANUP, self.cleanup),
            (ReconcileStage.RENDER_OPTIONAL, lambda: self._render_optional(state)),
            (ReconcileStage.APPLY_OPTIONAL, lambda: self._apply_optional(state)),
            (ReconcileStage.COMPOSE_ADMISSION, lambda: self._compose_admission(state)),
            (ReconcileStage.RENDER_ADMISSION, lambda: self._render_admission(state)),
            (ReconcileStage.APPLY_ADMISSION, lambda: self._apply_admission(state)),
        ]

        for stage, run in pipeline:
            if should_abort is not None and should_abort():
                self._logger.warning(f'Reconciliation of cluster {spec.name} aborted before stage {stage}')
                result.aborted = True
                return result

            result.state = stage
            self._logger.info(f'Stage {stage} started')

            try:
                run()
            except AddonReconcilerError as e:
                e.stage = str(stage)
                self._logger.exception(f'Stage {stage} failed for cluster {spec.name}: {e}', exc_info=False)
                result.stages.append(StageResult(stage=stage, succeeded=False, error=e))
                result.state = ReconcileStage.FAILED
                return result

            result.stages.append(StageResult(stage=stage, succeeded=True))
            self._logger.info(f'Stage {stage} finished')

        result.state = ReconcileStage.DONE
        self._logger.info(f'Reconciliation of cluster {spec.name} finished')

        return result

    def _gather(
        self,
        state: _CycleState,
        spec: ClusterSpecification,
        existing_secrets: Mapping[str, Mapping[str, bytes]] | None,
        secret_configs: Sequence[SecretConfig],
        required_secrets: Iterable[str],
    ) -> None:
        if self._cloud_profile is not None:
            self._cloud_profile.validate_specification(spec)

        provider = ProviderFactory.get_provider(spec.provider, self._cloud_profile)
        secrets = SecretsManager(existing_secrets).generate(secret_configs, required=required_secrets)

        state.context = ReconciliationContext(
            spec=spec,
            secrets=secrets,
            provider=provider,
            image_vector=self._image_vector,
            namespace=self._namespace,
            cloud_profile=self._cloud_profile,
        )
        state.composer = AddonConfigComposer(state.context)

    def _inject_images(self, state: _CycleState, values: dict[str, Any],
                       image_maps: dict[str, dict[str, str]]) -> dict[str, Any]:
        runtime_version = state.context.runtime_version

        return {
            name: self._image_vector.inject_images(config, runtime_version, image_maps[name])
            if name in image_maps else config
            for name, config in values.items()
        }

    def _compose_core(self, state: _CycleState) -> None:
        values = self._inject_images(state, state.composer.compose_core(), CORE_ADDON_IMAGES)

        # node-exporter is a sub-chart of monitoring
        values['monitoring'] = {'node-exporter': values.pop('node-exporter')}

        state.core_values = values

    def _render_core(self, state: _CycleState) -> None:
        state.core_chart = self._chart_renderer.render('shoot-core', 'shoot-core', self._namespace, state.core_values)

    def _apply_core(self, state: _CycleState) -> None:
        vpn_shoot_secret = state.composer.vpn_shoot_secret()
        vpn_shoot_secret['metadata']['labels'] = {BUNDLE_LABEL: CORE_BUNDLE}
        self._client.apply('Secret', self._namespace, vpn_shoot_secret['metadata']['name'], vpn_shoot_secret)

        self.apply_bundle(CORE_BUNDLE, state.core_chart, sensitive=True)

    def _compose_optional(self, state: _CycleState) -> None:
        state.optional_values = self._inject_images(state, state.composer.compose_optional(), OPTIONAL_ADDON_IMAGES)

    def cleanup(self) -> int:
        """Delete legacy heapster deployments. Returns the number of deployments deleted."""
        deployments = self._client.list('Deployment', self._namespace, label_selector=LEGACY_HEAPSTER_SELECTOR)
        deleted = 0

        for deployment in deployments:
            name = deployment['metadata']['name']

            try:
                self._client.delete('Deployment', self._namespace, name)
                deleted += 1
            except ResourceNotFoundError:
                self._logger.debug(f'Legacy deployment {self._namespace}/{name} is already gone')

        if deleted:
            self._logger.info(f'Deleted {deleted} legacy heapster deployment(s)')

        return deleted

    def _render_optional(self, state: _CycleState) -> None:
        state.optional_chart = self._chart_renderer.render(
            'shoot-addons', 'addons', self._namespace, state.optional_values
        )

    def _apply_optional(self, state: _CycleState) -> None:
        self.apply_bundle(OPTIONAL_BUNDLE, state.optional_chart, sensitive=True)

    def _compose_admission(self, state: _CycleState) -> None:
        state.admission_values = state.composer.compose_admission_controls()

    def _render_admission(self, state: _CycleState) -> None:
        state.admission_chart = self._chart_renderer.render(
            'shoot-admission-controls', 'admission-controls', self._namespace, state.admission_values
        )

    def _apply_admission(self, state: _CycleState) -> None:
        self.apply_bundle(ADMISSION_CONTROLS_BUNDLE, state.admission_chart, sensitive=False)

    def apply_bundle(self, bundle_name: str, chart: RenderedChart, sensitive: bool) -> bool:
        body = bundle_object(bundle_name, self._namespace, chart, sensitive)
        changed = self._client.apply(body['kind'], self._namespace, bundle_name, body)

        self._logger.debug(f'Bundle {bundle_name} {"applied" if changed else "already up to date"}')

        return changed


def bundle_object(bundle_name: str, namespace: str, chart: RenderedChart, sensitive: bool) -> dict[str, Any]:
    """Wrap a rendered chart into the Secret (or ConfigMap) the addon manager picks up."""
    metadata = {
        'name': bundle_name,
        'namespace': namespace,
        'labels': {BUNDLE_LABEL: bundle_name},
    }
    files = chart.files()

    if sensitive:
        return {
            'apiVersion': 'v1',
            'kind': 'Secret',
            'metadata': metadata,
            'type': 'Opaque',
            'data': {key: b64encode(value) for key, value in files.items()},
        }

    return {
        'apiVersion': 'v1',
        'kind': 'ConfigMap',
        'metadata': metadata,
        'data': files,
    }
