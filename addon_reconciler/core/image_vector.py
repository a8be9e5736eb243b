from __future__ import annotations

import copy
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from packaging.specifiers import InvalidSpecifier, SpecifierSet
from packaging.version import InvalidVersion, Version

from addon_reconciler.core.config import IMAGE_VECTOR_PATH
from addon_reconciler.core.exceptions import ImageResolutionError
from addon_reconciler.core.utils import setup_logger


@dataclass(frozen=True)
class Image:
    name: str
    repository: str
    tag: str

    def __str__(self) -> str:
        return f'{self.repository}:{self.tag}'


@dataclass(frozen=True)
class ImageSource:
    name: str
    repository: str
    tag: str | None = None
    # e.g. '>=1.11', empty means compatible with every runtime version
    runtime_version: str | None = None

    def matches(self, runtime_version: Version) -> bool:
        if not self.runtime_version:
            return True

        return SpecifierSet(self.runtime_version).contains(runtime_version, prereleases=True)

    def to_image(self, runtime_version: str) -> Image:
        return Image(name=self.name, repository=self.repository, tag=self.tag or f'v{runtime_version}')


class ImageVector:
    def __init__(self, sources: list[ImageSource]) -> None:
        self._logger = setup_logger('ImageVector')
        self._sources = list(sources)

        for source in self._sources:
            if source.runtime_version:
                try:
                    SpecifierSet(source.runtime_version)
                except InvalidSpecifier as e:
                    raise ValueError(
                        f"Invalid runtime version constraint '{source.runtime_version}' for image {source.name}"
                    ) from e

    @classmethod
    def from_yaml(cls, path_to_yaml: Path = IMAGE_VECTOR_PATH) -> ImageVector:
        content = yaml.safe_load(path_to_yaml.read_text()) or {}

        return cls([
            ImageSource(
                name=x['name'],
                repository=x['repository'],
                tag=str(x['tag']) if x.get('tag') is not None else None,
                runtime_version=x.get('runtimeVersion'),
            )
            for x in content.get('images', [])
        ])

    @staticmethod
    def _parse_version(name: str, runtime_version: str) -> Version:
        try:
            return Version(runtime_version.removeprefix('v'))
        except InvalidVersion as e:
            raise ImageResolutionError(name, runtime_version, f'Invalid runtime version: {runtime_version}') from e

    def find_image(self, name: str, runtime_version: str) -> Image:
        version = self._parse_version(name, runtime_version)

        for source in self._sources:
            if source.name == name and source.matches(version):
                return source.to_image(str(version))

        msg = f"No image found for '{name}' compatible with runtime version {runtime_version}"
        self._logger.exception(msg, exc_info=False)
        raise ImageResolutionError(name, runtime_version, msg)

    def inject_images(self, values: dict[str, Any], runtime_version: str, image_map: dict[str, str]) -> dict[str, Any]:
        """Return a copy of ``values`` with ``images.<key>`` set for each ``key: image name`` in ``image_map``."""
        injected = copy.deepcopy(values)
        images = dict(injected.get('images') or {})

        for key, image_name in sorted(image_map.items()):
            images[key] = str(self.find_image(image_name, runtime_version))

        injected['images'] = images

        return injected
