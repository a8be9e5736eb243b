import pytest

from addon_reconciler.core.addons import CORE_ADDON_IMAGES, OPTIONAL_ADDON_IMAGES
from addon_reconciler.core.exceptions import ImageResolutionError
from addon_reconciler.core.image_vector import ImageSource, ImageVector


@pytest.fixture
def vector():
    return ImageVector([
        ImageSource(name="hyperkube", repository="k8s.gcr.io/hyperkube"),
        ImageSource(name="metrics-server", repository="k8s.gcr.io/metrics-server", tag="v0.2.1",
                    runtime_version="<1.11"),
        ImageSource(name="metrics-server", repository="k8s.gcr.io/metrics-server", tag="v0.3.0",
                    runtime_version=">=1.11"),
        ImageSource(name="metrics-server", repository="example.org/never-selected", tag="v9.9.9"),
    ])


class TestImageVector:
    @pytest.mark.parametrize(
        "runtime_version, expected",
        [
            ("1.10.5", "k8s.gcr.io/metrics-server:v0.2.1"),
            ("1.11.0", "k8s.gcr.io/metrics-server:v0.3.0"),
            ("v1.11.3", "k8s.gcr.io/metrics-server:v0.3.0"),
        ],
    )
    def test_version_appropriate_image(self, vector, runtime_version, expected):
        assert str(vector.find_image("metrics-server", runtime_version)) == expected

    def test_untagged_image_uses_runtime_version(self, vector):
        image = vector.find_image("hyperkube", "1.10.5")

        assert image.tag == "v1.10.5"
        assert str(image) == "k8s.gcr.io/hyperkube:v1.10.5"

    def test_unknown_image(self, vector):
        with pytest.raises(ImageResolutionError, match="No image found for 'calico-node'") as e:
            vector.find_image("calico-node", "1.11.0")

        assert e.value.image_name == "calico-node"
        assert e.value.runtime_version == "1.11.0"

    def test_no_compatible_entry(self):
        vector = ImageVector([ImageSource(name="x", repository="x", tag="1", runtime_version=">=1.12")])

        with pytest.raises(ImageResolutionError, match="compatible with runtime version 1.11.0"):
            vector.find_image("x", "1.11.0")

    def test_invalid_runtime_version(self, vector):
        with pytest.raises(ImageResolutionError, match="Invalid runtime version: latest"):
            vector.find_image("hyperkube", "latest")

    def test_invalid_constraint(self):
        with pytest.raises(ValueError, match="Invalid runtime version constraint 'about 1.11'"):
            ImageVector([ImageSource(name="x", repository="x", runtime_version="about 1.11")])

    def test_inject_images(self, vector):
        values = {"tls": {"caBundle": "abc"}, "images": {"other": "busybox:1"}}

        injected = vector.inject_images(values, "1.10.5", {"metrics-server": "metrics-server", "hyperkube": "hyperkube"})

        assert injected == {
            "tls": {"caBundle": "abc"},
            "images": {
                "other": "busybox:1",
                "metrics-server": "k8s.gcr.io/metrics-server:v0.2.1",
                "hyperkube": "k8s.gcr.io/hyperkube:v1.10.5",
            },
        }
        assert values == {"tls": {"caBundle": "abc"}, "images": {"other": "busybox:1"}}

    def test_inject_images_is_deterministic(self, vector):
        image_map = {"metrics-server": "metrics-server"}

        assert vector.inject_images({}, "1.11.0", image_map) == vector.inject_images({}, "1.11.0", image_map)

    def test_inject_unknown_image(self, vector):
        with pytest.raises(ImageResolutionError):
            vector.inject_images({}, "1.11.0", {"calico-node": "calico-node"})


class TestShippedImageVector:
    def test_metrics_server_differs_between_runtime_versions(self, image_vector):
        old = image_vector.find_image("metrics-server", "1.10.5")
        new = image_vector.find_image("metrics-server", "1.11.0")

        assert old.repository == new.repository
        assert old.tag != new.tag

    def test_kubernetes_dashboard_differs_between_runtime_versions(self, image_vector):
        assert image_vector.find_image("kubernetes-dashboard", "1.10.5") != image_vector.find_image(
            "kubernetes-dashboard", "1.11.0"
        )

    @pytest.mark.parametrize("runtime_version", ["1.10.5", "1.11.0"])
    def test_every_addon_image_resolves(self, image_vector, runtime_version):
        for image_map in [*CORE_ADDON_IMAGES.values(), *OPTIONAL_ADDON_IMAGES.values()]:
            for image_name in image_map.values():
                image_vector.find_image(image_name, runtime_version)
