import pytest

from addon_reconciler.core.utils import b64encode, compute_cluster_ip, generate_addon_config, merge_maps


class TestMergeMaps:
    def test_override_wins_for_overlapping_scalars_and_lists(self):
        base = {"replicas": 1, "args": ["--a", "--b"], "image": "nginx"}
        override = {"replicas": 3, "args": ["--c"]}

        merged = merge_maps(base, override)

        assert merged == {"replicas": 3, "args": ["--c"], "image": "nginx"}

    def test_nested_maps_are_merged_key_by_key(self):
        base = {"controller": {"service": {"annotations": {"a": "1"}}, "config": {"x": "y"}}}
        override = {"controller": {"service": {"loadBalancerSourceRanges": ["10.0.0.0/8"]}}}

        merged = merge_maps(base, override)

        assert merged == {
            "controller": {
                "service": {"annotations": {"a": "1"}, "loadBalancerSourceRanges": ["10.0.0.0/8"]},
                "config": {"x": "y"},
            }
        }

    def test_map_replaced_by_scalar(self):
        assert merge_maps({"resources": {"limits": {}}}, {"resources": None}) == {"resources": None}

    def test_inputs_are_not_modified(self):
        base = {"a": {"b": [1]}}
        override = {"a": {"c": 2}}

        merged = merge_maps(base, override)
        merged["a"]["b"].append(2)

        assert base == {"a": {"b": [1]}}
        assert override == {"a": {"c": 2}}

    def test_empty_override_returns_copy(self):
        base = {"a": 1}
        merged = merge_maps(base, {})

        assert merged == base
        assert merged is not base


class TestGenerateAddonConfig:
    @pytest.mark.parametrize("enabled", [True, False])
    def test_enabled_flag(self, enabled):
        assert generate_addon_config(None, enabled) == {"enabled": enabled}

    def test_values_are_kept(self):
        assert generate_addon_config({"config": {"LEGO_EMAIL": "a@b.c"}}, True) == {
            "config": {"LEGO_EMAIL": "a@b.c"},
            "enabled": True,
        }


class TestComputeClusterIP:
    @pytest.mark.parametrize(
        "cidr, offset, expected",
        [
            ("100.64.0.0/13", 10, "100.64.0.10"),
            ("10.0.0.0/24", 1, "10.0.0.1"),
            ("10.0.0.5/24", 10, "10.0.0.10"),
        ],
    )
    def test_compute(self, cidr, offset, expected):
        assert compute_cluster_ip(cidr, offset) == expected

    def test_offset_outside_network(self):
        with pytest.raises(ValueError, match="Offset 10 is outside of network 10.0.0.0/29"):
            compute_cluster_ip("10.0.0.0/29", 10)


class TestB64Encode:
    @pytest.mark.parametrize("value", ["kube-system", b"kube-system"])
    def test_text_and_bytes(self, value):
        assert b64encode(value) == "a3ViZS1zeXN0ZW0="

    def test_binary_data(self):
        assert b64encode(b"\xff\xfe") == "//4="
