"""Tests for resource reconciliation across config, plan and state."""

import pytest

from tfdoc_core.errors import TypeMismatch
from tfdoc_core.model import SourceSpan, from_raw
from tfdoc_core.reconciler import (
    from_config,
    from_plan,
    from_state_instance,
    iter_plan_entries,
    iter_state_resources,
    plan_address,
    resource_address,
    state_instances,
)

SPAN = SourceSpan(3, 5, "...")


# ---------------------------------------------------------------------------
# resource_address
# ---------------------------------------------------------------------------

class TestResourceAddress:
    def test_plain(self):
        assert resource_address("aws_instance", "web") == "aws_instance.web"

    def test_numeric_index(self):
        assert resource_address("aws_instance", "web", 0) == "aws_instance.web[0]"

    def test_string_index_quoted(self):
        assert resource_address("aws_instance", "web", "blue") == 'aws_instance.web["blue"]'

    def test_data_mode(self):
        assert resource_address("aws_ami", "ubuntu", mode="data") == "data.aws_ami.ubuntu"

    def test_module_prefix(self):
        address = resource_address("aws_vpc", "this", 0, module="module.vpc")
        assert address == "module.vpc.aws_vpc.this[0]"


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

def test_from_config():
    body = from_raw({
        "ami": "abc",
        "count": 2,
        "depends_on": ["${aws_vpc.main}"],
        "__start_line__": 3,
        "__end_line__": 5,
    })
    resource = from_config("main.tf", "aws_instance", "web", body, SPAN)
    assert resource.address == "aws_instance.web"
    assert resource.arguments == {"ami": "abc"}
    assert resource.attributes_std == resource.arguments
    assert resource.attributes is None
    assert resource.count == 2
    assert resource.count_src == "2"
    assert resource.depends_on == ["${aws_vpc.main}"]
    assert (resource.start_line, resource.end_line, resource.source) == (3, 5, "...")


def test_from_config_bad_depends_on():
    body = from_raw({"depends_on": {"a": 1}})
    with pytest.raises(TypeMismatch) as exc:
        from_config("main.tf", "aws_instance", "bad", body, SPAN)
    assert "resource 'aws_instance.bad'" in str(exc.value)


# ---------------------------------------------------------------------------
# Plan
# ---------------------------------------------------------------------------

PLAN_TREE = from_raw({
    "planned_values": {
        "root_module": {
            "resources": [
                {"address": "aws_instance.web", "mode": "managed", "type": "aws_instance",
                 "name": "web", "provider_name": "registry.terraform.io/hashicorp/aws",
                 "values": {"ami": "abc"}},
            ],
            "child_modules": [
                {"address": "module.vpc", "resources": [
                    {"address": "module.vpc.aws_vpc.this[0]", "type": "aws_vpc",
                     "name": "this", "index": 0, "values": {"cidr_block": "10.0.0.0/16"}},
                ]},
            ],
        }
    }
})


def test_iter_plan_entries_includes_child_modules():
    addresses = [plan_address(e) for e in iter_plan_entries(PLAN_TREE)]
    assert addresses == ["aws_instance.web", "module.vpc.aws_vpc.this[0]"]


def test_iter_plan_entries_no_planned_values():
    assert list(iter_plan_entries(from_raw({"resource_changes": []}))) == []


def test_plan_address_computed_when_missing():
    entry = from_raw({"type": "aws_ami", "name": "ubuntu", "mode": "data"})
    assert plan_address(entry) == "data.aws_ami.ubuntu"


def test_from_plan():
    entry = next(iter_plan_entries(PLAN_TREE))
    resource = from_plan("plan.json", entry, SPAN)
    assert resource.address == "aws_instance.web"
    assert resource.arguments == {"ami": "abc"}
    assert resource.attributes_std == {"ami": "abc"}
    assert resource.provider == "registry.terraform.io/hashicorp/aws"
    assert resource.index is None


def test_from_plan_index():
    entry = list(iter_plan_entries(PLAN_TREE))[1]
    assert from_plan("plan.json", entry, SPAN).index == 0


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------

STATE_TREE = from_raw({
    "version": 4,
    "resources": [
        {
            "mode": "managed",
            "type": "aws_instance",
            "name": "web",
            "provider": "provider[\"registry.terraform.io/hashicorp/aws\"]",
            "instances": [
                {"index_key": i, "attributes": {"id": f"i-{i}"}, "dependencies": ["aws_vpc.main"]}
                for i in range(3)
            ],
        },
        {
            "mode": "managed",
            "type": "aws_instance",
            "name": "legacy",
            "instances": [{"attributes_flat": {"id": "i-old"}}],
        },
    ],
})


def test_three_instances_three_addresses():
    resource = next(iter_state_resources(STATE_TREE))
    built = [from_state_instance("s.tfstate", resource, inst, SPAN) for inst in state_instances(resource)]
    assert [r.address for r in built] == [
        "aws_instance.web[0]",
        "aws_instance.web[1]",
        "aws_instance.web[2]",
    ]
    assert built[1].attributes == {"id": "i-1"}
    assert built[1].attributes_std == built[1].attributes
    assert built[1].depends_on == ["aws_vpc.main"]
    assert built[1].arguments is None


def test_attributes_flat_fallback():
    resource = list(iter_state_resources(STATE_TREE))[1]
    (instance,) = state_instances(resource)
    built = from_state_instance("s.tfstate", resource, instance, SPAN)
    assert built.address == "aws_instance.legacy"
    assert built.attributes == {"id": "i-old"}


def test_for_each_key():
    resource = from_raw({"type": "aws_s3_bucket", "name": "b", "instances": []})
    instance = from_raw({"index_key": "logs", "attributes": {}})
    assert from_state_instance("s", resource, instance, SPAN).address == 'aws_s3_bucket.b["logs"]'


def test_instances_must_be_list():
    resource = from_raw({"type": "aws_instance", "name": "web", "instances": {"a": 1}})
    with pytest.raises(TypeMismatch):
        state_instances(resource)


def test_no_instances():
    assert state_instances(from_raw({"type": "x", "name": "y"})) == []


def test_dependencies_must_be_list():
    resource = from_raw({"type": "aws_instance", "name": "web"})
    instance = from_raw({"dependencies": {"a": 1}, "attributes": {}})
    with pytest.raises(TypeMismatch):
        from_state_instance("s", resource, instance, SPAN)


# ---------------------------------------------------------------------------
# JSON exports: user keys and nulls
# ---------------------------------------------------------------------------

def test_state_attributes_keep_dunder_prefixed_keys():
    tree = from_raw({"resources": [{
        "type": "aws_instance",
        "name": "web",
        "instances": [{"attributes": {"tags": {"__owner": "ops", "Name": "w"}}}],
    }]})
    resource = next(iter_state_resources(tree))
    (instance,) = state_instances(resource)
    built = from_state_instance("s.tfstate", resource, instance, SPAN)
    assert built.attributes == {"tags": {"__owner": "ops", "Name": "w"}}


def test_plan_values_keep_dunder_prefixed_keys():
    entry = from_raw({"address": "aws_instance.web", "type": "aws_instance", "name": "web",
                      "values": {"__owner": "ops"}})
    assert from_plan("plan.json", entry, SPAN).arguments == {"__owner": "ops"}


def test_null_values_treated_as_missing():
    entry = from_raw({"address": "aws_instance.web", "type": "aws_instance", "name": "web",
                      "values": None})
    assert from_plan("plan.json", entry, SPAN).arguments == {}


def test_null_attributes_fall_back_to_flat():
    resource = from_raw({"type": "aws_instance", "name": "old"})
    instance = from_raw({"attributes": None, "attributes_flat": {"id": "i-1"}})
    assert from_state_instance("s", resource, instance, SPAN).attributes == {"id": "i-1"}


def test_null_instances():
    assert state_instances(from_raw({"type": "x", "name": "y", "instances": None})) == []
