import pytest

from kubectl_explain_placement.errors import DataError
from kubectl_explain_placement.model import (
    DEFAULT_NAMESPACE,
    Node,
    NodeAffinity,
    Taint,
    Toleration,
    Workload,
    tolerations_tolerate_taint,
)

# ----------------------------
# Workload parsing
# ----------------------------


def test_minimal_pod_defaults():
    pod = Workload.from_dict({"metadata": {"name": "web"}})

    assert pod.name == "web"
    assert pod.namespace == DEFAULT_NAMESPACE
    assert pod.node_name == ""
    assert pod.containers == ()
    assert pod.tolerations == ()
    assert pod.node_selector == {}
    assert pod.node_affinity is None
    assert pod.requests == []
    assert str(pod) == "default/web"


def test_full_pod_is_parsed():
    pod = Workload.from_dict(
        {
            "metadata": {"name": "web", "namespace": "shop"},
            "spec": {
                "nodeName": "node-1",
                "nodeSelector": {"zone": "us-east"},
                "tolerations": [{"key": "gpu", "operator": "Exists"}],
                "containers": [
                    {"name": "app", "resources": {"requests": {"cpu": "1"}}},
                    {"name": "sidecar"},
                ],
                "affinity": {
                    "nodeAffinity": {
                        "requiredDuringSchedulingIgnoredDuringExecution": {
                            "nodeSelectorTerms": [
                                {
                                    "matchExpressions": [
                                        {"key": "disk", "operator": "In", "values": ["ssd"]}
                                    ]
                                }
                            ]
                        }
                    }
                },
            },
            "status": {"phase": "Running"},
        }
    )

    assert pod.identity == ("shop", "web")
    assert pod.node_name == "node-1"
    assert pod.phase == "Running"
    assert pod.requests == [{"cpu": "1"}, {}]
    assert pod.tolerations == (Toleration(key="gpu", operator="Exists"),)

    (term,) = pod.node_affinity.required_terms
    (req,) = term.match_expressions
    assert (req.key, req.operator, req.values) == ("disk", "In", ("ssd",))


def test_preferred_only_affinity_has_no_required_terms():
    pod = Workload.from_dict(
        {
            "metadata": {"name": "web"},
            "spec": {
                "affinity": {
                    "nodeAffinity": {
                        "preferredDuringSchedulingIgnoredDuringExecution": []
                    }
                }
            },
        }
    )
    assert pod.node_affinity == NodeAffinity(required_terms=None)


def test_pod_without_name_is_rejected():
    with pytest.raises(DataError):
        Workload.from_dict({"metadata": {"namespace": "shop"}})


@pytest.mark.parametrize(
    "pod",
    [
        None,
        [],
        {"metadata": {"name": "web"}, "spec": {"tolerations": {"key": "gpu"}}},
        {"metadata": {"name": "web"}, "spec": "oops"},
    ],
)
def test_malformed_pod_is_rejected(pod):
    with pytest.raises(DataError):
        Workload.from_dict(pod)


def test_identity_is_namespace_and_name():
    a = Workload(name="web", namespace="shop")
    b = Workload(name="web", namespace="shop", node_name="node-1")
    c = Workload(name="web", namespace="staging")

    assert a.is_same(b)
    assert not a.is_same(c)


# ----------------------------
# Node parsing
# ----------------------------


def test_node_is_parsed():
    node = Node.from_dict(
        {
            "metadata": {"name": "node-1", "labels": {"zone": "us-east"}},
            "spec": {
                "unschedulable": True,
                "taints": [{"key": "gpu", "value": "true", "effect": "NoSchedule"}],
            },
            "status": {"allocatable": {"cpu": "4"}},
        }
    )

    assert node.labels == {"zone": "us-east"}
    assert node.allocatable == {"cpu": "4"}
    assert node.taints == (Taint("gpu", "true", "NoSchedule"),)
    assert node.unschedulable is True
    assert node.fields == {"metadata.name": "node-1"}


@pytest.mark.parametrize("flag", ["false", "true", 0, 1])
def test_non_boolean_unschedulable_is_rejected(flag):
    with pytest.raises(DataError, match="unschedulable must be a boolean"):
        Node.from_dict({"metadata": {"name": "node-1"}, "spec": {"unschedulable": flag}})


def test_unschedulable_defaults_to_false():
    assert Node.from_dict({"metadata": {"name": "node-1"}}).unschedulable is False
    assert (
        Node.from_dict(
            {"metadata": {"name": "node-1"}, "spec": {"unschedulable": False}}
        ).unschedulable
        is False
    )


def test_node_without_name_is_rejected():
    with pytest.raises(DataError):
        Node.from_dict({"metadata": {}})


def test_taint_rendering():
    assert str(Taint("gpu", "true", "NoSchedule")) == "gpu=true:NoSchedule"
    assert str(Taint("gpu", effect="NoExecute")) == "gpu:NoExecute"


# ----------------------------
# Toleration matching
# ----------------------------

GPU = Taint("gpu", "true", "NoSchedule")


@pytest.mark.parametrize(
    "toleration, expected",
    [
        (Toleration(key="gpu", operator="Exists"), True),
        (Toleration(key="gpu", operator="Equal", value="true"), True),
        (Toleration(key="gpu", value="true"), True),
        (Toleration(key="gpu", operator="Equal", value="false"), False),
        (Toleration(key="gpu", operator="Equal"), False),
        (Toleration(key="tpu", operator="Exists"), False),
        (Toleration(operator="Exists"), True),
        (Toleration(operator="Exists", effect="NoSchedule"), True),
        (Toleration(operator="Exists", effect="NoExecute"), False),
        (Toleration(key="gpu", operator="Bogus", value="true"), False),
    ],
)
def test_toleration_matching(toleration, expected):
    assert toleration.tolerates(GPU) is expected


def test_any_toleration_is_enough():
    tolerations = (
        Toleration(key="tpu", operator="Exists"),
        Toleration(key="gpu", operator="Exists"),
    )
    assert tolerations_tolerate_taint(tolerations, GPU)
    assert not tolerations_tolerate_taint((), GPU)
