from types import SimpleNamespace
from unittest import mock

import pytest
import urllib3
from kubernetes.client.exceptions import ApiException
from kubernetes.config import ConfigException

from kubectl_explain_placement import kube_provider
from kubectl_explain_placement.errors import (
    ConfigurationError,
    ObjectNotFound,
    TransientError,
)
from kubectl_explain_placement.kube_provider import (
    ACTIVE_POD_SELECTOR,
    KubernetesProvider,
    load_client,
)


def pod(name, namespace="default", node_name=None):
    spec = {"containers": [{"name": "c"}]}
    if node_name:
        spec["nodeName"] = node_name
    return {"metadata": {"name": name, "namespace": namespace}, "spec": spec}


@pytest.fixture
def api():
    """CoreV1Api double whose responses are already plain dicts."""
    fake = mock.MagicMock()
    fake.api_client.sanitize_for_serialization.side_effect = lambda obj: obj
    return fake


# ----------------------------
# Client loading
# ----------------------------


def test_existing_kubeconfig_is_loaded(tmp_path):
    path = tmp_path / "config"
    path.write_text("")

    with mock.patch.object(kube_provider.config, "load_kube_config") as load_kube:
        with mock.patch.object(kube_provider.client, "CoreV1Api") as core:
            load_client(str(path), "dev")

    load_kube.assert_called_once_with(config_file=str(path), context="dev")
    core.assert_called_once_with()


def test_missing_kubeconfig_falls_back_to_in_cluster(tmp_path):
    with mock.patch.object(kube_provider.config, "load_incluster_config") as incluster:
        with mock.patch.object(kube_provider.client, "CoreV1Api"):
            load_client(str(tmp_path / "missing"))

    incluster.assert_called_once_with()


def test_config_failure_is_a_configuration_error():
    with mock.patch.object(
        kube_provider.config,
        "load_incluster_config",
        side_effect=ConfigException("no service account"),
    ):
        with pytest.raises(ConfigurationError, match="no service account"):
            load_client(None)


# ----------------------------
# Reads
# ----------------------------


def test_get_workload_in_namespace(api):
    api.read_namespaced_pod.return_value = pod("web", "shop")

    workload = KubernetesProvider(api).get_workload("web", "shop")

    api.read_namespaced_pod.assert_called_once_with("web", "shop")
    assert workload.identity == ("shop", "web")


def test_get_workload_across_namespaces_takes_first_match(api):
    api.list_pod_for_all_namespaces.return_value = SimpleNamespace(
        items=[pod("web", "staging"), pod("web", "shop")]
    )

    workload = KubernetesProvider(api).get_workload("web")

    api.list_pod_for_all_namespaces.assert_called_once_with(
        field_selector="metadata.name=web"
    )
    assert workload.namespace == "staging"


def test_get_workload_not_found(api):
    api.read_namespaced_pod.side_effect = ApiException(status=404, reason="Not Found")
    api.list_pod_for_all_namespaces.return_value = SimpleNamespace(items=[])
    provider = KubernetesProvider(api)

    with pytest.raises(ObjectNotFound, match="in namespace shop"):
        provider.get_workload("web", "shop")
    with pytest.raises(ObjectNotFound, match="in all namespaces"):
        provider.get_workload("web")


def test_get_node(api):
    api.read_node.return_value = {
        "metadata": {"name": "node-1"},
        "status": {"allocatable": {"cpu": "4"}},
    }
    assert KubernetesProvider(api).get_node("node-1").allocatable == {"cpu": "4"}

    api.read_node.side_effect = ApiException(status=404)
    with pytest.raises(ObjectNotFound, match="Node node-1 not found"):
        KubernetesProvider(api).get_node("node-1")


def test_list_workloads_on_node_uses_field_selector(api):
    api.list_pod_for_all_namespaces.return_value = SimpleNamespace(
        items=[pod("a", node_name="node-1"), pod("b", node_name="node-1")]
    )

    workloads = KubernetesProvider(api).list_workloads_on_node("node-1")

    api.list_pod_for_all_namespaces.assert_called_once_with(
        field_selector=f"spec.nodeName=node-1,{ACTIVE_POD_SELECTOR}"
    )
    assert [w.name for w in workloads] == ["a", "b"]


# ----------------------------
# Failures
# ----------------------------


@pytest.mark.parametrize(
    "error",
    [
        ApiException(status=500, reason="Internal Server Error"),
        ApiException(status=403, reason="Forbidden"),
        urllib3.exceptions.MaxRetryError(None, "/api/v1/nodes/node-1"),
        ConnectionRefusedError("connection refused"),
    ],
)
def test_api_failures_are_transient(api, error):
    api.read_node.side_effect = error

    with pytest.raises(TransientError, match="get node node-1 failed"):
        KubernetesProvider(api).get_node("node-1")


def test_from_kubeconfig_builds_client():
    with mock.patch.object(kube_provider, "load_client") as load:
        provider = KubernetesProvider.from_kubeconfig("/tmp/kubeconfig", "dev")

    load.assert_called_once_with("/tmp/kubeconfig", "dev")
    assert provider.api is load.return_value
