import pytest
from fastapi.testclient import TestClient

from podsync.errors import SidecarRequestError
from podsync.factory import new_pod_client
from podsync.fake_sidecar import SidecarState, create_app
from podsync.hashing import content_digest

MONITOR_TEMPLATE = "[fdbserver.1]\npublic_address = $FDB_PUBLIC_IP:4501\nlocality_zoneid = $FDB_ZONE_ID\n"
RENDERED = "[fdbserver.1]\npublic_address = 10.1.0.5:4501\nlocality_zoneid = node-a\n"


@pytest.fixture
def state():
    return SidecarState(
        input_files={"fdb.cluster": "desc:id@10.1.0.5:4501", "fdbmonitor.conf": MONITOR_TEMPLATE},
        substitutions={"FDB_PUBLIC_IP": "10.1.0.5", "FDB_ZONE_ID": "node-a"},
    )


@pytest.fixture
def http(state):
    with TestClient(create_app(state)) as client:
        yield client


def test_check_hash_endpoint(state, http):
    assert http.get("/check_hash/fdb.cluster").status_code == 404
    state.output_files["fdb.cluster"] = "abc"
    r = http.get("/check_hash/fdb.cluster")
    assert r.status_code == 200
    assert r.text == content_digest("abc")


def test_ready_and_substitutions_endpoints(http):
    assert http.get("/ready").text == "OK"
    assert http.get("/substitutions").json() == {"FDB_PUBLIC_IP": "10.1.0.5", "FDB_ZONE_ID": "node-a"}


def test_copy_monitor_conf_without_template_is_not_found(http, state):
    del state.input_files["fdbmonitor.conf"]
    assert http.post("/copy_monitor_conf").status_code == 404


def test_cluster_file_converges_end_to_end(cluster, pod, test_settings, state, http):
    client = new_pod_client(cluster, pod, config=test_settings, http_client=http)

    assert client.is_present("fdb.cluster") is False
    assert client.update_file("fdb.cluster", "desc:id@10.1.0.5:4501") is True
    assert client.is_present("fdb.cluster") is True
    assert state.output_files["fdb.cluster"] == "desc:id@10.1.0.5:4501"
    assert ("POST", "copy_files") in state.requests

    state.requests.clear()
    assert client.update_file("fdb.cluster", "desc:id@10.1.0.5:4501") is True
    assert state.requests == [("GET", "check_hash/fdb.cluster")]


def test_monitor_conf_is_rendered_with_substitutions(cluster, pod, test_settings, state, http):
    client = new_pod_client(cluster, pod, config=test_settings, http_client=http)

    assert client.update_file("fdbmonitor.conf", RENDERED) is True
    assert state.output_files["fdbmonitor.conf"] == RENDERED
    assert [r for r in state.requests if r[0] == "POST"] == [("POST", "copy_monitor_conf")]
    assert client.get_variable_substitutions() == state.substitutions


def test_slow_sidecar_converges_on_next_pass(cluster, pod, test_settings, state, http):
    state.copy_delay_requests = 1
    client = new_pod_client(cluster, pod, config=test_settings, http_client=http)

    # The re-check runs before the copy lands, so the first pass reports not converged.
    assert client.update_file("fdb.cluster", "desc:id@10.1.0.5:4501") is False
    assert client.update_file("fdb.cluster", "desc:id@10.1.0.5:4501") is True


def test_sidecar_error_status_surfaces(cluster, pod, test_settings, state, http):
    del state.input_files["fdbmonitor.conf"]
    client = new_pod_client(cluster, pod, config=test_settings, http_client=http)
    with pytest.raises(SidecarRequestError) as exc_info:
        client.update_file("fdbmonitor.conf", RENDERED)
    assert exc_info.value.status_code == 404
