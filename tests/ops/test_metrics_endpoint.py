from app.adminhub.core.metrics import Metrics, metrics
from tests.rbac_helpers import auth_headers, create_role, create_user, seed_defaults


def test_metrics_endpoint_exposes_rbac_counters(client, db_session):
    metrics.reset()
    seed_defaults(db_session)
    viewer = create_user(db_session, create_role(db_session, "VIEWER"))
    client.get("/adminhub/roles", headers=auth_headers(viewer))

    response = client.get("/adminhub/ops/metrics")

    assert response.status_code == 200
    if metrics.enabled:
        assert "rbac_denied_total 1.0" in response.text
        assert "http_requests_total" in response.text
    else:
        assert "metrics_disabled" in response.text


def test_grant_write_counter_by_result():
    local = Metrics(enabled=True)
    local.record_grant_write("success")
    local.record_grant_write("failure")
    local.record_grant_write("success")

    content = local.render().content.decode("utf-8")
    assert 'grant_writes_total{result="success"} 2.0' in content
    assert 'grant_writes_total{result="failure"} 1.0' in content


def test_disabled_metrics_render_placeholder():
    snapshot = Metrics(enabled=False).render()
    assert snapshot.content == b"metrics_disabled\n"
