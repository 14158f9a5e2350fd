"""
App-level wiring: health check and router mounting.
"""


def test_health_check(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "xmail"}


def test_routes_live_under_api_v1(client):
    paths = {route.path for route in client.app.routes}
    assert "/api/v1/auth/login" in paths
    assert "/api/v1/mail/compose" in paths
    assert "/api/v1/drafts/send/{draft_id}" in paths
    assert "/ws" in paths
