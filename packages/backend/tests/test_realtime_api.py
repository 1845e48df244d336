"""Realtime HTTP API tests — stats, subscribers, notifications.

Learn: These go through ASGITransport, so there are no real sockets.
Subscriptions are set up directly on the app's hub with fake
connections, then the HTTP side is exercised against that state.
"""

import pytest


def _subscribe(app, make_connection, business_id, count=1):
    """Register `count` fake connections on a business topic."""
    hub = app.state.hub
    conns = []
    for _ in range(count):
        conn = make_connection()
        hub.registry.attach(conn)
        app.state.business_service.subscribe(conn, business_id)
        conns.append(conn)
    return conns


# ═══════════════════════════════════════════════════════════
# Stats
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_stats_empty(client):
    r = await client.get("/api/v1/realtime/stats")
    assert r.status_code == 200
    data = r.json()
    assert data["handler"] == "notifications"
    assert data["connections"] == 0
    assert data["topics"] == {}
    assert data["analytics"]["connects_total"] == 0


@pytest.mark.asyncio
async def test_stats_counts_topics(app, client, make_connection):
    _subscribe(app, make_connection, 7, count=2)
    _subscribe(app, make_connection, 9)

    r = await client.get("/api/v1/realtime/stats")
    data = r.json()
    assert data["connections"] == 3
    # JSON object keys are strings
    assert data["topics"] == {"7": 2, "9": 1}


# ═══════════════════════════════════════════════════════════
# Subscribers
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_list_subscribers(app, client, make_connection):
    conns = _subscribe(app, make_connection, 42, count=2)

    r = await client.get("/api/v1/businesses/42/subscribers")
    assert r.status_code == 200
    assert r.json() == {
        "business_id": 42,
        "subscribers": sorted(c.id for c in conns),
    }


@pytest.mark.asyncio
async def test_list_subscribers_empty(client):
    r = await client.get("/api/v1/businesses/42/subscribers")
    assert r.json()["subscribers"] == []


@pytest.mark.asyncio
async def test_list_subscribers_bad_id(client):
    r = await client.get("/api/v1/businesses/0/subscribers")
    assert r.status_code == 422


# ═══════════════════════════════════════════════════════════
# Notifications
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_notify_update(app, client, make_connection):
    (conn,) = _subscribe(app, make_connection, 7)

    r = await client.post(
        "/api/v1/businesses/7/notifications",
        json={"type": "update", "data": {"phone": "555-0100"}},
    )
    assert r.status_code == 202
    assert r.json() == {"business_id": 7, "type": "update", "delivered": 1}
    assert conn.websocket.frames() == [
        {"type": "update", "businessId": 7, "data": {"phone": "555-0100"}}
    ]


@pytest.mark.asyncio
async def test_notify_new_review(app, client, make_connection):
    a, b = _subscribe(app, make_connection, 7, count=2)
    (other,) = _subscribe(app, make_connection, 8)

    r = await client.post(
        "/api/v1/businesses/7/notifications",
        json={"type": "new_review", "data": {"rating": 5}},
    )
    assert r.json()["delivered"] == 2
    for conn in (a, b):
        assert conn.websocket.frames() == [
            {"type": "new_review", "businessId": 7, "review": {"rating": 5}}
        ]
    assert other.websocket.sent == []


@pytest.mark.asyncio
async def test_notify_defaults_to_update(app, client, make_connection):
    (conn,) = _subscribe(app, make_connection, 3)

    r = await client.post("/api/v1/businesses/3/notifications", json={})
    assert r.status_code == 202
    assert conn.websocket.frames() == [{"type": "update", "businessId": 3, "data": {}}]


@pytest.mark.asyncio
async def test_notify_without_subscribers(client):
    r = await client.post(
        "/api/v1/businesses/404/notifications",
        json={"type": "update", "data": {}},
    )
    assert r.status_code == 202
    assert r.json()["delivered"] == 0


@pytest.mark.asyncio
async def test_notify_rejects_unknown_type(client):
    r = await client.post(
        "/api/v1/businesses/1/notifications",
        json={"type": "deleted", "data": {}},
    )
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_notify_rejects_bad_business_id(client):
    r = await client.post("/api/v1/businesses/-1/notifications", json={})
    assert r.status_code == 422
    assert "positive integer" in r.json()["detail"]
