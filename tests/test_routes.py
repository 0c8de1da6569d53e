import pytest


async def _create_lead(client, **overrides):
    payload = {"name": "Ana Garcia", "phone": "600 123 456", "services": ["ventanas"]}
    payload.update(overrides)
    response = await client.post("/api/leads", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/api/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["checks"]["database"]["status"] == "healthy"
    assert body["checks"]["redis"]["status"] == "disabled"

    response = await client.get("/api/health/live")
    assert response.json()["status"] == "alive"


@pytest.mark.asyncio
async def test_request_id_is_echoed(client):
    response = await client.get("/api/health/live", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"
    assert "X-Response-Time" in response.headers


@pytest.mark.asyncio
async def test_lead_lifecycle(client):
    lead = await _create_lead(client, quoted_amount="1500")
    assert lead["phone"] == "600123456"
    assert lead["state"] == "nuevo"
    assert lead["source"] == "directo"

    response = await client.put(f"/api/leads/{lead['id']}", json={"priority": "alta", "notes": "Prefers mornings"})
    assert response.status_code == 200
    assert response.json()["priority"] == "alta"

    response = await client.put(f"/api/leads/{lead['id']}/state", json={"estado": "ganado", "nota": "Signed"})
    assert response.status_code == 200, response.text
    won = response.json()
    assert won["state"] == "ganado"
    assert float(won["sale_amount"]) == 1500
    assert float(won["commission_amount"]) == 150

    response = await client.get(f"/api/leads/{lead['id']}")
    detail = response.json()
    assert [activity["type"] for activity in detail["activities"]] == ["venta_cerrada", "creacion"]
    assert detail["activities"][0]["description"] == "Signed"

    response = await client.delete(f"/api/leads/{lead['id']}")
    assert response.json() == {"success": True, "message": "Lead deleted"}

    response = await client.get(f"/api/leads/{lead['id']}")
    assert response.status_code == 404
    assert response.json()["code"] == "not_found"


@pytest.mark.asyncio
async def test_win_without_amount_is_rejected(client):
    lead = await _create_lead(client)
    response = await client.put(f"/api/leads/{lead['id']}/state", json={"state": "ganado"})
    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "invalid_transition"
    assert body["message"] == "missing sale amount"


@pytest.mark.asyncio
async def test_validation_errors_share_one_shape(client):
    response = await client.post("/api/leads", json={"name": "A", "phone": "123"})
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["code"] == "validation_error"
    assert {error["field"] for error in body["details"]["errors"]} == {"name", "phone"}

    response = await client.post("/api/leads", json={"name": "Ana Garcia", "phone": "600123456", "source": "landing"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_list_filters_and_pagination(client):
    await _create_lead(client, name="Ana Garcia")
    await _create_lead(client, name="Bruno Diaz", source="referido")
    await _create_lead(client, name="Carla Ruiz", priority="urgente")

    response = await client.get("/api/leads", params={"source": "referido,directo", "sort": "name", "order": "asc"})
    body = response.json()
    assert body["total"] == 3
    assert [item["name"] for item in body["items"]] == ["Ana Garcia", "Bruno Diaz", "Carla Ruiz"]

    response = await client.get("/api/leads", params={"priority": "urgente"})
    assert [item["name"] for item in response.json()["items"]] == ["Carla Ruiz"]

    response = await client.get("/api/leads", params={"page_size": 2, "page": 2, "sort": "name", "order": "asc"})
    body = response.json()
    assert body["total_pages"] == 2
    assert [item["name"] for item in body["items"]] == ["Carla Ruiz"]

    response = await client.get("/api/leads", params={"state": "nuevo,archivado"})
    assert response.status_code == 400
    assert response.json()["details"]["errors"][0]["field"] == "state"

    response = await client.get("/api/leads", params={"sort": "password"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_bulk(client):
    first = await _create_lead(client, name="Ana Garcia")
    second = await _create_lead(client, name="Bruno Diaz")

    response = await client.post(
        "/api/leads/bulk",
        json={"ids": [first["id"], second["id"], 999], "action": "updateState", "value": "contactado"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 2
    assert body["missing_ids"] == [999]

    response = await client.post("/api/leads/bulk", json={"ids": [first["id"]], "action": "archive"})
    assert response.status_code == 400
    assert response.json()["code"] == "invalid_argument"


@pytest.mark.asyncio
async def test_activities(client):
    lead = await _create_lead(client)

    response = await client.post(
        f"/api/leads/{lead['id']}/activities",
        json={"type": "llamada", "description": "No answer", "metadata": {"duration": 0}},
    )
    assert response.status_code == 201
    assert response.json()["metadata"] == {"duration": 0}

    response = await client.post(
        f"/api/leads/{lead['id']}/activities",
        json={"type": "cambio_estado", "description": "sneaky"},
    )
    assert response.status_code == 400

    response = await client.get(f"/api/leads/{lead['id']}/activities", params={"limit": 1})
    assert [activity["type"] for activity in response.json()] == ["llamada"]


@pytest.mark.asyncio
async def test_landings(client):
    response = await client.post("/api/landings", json={"name": "Ventanas", "slug": "ventanas"})
    assert response.status_code == 201
    landing = response.json()
    assert landing["active"] is True

    response = await client.post("/api/landings", json={"name": "Ventanas", "slug": "ventanas"})
    assert response.status_code == 409

    response = await client.post(f"/api/landings/{landing['id']}/regenerate-key")
    assert response.json()["api_key"] != landing["api_key"]

    response = await client.get("/api/landings")
    assert [item["lead_count"] for item in response.json()] == [0]

    response = await client.put(f"/api/landings/{landing['id']}", json={"active": False})
    assert response.json()["active"] is False

    response = await client.delete(f"/api/landings/{landing['id']}")
    assert response.status_code == 200
    assert (await client.get(f"/api/landings/{landing['id']}")).status_code == 404


@pytest.mark.asyncio
async def test_expenses_and_balance(client):
    response = await client.post(
        "/api/expenses",
        json={"type": "anuncios", "concept": "Google Ads", "amount": "120.00", "date": "2024-03-01"},
    )
    assert response.status_code == 201
    expense = response.json()

    response = await client.get("/api/expenses", params={"type": "anuncios"})
    body = response.json()
    assert body["total"] == 1
    assert float(body["summary"]["total"]) == 120

    response = await client.put(f"/api/expenses/{expense['id']}", json={"amount": None})
    assert response.status_code == 400

    response = await client.get("/api/balance", params={"date_from": "2024-03-01", "date_to": "2024-03-31"})
    assert response.status_code == 200
    body = response.json()
    assert float(body["summary"]["total_expenses"]) == 120
    assert float(body["summary"]["balance"]) == -120

    response = await client.get("/api/balance", params={"date_from": "2024-04-01", "date_to": "2024-03-01"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_oversized_sale_amount_is_a_validation_error(client):
    lead = await _create_lead(client)
    response = await client.put(
        f"/api/leads/{lead['id']}/state",
        json={"estado": "ganado", "importeVenta": "1000000000000000"},
    )
    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "validation_error"
    assert body["details"]["errors"][0]["field"] == "importeVenta"

    response = await client.put(
        f"/api/leads/{lead['id']}/state",
        json={"estado": "ganado", "importeVenta": "99.999"},
    )
    assert response.status_code == 400
