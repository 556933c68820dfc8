"""Tests for the contacts API endpoints."""

from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from estate_crm.domain.services.contact_merge_service import ContactMergeService
from estate_crm.persistence.models import Deal

API = "/api/v1/contacts"


async def create(client, **data):
    response = await client.post(API, json=data)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


@pytest.mark.asyncio
async def test_request_id_header_echoed(client):
    response = await client.get("/health", headers={"X-Request-Id": "req-123"})
    assert response.headers["X-Request-Id"] == "req-123"


@pytest.mark.asyncio
async def test_contact_crud(client):
    created = await create(client, name="Maya", email="maya@example.com", phone="555-0100")
    contact_id = created["id"]
    assert created["contact_status"] == "lead"

    response = await client.put(f"{API}/{contact_id}", json={"name": "Maya R."})
    assert response.status_code == 200
    assert response.json()["name"] == "Maya R."
    assert response.json()["email"] == "maya@example.com"

    response = await client.put(f"{API}/{contact_id}/status", json={"contact_status": "active_client"})
    assert response.json()["contact_status"] == "active_client"

    response = await client.get(API, params={"q": "maya"})
    assert response.json()["total"] == 1

    response = await client.delete(f"{API}/{contact_id}")
    assert response.status_code == 204

    response = await client.get(f"{API}/{contact_id}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_invalid_status_is_bad_request(client):
    created = await create(client, name="Maya")
    response = await client.put(f"{API}/{created['id']}/status", json={"contact_status": "vip"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_duplicates_endpoint(client):
    a = await create(client, name="A", phone="+1 (555) 123-4567")
    b = await create(client, name="B", phone="15551234567")
    c = await create(client, name="C", email="Jane@Example.com")
    d = await create(client, name="D", email="jane@example.com ")
    await create(client, name="Nobody")

    response = await client.get(f"{API}/duplicates")

    assert response.status_code == 200
    body = response.json()
    assert body["total_groups"] == 2
    groups = [[contact["id"] for contact in g["contacts"]] for g in body["groups"]]
    assert groups == [[a["id"], b["id"]], [c["id"], d["id"]]]
    assert body["groups"][0]["suggested_primary_id"] == a["id"]
    assert body["groups"][1]["matched_on"] == ["email:jane@example.com"]


@pytest.mark.asyncio
async def test_merge_endpoint(client, db_session):
    primary = await create(client, name="Jane", phone="555 123 4567")
    duplicate = await create(client, name="Jane D", phone="5551234567", email="jane@example.com")
    db_session.add(Deal(contact_id=duplicate["id"], title="Villa"))
    await db_session.commit()

    response = await client.post(
        f"{API}/{primary['id']}/merge",
        json={"duplicate_contact_ids": [duplicate["id"]]},
        headers={"X-Agent-Id": "agent-9"},
    )

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["primary"]["id"] == primary["id"]
    assert body["merged_ids"] == [duplicate["id"]]
    assert body["reassigned"] == {"deals.contact_id": 1}
    assert body["merged"] is True

    deal_contacts = await db_session.execute(select(Deal.contact_id))
    assert deal_contacts.scalars().all() == [primary["id"]]

    response = await client.get(f"{API}/{duplicate['id']}")
    assert response.status_code == 404
    assert f"merged into contact {primary['id']}" in response.json()["detail"]

    response = await client.get(f"{API}/{primary['id']}/merge-history")
    history = response.json()
    assert len(history) == 1
    assert history[0]["merged_contact_id"] == duplicate["id"]
    assert history[0]["merged_by"] == "agent-9"


@pytest.mark.asyncio
async def test_merge_with_no_duplicates_is_noop(client):
    primary = await create(client, name="Solo")

    response = await client.post(f"{API}/{primary['id']}/merge", json={"duplicate_contact_ids": []})

    assert response.status_code == 200
    assert response.json()["merged"] is False


@pytest.mark.asyncio
async def test_merge_primary_in_duplicates_is_bad_request(client):
    primary = await create(client, name="Jane")

    response = await client.post(
        f"{API}/{primary['id']}/merge",
        json={"duplicate_contact_ids": [primary["id"]]},
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_merge_unknown_contact_is_not_found(client):
    primary = await create(client, name="Jane")

    response = await client.post(
        f"{API}/{primary['id']}/merge",
        json={"duplicate_contact_ids": [999]},
    )

    assert response.status_code == 404
    assert "999" in response.json()["detail"]


@pytest.mark.asyncio
async def test_merge_failure_reports_incomplete(client):
    primary = await create(client, name="Jane")
    duplicate = await create(client, name="Jane D")

    with patch.object(
        ContactMergeService,
        "_delete_contact",
        AsyncMock(side_effect=SQLAlchemyError("boom")),
    ):
        response = await client.post(
            f"{API}/{primary['id']}/merge",
            json={"duplicate_contact_ids": [duplicate["id"]]},
        )

    assert response.status_code == 409
    body = response.json()
    assert body["failed_step"] == f"delete_contact:{duplicate['id']}"
    assert body["rolled_back"] is True

    response = await client.get(f"{API}/{duplicate['id']}")
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_merge_preview_endpoint(client):
    a = await create(client, name="Jane", email="jane@example.com")
    b = await create(client, name="Janet", email="jane@example.com")

    response = await client.post(f"{API}/merge/preview", json={"contact_ids": [a["id"], b["id"]]})

    assert response.status_code == 200
    body = response.json()
    assert body["suggested_primary_id"] == a["id"]
    assert body["conflicts"] == [
        {"field": "name", "values": {str(a["id"]): "Jane", str(b["id"]): "Janet"}},
    ]

    response = await client.post(f"{API}/merge/preview", json={"contact_ids": [a["id"]]})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_export_csv(client):
    await create(client, name="Jane", email="jane@example.com", notes="prefers\nemail")

    response = await client.get(f"{API}/export.csv")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert response.headers["X-Total-Count"] == "1"
    lines = response.text.split("\n")
    assert lines[0] == "name,email,phone,contact_status,source,notes"
    assert lines[1] == '"Jane","jane@example.com","","lead","","prefers email"'


@pytest.mark.asyncio
async def test_delete_referenced_contact_is_bad_request(client, db_session):
    contact = await create(client, name="Jane")
    db_session.add(Deal(contact_id=contact["id"], title="Villa"))
    await db_session.commit()

    response = await client.delete(f"{API}/{contact['id']}")

    assert response.status_code == 400
    assert "deals.contact_id" in response.json()["detail"]
    response = await client.get(f"{API}/{contact['id']}")
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_chained_merge_points_to_surviving_contact(client):
    first = await create(client, name="Jane")
    second = await create(client, name="Jane D")
    third = await create(client, name="J. Doe")

    await client.post(f"{API}/{first['id']}/merge", json={"duplicate_contact_ids": [second["id"]]})
    response = await client.post(f"{API}/{third['id']}/merge", json={"duplicate_contact_ids": [first["id"]]})
    assert response.status_code == 200, response.text

    response = await client.get(f"{API}/{second['id']}")
    assert response.status_code == 404
    assert f"merged into contact {third['id']}" in response.json()["detail"]

    response = await client.get(f"{API}/{third['id']}/merge-history")
    assert sorted(entry["merged_contact_id"] for entry in response.json()) == [first["id"], second["id"]]
