import pytest


@pytest.fixture
def second_ward_payload():
    return {"name": "Indiranagar", "pincode": "560038", "basin": "KC Valley"}


@pytest.mark.asyncio
async def test_contacts_filter_by_ward_and_query(client, citizen, authority, ward, second_ward_payload):
    other = (await client.post("/api/v1/wards", json=second_ward_payload, headers=authority)).json()
    for payload in [
        {"ward_id": ward["id"], "contact_type": "hospital", "name": "City Hospital", "phone": "080-1"},
        {"ward_id": other["id"], "contact_type": "pwd_engineer", "name": "PWD Office", "phone": "080-2"},
    ]:
        resp = await client.post("/api/v1/emergency-contacts", json=payload, headers=authority)
        assert resp.status_code == 201

    everything = (await client.get("/api/v1/emergency-contacts", headers=citizen)).json()
    assert [c["contact_type"] for c in everything] == ["hospital", "pwd_engineer"]

    in_ward = (await client.get("/api/v1/emergency-contacts", params={"ward_id": ward["id"]}, headers=citizen)).json()
    assert [c["name"] for c in in_ward] == ["City Hospital"]
    assert in_ward[0]["ward_name"] == "Koramangala"

    by_query = (await client.get("/api/v1/emergency-contacts", params={"q": "hosp"}, headers=citizen)).json()
    assert [c["name"] for c in by_query] == ["City Hospital"]

    none = (
        await client.get("/api/v1/emergency-contacts", params={"ward_id": other["id"], "q": "hosp"}, headers=citizen)
    ).json()
    assert none == []


@pytest.mark.asyncio
async def test_only_authorities_add_contacts(client, citizen, ward):
    resp = await client.post(
        "/api/v1/emergency-contacts",
        json={"ward_id": ward["id"], "contact_type": "hospital", "name": "X", "phone": "1"},
        headers=citizen,
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_contact_needs_known_ward(client, authority):
    resp = await client.post(
        "/api/v1/emergency-contacts",
        json={"ward_id": "missing", "contact_type": "hospital", "name": "X", "phone": "1"},
        headers=authority,
    )
    assert resp.status_code == 422
    assert resp.json()["field"] == "ward_id"
