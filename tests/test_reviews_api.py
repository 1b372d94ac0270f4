import pytest
from sqlmodel import select

import warddost.database as database
from warddost.models import ReviewVote


async def _votes():
    async with database.async_session_factory() as session:
        return (await session.exec(select(ReviewVote))).all()


@pytest.mark.asyncio
async def test_no_reviews_is_empty_list(client, citizen, complaint):
    resp = await client.get(f"/api/v1/complaints/{complaint['id']}/reviews", headers=citizen)
    assert resp.status_code == 200
    assert resp.json() == []


@pytest.mark.asyncio
async def test_add_review(client, citizen, complaint):
    resp = await client.post(
        f"/api/v1/complaints/{complaint['id']}/reviews",
        json={"content": "  Fixed within two days, thank you  ", "rating": 4},
        headers=citizen,
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["content"] == "Fixed within two days, thank you"
    assert body["rating"] == 4
    assert body["helpfulness_score"] == 0


@pytest.mark.asyncio
async def test_blank_review_is_rejected(client, citizen, complaint):
    resp = await client.post(f"/api/v1/complaints/{complaint['id']}/reviews", json={"content": "   "}, headers=citizen)
    assert resp.status_code == 422
    assert resp.json()["field"] == "content"


@pytest.mark.asyncio
async def test_review_on_unknown_complaint_is_404(client, citizen):
    resp = await client.post("/api/v1/complaints/missing/reviews", json={"content": "hi"}, headers=citizen)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_rating_out_of_range(client, citizen, complaint):
    resp = await client.post(
        f"/api/v1/complaints/{complaint['id']}/reviews", json={"content": "ok", "rating": 0}, headers=citizen
    )
    assert resp.status_code == 422

@pytest.mark.filterwarnings(r"error:(?s).*session\.exec\(\):DeprecationWarning")
@pytest.mark.asyncio
@pytest.mark.filterwarnings(r"error:.*session\.exec\(\):DeprecationWarning")
async def test_second_vote_overwrites_first(client, citizen, make_user, complaint):
    review = (
        await client.post(f"/api/v1/complaints/{complaint['id']}/reviews", json={"content": "Good work"}, headers=citizen)
    ).json()
    voter = await make_user("voter-1")
    url = f"/api/v1/reviews/{review['id']}/vote"

    first = await client.put(url, json={"is_helpful": True}, headers=voter)
    assert first.status_code == 200
    assert first.json()["is_helpful"] is True

    second = await client.put(url, json={"is_helpful": False}, headers=voter)
    assert second.status_code == 200
    assert second.json()["is_helpful"] is False

    votes = await _votes()
    assert len(votes) == 1
    assert votes[0].is_helpful is False
    assert votes[0].user_id == "voter-1"


@pytest.mark.asyncio
async def test_listing_computes_helpfulness(client, citizen, make_user, complaint):
    url = f"/api/v1/complaints/{complaint['id']}/reviews"
    older = (await client.post(url, json={"content": "First"}, headers=citizen)).json()
    newer = (await client.post(url, json={"content": "Second"}, headers=citizen)).json()

    for name, helpful in [("v1", True), ("v2", True), ("v3", False)]:
        headers = await make_user(name)
        await client.put(f"/api/v1/reviews/{older['id']}/vote", json={"is_helpful": helpful}, headers=headers)

    listing = (await client.get(url, headers=citizen)).json()
    assert [r["id"] for r in listing] == [newer["id"], older["id"]]
    assert listing[0]["helpfulness_score"] == 0
    assert (listing[1]["helpful_votes"], listing[1]["unhelpful_votes"], listing[1]["helpfulness_score"]) == (2, 1, 1)


@pytest.mark.asyncio
async def test_vote_on_unknown_review_is_404(client, citizen):
    resp = await client.put("/api/v1/reviews/missing/vote", json={"is_helpful": True}, headers=citizen)
    assert resp.status_code == 404
