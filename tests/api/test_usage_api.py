from uuid import uuid4

import pytest

from linkdrip.domain.entities import DiscoveredOpportunity

WEBSITE = {
    "url": "gardenblog.com",
    "name": "Garden Blog",
    "description": "Organic gardening tips for small urban plots",
    "niche": "gardening",
}


def premium_opp(ctx, url: str = "https://hub.com/gardening") -> DiscoveredOpportunity:
    return ctx.opportunity_repo.save(
        DiscoveredOpportunity(
            url=url,
            domain=url.split("/")[2],
            source_type="directory",
            page_title="Organic gardening directory",
            categories=["gardening"],
            status="validated",
            is_premium=True,
            domain_authority=90,
            page_authority=90,
            spam_score=0,
        )
    )


@pytest.fixture
def gina(client, register):
    headers = register("gina")
    website_id = client.post("/api/websites", json=WEBSITE, headers=headers).json()["id"]
    assert client.post(f"/api/websites/{website_id}/analyze", headers=headers).status_code == 200
    return headers, website_id


def test_stats_for_new_user(client, gina):
    headers, _ = gina
    response = client.get("/api/stats", headers=headers)
    assert response.status_code == 200
    assert response.json() == {
        "plan": "Free Trial",
        "drips_today": 0,
        "premium_today": 0,
        "drips_per_day": 5,
        "splashes_per_month": 1,
        "splashes_used_this_month": 0,
        "splash_credits": 0,
        "splashes_remaining": 1,
        "websites": 1,
        "max_websites": 1,
    }


def test_stats_requires_auth(client):
    assert client.get("/api/stats").status_code == 401


def test_use_splash_delivers_premium_now(client, ctx, gina):
    headers, website_id = gina
    opp = premium_opp(ctx)

    response = client.post("/api/splashes/use", headers=headers)
    assert response.status_code == 200
    body = response.json()
    assert body["source"] == "monthly_allowance"
    assert body["splashes_remaining"] == 0
    assert body["drip"]["is_premium"] is True
    assert body["drip"]["website_id"] == website_id
    assert body["drip"]["opportunity"]["id"] == str(opp.id)

    stats = client.get("/api/stats", headers=headers).json()
    assert stats["premium_today"] == 1
    assert stats["splashes_used_this_month"] == 1
    assert stats["splashes_remaining"] == 0

    premium_opp(ctx, "https://other.com/gardening")
    again = client.post("/api/splashes/use", headers=headers)
    assert again.status_code == 400
    assert again.json()["detail"][0]["code"] == "no_splashes_available"


def test_use_splash_without_premium_spends_nothing(client, gina):
    headers, website_id = gina
    response = client.post("/api/splashes/use", json={"website_id": website_id}, headers=headers)
    assert response.status_code == 404
    assert response.json()["detail"][0]["code"] == "no_premium_opportunity"

    assert client.get("/api/stats", headers=headers).json()["splashes_remaining"] == 1


def test_use_splash_unknown_website(client, ctx, gina):
    headers, _ = gina
    premium_opp(ctx)
    response = client.post("/api/splashes/use", json={"website_id": str(uuid4())}, headers=headers)
    assert response.status_code == 404
    assert response.json()["detail"][0]["code"] == "website_not_found"
