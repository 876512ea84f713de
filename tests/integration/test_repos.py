import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, date, datetime, timedelta
from uuid import uuid4

import pytest

from linkdrip.adapters.sqlite.repos import (
    SQLiteContactActivityRepo,
    SQLiteCrawlerJobRepo,
    SQLiteDripRepo,
    SQLiteMatchRepo,
    SQLiteOpportunityRepo,
    SQLiteOutreachEmailRepo,
    SQLiteSplashRepo,
    SQLiteUserRepo,
    SQLiteWebsiteProfileRepo,
    SQLiteWebsiteRepo,
)
from linkdrip.domain.entities import (
    ContactActivity,
    ContactInfo,
    CrawlerJob,
    DailyDrip,
    DiscoveredOpportunity,
    OpportunityMatch,
    OutreachEmail,
    SplashUsage,
    User,
    Website,
    WebsitePreferences,
    WebsiteProfile,
)

NOW = datetime(2025, 3, 14, 9, 0, tzinfo=UTC)


@pytest.fixture
def user(db_path):
    u = User(username="gina", email="gina@example.com", password_hash="hash")
    return SQLiteUserRepo(db_path).save(u)


@pytest.fixture
def website(db_path, user):
    w = Website(
        user_id=user.id,
        url="https://gardenblog.com",
        name="Garden Blog",
        niche="gardening",
        preferences=WebsitePreferences(avoid_niches=["casino"], min_domain_authority=20),
    )
    return SQLiteWebsiteRepo(db_path).save(w)


def make_opp(url: str, **kwargs) -> DiscoveredOpportunity:
    kwargs.setdefault("domain", url.split("/")[2])
    return DiscoveredOpportunity(url=url, **kwargs)


class TestUserRepo:
    def test_lookup_by_email_and_username(self, db_path, user):
        repo = SQLiteUserRepo(db_path)
        assert repo.get_by_email("gina@example.com").id == user.id
        assert repo.get_by_username("gina").id == user.id
        assert repo.get_by_id(uuid4()) is None

    def test_list_all_skips_disabled_users(self, db_path, user):
        repo = SQLiteUserRepo(db_path)
        repo.save(
            User(username="dora", email="dora@example.com", password_hash="h", status="disabled")
        )
        assert [u.username for u in repo.list_all()] == ["gina"]

    def test_save_updates_plan_and_credits(self, db_path, user):
        repo = SQLiteUserRepo(db_path)
        user.plan = "Pro"
        user.splash_credits = 3
        repo.save(user)

        loaded = repo.get_by_id(user.id)
        assert loaded.plan == "Pro"
        assert loaded.splash_credits == 3


class TestWebsiteRepos:
    def test_preferences_round_trip(self, db_path, website):
        loaded = SQLiteWebsiteRepo(db_path).get_by_id(website.id)
        assert loaded.preferences.avoid_niches == ["casino"]
        assert loaded.preferences.min_domain_authority == 20

    def test_list_by_user_active_only(self, db_path, user, website):
        repo = SQLiteWebsiteRepo(db_path)
        repo.save(Website(user_id=user.id, url="https://old.com", name="Old", is_active=False))

        assert len(repo.list_by_user(user.id)) == 2
        assert [w.id for w in repo.list_by_user(user.id, active_only=True)] == [website.id]
        assert [w.id for w in repo.list_active()] == [website.id]

    def test_profile_upsert_keeps_one_row_per_website(self, db_path, website):
        repo = SQLiteWebsiteProfileRepo(db_path)
        first = repo.save(WebsiteProfile(website_id=website.id, keywords=["soil"]))
        second = repo.save(WebsiteProfile(website_id=website.id, keywords=["compost"]))

        assert second.id == first.id
        assert repo.get_by_website(website.id).keywords == ["compost"]

    def test_deleting_website_removes_profile(self, db_path, website):
        profiles = SQLiteWebsiteProfileRepo(db_path)
        profiles.save(WebsiteProfile(website_id=website.id))

        SQLiteWebsiteRepo(db_path).delete(website.id)

        assert SQLiteWebsiteRepo(db_path).get_by_id(website.id) is None
        assert profiles.get_by_website(website.id) is None


class TestOpportunityRepo:
    def test_contact_info_round_trip(self, db_path):
        repo = SQLiteOpportunityRepo(db_path)
        opp = make_opp(
            "https://a.com/resources",
            contact_info=ContactInfo(email="editor@a.com", emails=["tips@a.com"], confidence=0.8),
            categories=["gardening"],
        )
        repo.save(opp)

        loaded = repo.get_by_url("https://a.com/resources")
        assert loaded.id == opp.id
        assert loaded.contact_info.all_emails() == ["editor@a.com", "tips@a.com"]
        assert loaded.categories == ["gardening"]

    def test_list_validated_orders_by_authority(self, db_path):
        repo = SQLiteOpportunityRepo(db_path)
        repo.save(make_opp("https://low.com/x", status="validated", domain_authority=20))
        repo.save(make_opp("https://high.com/x", status="validated", domain_authority=60))
        repo.save(
            make_opp(
                "https://prem.com/x", status="validated", domain_authority=45, is_premium=True
            )
        )
        repo.save(make_opp("https://new.com/x", status="discovered", domain_authority=90))

        assert [o.domain for o in repo.list_validated()] == ["high.com", "prem.com", "low.com"]
        assert [o.domain for o in repo.list_validated(premium_only=True)] == ["prem.com"]

    def test_list_stale_skips_expired_and_rejected(self, db_path):
        repo = SQLiteOpportunityRepo(db_path)
        old = NOW - timedelta(days=10)
        repo.save(make_opp("https://a.com/x", last_checked=old, status="validated"))
        repo.save(make_opp("https://b.com/x", last_checked=old, status="expired"))
        repo.save(make_opp("https://c.com/x", last_checked=old, status="rejected"))
        repo.save(make_opp("https://d.com/x", last_checked=NOW, status="validated"))

        stale = repo.list_stale(NOW - timedelta(days=7))
        assert [o.domain for o in stale] == ["a.com"]

    def test_list_filters_and_counts(self, db_path):
        repo = SQLiteOpportunityRepo(db_path)
        repo.save(
            make_opp(
                "https://a.com/x", status="validated", source_type="directory", domain_authority=50
            )
        )
        repo.save(
            make_opp("https://b.com/x", status="validated", source_type="blog", domain_authority=10)
        )
        repo.save(make_opp("https://c.com/x", status="rejected", source_type="directory"))

        items, total = repo.list(statuses=["validated"])
        assert total == 2
        assert len(items) == 2

        items, total = repo.list(statuses=["validated"], source_type="directory")
        assert [o.domain for o in items] == ["a.com"]
        assert total == 1

        items, total = repo.list(statuses=["validated"], min_domain_authority=20)
        assert [o.domain for o in items] == ["a.com"]

        items, total = repo.list(statuses=["validated"], limit=1)
        assert len(items) == 1
        assert total == 2


class TestMatchesAndDrips:
    def test_assigned_ids_exclude_pending_matches(self, db_path, user, website):
        opps = SQLiteOpportunityRepo(db_path)
        pending = opps.save(make_opp("https://a.com/x"))
        delivered = opps.save(make_opp("https://b.com/x"))

        matches = SQLiteMatchRepo(db_path)
        matches.save(
            OpportunityMatch(
                website_id=website.id, user_id=user.id, opportunity_id=pending.id, match_score=50
            )
        )
        matches.save(
            OpportunityMatch(
                website_id=website.id,
                user_id=user.id,
                opportunity_id=delivered.id,
                match_score=70,
                status="assigned",
            )
        )

        assert matches.assigned_opportunity_ids(user.id) == {delivered.id}
        assert matches.matched_opportunity_ids(website.id) == {pending.id, delivered.id}

    def test_match_upsert_on_website_and_opportunity(self, db_path, user, website):
        opp = SQLiteOpportunityRepo(db_path).save(make_opp("https://a.com/x"))
        matches = SQLiteMatchRepo(db_path)
        matches.save(
            OpportunityMatch(
                website_id=website.id, user_id=user.id, opportunity_id=opp.id, match_score=50
            )
        )
        match = matches.get(website.id, opp.id)
        match.status = "assigned"
        match.user_saved = True
        matches.save(match)

        loaded = matches.get(website.id, opp.id)
        assert loaded.status == "assigned"
        assert loaded.user_saved is True
        assert len(matches.list_by_user(user.id)) == 1

    def test_drips_listed_per_day_premium_first(self, db_path, user, website):
        opps = SQLiteOpportunityRepo(db_path)
        a = opps.save(make_opp("https://a.com/x"))
        b = opps.save(make_opp("https://b.com/x"))
        c = opps.save(make_opp("https://c.com/x"))

        drips = SQLiteDripRepo(db_path)
        today = date(2025, 3, 14)
        drips.save(DailyDrip(user_id=user.id, opportunity_id=a.id, drip_date=today))
        drips.save(
            DailyDrip(user_id=user.id, opportunity_id=b.id, drip_date=today, is_premium=True)
        )
        drips.save(
            DailyDrip(user_id=user.id, opportunity_id=c.id, drip_date=today - timedelta(days=1))
        )

        listed = drips.list_for_user_on(user.id, today)
        assert [d.opportunity_id for d in listed] == [b.id, a.id]

    def test_day_claim_is_taken_once(self, db_path, user):
        today = date(2025, 3, 14)
        first, second = SQLiteDripRepo(db_path), SQLiteDripRepo(db_path)

        assert first.claim_day(user.id, today)
        assert not second.claim_day(user.id, today)
        assert second.claim_day(user.id, today + timedelta(days=1))

        first.release_day(user.id, today)
        assert second.claim_day(user.id, today)

    def test_concurrent_claims_have_one_winner(self, db_path, user):
        today = date(2025, 3, 14)
        barrier = threading.Barrier(6)

        def claim(_):
            barrier.wait()
            return SQLiteDripRepo(db_path).claim_day(user.id, today)

        with ThreadPoolExecutor(max_workers=6) as pool:
            results = list(pool.map(claim, range(6)))
        assert results.count(True) == 1

    def test_splash_count_since_filters_by_source(self, db_path, user):
        splashes = SQLiteSplashRepo(db_path)
        month_start = datetime(2025, 3, 1, tzinfo=UTC)
        splashes.save(SplashUsage(user_id=user.id, used_at=NOW))
        splashes.save(SplashUsage(user_id=user.id, used_at=NOW, source="purchased"))
        splashes.save(SplashUsage(user_id=user.id, used_at=month_start - timedelta(days=2)))

        assert splashes.count_since(user.id, month_start) == 2
        assert splashes.count_since(user.id, month_start, "monthly_allowance") == 1
        assert splashes.count_since(uuid4(), month_start) == 0


class TestCrawlerJobRepo:
    def test_list_stalled_only_returns_old_in_progress_jobs(self, db_path):
        repo = SQLiteCrawlerJobRepo(db_path)
        stalled = repo.save(
            CrawlerJob(job_type="all", status="in_progress", started_at=NOW - timedelta(hours=3))
        )
        repo.save(CrawlerJob(job_type="all", status="in_progress", started_at=NOW))
        repo.save(
            CrawlerJob(job_type="all", status="completed", started_at=NOW - timedelta(hours=3))
        )

        found = repo.list_stalled(NOW - timedelta(hours=1))
        assert [j.id for j in found] == [stalled.id]

    def test_results_round_trip(self, db_path):
        repo = SQLiteCrawlerJobRepo(db_path)
        job = repo.save(CrawlerJob(job_type="directory", target_url="https://a.com"))
        job.status = "completed"
        job.results = {"discovered": 3, "crawled": 5}
        repo.save(job)

        loaded = repo.get_by_id(job.id)
        assert loaded.status == "completed"
        assert loaded.results == {"discovered": 3, "crawled": 5}
        assert [j.id for j in repo.list_recent()] == [job.id]


class TestOutreachRepos:
    def test_email_lookup_by_message_id(self, db_path, user):
        repo = SQLiteOutreachEmailRepo(db_path)
        email = repo.save(
            OutreachEmail(
                user_id=user.id,
                subject="Hello",
                body="Body",
                message_id="<abc@linkdrip.app>",
                reply_headers={"From": "editor@a.com"},
            )
        )

        loaded = repo.get_by_message_id("<abc@linkdrip.app>")
        assert loaded.id == email.id
        assert loaded.reply_headers == {"From": "editor@a.com"}
        assert repo.get_by_message_id("<missing@linkdrip.app>") is None
        assert [e.id for e in repo.list_by_user(user.id)] == [email.id]

    def test_activity_status_update(self, db_path, user):
        emails = SQLiteOutreachEmailRepo(db_path)
        email = emails.save(OutreachEmail(user_id=user.id, subject="Hi", body="Body"))

        repo = SQLiteContactActivityRepo(db_path)
        activity = repo.save(ContactActivity(user_id=user.id, email_id=email.id, status="sent"))
        activity.status = "replied"
        activity.responded_at = NOW
        repo.save(activity)

        loaded = repo.get_by_email_id(email.id)
        assert loaded.id == activity.id
        assert loaded.status == "replied"
        assert loaded.responded_at == NOW
