import builtins
import json
import sqlite3
from datetime import UTC, date, datetime
from typing import Any
from uuid import UUID

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


# Helper to convert sqlite rows to dicts
def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    d = {}
    for idx, col in enumerate(cursor.description):
        d[col[0]] = row[idx]
    return d


def to_db_dt(value: datetime | None) -> str | None:
    """Store datetimes as UTC ISO strings so they compare lexically."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat()


def parse_dt(value: str | None) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def parse_uuid(value: str | None) -> UUID | None:
    return UUID(value) if value else None


class SQLiteRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = dict_factory
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    def _write(self, sql: str, params: tuple[Any, ...]) -> int:
        """Execute one statement in its own transaction; returns rows affected."""
        conn = self._get_conn()
        try:
            rowcount = conn.execute(sql, params).rowcount
            conn.commit()
            return rowcount
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _fetch_one(self, sql: str, params: tuple[Any, ...] = ()) -> dict[str, Any] | None:
        conn = self._get_conn()
        try:
            row: dict[str, Any] | None = conn.execute(sql, params).fetchone()
            return row
        finally:
            conn.close()

    def _fetch_all(self, sql: str, params: tuple[Any, ...] = ()) -> list[dict[str, Any]]:
        conn = self._get_conn()
        try:
            return list(conn.execute(sql, params).fetchall())
        finally:
            conn.close()


# --- Users ---


class SQLiteUserRepo(SQLiteRepo):
    def save(self, user: User) -> User:
        self._write(
            """
            INSERT INTO users (
                id, username, email, first_name, last_name, password_hash,
                plan, splash_credits, status, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                username=excluded.username,
                email=excluded.email,
                first_name=excluded.first_name,
                last_name=excluded.last_name,
                password_hash=excluded.password_hash,
                plan=excluded.plan,
                splash_credits=excluded.splash_credits,
                status=excluded.status,
                updated_at=excluded.updated_at
            """,
            (
                str(user.id),
                user.username,
                user.email,
                user.first_name,
                user.last_name,
                user.password_hash,
                user.plan,
                user.splash_credits,
                user.status,
                to_db_dt(user.created_at),
                to_db_dt(user.updated_at),
            ),
        )
        return user

    def _to_model(self, row: dict[str, Any]) -> User:
        return User(
            id=UUID(row["id"]),
            username=row["username"],
            email=row["email"],
            first_name=row["first_name"],
            last_name=row["last_name"],
            password_hash=row["password_hash"],
            plan=row["plan"],
            splash_credits=row["splash_credits"],
            status=row["status"],
            created_at=parse_dt(row["created_at"]),
            updated_at=parse_dt(row["updated_at"]),
        )

    def get_by_id(self, user_id: UUID) -> User | None:
        row = self._fetch_one("SELECT * FROM users WHERE id = ?", (str(user_id),))
        return self._to_model(row) if row else None

    def get_by_email(self, email: str) -> User | None:
        row = self._fetch_one("SELECT * FROM users WHERE lower(email) = lower(?)", (email,))
        return self._to_model(row) if row else None

    def get_by_username(self, username: str) -> User | None:
        row = self._fetch_one("SELECT * FROM users WHERE username = ?", (username,))
        return self._to_model(row) if row else None

    def list_all(self) -> list[User]:
        rows = self._fetch_all("SELECT * FROM users WHERE status = 'active' ORDER BY created_at")
        return [self._to_model(r) for r in rows]


# --- Websites ---


class SQLiteWebsiteRepo(SQLiteRepo):
    def save(self, website: Website) -> Website:
        self._write(
            """
            INSERT INTO websites (
                id, user_id, url, name, description, niche, is_active,
                preferences_json, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                url=excluded.url,
                name=excluded.name,
                description=excluded.description,
                niche=excluded.niche,
                is_active=excluded.is_active,
                preferences_json=excluded.preferences_json,
                updated_at=excluded.updated_at
            """,
            (
                str(website.id),
                str(website.user_id),
                website.url,
                website.name,
                website.description,
                website.niche,
                int(website.is_active),
                website.preferences.model_dump_json(),
                to_db_dt(website.created_at),
                to_db_dt(website.updated_at),
            ),
        )
        return website

    def _to_model(self, row: dict[str, Any]) -> Website:
        return Website(
            id=UUID(row["id"]),
            user_id=UUID(row["user_id"]),
            url=row["url"],
            name=row["name"],
            description=row["description"],
            niche=row["niche"],
            is_active=bool(row["is_active"]),
            preferences=WebsitePreferences.model_validate_json(row["preferences_json"]),
            created_at=parse_dt(row["created_at"]),
            updated_at=parse_dt(row["updated_at"]),
        )

    def get_by_id(self, website_id: UUID) -> Website | None:
        row = self._fetch_one("SELECT * FROM websites WHERE id = ?", (str(website_id),))
        return self._to_model(row) if row else None

    def list_by_user(self, user_id: UUID, active_only: bool = False) -> list[Website]:
        query = "SELECT * FROM websites WHERE user_id = ?"
        if active_only:
            query += " AND is_active = 1"
        rows = self._fetch_all(query + " ORDER BY created_at", (str(user_id),))
        return [self._to_model(r) for r in rows]

    def list_active(self) -> list[Website]:
        rows = self._fetch_all("SELECT * FROM websites WHERE is_active = 1 ORDER BY created_at")
        return [self._to_model(r) for r in rows]

    def delete(self, website_id: UUID) -> None:
        self._write("DELETE FROM websites WHERE id = ?", (str(website_id),))


class SQLiteWebsiteProfileRepo(SQLiteRepo):
    def save(self, profile: WebsiteProfile) -> WebsiteProfile:
        """Upsert keyed by website_id; the original row id is kept on update."""
        self._write(
            """
            INSERT INTO website_profiles (
                id, website_id, keywords_json, topics_json, content_types_json,
                domain_authority, target_niches_json, avoid_niches_json,
                link_type_preferences_json, analyzed_at, last_updated
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(website_id) DO UPDATE SET
                keywords_json=excluded.keywords_json,
                topics_json=excluded.topics_json,
                content_types_json=excluded.content_types_json,
                domain_authority=excluded.domain_authority,
                target_niches_json=excluded.target_niches_json,
                avoid_niches_json=excluded.avoid_niches_json,
                link_type_preferences_json=excluded.link_type_preferences_json,
                analyzed_at=excluded.analyzed_at,
                last_updated=excluded.last_updated
            """,
            (
                str(profile.id),
                str(profile.website_id),
                json.dumps(profile.keywords),
                json.dumps(profile.topics),
                json.dumps(profile.content_types),
                profile.domain_authority,
                json.dumps(profile.target_niches),
                json.dumps(profile.avoid_niches),
                json.dumps(profile.link_type_preferences),
                to_db_dt(profile.analyzed_at),
                to_db_dt(profile.last_updated),
            ),
        )
        return self.get_by_website(profile.website_id) or profile

    def get_by_website(self, website_id: UUID) -> WebsiteProfile | None:
        row = self._fetch_one(
            "SELECT * FROM website_profiles WHERE website_id = ?", (str(website_id),)
        )
        if not row:
            return None
        return WebsiteProfile(
            id=UUID(row["id"]),
            website_id=UUID(row["website_id"]),
            keywords=json.loads(row["keywords_json"]),
            topics=json.loads(row["topics_json"]),
            content_types=json.loads(row["content_types_json"]),
            domain_authority=row["domain_authority"],
            target_niches=json.loads(row["target_niches_json"]),
            avoid_niches=json.loads(row["avoid_niches_json"]),
            link_type_preferences=json.loads(row["link_type_preferences_json"]),
            analyzed_at=parse_dt(row["analyzed_at"]),
            last_updated=parse_dt(row["last_updated"]),
        )


# --- Opportunities ---


class SQLiteOpportunityRepo(SQLiteRepo):
    def save(self, opp: DiscoveredOpportunity) -> DiscoveredOpportunity:
        self._write(
            """
            INSERT INTO discovered_opportunities (
                id, url, domain, source_type, page_title, description, page_content,
                categories_json, contact_info_json, domain_authority, page_authority,
                spam_score, is_premium, status, status_note, discovered_at,
                last_checked, raw_data_json, validation_data_json
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                domain=excluded.domain,
                source_type=excluded.source_type,
                page_title=excluded.page_title,
                description=excluded.description,
                page_content=excluded.page_content,
                categories_json=excluded.categories_json,
                contact_info_json=excluded.contact_info_json,
                domain_authority=excluded.domain_authority,
                page_authority=excluded.page_authority,
                spam_score=excluded.spam_score,
                is_premium=excluded.is_premium,
                status=excluded.status,
                status_note=excluded.status_note,
                last_checked=excluded.last_checked,
                raw_data_json=excluded.raw_data_json,
                validation_data_json=excluded.validation_data_json
            """,
            (
                str(opp.id),
                opp.url,
                opp.domain,
                opp.source_type,
                opp.page_title,
                opp.description,
                opp.page_content,
                json.dumps(opp.categories),
                opp.contact_info.model_dump_json(),
                opp.domain_authority,
                opp.page_authority,
                opp.spam_score,
                int(opp.is_premium),
                opp.status,
                opp.status_note,
                to_db_dt(opp.discovered_at),
                to_db_dt(opp.last_checked),
                json.dumps(opp.raw_data, default=str),
                json.dumps(opp.validation_data, default=str),
            ),
        )
        return opp

    def _to_model(self, row: dict[str, Any]) -> DiscoveredOpportunity:
        return DiscoveredOpportunity(
            id=UUID(row["id"]),
            url=row["url"],
            domain=row["domain"],
            source_type=row["source_type"],
            page_title=row["page_title"],
            description=row["description"],
            page_content=row["page_content"],
            categories=json.loads(row["categories_json"]),
            contact_info=ContactInfo.model_validate_json(row["contact_info_json"]),
            domain_authority=row["domain_authority"],
            page_authority=row["page_authority"],
            spam_score=row["spam_score"],
            is_premium=bool(row["is_premium"]),
            status=row["status"],
            status_note=row["status_note"],
            discovered_at=parse_dt(row["discovered_at"]),
            last_checked=parse_dt(row["last_checked"]),
            raw_data=json.loads(row["raw_data_json"]),
            validation_data=json.loads(row["validation_data_json"]),
        )

    def get_by_id(self, opportunity_id: UUID) -> DiscoveredOpportunity | None:
        row = self._fetch_one(
            "SELECT * FROM discovered_opportunities WHERE id = ?", (str(opportunity_id),)
        )
        return self._to_model(row) if row else None

    def get_by_url(self, url: str) -> DiscoveredOpportunity | None:
        row = self._fetch_one("SELECT * FROM discovered_opportunities WHERE url = ?", (url,))
        return self._to_model(row) if row else None

    def list_by_ids(self, ids: list[UUID]) -> list[DiscoveredOpportunity]:
        if not ids:
            return []
        placeholders = ",".join("?" for _ in ids)
        rows = self._fetch_all(
            f"SELECT * FROM discovered_opportunities WHERE id IN ({placeholders})",
            tuple(str(i) for i in ids),
        )
        return [self._to_model(r) for r in rows]

    def list_by_status(
        self, statuses: builtins.list[str], limit: int = 50
    ) -> builtins.list[DiscoveredOpportunity]:
        placeholders = ",".join("?" for _ in statuses)
        rows = self._fetch_all(
            f"""
            SELECT * FROM discovered_opportunities
            WHERE status IN ({placeholders})
            ORDER BY discovered_at ASC
            LIMIT ?
            """,
            (*statuses, limit),
        )
        return [self._to_model(r) for r in rows]

    def list_validated(
        self, premium_only: bool = False, limit: int = 100
    ) -> builtins.list[DiscoveredOpportunity]:
        query = "SELECT * FROM discovered_opportunities WHERE status = 'validated'"
        if premium_only:
            query += " AND is_premium = 1"
        query += " ORDER BY COALESCE(domain_authority, 0) DESC, discovered_at ASC LIMIT ?"
        rows = self._fetch_all(query, (limit,))
        return [self._to_model(r) for r in rows]

    def list_stale(
        self, checked_before: datetime, limit: int = 25
    ) -> builtins.list[DiscoveredOpportunity]:
        rows = self._fetch_all(
            """
            SELECT * FROM discovered_opportunities
            WHERE last_checked < ? AND status NOT IN ('expired', 'rejected')
            ORDER BY last_checked ASC
            LIMIT ?
            """,
            (to_db_dt(checked_before), limit),
        )
        return [self._to_model(r) for r in rows]

    def list(
        self,
        statuses: builtins.list[str] | None = None,
        source_type: str | None = None,
        min_domain_authority: int | None = None,
        premium: bool | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[builtins.list[DiscoveredOpportunity], int]:
        query = "SELECT * FROM discovered_opportunities WHERE 1=1"
        params: builtins.list[Any] = []

        if statuses:
            query += f" AND status IN ({','.join('?' for _ in statuses)})"
            params.extend(statuses)
        if source_type:
            query += " AND source_type = ?"
            params.append(source_type)
        if min_domain_authority is not None:
            query += " AND COALESCE(domain_authority, 0) >= ?"
            params.append(min_domain_authority)
        if premium is not None:
            query += " AND is_premium = ?"
            params.append(int(premium))

        count_row = self._fetch_one(f"SELECT COUNT(*) as cnt FROM ({query})", tuple(params))
        total = count_row["cnt"] if count_row else 0

        query += " ORDER BY discovered_at DESC LIMIT ? OFFSET ?"
        params.extend([limit, offset])
        rows = self._fetch_all(query, tuple(params))
        return [self._to_model(r) for r in rows], total


# --- Matches & Drips ---


class SQLiteMatchRepo(SQLiteRepo):
    def save(self, match: OpportunityMatch) -> OpportunityMatch:
        """Upsert keyed by (website_id, opportunity_id)."""
        self._write(
            """
            INSERT INTO opportunity_matches (
                id, website_id, user_id, opportunity_id, match_score,
                match_reasons_json, assigned_at, status, user_dismissed,
                user_saved, is_premium
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(website_id, opportunity_id) DO UPDATE SET
                match_score=excluded.match_score,
                match_reasons_json=excluded.match_reasons_json,
                assigned_at=excluded.assigned_at,
                status=excluded.status,
                user_dismissed=excluded.user_dismissed,
                user_saved=excluded.user_saved,
                is_premium=excluded.is_premium
            """,
            (
                str(match.id),
                str(match.website_id),
                str(match.user_id),
                str(match.opportunity_id),
                match.match_score,
                json.dumps(match.match_reasons),
                to_db_dt(match.assigned_at),
                match.status,
                int(match.user_dismissed),
                int(match.user_saved),
                int(match.is_premium),
            ),
        )
        return self.get(match.website_id, match.opportunity_id) or match

    def _to_model(self, row: dict[str, Any]) -> OpportunityMatch:
        return OpportunityMatch(
            id=UUID(row["id"]),
            website_id=UUID(row["website_id"]),
            user_id=UUID(row["user_id"]),
            opportunity_id=UUID(row["opportunity_id"]),
            match_score=row["match_score"],
            match_reasons=json.loads(row["match_reasons_json"]),
            assigned_at=parse_dt(row["assigned_at"]),
            status=row["status"],
            user_dismissed=bool(row["user_dismissed"]),
            user_saved=bool(row["user_saved"]),
            is_premium=bool(row["is_premium"]),
        )

    def get(self, website_id: UUID, opportunity_id: UUID) -> OpportunityMatch | None:
        row = self._fetch_one(
            "SELECT * FROM opportunity_matches WHERE website_id = ? AND opportunity_id = ?",
            (str(website_id), str(opportunity_id)),
        )
        return self._to_model(row) if row else None

    def list_by_user(self, user_id: UUID) -> list[OpportunityMatch]:
        rows = self._fetch_all(
            "SELECT * FROM opportunity_matches WHERE user_id = ? ORDER BY assigned_at DESC",
            (str(user_id),),
        )
        return [self._to_model(r) for r in rows]

    def assigned_opportunity_ids(self, user_id: UUID) -> set[UUID]:
        """Opportunities already delivered to this user (any status except pending)."""
        rows = self._fetch_all(
            "SELECT opportunity_id FROM opportunity_matches WHERE user_id = ? AND status != 'pending'",
            (str(user_id),),
        )
        return {UUID(r["opportunity_id"]) for r in rows}

    def matched_opportunity_ids(self, website_id: UUID) -> set[UUID]:
        rows = self._fetch_all(
            "SELECT opportunity_id FROM opportunity_matches WHERE website_id = ?",
            (str(website_id),),
        )
        return {UUID(r["opportunity_id"]) for r in rows}


class SQLiteDripRepo(SQLiteRepo):
    def save(self, drip: DailyDrip) -> DailyDrip:
        self._write(
            """
            INSERT INTO daily_drips (
                id, user_id, opportunity_id, website_id, drip_date, status, is_premium
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                status=excluded.status
            """,
            (
                str(drip.id),
                str(drip.user_id),
                str(drip.opportunity_id),
                str(drip.website_id) if drip.website_id else None,
                drip.drip_date.isoformat(),
                drip.status,
                int(drip.is_premium),
            ),
        )
        return drip

    def _to_model(self, row: dict[str, Any]) -> DailyDrip:
        return DailyDrip(
            id=UUID(row["id"]),
            user_id=UUID(row["user_id"]),
            opportunity_id=UUID(row["opportunity_id"]),
            website_id=parse_uuid(row["website_id"]),
            drip_date=date.fromisoformat(row["drip_date"]),
            status=row["status"],
            is_premium=bool(row["is_premium"]),
        )

    def get_by_id(self, drip_id: UUID) -> DailyDrip | None:
        row = self._fetch_one("SELECT * FROM daily_drips WHERE id = ?", (str(drip_id),))
        return self._to_model(row) if row else None

    def list_for_user_on(self, user_id: UUID, day: date) -> list[DailyDrip]:
        rows = self._fetch_all(
            "SELECT * FROM daily_drips WHERE user_id = ? AND drip_date = ? ORDER BY is_premium DESC",
            (str(user_id), day.isoformat()),
        )
        return [self._to_model(r) for r in rows]

    def claim_day(self, user_id: UUID, day: date) -> bool:
        claimed = self._write(
            "INSERT OR IGNORE INTO drip_assignments (user_id, drip_date, claimed_at) VALUES (?, ?, ?)",
            (str(user_id), day.isoformat(), to_db_dt(datetime.now(UTC))),
        )
        return claimed == 1

    def release_day(self, user_id: UUID, day: date) -> None:
        self._write(
            "DELETE FROM drip_assignments WHERE user_id = ? AND drip_date = ?",
            (str(user_id), day.isoformat()),
        )


class SQLiteSplashRepo(SQLiteRepo):
    def save(self, usage: SplashUsage) -> SplashUsage:
        self._write(
            """
            INSERT INTO splash_usage (id, user_id, website_id, used_at, count, source)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                str(usage.id),
                str(usage.user_id),
                str(usage.website_id) if usage.website_id else None,
                to_db_dt(usage.used_at),
                usage.count,
                usage.source,
            ),
        )
        return usage

    def count_since(self, user_id: UUID, since: datetime, source: str | None = None) -> int:
        query = "SELECT COALESCE(SUM(count), 0) as total FROM splash_usage WHERE user_id = ? AND used_at >= ?"
        params: list[Any] = [str(user_id), to_db_dt(since)]
        if source:
            query += " AND source = ?"
            params.append(source)
        row = self._fetch_one(query, tuple(params))
        return int(row["total"]) if row else 0


# --- Crawler Jobs ---


class SQLiteCrawlerJobRepo(SQLiteRepo):
    def save(self, job: CrawlerJob) -> CrawlerJob:
        self._write(
            """
            INSERT INTO crawler_jobs (
                id, job_type, target_url, status, started_at, completed_at,
                results_json, error, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                status=excluded.status,
                started_at=excluded.started_at,
                completed_at=excluded.completed_at,
                results_json=excluded.results_json,
                error=excluded.error
            """,
            (
                str(job.id),
                job.job_type,
                job.target_url,
                job.status,
                to_db_dt(job.started_at),
                to_db_dt(job.completed_at),
                json.dumps(job.results, default=str),
                job.error,
                to_db_dt(job.created_at),
            ),
        )
        return job

    def _to_model(self, row: dict[str, Any]) -> CrawlerJob:
        return CrawlerJob(
            id=UUID(row["id"]),
            job_type=row["job_type"],
            target_url=row["target_url"],
            status=row["status"],
            started_at=parse_dt(row["started_at"]),
            completed_at=parse_dt(row["completed_at"]),
            results=json.loads(row["results_json"]),
            error=row["error"],
            created_at=parse_dt(row["created_at"]),
        )

    def get_by_id(self, job_id: UUID) -> CrawlerJob | None:
        row = self._fetch_one("SELECT * FROM crawler_jobs WHERE id = ?", (str(job_id),))
        return self._to_model(row) if row else None

    def list_recent(self, limit: int = 20) -> list[CrawlerJob]:
        rows = self._fetch_all(
            "SELECT * FROM crawler_jobs ORDER BY created_at DESC LIMIT ?", (limit,)
        )
        return [self._to_model(r) for r in rows]

    def list_stalled(self, started_before: datetime, limit: int = 10) -> list[CrawlerJob]:
        rows = self._fetch_all(
            """
            SELECT * FROM crawler_jobs
            WHERE status = 'in_progress' AND started_at < ?
            ORDER BY started_at ASC
            LIMIT ?
            """,
            (to_db_dt(started_before), limit),
        )
        return [self._to_model(r) for r in rows]


# --- Outreach ---


class SQLiteOutreachEmailRepo(SQLiteRepo):
    def save(self, email: OutreachEmail) -> OutreachEmail:
        self._write(
            """
            INSERT INTO outreach_emails (
                id, user_id, opportunity_id, subject, body, status, site_name,
                contact_email, contact_role, domain_authority, sent_at, response_at,
                is_follow_up, parent_email_id, message_id, thread_id,
                provider_message_id, reply_content, reply_headers_json,
                error_message, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                subject=excluded.subject,
                body=excluded.body,
                status=excluded.status,
                sent_at=excluded.sent_at,
                response_at=excluded.response_at,
                message_id=excluded.message_id,
                thread_id=excluded.thread_id,
                provider_message_id=excluded.provider_message_id,
                reply_content=excluded.reply_content,
                reply_headers_json=excluded.reply_headers_json,
                error_message=excluded.error_message
            """,
            (
                str(email.id),
                str(email.user_id),
                str(email.opportunity_id) if email.opportunity_id else None,
                email.subject,
                email.body,
                email.status,
                email.site_name,
                email.contact_email,
                email.contact_role,
                email.domain_authority,
                to_db_dt(email.sent_at),
                to_db_dt(email.response_at),
                int(email.is_follow_up),
                str(email.parent_email_id) if email.parent_email_id else None,
                email.message_id,
                email.thread_id,
                email.provider_message_id,
                email.reply_content,
                json.dumps(email.reply_headers),
                email.error_message,
                to_db_dt(email.created_at),
            ),
        )
        return email

    def _to_model(self, row: dict[str, Any]) -> OutreachEmail:
        return OutreachEmail(
            id=UUID(row["id"]),
            user_id=UUID(row["user_id"]),
            opportunity_id=parse_uuid(row["opportunity_id"]),
            subject=row["subject"],
            body=row["body"],
            status=row["status"],
            site_name=row["site_name"],
            contact_email=row["contact_email"],
            contact_role=row["contact_role"],
            domain_authority=row["domain_authority"],
            sent_at=parse_dt(row["sent_at"]),
            response_at=parse_dt(row["response_at"]),
            is_follow_up=bool(row["is_follow_up"]),
            parent_email_id=parse_uuid(row["parent_email_id"]),
            message_id=row["message_id"],
            thread_id=row["thread_id"],
            provider_message_id=row["provider_message_id"],
            reply_content=row["reply_content"],
            reply_headers=json.loads(row["reply_headers_json"]),
            error_message=row["error_message"],
            created_at=parse_dt(row["created_at"]),
        )

    def get_by_id(self, email_id: UUID) -> OutreachEmail | None:
        row = self._fetch_one("SELECT * FROM outreach_emails WHERE id = ?", (str(email_id),))
        return self._to_model(row) if row else None

    def get_by_message_id(self, message_id: str) -> OutreachEmail | None:
        row = self._fetch_one(
            "SELECT * FROM outreach_emails WHERE message_id = ?", (message_id,)
        )
        return self._to_model(row) if row else None

    def list_by_user(self, user_id: UUID) -> list[OutreachEmail]:
        rows = self._fetch_all(
            "SELECT * FROM outreach_emails WHERE user_id = ? ORDER BY created_at DESC",
            (str(user_id),),
        )
        return [self._to_model(r) for r in rows]


class SQLiteContactActivityRepo(SQLiteRepo):
    def save(self, activity: ContactActivity) -> ContactActivity:
        self._write(
            """
            INSERT INTO contact_activities (
                id, user_id, website_id, opportunity_id, email_id, contact_method,
                contact_details, subject, message, status, status_note, is_follow_up,
                parent_activity_id, executed_at, responded_at, last_status_change,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                status=excluded.status,
                status_note=excluded.status_note,
                executed_at=excluded.executed_at,
                responded_at=excluded.responded_at,
                last_status_change=excluded.last_status_change,
                updated_at=excluded.updated_at
            """,
            (
                str(activity.id),
                str(activity.user_id),
                str(activity.website_id) if activity.website_id else None,
                str(activity.opportunity_id) if activity.opportunity_id else None,
                str(activity.email_id) if activity.email_id else None,
                activity.contact_method,
                activity.contact_details,
                activity.subject,
                activity.message,
                activity.status,
                activity.status_note,
                int(activity.is_follow_up),
                str(activity.parent_activity_id) if activity.parent_activity_id else None,
                to_db_dt(activity.executed_at),
                to_db_dt(activity.responded_at),
                to_db_dt(activity.last_status_change),
                to_db_dt(activity.created_at),
                to_db_dt(activity.updated_at),
            ),
        )
        return activity

    def _to_model(self, row: dict[str, Any]) -> ContactActivity:
        return ContactActivity(
            id=UUID(row["id"]),
            user_id=UUID(row["user_id"]),
            website_id=parse_uuid(row["website_id"]),
            opportunity_id=parse_uuid(row["opportunity_id"]),
            email_id=parse_uuid(row["email_id"]),
            contact_method=row["contact_method"],
            contact_details=row["contact_details"],
            subject=row["subject"],
            message=row["message"],
            status=row["status"],
            status_note=row["status_note"],
            is_follow_up=bool(row["is_follow_up"]),
            parent_activity_id=parse_uuid(row["parent_activity_id"]),
            executed_at=parse_dt(row["executed_at"]),
            responded_at=parse_dt(row["responded_at"]),
            last_status_change=parse_dt(row["last_status_change"]),
            created_at=parse_dt(row["created_at"]),
            updated_at=parse_dt(row["updated_at"]),
        )

    def get_by_id(self, activity_id: UUID) -> ContactActivity | None:
        row = self._fetch_one(
            "SELECT * FROM contact_activities WHERE id = ?", (str(activity_id),)
        )
        return self._to_model(row) if row else None

    def get_by_email_id(self, email_id: UUID) -> ContactActivity | None:
        row = self._fetch_one(
            "SELECT * FROM contact_activities WHERE email_id = ? ORDER BY created_at DESC",
            (str(email_id),),
        )
        return self._to_model(row) if row else None
