#!/usr/bin/env python3
"""
Test suite configuration and utilities.

Unit tests run against an in-memory SQLite database; tests marked ``db``
run against PostgreSQL (a testcontainers container, or TEST_DATABASE_URL).

    # Run all tests (unit + DB if docker is available)
    python -m pytest tests/ -v

    # Run only unit tests (no docker required)
    python -m pytest tests/ -v -m "not db"

    # Using unittest
    python -m unittest discover tests -v
"""

import os
from datetime import datetime
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from database.database import create_session_factory
from database.models import Base, Candidate, JobPost, JobMatch, UsageRecord

TEST_DB_URL = os.environ.get("TEST_DATABASE_URL")

# Check if we should force skip DB tests
SKIP_DB_TESTS = os.environ.get("SKIP_DB_TESTS", "false").lower() == "true"


def create_sqlite_session_factory():
    """
    Fresh in-memory SQLite database with all tables.

    StaticPool keeps a single connection so every session (and every worker
    thread) sees the same database.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(engine)
    return create_session_factory(engine)


def make_candidate(session, **overrides) -> Candidate:
    values = dict(
        email=None,
        tier='free',
        is_active=True,
        target_roles=["Backend Engineer"],
        target_locations=["Remote"],
        target_tech_stack=["Python", "PostgreSQL"],
        target_domains=["fintech"],
        experience_years=4,
        career_level="mid",
        work_mode_preference="remote",
        skill_ratings={"Python": 5, "PostgreSQL": 4},
    )
    values.update(overrides)
    candidate = Candidate(**values)
    session.add(candidate)
    session.flush()
    return candidate


def make_job(session, **overrides) -> JobPost:
    values = dict(
        title="Backend Engineer",
        company="TechCorp",
        description="Build Python services on PostgreSQL. Remote friendly.",
        requirements=["3+ years Python", "PostgreSQL"],
        tech_stack=["Python", "PostgreSQL", "Docker"],
        location="Remote",
        employment_type="full-time",
        status="active",
        min_experience_years=3,
    )
    values.update(overrides)
    job = JobPost(**values)
    session.add(job)
    session.flush()
    return job


def make_match(session, candidate_id: str, job_id: str, total_score: float, **overrides) -> JobMatch:
    values = dict(
        candidate_id=candidate_id,
        job_id=job_id,
        total_score=total_score,
        classification='good',
        matched_skills=[],
        missing_skills=[],
        reasons=[],
    )
    values.update(overrides)
    match = JobMatch(**values)
    session.add(match)
    session.flush()
    return match


def make_usage(session, candidate_id: str, timestamp: datetime, job_id: str = "job-1",
               action: str = "apply", ip_address: Optional[str] = None) -> UsageRecord:
    record = UsageRecord(
        candidate_id=candidate_id,
        job_id=job_id,
        action=action,
        timestamp=timestamp,
        ip_address=ip_address
    )
    session.add(record)
    session.flush()
    return record
