import logging
from typing import List, Optional, Sequence

from sqlalchemy import select

from core.interfaces import JobCorpusReader
from core.scorer.models import JobRecord
from database.models import JobPost
from database.repositories.base import BaseRepository
from database.repositories.candidate import CandidateRepository

logger = logging.getLogger(__name__)

ARCHIVED_STATUS = 'archived'


def record_from_job_post(job_post: JobPost) -> JobRecord:
    return JobRecord.from_mapping(job_post.id, {
        'title': job_post.title,
        'company': job_post.company,
        'description': job_post.description,
        'requirements': job_post.requirements,
        'tech_stack': job_post.tech_stack,
        'location': job_post.location,
        'employment_type': job_post.employment_type,
        'status': job_post.status,
        'min_experience_years': job_post.min_experience_years,
    })


class JobPostRepository(BaseRepository, JobCorpusReader):
    def get_by_id(self, job_id: str) -> Optional[JobPost]:
        stmt = select(JobPost).where(JobPost.id == str(job_id))
        return self.db.execute(stmt).scalar_one_or_none()

    def list_active_jobs(
        self,
        limit: int,
        job_ids: Optional[Sequence[str]] = None
    ) -> List[JobRecord]:
        stmt = select(JobPost).where(JobPost.status != ARCHIVED_STATUS)
        if job_ids:
            stmt = stmt.where(JobPost.id.in_([str(j) for j in job_ids]))
        stmt = stmt.order_by(JobPost.created_at.desc(), JobPost.id).limit(limit)

        return [record_from_job_post(job) for job in self.db.execute(stmt).scalars()]

    def list_active_candidates(self, limit: int) -> List[str]:
        return CandidateRepository(self.db).list_active_ids(limit)
