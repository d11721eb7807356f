import logging
import math
from dataclasses import dataclass
from datetime import timezone

from pydantic import BaseModel, field_validator
from sqlalchemy import desc, func, or_, select, update
from sqlalchemy.orm import Session

from synapse.core.errors import NotFoundError, ValidationError
from synapse.models.resource import Resource
from synapse.models.user import User
from synapse.storage.blob_stage import StoredBlob

logger = logging.getLogger(__name__)

RESOURCE_TYPES = ('Question Paper', 'Notes', 'Solutions', 'Syllabus')
DEFAULT_PAGE_SIZE = 10
TOP_SUBJECTS_LIMIT = 5
RECENT_UPLOADS_LIMIT = 5
LIKE_ESCAPE = '\\'


class ResourceFilter(BaseModel):
    search: str | None = None
    subject: str | None = None
    year: str | None = None
    college: str | None = None
    type: str | None = None

    @field_validator('search', 'subject', 'year', 'college', 'type')
    @classmethod
    def blank_to_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        return value or None


class ResourceMetadata(BaseModel):
    title: str | None = None
    subject: str | None = None
    year: str | None = None
    college: str | None = None
    type: str | None = None
    description: str | None = None

    @field_validator('title', 'subject', 'year', 'college', 'type', 'description')
    @classmethod
    def strip_text(cls, value: str | None) -> str | None:
        return value.strip() if value is not None else None


@dataclass
class ResourcePage:
    items: list[Resource]
    total: int
    page: int
    page_size: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.page_size else 0


def format_date(resource: Resource) -> str:
    created_at = resource.created_at
    if created_at.tzinfo is not None:
        created_at = created_at.astimezone(timezone.utc)
    return created_at.date().isoformat()


def public_resource(resource: Resource) -> dict:
    return {
        'id': resource.id,
        'title': resource.title,
        'subject': resource.subject,
        'year': resource.year,
        'college': resource.college,
        'type': resource.type,
        'description': resource.description or '',
        'uploadedBy': resource.uploaded_by_name,
        'downloadCount': resource.download_count,
        'uploadDate': format_date(resource),
    }


def escape_like(token: str) -> str:
    # Search text is literal, so LIKE wildcards in it are escaped.
    return (
        token.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace('%', LIKE_ESCAPE + '%')
        .replace('_', LIKE_ESCAPE + '_')
    )


def year_sort_key(year: str) -> tuple:
    # Numeric years newest first, anything else after them alphabetically.
    try:
        return (0, -int(year), '')
    except ValueError:
        return (1, 0, year)


class ResourceStore:
    def __init__(self, db: Session) -> None:
        self.db = db

    @staticmethod
    def validate_metadata(metadata: ResourceMetadata) -> None:
        required = (metadata.title, metadata.subject, metadata.year, metadata.college, metadata.type)
        if not all(required):
            raise ValidationError('Title, subject, year, college, and type are required')
        if metadata.type not in RESOURCE_TYPES:
            raise ValidationError(f"Type must be one of: {', '.join(RESOURCE_TYPES)}")

    def create(self, metadata: ResourceMetadata, blob: StoredBlob, owner: User) -> Resource:
        self.validate_metadata(metadata)

        resource = Resource(
            title=metadata.title,
            subject=metadata.subject,
            year=metadata.year,
            college=metadata.college,
            type=metadata.type,
            description=metadata.description or '',
            file_name=blob.original_name,
            stored_name=blob.stored_name,
            file_path=blob.stored_path,
            file_size=blob.byte_size,
            uploaded_by=owner.id,
            uploaded_by_name=owner.name,
            download_count=0,
        )
        self.db.add(resource)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(resource)

        logger.info('Created resource id=%s by user id=%s', resource.id, owner.id)
        return resource

    def get(self, resource_id: int | str) -> Resource:
        try:
            resource = self.db.get(Resource, int(resource_id))
        except (TypeError, ValueError):
            resource = None
        if resource is None:
            raise NotFoundError('Resource not found')
        return resource

    def _apply_filter(self, query, resource_filter: ResourceFilter):
        if resource_filter.search:
            tokens = resource_filter.search.split()
            clauses = []
            for token in tokens:
                pattern = f'%{escape_like(token)}%'
                clauses.extend([
                    Resource.title.ilike(pattern, escape=LIKE_ESCAPE),
                    Resource.subject.ilike(pattern, escape=LIKE_ESCAPE),
                    Resource.college.ilike(pattern, escape=LIKE_ESCAPE),
                ])
            query = query.where(or_(*clauses))

        for field_name in ('subject', 'year', 'college', 'type'):
            value = getattr(resource_filter, field_name)
            if value:
                query = query.where(getattr(Resource, field_name) == value)
        return query

    def list_resources(
        self,
        resource_filter: ResourceFilter | None = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> ResourcePage:
        resource_filter = resource_filter or ResourceFilter()
        if page < 1 or page_size < 1:
            raise ValidationError('Page and limit must be positive integers')

        total = self.db.execute(
            self._apply_filter(select(func.count(Resource.id)), resource_filter)
        ).scalar_one()

        # Newest first even when a text query is present.
        items = self.db.execute(
            self._apply_filter(select(Resource), resource_filter)
            .order_by(Resource.created_at.desc(), Resource.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        ).scalars().all()

        return ResourcePage(items=list(items), total=total, page=page, page_size=page_size)

    def increment_download(self, resource_id: int | str) -> Resource:
        try:
            resource_id = int(resource_id)
        except (TypeError, ValueError) as exc:
            raise NotFoundError('Resource not found') from exc

        # A single UPDATE so concurrent downloads never lose an increment.
        try:
            result = self.db.execute(
                update(Resource)
                .where(Resource.id == resource_id)
                .values(download_count=Resource.download_count + 1)
                .execution_options(synchronize_session=False)
            )
            matched = result.rowcount
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        if matched == 0:
            raise NotFoundError('Resource not found')

        resource = self.db.get(Resource, resource_id, populate_existing=True)
        if resource is None:
            raise NotFoundError('Resource not found')
        return resource

    def stats(self, total_users: int) -> dict:
        total_resources = self.db.execute(select(func.count(Resource.id))).scalar_one()
        total_downloads = self.db.execute(
            select(func.coalesce(func.sum(Resource.download_count), 0))
        ).scalar_one()

        subject_count = func.count(Resource.id).label('count')
        top_subjects = self.db.execute(
            select(Resource.subject, subject_count)
            .group_by(Resource.subject)
            .order_by(desc('count'), Resource.subject.asc())
            .limit(TOP_SUBJECTS_LIMIT)
        ).all()

        recent_uploads = self.db.execute(
            select(Resource)
            .order_by(Resource.created_at.desc(), Resource.id.desc())
            .limit(RECENT_UPLOADS_LIMIT)
        ).scalars().all()

        return {
            'totalResources': total_resources,
            'totalUsers': total_users,
            'totalDownloads': int(total_downloads),
            'topSubjects': [{'subject': subject, 'count': count} for subject, count in top_subjects],
            'recentUploads': [
                {
                    'title': resource.title,
                    'subject': resource.subject,
                    'uploadedBy': resource.uploaded_by_name,
                    'uploadDate': format_date(resource),
                }
                for resource in recent_uploads
            ],
        }

    def _distinct(self, column) -> list[str]:
        return [value for value in self.db.execute(select(column).distinct()).scalars() if value]

    def distinct_filter_values(self) -> dict:
        return {
            'subjects': sorted(self._distinct(Resource.subject)),
            'years': sorted(self._distinct(Resource.year), key=year_sort_key),
            'colleges': sorted(self._distinct(Resource.college)),
            'types': sorted(self._distinct(Resource.type)),
        }
