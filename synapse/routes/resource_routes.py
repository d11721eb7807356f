import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from synapse.auth.dependencies import get_token_claims
from synapse.core.errors import ValidationError
from synapse.database import get_db
from synapse.routes.auth_routes import get_credential_store
from synapse.services.credential_store import CredentialStore
from synapse.services.resource_store import (
    DEFAULT_PAGE_SIZE,
    ResourceFilter,
    ResourceMetadata,
    ResourceStore,
    public_resource,
)
from synapse.storage.blob_stage import BlobStage

router = APIRouter(tags=['resources'])

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


def get_resource_store(db: Session = Depends(get_db)) -> ResourceStore:
    return ResourceStore(db)


def get_blob_stage(request: Request) -> BlobStage:
    return request.app.state.blob_stage


def content_disposition(file_name: str) -> str:
    # Printable ASCII only; CR/LF or quotes would break the header.
    ascii_name = ''.join(char for char in file_name if ' ' <= char <= '~' and char != '"') or 'download'
    if ascii_name == file_name:
        return f'attachment; filename="{file_name}"'
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(file_name)}"


@router.get('')
def list_resources(
    search: str | None = Query(default=None),
    subject: str | None = Query(default=None),
    year: str | None = Query(default=None),
    college: str | None = Query(default=None),
    type: str | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    store: ResourceStore = Depends(get_resource_store),
):
    resource_filter = ResourceFilter(search=search, subject=subject, year=year, college=college, type=type)
    result = store.list_resources(resource_filter, page=page, page_size=limit)

    return {
        'resources': [public_resource(resource) for resource in result.items],
        'pagination': {
            'page': result.page,
            'limit': result.page_size,
            'total': result.total,
            'pages': result.pages,
        },
    }


@router.post('/upload', status_code=status.HTTP_201_CREATED)
def upload_resource(
    file: UploadFile | None = File(default=None),
    title: str | None = Form(default=None),
    subject: str | None = Form(default=None),
    year: str | None = Form(default=None),
    college: str | None = Form(default=None),
    type: str | None = Form(default=None),
    description: str | None = Form(default=None),
    claims: dict = Depends(get_token_claims),
    store: ResourceStore = Depends(get_resource_store),
    credentials: CredentialStore = Depends(get_credential_store),
    blob_stage: BlobStage = Depends(get_blob_stage),
):
    data = None
    if file is not None:
        # One byte past the ceiling is enough to know the file is too large.
        data = file.file.read(blob_stage.max_bytes + 1)
        blob_stage.check(file.filename or '', len(data))

    metadata = ResourceMetadata(
        title=title,
        subject=subject,
        year=year,
        college=college,
        type=type,
        description=description,
    )
    store.validate_metadata(metadata)

    if file is None:
        raise ValidationError('File is required')

    owner = credentials.get_profile(claims['userId'])
    blob = blob_stage.accept(data, file.filename or '', len(data))
    try:
        resource = store.create(metadata, blob, owner)
    except Exception:
        logger.warning('Upload failed after storing %s; removing it', blob.stored_name)
        blob_stage.remove(blob.stored_path)
        raise

    return {
        'message': 'Resource uploaded successfully',
        'resource': public_resource(resource),
    }


@router.get('/{resource_id}/download')
def download_resource(
    resource_id: str,
    store: ResourceStore = Depends(get_resource_store),
    blob_stage: BlobStage = Depends(get_blob_stage),
):
    resource = store.get(resource_id)
    chunks = blob_stage.stream(resource.file_path)
    resource = store.increment_download(resource.id)

    logger.info('Download of resource id=%s (count=%s)', resource.id, resource.download_count)
    headers = {
        'Content-Disposition': content_disposition(resource.file_name),
        'Content-Length': str(resource.file_size),
    }
    return StreamingResponse(chunks, media_type='application/octet-stream', headers=headers)
