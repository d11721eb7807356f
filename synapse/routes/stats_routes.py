from fastapi import APIRouter, Depends

from synapse.routes.auth_routes import get_credential_store
from synapse.routes.resource_routes import get_resource_store
from synapse.services.credential_store import CredentialStore
from synapse.services.resource_store import ResourceStore

router = APIRouter(tags=['stats'])


@router.get('/health')
def health():
    return {'status': 'OK', 'message': 'Synapse API is running'}


@router.get('/stats')
def get_stats(
    store: ResourceStore = Depends(get_resource_store),
    credentials: CredentialStore = Depends(get_credential_store),
):
    return {'stats': store.stats(total_users=credentials.count())}


@router.get('/filters')
def get_filters(store: ResourceStore = Depends(get_resource_store)):
    return store.distinct_filter_values()
