# catalog_auth/adapters/inbound/api/v1/router.py

from fastapi import APIRouter
from catalog_auth.adapters.inbound.api.v1.endpoints import application_endpoint, auth_endpoint, client_endpoint

api_router = APIRouter()

# Token service routes live at the root (/token, /.well-known/jwks.json, /auth/*, /admin/*)
api_router.include_router(auth_endpoint.router, tags=["Token Service"])

api_router.include_router(client_endpoint.router, prefix="/clients", tags=["Clients"])
api_router.include_router(application_endpoint.router, prefix="/applications", tags=["Applications"])
