"""Client directory endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from ...api.deps import get_current_user, get_now, get_session
from ...api.errors import NotFoundError
from ...core.security import CurrentUser
from ...models.billing import Client, ClientCreate, ClientUpdate
from ...services.clients import ClientService

router = APIRouter(prefix="/clients")


def get_client_service(
    user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> ClientService:
    return ClientService(session, user.uid)


@router.get("", response_model=List[Client])
def list_clients(service: ClientService = Depends(get_client_service)):
    return service.list()


@router.post("", response_model=Client, status_code=status.HTTP_201_CREATED)
def create_client(
    payload: ClientCreate,
    service: ClientService = Depends(get_client_service),
    now: datetime = Depends(get_now),
):
    return service.create(payload, now)


@router.get("/{client_id}", response_model=Client)
def get_client(client_id: str, service: ClientService = Depends(get_client_service)):
    client = service.get(client_id)
    if client is None:
        raise NotFoundError("Client", client_id)
    return client


@router.patch("/{client_id}", response_model=Client)
def update_client(client_id: str, payload: ClientUpdate, service: ClientService = Depends(get_client_service)):
    client = service.update(client_id, payload)
    if client is None:
        raise NotFoundError("Client", client_id)
    return client


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_client(client_id: str, service: ClientService = Depends(get_client_service)):
    if not service.delete(client_id):
        raise NotFoundError("Client", client_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
