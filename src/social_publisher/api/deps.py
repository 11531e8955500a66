"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends, Request

from social_publisher.container import Container
from social_publisher.services.authorization import AuthorizationService
from social_publisher.services.credentials import CredentialStore
from social_publisher.services.publishing import PublishingService


def get_container(request: Request) -> Container:
    """Get the container built during application startup."""
    return request.app.state.container


ContainerDep = Annotated[Container, Depends(get_container)]


def get_credentials(container: ContainerDep) -> CredentialStore:
    return container.credentials


def get_authorization_service(container: ContainerDep) -> AuthorizationService:
    return container.authorization


def get_publishing_service(container: ContainerDep) -> PublishingService:
    return container.publishing


CredentialStoreDep = Annotated[CredentialStore, Depends(get_credentials)]
AuthorizationServiceDep = Annotated[AuthorizationService, Depends(get_authorization_service)]
PublishingServiceDep = Annotated[PublishingService, Depends(get_publishing_service)]
