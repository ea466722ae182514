import pytest
from unittest.mock import AsyncMock, MagicMock

REPOSITORY_METHODS = {
    "principals": {"get_by_id": None, "get_by_email": None},
    "organizations": {
        "get_by_id": None,
        "get_by_ids": [],
        "get_by_slug": None,
        "create": "echo",
        "update": "echo",
    },
    "role_assignments": {
        "get_by_id": None,
        "get_by_principal_id": [],
        "get_by_principal_and_organization": None,
        "count_active_by_organization": 0,
        "count_active_system_admins": 0,
        "create": "echo",
        "update": "echo",
        "deactivate": True,
        "reactivate": True,
    },
    "invitations": {
        "get_by_id": None,
        "get_by_token": None,
        "get_open_by_organization_and_email": None,
        "get_by_organization_id": [],
        "create": "echo",
        "transition_status": True,
        "reissue": True,
    },
    "audit_events": {"create": "echo", "get_paginated": ([], None)},
}


@pytest.fixture
def mock_uow():
    """Mock UnitOfWork with every repository method as an AsyncMock"""
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()

    for repository_name, methods in REPOSITORY_METHODS.items():
        repository = MagicMock()
        for method_name, default in methods.items():
            if default == "echo":
                method = AsyncMock(side_effect=lambda entity: entity)
            else:
                method = AsyncMock(return_value=default)
            setattr(repository, method_name, method)
        setattr(uow, repository_name, repository)

    return uow

