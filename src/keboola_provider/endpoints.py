"""Endpoint families of the Keboola platform.

Each family has its own fixed base URL.  All of them share the
``X-StorageApi-Token`` header, but Docker-runner and Provisioning calls are
sent without it.
"""

from __future__ import annotations

from enum import Enum

TOKEN_HEADER = "X-StorageApi-Token"


class EndpointFamily(str, Enum):
    STORAGE = "storage"
    SYRUP = "syrup"
    FILE_IMPORT = "file_import"
    DOCKER = "docker"
    PROVISIONING = "provisioning"


DEFAULT_BASE_URLS: dict[EndpointFamily, str] = {
    EndpointFamily.STORAGE: "https://connection.keboola.com/v2/",
    EndpointFamily.SYRUP: "https://syrup.keboola.com/",
    EndpointFamily.FILE_IMPORT: "https://import.keboola.com/",
    EndpointFamily.DOCKER: "https://docker-runner.keboola.com/",
    EndpointFamily.PROVISIONING: "https://syrup.keboola.com/provisioning/",
}

# Families whose requests go out without the credential header.
UNAUTHENTICATED_FAMILIES = frozenset({EndpointFamily.DOCKER, EndpointFamily.PROVISIONING})


def sends_token(family: EndpointFamily) -> bool:
    return family not in UNAUTHENTICATED_FAMILIES
