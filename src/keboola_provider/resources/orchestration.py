"""Orchestrations and their task lists (Syrup orchestrator API)."""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from keboola_provider.codec import ApiModel, KBCBoolean, KBCNumberString, Payload, equivalent_json
from keboola_provider.endpoints import EndpointFamily
from keboola_provider.errors import ValidationError
from keboola_provider.resources.base import CreatedResource, Resource, ResourceState
from keboola_provider.validators import NOTIFICATION_CHANNELS, check_one_of

logger = logging.getLogger(__name__)

ORCHESTRATIONS_PATH = "orchestrator/orchestrations"


# ---------------------------------------------------------------------------
# Orchestrations
# ---------------------------------------------------------------------------

class NotificationState(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email: str
    channel: str
    parameters: dict[str, Any] = Field(default_factory=dict)


class OrchestrationState(ResourceState):
    name: str
    enabled: bool = True
    schedule_cron: str = ""
    notifications: list[NotificationState] = Field(default_factory=list)


class OrchestrationToken(ApiModel):
    id: KBCNumberString | None = None
    description: str | None = None


class OrchestrationNotification(ApiModel):
    email: str = ""
    channel: str = ""
    parameters: dict[str, Any] | None = None


class Orchestration(ApiModel):
    id: KBCNumberString | None = None
    name: str = ""
    active: KBCBoolean = True
    crontab_record: str | None = Field(default=None, alias="crontabRecord")
    token: OrchestrationToken | None = None
    notifications: list[OrchestrationNotification] = Field(default_factory=list)


class OrchestrationResource(Resource[OrchestrationState]):
    type_name = "keboola_orchestration"
    display_name = "Orchestration"
    state_model = OrchestrationState
    remote_model = Orchestration

    family = EndpointFamily.SYRUP
    collection_path = ORCHESTRATIONS_PATH
    item_path = ORCHESTRATIONS_PATH + "/{id}"

    def validate(self, state: OrchestrationState) -> None:
        for notification in state.notifications:
            check_one_of("channel", notification.channel, NOTIFICATION_CHANNELS)

    def create_payload(self, state: OrchestrationState) -> Payload:
        return Payload.from_json(
            Orchestration(
                name=state.name,
                active=state.enabled,
                crontab_record=state.schedule_cron,
                notifications=[
                    OrchestrationNotification(**notification.model_dump())
                    for notification in state.notifications
                ],
            )
        )

    def after_create(self, state: OrchestrationState) -> None:
        # The orchestrator ignores "active" on create.
        if not state.enabled:
            logger.debug("Orchestration '%s' is created inactive, disabling it", state.id)
            self._apply_update(state, frozenset({"enabled"}))

    def apply_remote(self, state: OrchestrationState, remote: Orchestration) -> None:
        state.name = remote.name
        state.enabled = remote.active
        state.schedule_cron = remote.crontab_record or ""
        state.notifications = [
            NotificationState(
                email=notification.email,
                channel=notification.channel,
                parameters=notification.parameters or {},
            )
            for notification in remote.notifications
        ]

    def delete(self, state: OrchestrationState) -> OrchestrationState:
        """Delete the orchestration together with the token it runs under."""
        logger.info("Deleting %s in Keboola: %s", self.display_name, state.id)
        if not state.id:
            return state

        remote = self._fetch(state)
        if remote is not None:
            self._call("DELETE", self.family, self.path_for(self.item_path, state), absent_ok=True)
            if remote.token and remote.token.id:
                token_path = self.path_for("storage/tokens/{token_id}", state, token_id=remote.token.id)
                self._call("DELETE", EndpointFamily.STORAGE, token_path, absent_ok=True)

        state.id = None
        return state


# ---------------------------------------------------------------------------
# Orchestration tasks
# ---------------------------------------------------------------------------

class OrchestrationTaskState(BaseModel):
    model_config = ConfigDict(extra="forbid")

    component: str
    action: str = "run"
    # JSON object text.
    action_parameters: str = "{}"
    timeout: int | None = None
    is_active: bool = True
    continue_on_failure: bool = False
    phase: str = ""


class OrchestrationTasksState(ResourceState):
    orchestration_id: str
    tasks: list[OrchestrationTaskState] = Field(default_factory=list)


class OrchestrationTask(ApiModel):
    id: KBCNumberString | None = None
    component: str = ""
    action: str = ""
    action_parameters: dict[str, Any] | None = Field(default=None, alias="actionParameters")
    timeout: int | None = Field(default=None, alias="timeoutMinutes")
    is_active: KBCBoolean = Field(default=True, alias="active")
    continue_on_failure: KBCBoolean = Field(default=False, alias="continueOnFailure")
    phase: KBCNumberString | None = None


def parse_action_parameters(text: str) -> dict[str, Any]:
    try:
        value = json.loads(text or "{}")
    except json.JSONDecodeError as exc:
        raise ValidationError(f'"action_parameters" must be valid JSON: {exc}') from exc
    if not isinstance(value, dict):
        raise ValidationError('"action_parameters" must be a JSON object')
    return value


class OrchestrationTasksResource(Resource[OrchestrationTasksState]):
    """The full task list of one orchestration, replaced as a whole.

    The resource id is the orchestration id.
    """

    type_name = "keboola_orchestration_tasks"
    display_name = "Orchestration Tasks"
    state_model = OrchestrationTasksState
    remote_model = list[OrchestrationTask]

    family = EndpointFamily.SYRUP
    item_path = ORCHESTRATIONS_PATH + "/{id}/tasks"
    force_new = frozenset({"orchestration_id"})

    def validate(self, state: OrchestrationTasksState) -> None:
        for task in state.tasks:
            parse_action_parameters(task.action_parameters)

    def create_payload(self, state: OrchestrationTasksState) -> Payload:
        return Payload.from_json(
            [
                OrchestrationTask(
                    component=task.component,
                    action=task.action,
                    action_parameters=parse_action_parameters(task.action_parameters),
                    timeout=task.timeout,
                    is_active=task.is_active,
                    continue_on_failure=task.continue_on_failure,
                    phase=task.phase or None,
                )
                for task in state.tasks
            ]
        )

    def _submit(self, state: OrchestrationTasksState) -> CreatedResource:
        path = self.path_for(ORCHESTRATIONS_PATH + "/{orchestration_id}/tasks", state)
        self._call("PUT", self.family, path, self.create_payload(state))
        return CreatedResource(id=state.orchestration_id)

    def apply_remote(self, state: OrchestrationTasksState, remote: list[OrchestrationTask]) -> None:
        previous = state.tasks
        tasks = []
        for index, task in enumerate(remote):
            parameters = json.dumps(task.action_parameters or {})
            # Keep the host's formatting when only whitespace differs.
            if index < len(previous) and equivalent_json(previous[index].action_parameters, parameters):
                parameters = previous[index].action_parameters
            tasks.append(
                OrchestrationTaskState(
                    component=task.component,
                    action=task.action,
                    action_parameters=parameters,
                    timeout=task.timeout,
                    is_active=task.is_active,
                    continue_on_failure=task.continue_on_failure,
                    phase=task.phase or "",
                )
            )
        state.orchestration_id = state.id or state.orchestration_id
        state.tasks = tasks

    def delete(self, state: OrchestrationTasksState) -> OrchestrationTasksState:
        """Clear the task list; the orchestration itself is left alone."""
        logger.info("Clearing %s in Keboola: %s", self.display_name, state.id)
        if state.id:
            self._call(
                "PUT",
                self.family,
                self.path_for(self.item_path, state),
                Payload.from_json([]),
                absent_ok=True,
            )
        state.id = None
        return state
