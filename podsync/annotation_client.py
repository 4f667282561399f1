from __future__ import annotations

import json
import logging

from pydantic import ValidationError

from .client import CLUSTER_FILE, MONITOR_CONF, PodClient
from .errors import (
    MalformedAppliedConfig,
    MalformedDesiredConfig,
    MalformedSubstitutions,
    MissingAnnotation,
    MissingAppliedConfig,
    UnknownFile,
)
from .launcher_models import ProcessConfiguration
from .models import ClusterTopology, InstanceDescriptor
from .settings import Settings, settings

logger = logging.getLogger(__name__)


class AnnotationPodClient(PodClient):
    """Pod client for unified images.

    The launcher inside the pod publishes its environment and the
    configuration it runs with as annotations, so no network calls are made.
    """

    def __init__(self, cluster: ClusterTopology, pod: InstanceDescriptor, config: Settings = settings):
        super().__init__(cluster, pod)
        self.environment_annotation = config.annotation("launcher-environment")
        self.current_configuration_annotation = config.annotation("launcher-current-configuration")

    def is_present(self, filename: str) -> bool:
        # The unified image handles file presence internally.
        return True

    def get_variable_substitutions(self) -> dict[str, str]:
        data = self.pod.annotations.get(self.environment_annotation)
        if data is None:
            logger.info(
                "Waiting for Kubernetes monitor to update annotations %s annotation=%s",
                self._log_fields(),
                self.environment_annotation,
            )
            raise MissingAnnotation(self.environment_annotation)
        try:
            environment = json.loads(data)
        except json.JSONDecodeError as exc:
            raise MalformedSubstitutions(f"Invalid JSON in {self.environment_annotation}: {exc}") from exc
        if not isinstance(environment, dict) or not all(isinstance(v, str) for v in environment.values()):
            raise MalformedSubstitutions(f"{self.environment_annotation} must hold a JSON object of strings")
        return environment

    def update_file(self, name: str, contents: str) -> bool:
        if name == CLUSTER_FILE:
            # Cluster file updates are not managed through annotations.
            return True
        if name == MONITOR_CONF:
            return self._process_configuration_matches(contents)
        raise UnknownFile(name)

    def _process_configuration_matches(self, contents: str) -> bool:
        try:
            desired = ProcessConfiguration.model_validate_json(contents)
        except ValidationError as exc:
            logger.error("Error parsing desired process configuration input=%r", contents)
            raise MalformedDesiredConfig(f"Invalid desired process configuration: {exc}") from exc

        current_data = self.pod.annotations.get(self.current_configuration_annotation)
        if current_data is None:
            logger.info(
                "Waiting for Kubernetes monitor to update annotations %s annotation=%s",
                self._log_fields(),
                self.current_configuration_annotation,
            )
            raise MissingAppliedConfig(self.current_configuration_annotation)

        try:
            current = ProcessConfiguration.model_validate_json(current_data)
        except ValidationError as exc:
            logger.error("Error parsing current process configuration input=%r", current_data)
            raise MalformedAppliedConfig(f"Invalid current process configuration: {exc}") from exc

        match = current.model_dump() == desired.model_dump()
        if not match:
            logger.info(
                "Waiting for Kubernetes monitor config update %s desired=%s current=%s",
                self._log_fields(),
                desired.model_dump_json(by_alias=True),
                current.model_dump_json(by_alias=True),
            )
        return match
