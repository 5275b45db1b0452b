# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.


"""
Default Service derived from the ports of the images.
"""
import re
from typing import List, Optional

from ..errors import ConfigurationError
from ..MODELS.image_configuration import ImageConfiguration
from ..MODELS.kubernetes_list import KubernetesListBuilder
from ..MODELS.kubernetes_resources import ObjectMeta, Service, ServicePort, ServiceSpec
from ..UTILS.iana_services import port_name
from .base_enricher import BaseEnricher, PlatformMode

PORT_PROTOCOL_PATTERN = re.compile(r"^(\d+)(?:/(tcp|udp))?$", re.IGNORECASE)
PORT_MAPPING_PATTERN = re.compile(
    r"^\s*(?P<port>\d+)(\s*:\s*(?P<targetPort>\d+))?(\s*/\s*(?P<protocol>(tcp|udp)))?\s*$",
    re.IGNORECASE,
)
PORT_IMAGE_LABEL_PREFIX = "jkube.generator.service.port"
PORTS_IMAGE_LABEL_PREFIX = "jkube.generator.service.ports"
PORT_NORMALIZATION_MAPPING = {8080: 80, 8081: 80, 8181: 80, 8180: 80, 8443: 443, 443: 443}


class ServiceEnricher(BaseEnricher):
    """
    Adds a Service exposing the ports of the images.

    The first port of every image becomes a service port, all ports with
    ``multiPort``. The ``port`` option maps ports explicitly, as a comma
    separated list of ``<port>[:<targetPort>][/<protocol>]``. A Service with
    the default name that already exists only gets its missing parts filled in.
    """
    NAME = "jkube-service"
    DEFAULTS = {
        "name": None,
        "headless": "false",
        "expose": "false",
        "type": None,
        "port": None,
        "multiPort": "false",
        "protocol": "tcp",
        "normalizePort": "false",
    }

    def create(self, platform_mode: PlatformMode, builder: KubernetesListBuilder):
        default_service = self.get_default_service()
        if default_service is not None:
            existing = self._find_service(builder, default_service.metadata.name)
            if existing is not None:
                self._add_missing_service_parts(existing, default_service)
            else:
                self._add_default_service(builder, default_service)
        if self.get_config_bool("normalizePort"):
            self._normalize_service_ports(builder)

    def get_default_service(self) -> Optional[Service]:
        """
        Computes the default Service, None if there is nothing to expose.
        """
        if not self.has_image_configuration():
            return None
        ports = self._extract_ports(self.images)
        spec = ServiceSpec()
        if ports:
            spec.ports = ports
        elif self.get_config_bool("headless"):
            spec.cluster_ip = "None"
        else:
            return None
        if self.get_config("type"):
            spec.type = self.get_config("type")
        labels = {"expose": "true"} if self.get_config_bool("expose") else {}
        return Service(metadata=ObjectMeta(name=self._service_name(), labels=labels), spec=spec)

    def _service_name(self) -> str:
        return self.get_config("name") or self.default_resource_name()

    @staticmethod
    def _find_service(builder: KubernetesListBuilder, name: str) -> Optional[Service]:
        for item in builder:
            if isinstance(item, Service) and item.metadata.name == name:
                return item
        return None

    def _add_default_service(self, builder: KubernetesListBuilder, service: Service):
        if service.spec.ports:
            self.log.info("Adding a default service '%s' with ports [%s]",
                          service.metadata.name, format_ports(service.spec.ports))
        else:
            self.log.info("Adding headless default service '%s'", service.metadata.name)
        builder.add_to_items(service)

    def _add_missing_service_parts(self, service: Service, default_service: Service):
        for key, value in default_service.metadata.labels.items():
            service.metadata.labels.setdefault(key, value)
        if service.spec is None:
            service.spec = default_service.spec.model_copy(deep=True)
            return
        if not service.spec.ports:
            service.spec.ports = [p.model_copy() for p in default_service.spec.ports]
            return
        for port in service.spec.ports:
            if not port.protocol:
                port.protocol = "TCP"
            if not port.name:
                port.name = self.get_default_port_name(port.port, port.protocol)

    @staticmethod
    def _normalize_service_ports(builder: KubernetesListBuilder):
        for item in builder:
            if isinstance(item, Service) and item.spec is not None:
                for port in item.spec.ports:
                    if isinstance(port.target_port, int) and port.target_port in PORT_NORMALIZATION_MAPPING:
                        port.port = PORT_NORMALIZATION_MAPPING[port.target_port]

    def _extract_ports(self, images: List[ImageConfiguration]) -> List[ServicePort]:
        ret: List[ServicePort] = []
        multi_port = self.get_config_bool("multiPort")
        configured_ports = self._extract_ports_from_config()
        for image in images:
            pod_ports = list(image.build.ports) if image.build is not None else []
            if not pod_ports:
                continue
            label_ports = self._ports_from_image_labels(image)
            if not label_ports:
                self._add_port_if_not_none(ret, self._port_from_image_spec(
                    image.name, pod_ports.pop(0), self._shift_or_none(configured_ports), None))
            else:
                for label_port in label_ports:
                    if not pod_ports:
                        break
                    self._add_port_if_not_none(ret, self._port_from_image_spec(
                        image.name, pod_ports.pop(0), self._shift_or_none(configured_ports), label_port))
            if multi_port:
                for spec in pod_ports:
                    self._add_port_if_not_none(ret, self._port_from_image_spec(
                        image.name, spec, self._shift_or_none(configured_ports), None))
        if multi_port:
            ret.extend(self._mirror_missing_target_port(port, port.port) for port in configured_ports)
        elif not ret and configured_ports:
            ret.append(self._mirror_missing_target_port(configured_ports[0], configured_ports[0].port))
        return ret

    def _extract_ports_from_config(self) -> List[ServicePort]:
        ports = self.get_config("port")
        if ports is None:
            return []
        return [self._parse_port_mapping(port) for port in ports.split(",")]

    def _parse_port_mapping(self, spec: str) -> ServicePort:
        match = PORT_MAPPING_PATTERN.match(spec)
        if not match:
            self.log.error("Invalid 'port' configuration '%s'. Must match <port>(:<targetPort>)?,<port2>?,...", spec)
            raise ConfigurationError(f"Invalid port mapping specification {spec}")
        port = int(match.group("port"))
        protocol = self._protocol(match.group("protocol"))
        target_port = match.group("targetPort")
        return ServicePort(
            port=port,
            protocol=protocol,
            name=self.get_default_port_name(port, protocol),
            target_port=int(target_port) if target_port is not None else None,
        )

    def _port_from_image_spec(self, image_name: str, spec: str, override: Optional[ServicePort],
                              target_port_from_label: Optional[str]) -> Optional[ServicePort]:
        match = PORT_PROTOCOL_PATTERN.match(spec.strip())
        if not match:
            self.log.warning(
                "Invalid port specification '%s' for image %s. Must match \\d+(/(tcp|udp))?. "
                "Ignoring for now for service generation", spec, image_name)
            return None
        target_port = int(target_port_from_label if target_port_from_label is not None else match.group(1))
        protocol = self._protocol(match.group(2))
        if override is not None:
            return self._mirror_missing_target_port(override, target_port)
        return ServicePort(
            port=target_port,
            target_port=target_port,
            protocol=protocol,
            name=self.get_default_port_name(target_port, protocol),
        )

    @staticmethod
    def _ports_from_image_labels(image: ImageConfiguration) -> List[str]:
        labels = image.build.labels if image.build is not None else {}
        ret = []
        if PORT_IMAGE_LABEL_PREFIX in labels:
            ret.append(labels[PORT_IMAGE_LABEL_PREFIX].strip())
        if PORTS_IMAGE_LABEL_PREFIX in labels:
            ret.extend(p.strip() for p in labels[PORTS_IMAGE_LABEL_PREFIX].split(",") if p.strip())
        return ret

    @staticmethod
    def _mirror_missing_target_port(port: ServicePort, target_port: int) -> ServicePort:
        if port.target_port is None:
            return port.model_copy(update={"target_port": target_port})
        return port

    @staticmethod
    def _add_port_if_not_none(ports: List[ServicePort], port: Optional[ServicePort]):
        if port is not None:
            ports.append(port)

    @staticmethod
    def _shift_or_none(ports: List[ServicePort]) -> Optional[ServicePort]:
        return ports.pop(0) if ports else None

    def _protocol(self, protocol: Optional[str]) -> str:
        protocol = protocol if protocol is not None else self.get_config("protocol")
        if protocol is not None and protocol.lower() in ("tcp", "udp"):
            return protocol.upper()
        raise ConfigurationError(
            f"Invalid service protocol {protocol} specified for enricher '{self.name}'. Must be 'tcp' or 'udp'"
        )

    @staticmethod
    def get_default_port_name(port: int, protocol: str) -> Optional[str]:
        """Well known name of a port, looked up in the IANA registry for unknown ports."""
        return port_name(port, protocol.lower())


def format_ports(ports: List[ServicePort]) -> str:
    ret = []
    for port in ports:
        target = str(port.target_port) if port.target_port is not None else str(port.port)
        service = str(port.port)
        ret.append(target if target == service else f"{service}:{target}")
    return ",".join(ret)
