"""Resource declaration graph and CloudFormation rendering.

This module provides the ResourceGraph that every resolver declares into.
Resources are identified by a stable logical ID, carry typed properties that
may contain cross-resource references (Ref, GetAtt, Sub), and hold explicit
depends-on edges. The graph renders to an AWS CloudFormation template.
"""

import json
import logging
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Union

import yaml

from .exceptions import DuplicateResourceError, GraphError, UnknownResourceError

logger = logging.getLogger(__name__)

TEMPLATE_FORMAT_VERSION = "2010-09-09"
DEFAULT_DESCRIPTION = "AWS Control Tower landing zone and prerequisites"


class RemovalPolicy(Enum):
    """What happens to a resource when it leaves the graph."""

    DESTROY = "Delete"
    RETAIN = "Retain"


@dataclass(frozen=True)
class Ref:
    """Reference to another resource's primary identifier."""

    logical_id: str

    def to_cfn(self) -> Dict[str, Any]:
        return {"Ref": self.logical_id}


@dataclass(frozen=True)
class GetAtt:
    """Reference to an attribute a resource exposes once created."""

    logical_id: str
    attribute: str

    def to_cfn(self) -> Dict[str, Any]:
        return {"Fn::GetAtt": [self.logical_id, self.attribute]}


@dataclass(frozen=True)
class Sub:
    """String with pseudo parameters substituted at deploy time."""

    template: str

    def to_cfn(self) -> Dict[str, Any]:
        return {"Fn::Sub": self.template}


Token = Union[Ref, GetAtt, Sub]


@dataclass(frozen=True)
class Environment:
    """Target account, region and partition of a graph.

    Any part left as None stays a CloudFormation pseudo parameter and is
    resolved when the template is deployed.
    """

    account: Optional[str] = None
    region: Optional[str] = None
    partition: Optional[str] = None

    def resolve(self, template: str) -> Union[str, Sub]:
        """Substitute known pseudo parameters in an ARN template.

        Args:
            template: String using ${AWS::Partition}, ${AWS::Region} or
                      ${AWS::AccountId} placeholders

        Returns:
            Plain string when every placeholder is known, Sub token otherwise
        """
        known = {
            "AWS::AccountId": self.account,
            "AWS::Region": self.region,
            "AWS::Partition": self.partition,
        }
        resolved = template
        for name, value in known.items():
            if value:
                resolved = resolved.replace("${" + name + "}", value)

        if "${" in resolved:
            return Sub(resolved)
        return resolved


def render(value: Any) -> Any:
    """Render a property value, replacing tokens with intrinsic functions."""
    if isinstance(value, (Ref, GetAtt, Sub)):
        return value.to_cfn()
    if isinstance(value, dict):
        return {key: render(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [render(item) for item in value]
    return value


@dataclass
class Resource:
    """A declared resource in the graph."""

    logical_id: str
    resource_type: str
    properties: Dict[str, Any]
    removal_policy: Optional[RemovalPolicy] = None
    depends_on: List[str] = field(default_factory=list)

    def ref(self) -> Ref:
        return Ref(self.logical_id)

    def get_att(self, attribute: str) -> GetAtt:
        return GetAtt(self.logical_id, attribute)

    def to_cfn(self) -> Dict[str, Any]:
        """Render the resource as a CloudFormation resource entry."""
        entry: Dict[str, Any] = {
            "Type": self.resource_type,
            "Properties": render(self.properties),
        }
        if self.depends_on:
            entry["DependsOn"] = list(self.depends_on)
        if self.removal_policy is not None:
            entry["DeletionPolicy"] = self.removal_policy.value
            entry["UpdateReplacePolicy"] = self.removal_policy.value
        return entry


class ResourceGraph:
    """Declared resources plus explicit creation-order edges.

    Resolvers receive the graph by reference and declare into it. Edges are
    stored on the dependent resource and always point at a resource that
    must be created first.
    """

    def __init__(self, environment: Optional[Environment] = None,
                 description: str = DEFAULT_DESCRIPTION) -> None:
        """Initialize an empty graph.

        Args:
            environment: Optional concrete account/region/partition
            description: Template description
        """
        self.environment = environment or Environment()
        self.description = description
        self._resources: Dict[str, Resource] = {}
        self._outputs: Dict[str, Dict[str, Any]] = {}

    def __contains__(self, logical_id: str) -> bool:
        return logical_id in self._resources

    def __len__(self) -> int:
        return len(self._resources)

    def __iter__(self) -> Iterator[Resource]:
        return iter(self._resources.values())

    def declare(self, logical_id: str, resource_type: str,
                properties: Dict[str, Any],
                removal_policy: Optional[RemovalPolicy] = None) -> Resource:
        """Declare a new resource.

        Args:
            logical_id: Stable logical identifier within the graph
            resource_type: CloudFormation resource type
            properties: Resource properties, may contain tokens
            removal_policy: Optional removal policy

        Returns:
            The declared Resource

        Raises:
            DuplicateResourceError: When the logical ID is already declared
        """
        if logical_id in self._resources:
            raise DuplicateResourceError(
                f"Resource '{logical_id}' is already declared in this graph"
            )

        resource = Resource(
            logical_id=logical_id,
            resource_type=resource_type,
            properties=properties,
            removal_policy=removal_policy,
        )
        self._resources[logical_id] = resource
        logger.debug(f"Declared {resource_type} '{logical_id}'")
        return resource

    def add_dependency(self, source: Resource, target: Resource) -> None:
        """Require target to be created before source.

        Raises:
            UnknownResourceError: When either resource is not in this graph
            GraphError: When a resource would depend on itself
        """
        for resource in (source, target):
            if self._resources.get(resource.logical_id) is not resource:
                raise UnknownResourceError(
                    f"Resource '{resource.logical_id}' is not declared in this graph"
                )
        if source is target:
            raise GraphError(f"Resource '{source.logical_id}' cannot depend on itself")

        if target.logical_id not in source.depends_on:
            source.depends_on.append(target.logical_id)
            logger.debug(f"Edge {source.logical_id} -> {target.logical_id}")

    def get(self, logical_id: str) -> Optional[Resource]:
        return self._resources.get(logical_id)

    def resources_of_type(self, resource_type: str) -> List[Resource]:
        return [r for r in self._resources.values() if r.resource_type == resource_type]

    def dependencies_of(self, logical_id: str) -> List[str]:
        resource = self._resources.get(logical_id)
        if resource is None:
            raise UnknownResourceError(f"Resource '{logical_id}' is not declared in this graph")
        return list(resource.depends_on)

    def resolve(self, template: str) -> Union[str, Sub]:
        """Resolve an ARN template against the graph environment."""
        return self.environment.resolve(template)

    def add_output(self, name: str, value: Any, description: Optional[str] = None) -> None:
        output: Dict[str, Any] = {"Value": value}
        if description:
            output["Description"] = description
        self._outputs[name] = output

    def creation_order(self) -> List[str]:
        """Order logical IDs so every resource follows its dependencies.

        Ties are broken by declaration order, so the result is stable.

        Raises:
            GraphError: When the edges contain a cycle
        """
        declared = list(self._resources)
        remaining = {lid: len(self._resources[lid].depends_on) for lid in declared}
        dependents: Dict[str, List[str]] = {lid: [] for lid in declared}
        for lid in declared:
            for target in self._resources[lid].depends_on:
                dependents[target].append(lid)

        ready = deque(lid for lid in declared if remaining[lid] == 0)
        order: List[str] = []
        while ready:
            lid = ready.popleft()
            order.append(lid)
            for dependent in dependents[lid]:
                remaining[dependent] -= 1
                if remaining[dependent] == 0:
                    ready.append(dependent)

        if len(order) != len(declared):
            cyclic = sorted(set(declared) - set(order))
            raise GraphError(f"Dependency cycle between resources: {', '.join(cyclic)}")
        return order

    def synth(self) -> Dict[str, Any]:
        """Render the graph as a CloudFormation template dictionary."""
        template: Dict[str, Any] = {
            "AWSTemplateFormatVersion": TEMPLATE_FORMAT_VERSION,
            "Description": self.description,
            "Resources": {
                lid: self._resources[lid].to_cfn() for lid in self.creation_order()
            },
        }
        if self._outputs:
            template["Outputs"] = render(self._outputs)
        return template

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.synth(), indent=indent)

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.synth(), sort_keys=False, default_flow_style=False)
