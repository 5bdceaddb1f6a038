"""AWS infrastructure status.

Read-only view of the resources the infrastructure controller created for
the cluster (VPC subnets, security groups, instance profiles, key pair),
plus lookup helpers by purpose and zone.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from awsworkers.core.exceptions import ProfileNotFound, SecurityGroupNotFound, SubnetNotFound

# =============================================================================
# Status Types
# =============================================================================


@dataclass(frozen=True, slots=True)
class Subnet:
    id: str
    purpose: str
    zone: str


@dataclass(frozen=True, slots=True)
class SecurityGroup:
    id: str
    purpose: str


@dataclass(frozen=True, slots=True)
class InstanceProfile:
    name: str
    purpose: str


@dataclass(frozen=True, slots=True)
class Role:
    arn: str
    purpose: str


@dataclass(frozen=True, slots=True)
class VPCStatus:
    id: str = ""
    subnets: tuple[Subnet, ...] = ()
    security_groups: tuple[SecurityGroup, ...] = ()


@dataclass(frozen=True, slots=True)
class IAMStatus:
    instance_profiles: tuple[InstanceProfile, ...] = ()
    roles: tuple[Role, ...] = ()


@dataclass(frozen=True, slots=True)
class EC2Status:
    key_name: str = ""


@dataclass(frozen=True, slots=True)
class InfrastructureStatus:
    """Container for the infrastructure resources pools are placed into."""

    vpc: VPCStatus = field(default_factory=VPCStatus)
    iam: IAMStatus = field(default_factory=IAMStatus)
    ec2: EC2Status = field(default_factory=EC2Status)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> InfrastructureStatus:
        """Deserialize from the camelCase status document."""
        vpc = data.get("vpc") or {}
        iam = data.get("iam") or {}
        ec2 = data.get("ec2") or {}

        return cls(
            vpc=VPCStatus(
                id=str(vpc.get("id", "")),
                subnets=tuple(
                    Subnet(id=s["id"], purpose=s["purpose"], zone=s["zone"])
                    for s in vpc.get("subnets") or ()
                ),
                security_groups=tuple(
                    SecurityGroup(id=sg["id"], purpose=sg["purpose"])
                    for sg in vpc.get("securityGroups") or ()
                ),
            ),
            iam=IAMStatus(
                instance_profiles=tuple(
                    InstanceProfile(name=p["name"], purpose=p["purpose"])
                    for p in iam.get("instanceProfiles") or ()
                ),
                roles=tuple(
                    Role(arn=r["arn"], purpose=r["purpose"]) for r in iam.get("roles") or ()
                ),
            ),
            ec2=EC2Status(key_name=str(ec2.get("keyName", ""))),
        )


# =============================================================================
# Lookups
# =============================================================================


def find_subnet_for_purpose_and_zone(
    subnets: Sequence[Subnet],
    purpose: str,
    zone: str,
    *,
    pool: str | None = None,
) -> Subnet:
    for subnet in subnets:
        if subnet.purpose == purpose and subnet.zone == zone:
            return subnet
    raise SubnetNotFound(purpose, zone, pool=pool)


def find_security_group_for_purpose(
    security_groups: Sequence[SecurityGroup],
    purpose: str,
) -> SecurityGroup:
    for group in security_groups:
        if group.purpose == purpose:
            return group
    raise SecurityGroupNotFound(purpose)


def find_instance_profile_for_purpose(
    profiles: Sequence[InstanceProfile],
    purpose: str,
    *,
    pool: str | None = None,
) -> InstanceProfile:
    for profile in profiles:
        if profile.purpose == purpose:
            return profile
    raise ProfileNotFound(purpose, pool=pool)
