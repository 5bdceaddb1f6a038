"""IAM instance profile resolution."""

from __future__ import annotations

from awsworkers.api.model import IAMProfile, IAMProfileByARN, IAMProfileByName
from awsworkers.constants import Purpose
from awsworkers.core.exceptions import ProfileUnresolvable
from awsworkers.providers.aws.config import WorkerConfig
from awsworkers.providers.aws.infra import InfrastructureStatus, find_instance_profile_for_purpose

__all__ = ["compute_iam_instance_profile"]


def compute_iam_instance_profile(
    worker_config: WorkerConfig,
    infrastructure_status: InfrastructureStatus,
    *,
    pool: str | None = None,
) -> IAMProfile:
    """Profile attached to the pool's machines.

    Without an override the profile the infrastructure created for nodes is
    used. An override names a profile or an ARN; the name wins if both are set.

    Raises:
        ProfileNotFound: No override and no profile with purpose ``nodes``.
        ProfileUnresolvable: The override sets neither name nor ARN.
    """
    override = worker_config.iam_instance_profile
    if override is None:
        profile = find_instance_profile_for_purpose(
            infrastructure_status.iam.instance_profiles, Purpose.NODES, pool=pool
        )
        return IAMProfileByName(profile.name)

    if override.name is not None:
        return IAMProfileByName(override.name)

    if override.arn is not None:
        return IAMProfileByARN(override.arn)

    raise ProfileUnresolvable(pool=pool)
