from __future__ import annotations

import asyncio
import gzip
import json
from dataclasses import replace
from unittest.mock import AsyncMock

import pytest

from awsworkers.api.model import IAMProfileByName, MachineConfiguration
from awsworkers.api.spec import (
    ClusterAutoscalerOptions,
    DataVolume,
    MachineControllerSettings,
    MachineImageRef,
    NodeTemplate,
    Taint,
    Volume,
)
from awsworkers.core.exceptions import (
    ConfigDecodeError,
    ImageNotFound,
    SecurityGroupNotFound,
    SubnetNotFound,
    UserDataNotFound,
)
from awsworkers.providers.aws.infra import InfrastructureStatus, VPCStatus
from awsworkers.providers.aws.machines import (
    CompilerSettings,
    WorkerDelegate,
    deployment_name,
    machine_class_name,
    read_autoscaler_annotations,
)
from awsworkers.providers.aws.userdata import StaticUserData

pytestmark = [pytest.mark.xdist_group("unit")]

NAMESPACE = "shoot--core--dev"


class TestNames:
    def test_deployment_and_class_names(self):
        assert deployment_name(NAMESPACE, "cpu", 0) == "shoot--core--dev-cpu-z1"
        assert machine_class_name(NAMESPACE, "cpu", 2, "abcde") == "shoot--core--dev-cpu-z3-abcde"


class TestPoolCompiler:
    @pytest.mark.asyncio
    async def test_one_class_and_deployment_per_zone(self, compiler, make_pool):
        pool = make_pool(zones=("eu-west-1a", "eu-west-1b", "eu-west-1c"))

        result = await compiler.compile([pool])

        assert len(result.machine_classes) == 3
        assert len(result.machine_deployments) == 3
        assert [mc.labels["failure-domain.beta.kubernetes.io/zone"] for mc in result.machine_classes] == [
            "eu-west-1a",
            "eu-west-1b",
            "eu-west-1c",
        ]
        assert [md.name for md in result.machine_deployments] == [
            "shoot--core--dev-cpu-z1",
            "shoot--core--dev-cpu-z2",
            "shoot--core--dev-cpu-z3",
        ]

    @pytest.mark.asyncio
    async def test_class_deployment_secret_correspondence(self, compiler, make_pool):
        result = await compiler.compile([make_pool()])

        for mc, md in zip(result.machine_classes, result.machine_deployments, strict=True):
            assert md.class_name == mc.name
            assert md.secret_name == mc.name
            assert mc.name.startswith(f"{md.name}-")

    @pytest.mark.asyncio
    async def test_machine_class_values(self, compiler, make_pool):
        pool = make_pool(zones=("eu-west-1a",), labels={"team": "core"})

        result = await compiler.compile([pool])
        values = result.machine_class_values()[0]

        assert values["ami"] == "ami-amd64"
        assert values["region"] == "eu-west-1"
        assert values["machineType"] == "m5.large"
        assert values["iamInstanceProfile"] == {"name": "shoot--core--dev-nodes"}
        assert values["networkInterfaces"] == [{"subnetID": "subnet-a", "securityGroupIDs": ["sg-nodes"]}]
        assert values["tags"] == {
            "kubernetes.io/cluster/shoot--core--dev": "1",
            "kubernetes.io/role/node": "1",
            "team": "core",
        }
        assert values["credentialsSecretRef"] == {"name": "cloudprovider", "namespace": NAMESPACE}
        assert values["secret"] == {
            "cloudConfig": "#cloud-config\n",
            "labels": {"gardener.cloud/purpose": "machineclass"},
        }
        assert values["instanceMetadataOptions"] == {"httpPutResponseHopLimit": 2, "httpTokens": "required"}
        assert values["keyName"] == "shoot--core--dev-ssh-publickey"
        assert values["operatingSystem"] == {
            "operatingSystemName": "gardenlinux",
            "operatingSystemVersion": "1592.1.0",
        }
        assert values["labels"] == {"failure-domain.beta.kubernetes.io/zone": "eu-west-1a"}
        assert "nodeTemplate" not in values
        assert len(values["blockDevices"]) == 1
        assert values["blockDevices"][0]["ebs"]["volumeSize"] == 50 * 1024**3

    @pytest.mark.asyncio
    async def test_compressed_user_data_is_kept_verbatim(self, compiler, make_pool):
        payload = gzip.compress(b"#cloud-config\n")
        compiler.user_data_fetcher = StaticUserData({"cpu": payload})

        result = await compiler.compile([make_pool(zones=("eu-west-1a",))])
        mc = result.machine_classes[0]
        rendered = result.machine_class_values()[0]["secret"]["cloudConfig"]

        assert mc.secret.cloud_config == payload
        assert rendered.encode(errors="surrogateescape") == payload
        assert json.loads(json.dumps(rendered)) == rendered

    @pytest.mark.asyncio
    async def test_pool_labels_override_base_tags(self, compiler, make_pool):
        pool = make_pool(labels={"kubernetes.io/role/node": "custom"})
        result = await compiler.compile([pool])
        assert result.machine_classes[0].tags["kubernetes.io/role/node"] == "custom"

    @pytest.mark.asyncio
    async def test_zone_topology_label(self, compiler, make_pool):
        result = await compiler.compile([make_pool(labels={"team": "core"})])

        for md, zone in zip(result.machine_deployments, ("eu-west-1a", "eu-west-1b"), strict=True):
            assert md.labels == {"topology.ebs.csi.aws.com/zone": zone, "team": "core"}

    @pytest.mark.asyncio
    async def test_pool_label_overrides_zone_topology_label(self, compiler, make_pool):
        pool = make_pool(labels={"topology.ebs.csi.aws.com/zone": "pinned"})
        result = await compiler.compile([pool])
        assert all(md.labels["topology.ebs.csi.aws.com/zone"] == "pinned" for md in result.machine_deployments)

    @pytest.mark.asyncio
    async def test_scaling_bounds_distributed_over_zones(self, compiler, make_pool):
        pool = make_pool(
            zones=("eu-west-1a", "eu-west-1b", "eu-west-1c"),
            minimum=4,
            maximum=7,
            max_surge=2,
            max_unavailable="25%",
        )

        deployments = (await compiler.compile([pool])).machine_deployments

        assert [md.minimum for md in deployments] == [2, 1, 1]
        assert [md.maximum for md in deployments] == [3, 2, 2]
        assert sum(md.minimum for md in deployments) == 4
        assert sum(md.maximum for md in deployments) == 7
        assert [md.max_surge for md in deployments] == [1, 1, 0]
        assert [md.max_unavailable for md in deployments] == ["25%", "25%", "25%"]

    @pytest.mark.asyncio
    async def test_injected_distributors(self, compiler, make_pool):
        calls: list[tuple] = []

        def distribute(index, total, count):
            calls.append(("int", index, total, count))
            return 100 + index

        def distribute_bound(index, value, count, base):
            calls.append(("bound", index, value, count, base))
            return value

        compiler._distribute = distribute
        compiler._distribute_bound = distribute_bound

        pool = make_pool(zones=("eu-west-1a",), minimum=1, maximum=3, max_surge=1, max_unavailable=0)
        md = (await compiler.compile([pool])).machine_deployments[0]

        assert (md.minimum, md.maximum) == (100, 100)
        assert calls == [
            ("int", 0, 1, 1),
            ("int", 0, 3, 1),
            ("bound", 0, 1, 1, 3),
            ("bound", 0, 0, 1, 1),
        ]

    @pytest.mark.asyncio
    async def test_pool_hash_receives_additional_data(self, compiler, make_pool):
        seen: list[tuple[str, ...]] = []

        def pool_hash(pool, cluster, *additional):
            seen.append(additional)
            return "fixed"

        compiler._pool_hash = pool_hash
        pool = make_pool(
            volume=Volume("50Gi", encrypted=False),
            data_volumes=(DataVolume(name="data", size="10Gi", type="gp3"),),
        )

        result = await compiler.compile([pool])

        assert seen == [("false", "10Gi", "gp3")]
        assert result.machine_classes[0].name == "shoot--core--dev-cpu-z1-fixed"

    @pytest.mark.asyncio
    async def test_encryption_change_renames_classes(self, compiler, make_pool):
        encrypted = await compiler.compile([make_pool(volume=Volume("50Gi", encrypted=True))])
        plain = await compiler.compile([make_pool(volume=Volume("50Gi", encrypted=False))])

        assert encrypted.machine_classes[0].name != plain.machine_classes[0].name
        assert encrypted.machine_deployments[0].name == plain.machine_deployments[0].name

    @pytest.mark.asyncio
    async def test_idempotent(self, compiler, make_pool):
        pools = [
            make_pool(data_volumes=(DataVolume(name="b", size="1Gi"), DataVolume(name="a", size="2Gi"))),
            make_pool(name="gpu", machine_type="g5.xlarge", zones=("eu-west-1c",)),
        ]

        first = await compiler.compile(pools)
        second = await compiler.compile(pools)

        assert first == second
        assert json.dumps(first.machine_class_values()) == json.dumps(second.machine_class_values())

    @pytest.mark.asyncio
    async def test_pools_then_zones_order_and_image_inventory(self, compiler, make_pool):
        pools = [
            make_pool(name="cpu", zones=("eu-west-1b", "eu-west-1a")),
            make_pool(name="gpu", zones=("eu-west-1c",), architecture="arm64"),
            make_pool(name="gpu", zones=("eu-west-1a",)),
        ]
        compiler.user_data_fetcher = AsyncMock()
        compiler.user_data_fetcher.fetch.return_value = b"#cloud-config"

        result = await compiler.compile(pools)

        assert [md.name for md in result.machine_deployments] == [
            "shoot--core--dev-cpu-z1",
            "shoot--core--dev-cpu-z2",
            "shoot--core--dev-gpu-z1",
            "shoot--core--dev-gpu-z1",
        ]
        assert [img.ami for img in result.machine_images] == ["ami-amd64", "ami-arm64"]

    @pytest.mark.asyncio
    async def test_default_architecture_from_settings(self, compiler, make_pool):
        compiler.settings = CompilerSettings(default_architecture="arm64")
        result = await compiler.compile([make_pool(zones=("eu-west-1a",))])
        assert result.machine_classes[0].ami == "ami-arm64"
        assert result.machine_images[0].architecture == "arm64"

    @pytest.mark.asyncio
    async def test_node_template_precedence(self, compiler, make_pool):
        generic = make_pool(zones=("eu-west-1a",), node_template=NodeTemplate({"cpu": "2"}))
        specific = replace(generic, provider_config={"nodeTemplate": {"capacity": {"cpu": "4"}}})

        generic_template = (await compiler.compile([generic])).machine_classes[0].node_template
        specific_template = (await compiler.compile([specific])).machine_classes[0].node_template

        assert generic_template.capacity == {"cpu": "2"}
        assert specific_template.capacity == {"cpu": "4"}
        assert specific_template.to_dict() == {
            "capacity": {"cpu": "4"},
            "instanceType": "m5.large",
            "region": "eu-west-1",
            "zone": "eu-west-1a",
            "architecture": "amd64",
        }

    @pytest.mark.asyncio
    async def test_operating_system_requires_name_and_version(self, compiler, make_pool, image_catalog):
        compiler.image_resolver = replace(
            image_catalog,
            entries=(*image_catalog.entries, replace(image_catalog.entries[0], version="")),
        )
        pool = make_pool(zones=("eu-west-1a",), machine_image=MachineImageRef("gardenlinux", ""))
        result = await compiler.compile([pool])
        assert result.machine_classes[0].operating_system is None

    @pytest.mark.asyncio
    async def test_no_key_name_when_infrastructure_has_none(self, compiler, make_pool, infrastructure_status):
        compiler.infrastructure_status = replace(infrastructure_status, ec2=replace(infrastructure_status.ec2, key_name=""))
        values = (await compiler.compile([make_pool()])).machine_class_values()[0]
        assert "keyName" not in values

    @pytest.mark.asyncio
    async def test_provider_config_overrides(self, compiler, make_pool):
        pool = make_pool(
            zones=("eu-west-1a",),
            provider_config=json.dumps(
                {
                    "iamInstanceProfile": {"name": "custom"},
                    "instanceMetadataOptions": {"httpTokens": "optional"},
                }
            ),
        )
        mc = (await compiler.compile([pool])).machine_classes[0]
        assert mc.iam_instance_profile == IAMProfileByName("custom")
        assert mc.instance_metadata_options.to_dict() == {"httpTokens": "optional"}

    @pytest.mark.asyncio
    async def test_deployment_passthrough_fields(self, compiler, make_pool):
        pool = make_pool(
            zones=("eu-west-1a",),
            annotations={"note": "x"},
            taints=(Taint(key="dedicated", effect="NoSchedule", value="gpu"),),
            cluster_autoscaler=ClusterAutoscalerOptions(scale_down_unneeded_time="10m"),
            machine_controller_settings=MachineControllerSettings(
                machine_drain_timeout="2h", node_conditions=("ReadonlyFilesystem", "KernelDeadlock")
            ),
        )
        md = (await compiler.compile([pool])).machine_deployments[0]
        assert md.annotations == {"note": "x"}
        assert md.taints == pool.taints
        assert md.cluster_autoscaler_annotations == {"autoscaler.gardener.cloud/scale-down-unneeded-time": "10m"}
        assert md.machine_configuration == MachineConfiguration(
            drain_timeout="2h", node_conditions="ReadonlyFilesystem,KernelDeadlock"
        )


class TestPoolCompilerErrors:
    @pytest.mark.asyncio
    async def test_missing_security_group(self, compiler, make_pool, infrastructure_status):
        compiler.infrastructure_status = replace(
            infrastructure_status, vpc=replace(infrastructure_status.vpc, security_groups=())
        )
        with pytest.raises(SecurityGroupNotFound):
            await compiler.compile([make_pool()])

    @pytest.mark.asyncio
    async def test_missing_subnet(self, compiler, make_pool):
        with pytest.raises(SubnetNotFound) as exc_info:
            await compiler.compile([make_pool(zones=("eu-west-1a", "eu-west-1z"))])
        assert exc_info.value.zone == "eu-west-1z"
        assert exc_info.value.pool == "cpu"

    @pytest.mark.asyncio
    async def test_missing_image(self, compiler, make_pool):
        with pytest.raises(ImageNotFound):
            await compiler.compile([make_pool(machine_image=MachineImageRef("flatcar", "1.0"))])

    @pytest.mark.asyncio
    async def test_bad_provider_config(self, compiler, make_pool):
        with pytest.raises(ConfigDecodeError):
            await compiler.compile([make_pool(provider_config=b"{")])

    @pytest.mark.asyncio
    async def test_missing_user_data(self, compiler, make_pool):
        with pytest.raises(UserDataNotFound):
            await compiler.compile([make_pool(name="unknown")])

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self, compiler, make_pool):
        compiler.user_data_fetcher = AsyncMock()
        compiler.user_data_fetcher.fetch.side_effect = asyncio.CancelledError()

        with pytest.raises(asyncio.CancelledError):
            await compiler.compile([make_pool()])

    @pytest.mark.asyncio
    async def test_empty_infrastructure(self, compiler, make_pool):
        compiler.infrastructure_status = InfrastructureStatus(vpc=VPCStatus())
        with pytest.raises(SecurityGroupNotFound):
            await compiler.compile([make_pool()])


class TestWorkerDelegate:
    @pytest.mark.asyncio
    async def test_compiles_once(self, compiler, make_pool):
        compiler.user_data_fetcher = AsyncMock()
        compiler.user_data_fetcher.fetch.return_value = b"#cloud-config"
        delegate = WorkerDelegate(compiler, [make_pool()])

        assert delegate.machine_images == ()
        deployments = await delegate.generate_machine_deployments()
        values = await delegate.machine_class_values()

        assert len(deployments) == 2
        assert len(values) == 2
        assert delegate.machine_images[0].ami == "ami-amd64"
        assert compiler.user_data_fetcher.fetch.await_count == 1

    @pytest.mark.asyncio
    async def test_reset_recompiles(self, compiler, make_pool):
        compiler.user_data_fetcher = AsyncMock()
        compiler.user_data_fetcher.fetch.return_value = b"#cloud-config"
        delegate = WorkerDelegate(compiler, [make_pool()])

        await delegate.generate_machine_deployments()
        delegate.reset()
        await delegate.generate_machine_deployments()

        assert compiler.user_data_fetcher.fetch.await_count == 2

    @pytest.mark.asyncio
    async def test_failure_caches_nothing(self, compiler, make_pool):
        delegate = WorkerDelegate(compiler, [make_pool(name="unknown")])

        with pytest.raises(UserDataNotFound):
            await delegate.generate_machine_deployments()
        assert delegate.machine_images == ()


class TestReadAutoscalerAnnotations:
    def test_none(self):
        assert read_autoscaler_annotations(None) == {}

    def test_all(self):
        options = ClusterAutoscalerOptions(
            scale_down_utilization_threshold="0.5",
            scale_down_gpu_utilization_threshold="0.6",
            scale_down_unneeded_time="1m",
            scale_down_unready_time="2m",
            max_node_provision_time="3m",
        )
        assert read_autoscaler_annotations(options) == {
            "autoscaler.gardener.cloud/scale-down-utilization-threshold": "0.5",
            "autoscaler.gardener.cloud/scale-down-gpu-utilization-threshold": "0.6",
            "autoscaler.gardener.cloud/scale-down-unneeded-time": "1m",
            "autoscaler.gardener.cloud/scale-down-unready-time": "2m",
            "autoscaler.gardener.cloud/max-node-provision-time": "3m",
        }
