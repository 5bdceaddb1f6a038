from awsworkers.core.exceptions import (
    AWSWorkersError,
    ConfigDecodeError,
    ConfigurationError,
    DeviceNamingExhausted,
    ImageNotFound,
    LookupFailedError,
    ProfileNotFound,
    ProfileUnresolvable,
    SecurityGroupNotFound,
    SizeParseError,
    SubnetNotFound,
    UserDataNotFound,
    VersionParseError,
)

__all__ = [
    "AWSWorkersError",
    "ConfigDecodeError",
    "ConfigurationError",
    "DeviceNamingExhausted",
    "ImageNotFound",
    "LookupFailedError",
    "ProfileNotFound",
    "ProfileUnresolvable",
    "SecurityGroupNotFound",
    "SizeParseError",
    "SubnetNotFound",
    "UserDataNotFound",
    "VersionParseError",
]
