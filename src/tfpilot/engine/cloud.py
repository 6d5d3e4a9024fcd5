"""AWS calls made outside of terraform."""

import os
from pathlib import Path
from typing import List, Optional

import boto3
import structlog
from botocore.exceptions import ClientError

from ..exceptions import ProvisioningError

logger = structlog.get_logger()

# S3 DeleteObjects accepts at most 1000 keys per request
DELETE_BATCH_SIZE = 1000


class CloudClient:
    """Key pairs, state backend teardown and tag lookups on one boto3 session."""

    def __init__(self, session: boto3.Session):
        self.session = session

    @classmethod
    def from_profile(cls, profile: str, region: Optional[str] = None) -> "CloudClient":
        return cls(boto3.Session(profile_name=profile, region_name=region))

    def has_credentials(self) -> bool:
        return self.session.get_credentials() is not None

    def ensure_key_pair(self, name: str, key_dir: Path) -> Optional[Path]:
        """
        Ensure an EC2 key pair exists.

        A new key pair's private material is written to <key_dir>/<name>.pem,
        readable by the owner only.

        Args:
            name: Key pair name
            key_dir: Directory for the private key file

        Returns:
            Path of the written key file, or None if the key pair already existed
        """
        ec2 = self.session.client("ec2")

        try:
            ec2.describe_key_pairs(KeyNames=[name])
            logger.info("Key pair already exists", key_pair=name)

            key_path = key_dir / f"{name}.pem"
            if not key_path.exists():
                logger.warning("Private key file not found locally", key_pair=name, path=str(key_path))
            return None

        except ClientError as e:
            if e.response["Error"]["Code"] != "InvalidKeyPair.NotFound":
                raise

        response = ec2.create_key_pair(KeyName=name)

        key_dir.mkdir(parents=True, exist_ok=True)
        key_path = key_dir / f"{name}.pem"
        fd = os.open(key_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w") as f:
            f.write(response["KeyMaterial"])

        logger.info("Created key pair", key_pair=name, path=str(key_path))
        return key_path

    def delete_state_bucket(self, bucket: str) -> Optional[int]:
        """
        Empty and delete a versioned bucket.

        Versioning is suspended first, then every object version and delete
        marker is removed before the bucket itself.

        Returns:
            Number of versions and delete markers removed, or None if the
            bucket does not exist
        """
        s3 = self.session.client("s3")

        try:
            s3.put_bucket_versioning(
                Bucket=bucket,
                VersioningConfiguration={"Status": "Suspended"},
            )
        except ClientError as e:
            if e.response["Error"]["Code"] != "NoSuchBucket":
                raise
            logger.warning("State bucket does not exist", bucket=bucket)
            return None

        removed = 0
        batch: List[dict] = []

        paginator = s3.get_paginator("list_object_versions")
        for page in paginator.paginate(Bucket=bucket):
            for entry in page.get("Versions", []) + page.get("DeleteMarkers", []):
                batch.append({"Key": entry["Key"], "VersionId": entry["VersionId"]})

                if len(batch) == DELETE_BATCH_SIZE:
                    removed += self._delete_objects(s3, bucket, batch)
                    batch = []

        if batch:
            removed += self._delete_objects(s3, bucket, batch)

        s3.delete_bucket(Bucket=bucket)
        logger.info("Deleted state bucket", bucket=bucket, removed=removed)

        return removed

    def _delete_objects(self, s3, bucket: str, objects: List[dict]) -> int:
        response = s3.delete_objects(
            Bucket=bucket,
            Delete={"Objects": objects, "Quiet": True},
        )

        if errors := response.get("Errors"):
            first = errors[0]
            raise ProvisioningError(
                f"Failed to delete {len(errors)} object(s) from {bucket}: "
                f"{first.get('Key')}: {first.get('Message')}"
            )

        return len(objects)

    def delete_lock_table(self, table: str) -> bool:
        """Delete the lock table. Returns False if it does not exist."""
        dynamodb = self.session.client("dynamodb")

        try:
            dynamodb.delete_table(TableName=table)
        except ClientError as e:
            if e.response["Error"]["Code"] != "ResourceNotFoundException":
                raise
            logger.warning("Lock table does not exist", table=table)
            return False

        logger.info("Deleted lock table", table=table)
        return True

    def tagged_resources(self, tag_key: str, value: str) -> List[str]:
        """Return the ARNs of all resources tagged with tag_key=value."""
        tagging = self.session.client("resourcegroupstaggingapi")

        arns = []
        paginator = tagging.get_paginator("get_resources")
        for page in paginator.paginate(TagFilters=[{"Key": tag_key, "Values": [value]}]):
            for mapping in page.get("ResourceTagMappingList", []):
                arns.append(mapping["ResourceARN"])

        return arns
