"""Assembly of the deployable artifact set for one build."""

import logging
from typing import Mapping, Optional

from ...models.models import BuildInfo, DeployableArtifactSet, DeployDetail, artifact_id
from ...utils.checksums import MD5, SHA1, ChecksumComputer

logger = logging.getLogger(__name__)


def prepare_deployable_artifacts(
    build: BuildInfo,
    templates: Mapping[str, DeployDetail],
    checksum_computer: Optional[ChecksumComputer] = None,
) -> DeployableArtifactSet:
    """Join the build's artifacts with their deploy templates.

    Only artifacts present both in the build's modules and in ``templates``
    are deployable. Checksums are computed from each template's file and
    recorded on the build's artifact as well; a file that cannot be hashed is
    deployed without checksums.

    Args:
        build: Build-info document; its artifacts receive the checksums
        templates: Deploy templates keyed by ``artifact_id(module, artifact)``
        checksum_computer: Checksum computer (default: md5 + sha1 via hashlib)

    Returns:
        Deployables in module then artifact order, unique by artifact path
    """
    checksum_computer = checksum_computer or ChecksumComputer()
    deployables = DeployableArtifactSet()

    for module in build.modules:
        for artifact in module.artifacts or []:
            template = templates.get(artifact_id(module.id, artifact.name))
            if template is None:
                continue

            checksums = checksum_computer.try_calculate(template.file, (MD5, SHA1))
            if checksums:
                artifact.md5 = checksums[MD5]
                artifact.sha1 = checksums[SHA1]
            else:
                logger.warning("Could not set checksum values on '%s'", artifact.name)

            detail = template.with_changes(
                md5=checksums.get(MD5), sha1=checksums.get(SHA1)
            )

            if not deployables.add(detail):
                logger.debug("Duplicate deploy path ignored: %s", detail.artifact_path)

    logger.debug("Prepared %d deployable artifacts", len(deployables))
    return deployables
