from dataclasses import dataclass
from enum import Enum

from storage_gateway.core.config import Settings, get_settings
from storage_gateway.core.errors import UnknownBucket


class BucketName(str, Enum):
    PROJECTS = "projects"
    AVATARS = "avatars"
    EXPORTS = "exports"
    FEEDBACK = "feedback"


PUBLIC_BUCKETS = frozenset({BucketName.AVATARS})


@dataclass(frozen=True)
class BucketBinding:
    name: BucketName
    physical_name: str

    @property
    def is_public(self) -> bool:
        return self.name in PUBLIC_BUCKETS


class BucketResolver:
    """Maps logical bucket names onto the configured storage buckets."""

    def __init__(self, settings: Settings | None = None) -> None:
        settings = settings or get_settings()
        self._bindings: dict[str, BucketBinding] = {
            BucketName.PROJECTS.value: BucketBinding(BucketName.PROJECTS, settings.projects_bucket),
            BucketName.AVATARS.value: BucketBinding(BucketName.AVATARS, settings.avatars_bucket),
            BucketName.EXPORTS.value: BucketBinding(BucketName.EXPORTS, settings.exports_bucket),
            BucketName.FEEDBACK.value: BucketBinding(BucketName.FEEDBACK, settings.feedback_bucket),
        }

    def resolve(self, name: str | None) -> BucketBinding:
        binding = self._bindings.get(name) if isinstance(name, str) else None
        if binding is None:
            raise UnknownBucket(name)
        return binding

    def bindings(self) -> list[BucketBinding]:
        return list(self._bindings.values())
