from objectmother.core.config import ObjectMotherConfig
from objectmother.core.exceptions import CreationFailedError
from objectmother.core.log import log


class EntityLifecycle():
    """
    Thin call-through to the lifecycle operations of an entity type.

    The entity type is expected to provide create(attrs), find_by_id(id) and
    destroy(id) and optionally create_or_raise(attrs). Nothing is done here
    beyond delegating to those.
    """
    def __init__(self, kind, entity_type):
        self.kind = kind
        self.entity_type = entity_type

    def __repr__(self):
        return f"EntityLifecycle({self.kind!r}, {self.entity_type!r})"

    @staticmethod
    def identity_of(entity):
        """
        Return the identity of an entity or None if it doesn't have one.
        """
        if entity is None:
            return None

        return getattr(entity, ObjectMotherConfig.identity_attribute, None)

    def create(self, attrs):
        """
        Create an entity without raising on rejection. A backend rejection is
        either reported by the backend returning None or by it raising
        CreationFailedError, in which case None is returned here.
        """
        log.debug("%s.create(%s)", self.kind, attrs)
        try:
            return self.entity_type.create(attrs)
        except CreationFailedError as exc:
            log.info("%s creation rejected: %s", self.kind, exc)
            return None

    def create_or_raise(self, attrs):
        """
        Create an entity, raising CreationFailedError if the backend rejects
        it. Exceptions raised by the backend are propagated as-is.
        """
        log.debug("%s.create_or_raise(%s)", self.kind, attrs)
        create_or_raise = getattr(self.entity_type, 'create_or_raise', None)
        if create_or_raise is not None:
            return create_or_raise(attrs)

        entity = self.entity_type.create(attrs)
        if entity is None:
            raise CreationFailedError(
                f"{self.kind} creation rejected with attributes {attrs}")

        return entity

    def find_by_id(self, identity):
        return self.entity_type.find_by_id(identity)

    def destroy(self, identity):
        log.debug("%s.destroy(%s)", self.kind, identity)
        self.entity_type.destroy(identity)
