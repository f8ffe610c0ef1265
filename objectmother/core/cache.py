from collections import UserDict

from objectmother.core.log import log


class IdentityCache(UserDict):
    """
    Maps the name of a prototype to the identity of the entity last produced
    for it.

    Named prototypes are reloaded from the backend using this identity rather
    than created again, which avoids tripping uniqueness constraints when the
    same named fixture is used across many tests. Entries are never evicted
    automatically.
    """

    def put(self, name, identity):
        if identity is None:
            return

        log.debug("caching %s -> %s", name, identity)
        self.data[name] = identity

    def store(self, name, entity, identity_of):
        """
        Cache the identity of entity under name if it has one.

        @param identity_of: callable returning the identity of an entity or
                            None.
        @return: entity
        """
        if entity is not None:
            self.put(name, identity_of(entity))

        return entity

    def invalidate(self, name):
        """ Remove the entry for name returning its identity if any. """
        identity = self.data.pop(name, None)
        if identity is not None:
            log.debug("invalidated cached %s -> %s", name, identity)

        return identity
